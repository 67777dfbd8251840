"""
Tests for clearance and permit analytics.

Test Coverage:
1. Every status is reported, zero counts included
2. Permits issued this month, bounded by calendar month
3. Reporting routes restricted to admins and police
"""
from datetime import date, datetime

import pytest

from digistock.models.db_models import OfficerRole
from digistock.services.analytics_service import AnalyticsService, month_bounds
from digistock.services.workflow import ClearanceService, PermitService

API = "/api/v1"


@pytest.fixture
def service(db):
    return AnalyticsService(db)


# =============================================================================
# TEST: SERVICE
# =============================================================================

class TestAnalyticsService:

    def test_empty_database(self, service):
        permits = service.permit_analytics()
        assert permits.total_permits == 0
        assert permits.issued_this_month == 0
        assert permits.by_status == {
            "PENDING": 0, "APPROVED": 0, "IN_TRANSIT": 0, "COMPLETED": 0, "EXPIRED": 0, "CANCELLED": 0,
        }

        clearances = service.clearance_analytics()
        assert clearances.total_clearances == 0
        assert list(clearances.by_status) == ["PENDING", "APPROVED", "REJECTED", "EXPIRED"]

    def test_counts_follow_transitions(self, db, service, police, cow, owner, permit):
        ClearanceService(db).create(cow.id, owner.id, police.id)
        PermitService(db).verify(permit.id, police.id)

        clearances = service.clearance_analytics()
        assert clearances.total_clearances == 2
        assert clearances.by_status["APPROVED"] == 1
        assert clearances.by_status["PENDING"] == 1

        permits = service.permit_analytics()
        assert permits.total_permits == 1
        assert permits.by_status["IN_TRANSIT"] == 1
        assert permits.by_status["APPROVED"] == 0
        assert permits.issued_this_month == 1

    def test_issued_this_month_excludes_other_months(self, service, permit):
        issued = permit.issued_at.date()
        next_year = date(issued.year + 1, issued.month, 1)
        assert service.permit_analytics(today=issued).issued_this_month == 1
        assert service.permit_analytics(today=next_year).issued_this_month == 0

    def test_month_bounds(self):
        assert month_bounds(date(2026, 3, 17)) == (datetime(2026, 3, 1), datetime(2026, 4, 1))
        assert month_bounds(date(2026, 12, 31)) == (datetime(2026, 12, 1), datetime(2027, 1, 1))


# =============================================================================
# TEST: ROUTES
# =============================================================================

class TestAnalyticsRoutes:

    def test_police_can_read(self, client, police, permit):
        headers = {"X-Officer-Id": police.id}

        permits = client.get(f"{API}/analytics/permits", headers=headers)
        assert permits.status_code == 200
        assert permits.json()["total_permits"] == 1
        assert permits.json()["by_status"]["APPROVED"] == 1

        clearances = client.get(f"{API}/analytics/clearances", headers=headers)
        assert clearances.status_code == 200
        assert clearances.json()["by_status"]["APPROVED"] == 1

    @pytest.mark.parametrize("role", [OfficerRole.NATIONAL_ADMIN, OfficerRole.ADMIN])
    def test_admins_can_read(self, client, make_officer, role):
        admin = make_officer(role)
        response = client.get(f"{API}/analytics/clearances", headers={"X-Officer-Id": admin.id})
        assert response.status_code == 200

    def test_other_roles_are_403(self, client, agritex):
        response = client.get(f"{API}/analytics/permits", headers={"X-Officer-Id": agritex.id})
        assert response.status_code == 403

    def test_inactive_admin_is_403(self, client, make_officer):
        inactive = make_officer(OfficerRole.ADMIN, active=False)
        response = client.get(f"{API}/analytics/permits", headers={"X-Officer-Id": inactive.id})
        assert response.status_code == 403

    def test_requires_identity(self, client):
        assert client.get(f"{API}/analytics/clearances").status_code == 401
