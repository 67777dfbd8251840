"""
Tests for the movement permit workflow.

Test Coverage:
1. Scenario A - clearance → approve → permit is APPROVED and valid
2. Scenario B - permit against a PENDING clearance fails
3. Scenario C - first scan moves to IN_TRANSIT, second scan only records
4. Scenario E - cancel COMPLETED fails, cancel IN_TRANSIT succeeds
5. Creation preconditions and default validity window
6. Validity across boundary dates
"""
from datetime import date, timedelta

import pytest

from digistock.models.db_models import OfficerRole, PermitStatus
from digistock.services.errors import (
    BusinessRuleError, InvalidTransitionError, NotFoundError, ValidationError,
)
from digistock.services.workflow import ClearanceService, LivestockService, PermitService


@pytest.fixture
def service(db, storage):
    return PermitService(db, storage)


def _create(service, clearance, livestock, officer, **kwargs):
    return service.create(
        clearance_id=clearance.id,
        livestock_id=livestock.id,
        from_location="Mazowe",
        to_location="Harare Abattoir",
        officer_id=officer.id,
        **kwargs,
    )


# =============================================================================
# TEST: SCENARIOS
# =============================================================================

class TestScenarios:

    def test_scenario_a_clearance_to_valid_permit(self, db, storage, police, agritex, cow, owner):
        clearances = ClearanceService(db, storage)
        clearance = clearances.create(cow.id, owner.id, police.id)
        clearance = clearances.approve(clearance.id, police.id)

        permit = _create(PermitService(db, storage), clearance, cow, agritex)

        assert permit.status == PermitStatus.APPROVED
        assert permit.is_valid()
        assert permit.permit_number == f"DG-{date.today().year}-000001"
        assert permit.qr_ref in storage.objects

    def test_scenario_b_pending_clearance(self, db, service, police, agritex, cow, owner):
        pending = ClearanceService(db).create(cow.id, owner.id, police.id)
        with pytest.raises(BusinessRuleError, match="must be APPROVED"):
            _create(service, pending, cow, agritex)

    def test_scenario_c_repeat_scans(self, service, police, permit):
        permit_after, first = service.verify(permit.id, police.id, latitude=-17.5, longitude=31.1)
        assert permit_after.status == PermitStatus.IN_TRANSIT
        assert first.valid is True
        assert first.flag_reason is None

        permit_after, second = service.verify(permit.id, police.id, notes="second roadblock")
        assert permit_after.status == PermitStatus.IN_TRANSIT
        assert second.notes == "second roadblock"
        assert service.verification_count(permit.id) == 2
        assert [v.id for v in service.verifications(permit.id)] == [first.id, second.id]

    def test_scenario_e_cancel_rules(self, db, storage, agritex, police, cow, approved_clearance, service):
        completed = _create(service, approved_clearance, cow, agritex)
        service.complete(completed.id, agritex.id)
        with pytest.raises(InvalidTransitionError, match="COMPLETED"):
            service.cancel(completed.id, agritex.id, "too late")

        moving = _create(service, approved_clearance, cow, agritex)
        service.verify(moving.id, police.id)
        cancelled = service.cancel(moving.id, agritex.id, "Vehicle breakdown")
        assert cancelled.status == PermitStatus.CANCELLED
        assert cancelled.cancellation_reason == "Vehicle breakdown"


# =============================================================================
# TEST: CREATE
# =============================================================================

class TestCreate:

    def test_default_window(self, service, agritex, cow, approved_clearance):
        permit = _create(service, approved_clearance, cow, agritex)
        assert permit.valid_from == date.today()
        assert permit.valid_until == date.today() + timedelta(days=7)

    def test_explicit_window_and_transport_details(self, service, agritex, cow, approved_clearance):
        start = date.today() + timedelta(days=2)
        permit = _create(
            service, approved_clearance, cow, agritex,
            valid_from=start,
            valid_until=start + timedelta(days=1),
            purpose="Sale",
            transport_mode="Truck",
            vehicle_number="ABC 1234",
            driver_name="J. Banda",
        )
        assert permit.valid_until == start + timedelta(days=1)
        assert permit.vehicle_number == "ABC 1234"
        assert not permit.is_valid()  # window starts in the future

    def test_numbers_increase(self, service, agritex, cow, approved_clearance):
        first = _create(service, approved_clearance, cow, agritex)
        second = _create(service, approved_clearance, cow, agritex)
        assert first.permit_number.endswith("-000001")
        assert second.permit_number.endswith("-000002")

    def test_date_order(self, service, agritex, cow, approved_clearance):
        with pytest.raises(BusinessRuleError, match="on or after"):
            _create(
                service, approved_clearance, cow, agritex,
                valid_from=date.today(), valid_until=date.today() - timedelta(days=1),
            )

    def test_same_day_window_is_allowed(self, service, agritex, cow, approved_clearance):
        permit = _create(
            service, approved_clearance, cow, agritex,
            valid_from=date.today(), valid_until=date.today(),
        )
        assert permit.is_valid()

    def test_expired_clearance(self, db, service, agritex, cow, approved_clearance):
        approved_clearance.expiry_date = date.today() - timedelta(days=1)
        db.commit()
        with pytest.raises(BusinessRuleError, match="expired"):
            _create(service, approved_clearance, cow, agritex)

    def test_clearance_for_other_livestock(self, service, agritex, make_livestock, owner, approved_clearance):
        other = make_livestock(owner)
        with pytest.raises(BusinessRuleError, match="not for this livestock"):
            _create(service, approved_clearance, other, agritex)

    def test_stolen_livestock(self, db, service, police, agritex, cow, approved_clearance):
        LivestockService(db).report_stolen(cow.id, police.id)
        with pytest.raises(BusinessRuleError, match="stolen"):
            _create(service, approved_clearance, cow, agritex)

    def test_police_cannot_issue_permits(self, service, police, cow, approved_clearance):
        with pytest.raises(BusinessRuleError, match="issue movement permits"):
            _create(service, approved_clearance, cow, police)

    def test_admin_can_issue_permits(self, service, make_officer, cow, approved_clearance):
        admin = make_officer(OfficerRole.ADMIN)
        assert _create(service, approved_clearance, cow, admin).status == PermitStatus.APPROVED

    @pytest.mark.parametrize("field", ["from_location", "to_location"])
    def test_locations_required(self, service, agritex, cow, approved_clearance, field):
        kwargs = {
            "clearance_id": approved_clearance.id,
            "livestock_id": cow.id,
            "from_location": "Mazowe",
            "to_location": "Harare",
            "officer_id": agritex.id,
        }
        kwargs[field] = "  "
        with pytest.raises(ValidationError) as exc:
            service.create(**kwargs)
        assert exc.value.field == field

    def test_failed_create_stores_nothing(self, service, storage, agritex, make_livestock, owner, approved_clearance):
        uploaded = set(storage.objects)
        other = make_livestock(owner)
        with pytest.raises(BusinessRuleError):
            _create(service, approved_clearance, other, agritex)
        assert set(storage.objects) == uploaded


# =============================================================================
# TEST: COMPLETE / CANCEL
# =============================================================================

class TestCompleteCancel:

    def test_complete_from_approved(self, service, permit):
        completed = service.complete(permit.id, permit.issued_by_id, latitude=-17.83, longitude=31.05)
        assert completed.status == PermitStatus.COMPLETED
        assert completed.completed_at is not None
        assert completed.completion_latitude == -17.83

    def test_complete_twice_fails(self, service, permit):
        service.complete(permit.id, permit.issued_by_id)
        with pytest.raises(InvalidTransitionError):
            service.complete(permit.id, permit.issued_by_id)

    def test_cancel_requires_reason(self, service, permit):
        with pytest.raises(ValidationError):
            service.cancel(permit.id, permit.issued_by_id, " ")
        assert service.get(permit.id).status == PermitStatus.APPROVED

    def test_cancelled_permit_cannot_complete(self, service, permit):
        service.cancel(permit.id, permit.issued_by_id, "Buyer withdrew")
        with pytest.raises(InvalidTransitionError, match="CANCELLED"):
            service.complete(permit.id, permit.issued_by_id)

    def test_inactive_officer_cannot_complete_or_cancel(self, service, make_officer, permit):
        inactive = make_officer(OfficerRole.ADMIN, active=False)
        with pytest.raises(BusinessRuleError, match="not active"):
            service.complete(permit.id, inactive.id)
        with pytest.raises(BusinessRuleError, match="not active"):
            service.cancel(permit.id, inactive.id, "Buyer withdrew")
        assert service.get(permit.id).status == PermitStatus.APPROVED

    def test_unknown_permit(self, service, agritex):
        with pytest.raises(NotFoundError):
            service.complete("missing", agritex.id)


# =============================================================================
# TEST: VALIDITY & READS
# =============================================================================

class TestValidityAndReads:

    def test_validity_boundaries(self, permit):
        assert not permit.is_valid(on=permit.valid_from - timedelta(days=1))
        assert permit.is_valid(on=permit.valid_from)
        assert permit.is_valid(on=permit.valid_until)
        assert not permit.is_valid(on=permit.valid_until + timedelta(days=1))

    def test_in_transit_is_not_valid(self, service, police, permit):
        moving, _ = service.verify(permit.id, police.id)
        assert not moving.is_valid()

    def test_list_valid_only_approved_in_window(self, service, police, agritex, cow, approved_clearance):
        current = _create(service, approved_clearance, cow, agritex)
        _create(
            service, approved_clearance, cow, agritex,
            valid_from=date.today() + timedelta(days=3),
            valid_until=date.today() + timedelta(days=5),
        )
        moving = _create(service, approved_clearance, cow, agritex)
        service.verify(moving.id, police.id)

        items, total = service.list_valid()
        assert total == 1
        assert items[0].id == current.id

    def test_list_by_status_and_livestock(self, service, police, permit):
        service.verify(permit.id, police.id)
        assert service.list_by_status(PermitStatus.IN_TRANSIT)[1] == 1
        assert service.list_by_status(PermitStatus.APPROVED)[1] == 0
        assert service.list_by_livestock(permit.livestock_id)[1] == 1

    def test_get_by_number(self, service, permit):
        assert service.get_by_number(permit.permit_number).id == permit.id
        with pytest.raises(NotFoundError):
            service.get_by_number("DG-1999-000001")

    def test_verifications_of_unknown_permit(self, service):
        with pytest.raises(NotFoundError):
            service.verifications("missing")
