"""
Tests for CheckpointVerifier.

A failed check is recorded, never raised. The first matching rule wins:
stolen livestock, then inactive status, then not-yet-valid, then expired.
"""
from datetime import date, timedelta

import pytest

from digistock.models.db_models import PermitStatus
from digistock.services.workflow import (
    CheckpointVerifier, LivestockService, PermitService, evaluate_permit,
)
from digistock.services.workflow.checkpoint_verifier import STOLEN_ALERT


# =============================================================================
# TEST: EVALUATION RULES
# =============================================================================

class TestEvaluatePermit:

    def test_valid_permit(self, permit):
        result = evaluate_permit(permit)
        assert result.is_valid is True
        assert result.flag_reason is None

    def test_in_transit_is_still_accepted(self, db, permit):
        permit.status = PermitStatus.IN_TRANSIT
        assert evaluate_permit(permit).is_valid

    def test_stolen_wins_over_everything(self, db, permit):
        permit.livestock.stolen = True
        permit.status = PermitStatus.CANCELLED
        result = evaluate_permit(permit, today=permit.valid_until + timedelta(days=30))
        assert result.is_valid is False
        assert result.flag_reason == STOLEN_ALERT

    @pytest.mark.parametrize("status", [PermitStatus.CANCELLED, PermitStatus.COMPLETED, PermitStatus.EXPIRED])
    def test_inactive_status(self, permit, status):
        permit.status = status
        result = evaluate_permit(permit)
        assert result.is_valid is False
        assert result.flag_reason == f"Permit status is {status.value}"

    def test_not_yet_valid(self, permit):
        result = evaluate_permit(permit, today=permit.valid_from - timedelta(days=1))
        assert result.is_valid is False
        assert result.flag_reason == f"Permit not yet valid. Valid from: {permit.valid_from.isoformat()}"

    def test_expired(self, permit):
        result = evaluate_permit(permit, today=permit.valid_until + timedelta(days=1))
        assert result.is_valid is False
        assert result.flag_reason == f"Permit has expired. Valid until: {permit.valid_until.isoformat()}"

    def test_window_edges_pass(self, permit):
        assert evaluate_permit(permit, today=permit.valid_from).is_valid
        assert evaluate_permit(permit, today=permit.valid_until).is_valid


# =============================================================================
# TEST: RECORDING
# =============================================================================

class TestRecording:

    def test_stolen_scan_is_recorded_not_raised(self, db, storage, police, cow, permit):
        LivestockService(db).report_stolen(cow.id, police.id)

        moving, verification = PermitService(db, storage).verify(
            permit.id, police.id, location_description="Roadblock 4, Mazowe road"
        )

        assert verification.valid is False
        assert verification.flag_reason == STOLEN_ALERT
        assert verification.location_description == "Roadblock 4, Mazowe road"
        # Flagged scans do not block the movement state
        assert moving.status == PermitStatus.IN_TRANSIT

    def test_scan_of_cancelled_permit_is_recorded(self, db, police, permit):
        service = PermitService(db)
        service.cancel(permit.id, police.id, "Duplicate")

        cancelled, verification = service.verify(permit.id, police.id)

        assert cancelled.status == PermitStatus.CANCELLED
        assert verification.valid is False
        assert verification.flag_reason == "Permit status is CANCELLED"

    def test_history_is_time_ordered(self, db, police, permit):
        verifier = CheckpointVerifier(db)
        late = verifier.record(permit, police, verified_at=permit.issued_at + timedelta(hours=5))
        early = verifier.record(permit, police, verified_at=permit.issued_at + timedelta(hours=1))
        db.commit()

        assert [v.id for v in verifier.history(permit.id)] == [early.id, late.id]
        assert verifier.count(permit.id) == 2

    def test_record_with_explicit_day(self, db, police, permit):
        verification = CheckpointVerifier(db).record(
            permit, police, today=date.today() + timedelta(days=30)
        )
        db.commit()
        assert verification.valid is False
        assert verification.flag_reason.startswith("Permit has expired")
