"""
Tests for the workflow transition tables.

Every status change goes through StateMachine.transition(), so these
tables are the whole set of legal moves.
"""
import pytest

from digistock.models.db_models import ClearanceStatus, PermitStatus, TransferStatus
from digistock.services.errors import InvalidTransitionError
from digistock.services.workflow import (
    CLEARANCE_STATE_MACHINE, PERMIT_STATE_MACHINE, TRANSFER_STATE_MACHINE,
)


# =============================================================================
# TEST: CLEARANCE
# =============================================================================

class TestClearanceTransitions:

    def test_pending_can_be_approved_or_rejected(self):
        sm = CLEARANCE_STATE_MACHINE
        assert sm.transition(ClearanceStatus.PENDING, "approve") == ClearanceStatus.APPROVED
        assert sm.transition(ClearanceStatus.PENDING, "reject") == ClearanceStatus.REJECTED

    @pytest.mark.parametrize("status", [ClearanceStatus.APPROVED, ClearanceStatus.REJECTED, ClearanceStatus.EXPIRED])
    @pytest.mark.parametrize("action", ["approve", "reject"])
    def test_only_pending_is_a_source(self, status, action):
        with pytest.raises(InvalidTransitionError) as exc:
            CLEARANCE_STATE_MACHINE.transition(status, action)
        assert exc.value.current_state == status.value
        assert status.value in str(exc.value)

    def test_rejected_is_terminal(self):
        assert CLEARANCE_STATE_MACHINE.is_terminal(ClearanceStatus.REJECTED)
        assert not CLEARANCE_STATE_MACHINE.is_terminal(ClearanceStatus.PENDING)


# =============================================================================
# TEST: PERMIT
# =============================================================================

class TestPermitTransitions:

    def test_movement_path(self):
        sm = PERMIT_STATE_MACHINE
        assert sm.transition(PermitStatus.APPROVED, "begin_transit") == PermitStatus.IN_TRANSIT
        assert sm.transition(PermitStatus.IN_TRANSIT, "complete") == PermitStatus.COMPLETED

    def test_complete_straight_from_approved(self):
        assert PERMIT_STATE_MACHINE.transition(PermitStatus.APPROVED, "complete") == PermitStatus.COMPLETED

    def test_in_transit_does_not_begin_again(self):
        assert not PERMIT_STATE_MACHINE.can_transition(PermitStatus.IN_TRANSIT, "begin_transit")

    @pytest.mark.parametrize("status", [s for s in PermitStatus if s != PermitStatus.COMPLETED])
    def test_cancel_from_everything_but_completed(self, status):
        assert PERMIT_STATE_MACHINE.transition(status, "cancel") == PermitStatus.CANCELLED

    def test_completed_cannot_be_cancelled(self):
        with pytest.raises(InvalidTransitionError, match="COMPLETED"):
            PERMIT_STATE_MACHINE.transition(PermitStatus.COMPLETED, "cancel")

    @pytest.mark.parametrize("status", [PermitStatus.PENDING, PermitStatus.CANCELLED, PermitStatus.COMPLETED])
    def test_complete_requires_active_permit(self, status):
        with pytest.raises(InvalidTransitionError):
            PERMIT_STATE_MACHINE.transition(status, "complete")


# =============================================================================
# TEST: TRANSFER
# =============================================================================

class TestTransferTransitions:

    def test_confirm_keeps_pending_until_both(self):
        sm = TRANSFER_STATE_MACHINE
        assert sm.transition(TransferStatus.PENDING, "confirm") == TransferStatus.PENDING
        assert sm.transition(TransferStatus.PENDING, "both_confirmed") == TransferStatus.CONFIRMED

    def test_complete_requires_confirmed(self):
        sm = TRANSFER_STATE_MACHINE
        assert sm.transition(TransferStatus.CONFIRMED, "complete") == TransferStatus.COMPLETED
        with pytest.raises(InvalidTransitionError, match="PENDING"):
            sm.transition(TransferStatus.PENDING, "complete")

    def test_confirm_after_confirmed_is_invalid(self):
        with pytest.raises(InvalidTransitionError):
            TRANSFER_STATE_MACHINE.transition(TransferStatus.CONFIRMED, "confirm")

    @pytest.mark.parametrize("status", [TransferStatus.COMPLETED, TransferStatus.CANCELLED])
    def test_terminal_states_cannot_be_cancelled(self, status):
        assert TRANSFER_STATE_MACHINE.is_terminal(status)
        with pytest.raises(InvalidTransitionError):
            TRANSFER_STATE_MACHINE.transition(status, "cancel")

    def test_available_actions(self):
        actions = TRANSFER_STATE_MACHINE.get_available_actions(TransferStatus.CONFIRMED)
        assert sorted(actions) == ["cancel", "complete"]
