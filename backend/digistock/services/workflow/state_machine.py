"""
Workflow State Machines

Single transition table per document type. Every status change made by a
workflow goes through transition(), so the legal moves are auditable here:

Clearance:
    PENDING → APPROVED | REJECTED
    (APPROVED → EXPIRED is observed from expiry_date, never transitioned)

Permit:
    (create) → APPROVED → IN_TRANSIT → COMPLETED
    any state except COMPLETED → CANCELLED

Transfer:
    PENDING → CONFIRMED (both parties confirmed) → COMPLETED
    PENDING | CONFIRMED → CANCELLED
"""
from enum import Enum
from typing import Dict, Iterable, List, Tuple

from ...models.db_models import ClearanceStatus, PermitStatus, TransferStatus
from ..errors import InvalidTransitionError


class StateMachine:
    """
    Table-driven state machine.

    TRANSITIONS maps (current_state, action) -> new_state.
    """

    def __init__(self, name: str, transitions: Dict[Tuple[Enum, str], Enum], terminal: Iterable[Enum]):
        self.name = name
        self.transitions = transitions
        self.terminal = frozenset(terminal)

    def can_transition(self, current_state: Enum, action: str) -> bool:
        """Check if action is allowed from current_state."""
        return (current_state, action) in self.transitions

    def transition(self, current_state: Enum, action: str) -> Enum:
        """
        Resolve the target state of an action.

        Raises:
            InvalidTransitionError: If the action is not allowed from current_state
        """
        if not self.can_transition(current_state, action):
            raise InvalidTransitionError(
                f"Cannot {action.replace('_', ' ')} {self.name} in status {current_state.value}",
                current_state=current_state.value,
            )
        return self.transitions[(current_state, action)]

    def get_available_actions(self, current_state: Enum) -> List[str]:
        """List of actions available from current state."""
        return [action for (state, action) in self.transitions if state == current_state]

    def is_terminal(self, state: Enum) -> bool:
        """Check if state is terminal (retained for audit, no further work expected)."""
        return state in self.terminal


CLEARANCE_STATE_MACHINE = StateMachine(
    "clearance",
    {
        (ClearanceStatus.PENDING, "approve"): ClearanceStatus.APPROVED,
        (ClearanceStatus.PENDING, "reject"): ClearanceStatus.REJECTED,
    },
    terminal=[ClearanceStatus.REJECTED, ClearanceStatus.EXPIRED],
)


# Cancel is refused only from COMPLETED
_PERMIT_CANCELLABLE = [s for s in PermitStatus if s != PermitStatus.COMPLETED]

PERMIT_STATE_MACHINE = StateMachine(
    "permit",
    {
        (PermitStatus.APPROVED, "begin_transit"): PermitStatus.IN_TRANSIT,
        (PermitStatus.APPROVED, "complete"): PermitStatus.COMPLETED,
        (PermitStatus.IN_TRANSIT, "complete"): PermitStatus.COMPLETED,
        **{(state, "cancel"): PermitStatus.CANCELLED for state in _PERMIT_CANCELLABLE},
    },
    terminal=[
        PermitStatus.COMPLETED, PermitStatus.CANCELLED,
        PermitStatus.REJECTED, PermitStatus.EXPIRED,
    ],
)


TRANSFER_STATE_MACHINE = StateMachine(
    "transfer",
    {
        # Either party may confirm first; status holds until both flags are set
        (TransferStatus.PENDING, "confirm"): TransferStatus.PENDING,
        (TransferStatus.PENDING, "both_confirmed"): TransferStatus.CONFIRMED,
        (TransferStatus.CONFIRMED, "complete"): TransferStatus.COMPLETED,
        (TransferStatus.PENDING, "cancel"): TransferStatus.CANCELLED,
        (TransferStatus.CONFIRMED, "cancel"): TransferStatus.CANCELLED,
    },
    terminal=[TransferStatus.COMPLETED, TransferStatus.CANCELLED],
)
