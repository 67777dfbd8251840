"""
Workflow Services

Police clearance, movement permit, checkpoint verification and ownership
transfer state machines, plus the document number generator they share.
"""
from .state_machine import (
    StateMachine,
    CLEARANCE_STATE_MACHINE,
    PERMIT_STATE_MACHINE,
    TRANSFER_STATE_MACHINE,
)
from .document_numbers import DocumentNumberGenerator
from .clearance_service import ClearanceService
from .permit_service import PermitService
from .checkpoint_verifier import CheckpointVerifier, ScanResult, evaluate_permit
from .transfer_service import TransferService
from .livestock_service import LivestockService

__all__ = [
    "StateMachine",
    "CLEARANCE_STATE_MACHINE",
    "PERMIT_STATE_MACHINE",
    "TRANSFER_STATE_MACHINE",
    "DocumentNumberGenerator",
    "ClearanceService",
    "PermitService",
    "CheckpointVerifier",
    "ScanResult",
    "evaluate_permit",
    "TransferService",
    "LivestockService",
]
