"""DigiStock - Data Models"""
from .db_models import (
    # Enums
    OfficerRole, ClearanceStatus, PermitStatus, TransferStatus,
    # Identity holders
    OfficerDB, OwnerDB, LivestockDB,
    # Workflow entities
    DocumentSequenceDB, PoliceClearanceDB, MovementPermitDB, PermitVerificationDB,
    OwnershipTransferDB,
)

__all__ = [
    "OfficerRole", "ClearanceStatus", "PermitStatus", "TransferStatus",
    "OfficerDB", "OwnerDB", "LivestockDB",
    "DocumentSequenceDB", "PoliceClearanceDB", "MovementPermitDB", "PermitVerificationDB",
    "OwnershipTransferDB",
]
