"""
Ownership Transfer Workflow

Lifecycle:
    PENDING → CONFIRMED → COMPLETED
    PENDING | CONFIRMED → CANCELLED

Confirmation is two independent flags. Either party may confirm first;
whichever confirmation completes the pair advances the transfer to
CONFIRMED. complete() is the only operation that changes a livestock's
owner of record.
"""
import logging
from datetime import date
from typing import List, Optional, Tuple
from uuid import uuid4

from sqlalchemy.orm import Session

from ...models.db_models import (
    LivestockDB, OwnerDB, OwnershipTransferDB, TransferStatus, utcnow,
)
from ..errors import BusinessRuleError, ValidationError
from ..storage import StorageService
from .base import WorkflowService, paginate
from .state_machine import TRANSFER_STATE_MACHINE

logger = logging.getLogger(__name__)


FROM_OWNER = "from-owner"
TO_OWNER = "to-owner"


class TransferService(WorkflowService):
    """Two-party confirmed handover of livestock ownership."""

    def __init__(self, db: Session, storage: Optional[StorageService] = None):
        super().__init__(db, storage)
        self.state_machine = TRANSFER_STATE_MACHINE

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def initiate(
        self,
        livestock_id: str,
        to_owner_id: str,
        officer_id: str,
        reason: Optional[str] = None,
        transfer_date: Optional[date] = None,
    ) -> OwnershipTransferDB:
        """
        Open a PENDING transfer from the animal's current owner to to_owner.

        At most one PENDING transfer may exist per animal.
        """
        logger.info(f"Initiating ownership transfer for livestock ID: {livestock_id}")

        with self.unit_of_work("initiate transfer"):
            livestock = self._get_or_404(LivestockDB, "Livestock", livestock_id)

            pending = self.db.query(OwnershipTransferDB).filter(
                OwnershipTransferDB.livestock_id == livestock.id,
                OwnershipTransferDB.status == TransferStatus.PENDING,
            ).first()
            if pending is not None:
                raise BusinessRuleError("Livestock already has a pending ownership transfer")

            to_owner = self._get_or_404(OwnerDB, "Owner", to_owner_id)
            if livestock.owner_id == to_owner.id:
                raise BusinessRuleError("Cannot transfer livestock to the same owner")

            officer = self._require_officer(officer_id, action="initiate transfers")

            transfer = OwnershipTransferDB(
                id=str(uuid4()),
                livestock_id=livestock.id,
                from_owner_id=livestock.owner_id,
                to_owner_id=to_owner.id,
                initiated_by_id=officer.id,
                status=TransferStatus.PENDING,
                transfer_date=transfer_date,
                reason=reason,
                from_owner_confirmed=False,
                to_owner_confirmed=False,
            )
            self.db.add(transfer)

        logger.info(f"Ownership transfer initiated with ID: {transfer.id}")
        return transfer

    def confirm_by_current_owner(
        self,
        transfer_id: str,
        officer_id: str,
        fingerprint: Optional[bytes] = None,
        content_type: str = "application/octet-stream",
    ) -> OwnershipTransferDB:
        logger.info(f"Current owner confirming transfer ID: {transfer_id}")
        return self._confirm(transfer_id, officer_id, FROM_OWNER, fingerprint, content_type)

    def confirm_by_new_owner(
        self,
        transfer_id: str,
        officer_id: str,
        fingerprint: Optional[bytes] = None,
        content_type: str = "application/octet-stream",
    ) -> OwnershipTransferDB:
        logger.info(f"New owner confirming transfer ID: {transfer_id}")
        return self._confirm(transfer_id, officer_id, TO_OWNER, fingerprint, content_type)

    def complete(self, transfer_id: str, officer_id: str) -> OwnershipTransferDB:
        """CONFIRMED → COMPLETED, moving the animal to the new owner."""
        logger.info(f"Completing transfer ID: {transfer_id}")

        with self.unit_of_work("complete transfer"):
            officer = self._require_officer(officer_id, action="complete transfers")
            transfer = self._get_or_404(OwnershipTransferDB, "OwnershipTransfer", transfer_id)

            new_status = self.state_machine.transition(transfer.status, "complete")

            livestock = transfer.livestock
            if livestock.owner_id != transfer.from_owner_id:
                raise BusinessRuleError(
                    "Livestock owner changed since the transfer was initiated"
                )
            livestock.owner_id = transfer.to_owner_id

            transfer.status = new_status
            transfer.completed_by_id = officer.id
            transfer.completed_at = utcnow()

        logger.info(
            f"Ownership transfer completed. Livestock {transfer.livestock.tag_code} "
            f"now belongs to owner {transfer.to_owner_id}"
        )
        return transfer

    def cancel(self, transfer_id: str, officer_id: str, reason: str) -> OwnershipTransferDB:
        """PENDING | CONFIRMED → CANCELLED."""
        logger.info(f"Cancelling transfer ID: {transfer_id}")

        if reason is None or not reason.strip():
            raise ValidationError("reason", "Cancellation reason is required")

        with self.unit_of_work("cancel transfer"):
            officer = self._require_officer(officer_id, action="cancel transfers")
            transfer = self._get_or_404(OwnershipTransferDB, "OwnershipTransfer", transfer_id)

            transfer.status = self.state_machine.transition(transfer.status, "cancel")
            transfer.cancellation_reason = reason.strip()
            transfer.cancelled_by_id = officer.id

        logger.info(f"Ownership transfer cancelled: {transfer.id}")
        return transfer

    # =========================================================================
    # READS
    # =========================================================================

    def get(self, transfer_id: str) -> OwnershipTransferDB:
        return self._get_or_404(OwnershipTransferDB, "OwnershipTransfer", transfer_id)

    def list_by_livestock(self, livestock_id: str, page: int = 0, size: int = 20) -> Tuple[List[OwnershipTransferDB], int]:
        query = self.db.query(OwnershipTransferDB).filter(
            OwnershipTransferDB.livestock_id == livestock_id
        ).order_by(OwnershipTransferDB.created_at.desc())
        return paginate(query, page, size)

    def list_by_status(self, status: TransferStatus, page: int = 0, size: int = 20) -> Tuple[List[OwnershipTransferDB], int]:
        query = self.db.query(OwnershipTransferDB).filter(
            OwnershipTransferDB.status == status
        ).order_by(OwnershipTransferDB.created_at.desc())
        return paginate(query, page, size)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _confirm(
        self,
        transfer_id: str,
        officer_id: str,
        side: str,
        fingerprint: Optional[bytes],
        content_type: str,
    ) -> OwnershipTransferDB:
        with self.unit_of_work("confirm transfer"):
            self._require_officer(officer_id, action="confirm transfers")
            transfer = self._get_or_404(OwnershipTransferDB, "OwnershipTransfer", transfer_id)
            self.state_machine.transition(transfer.status, "confirm")

            fingerprint_ref = None
            if fingerprint and self.storage is not None:
                fingerprint_ref = self._store(
                    fingerprint, f"fingerprints/transfers/{transfer.id}/{side}-{uuid4()}", content_type
                )

            if side == FROM_OWNER:
                transfer.from_owner_confirmed = True
                if fingerprint_ref:
                    transfer.from_owner_fingerprint_ref = fingerprint_ref
            else:
                transfer.to_owner_confirmed = True
                if fingerprint_ref:
                    transfer.to_owner_fingerprint_ref = fingerprint_ref

            if transfer.from_owner_confirmed and transfer.to_owner_confirmed:
                transfer.status = self.state_machine.transition(transfer.status, "both_confirmed")
                logger.info(f"Transfer {transfer.id} confirmed by both parties")

        return transfer
