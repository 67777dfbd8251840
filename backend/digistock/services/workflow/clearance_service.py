"""
Police Clearance Workflow

Lifecycle:
    PENDING → APPROVED | REJECTED

Validity is derived at read time (APPROVED and expiry_date >= today);
there is no expire transition. The expiry window starts at approval.
"""
import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple
from uuid import uuid4

from sqlalchemy.orm import Session

from ...config import CLEARANCE_VALIDITY_DAYS
from ...models.db_models import (
    ClearanceStatus, LivestockDB, OfficerRole, OwnerDB, PoliceClearanceDB, utcnow,
)
from ..errors import BusinessRuleError, NotFoundError, ValidationError
from ..storage import StorageService, clearance_payload
from .base import WorkflowService, paginate
from .document_numbers import DocumentNumberGenerator
from .state_machine import CLEARANCE_STATE_MACHINE

logger = logging.getLogger(__name__)


CLEARANCE_ISSUER_ROLES = (OfficerRole.POLICE_OFFICER, OfficerRole.ADMIN)


class ClearanceService(WorkflowService):
    """Issues, approves and rejects police clearances."""

    def __init__(
        self,
        db: Session,
        storage: Optional[StorageService] = None,
        validity_days: int = CLEARANCE_VALIDITY_DAYS,
    ):
        super().__init__(db, storage)
        self.numbers = DocumentNumberGenerator(db)
        self.state_machine = CLEARANCE_STATE_MACHINE
        self.validity_days = validity_days

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def create(
        self,
        livestock_id: str,
        owner_id: str,
        officer_id: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> PoliceClearanceDB:
        """
        Open a clearance request in PENDING.

        Fails if the animal is unknown or stolen, the owner is unknown, or the
        owner is not the animal's current owner.
        """
        logger.info(f"Creating police clearance for livestock: {livestock_id}")

        with self.unit_of_work("create clearance"):
            officer = self._require_officer(officer_id, CLEARANCE_ISSUER_ROLES, "issue clearances")

            livestock = self._get_or_404(LivestockDB, "Livestock", livestock_id)
            if livestock.stolen:
                logger.warning(f"Clearance requested for stolen livestock: {livestock.tag_code}")
                raise BusinessRuleError(f"Cannot issue clearance for stolen livestock: {livestock.tag_code}")

            owner = self._get_or_404(OwnerDB, "Owner", owner_id)
            if livestock.owner_id != owner.id:
                raise BusinessRuleError(
                    "Livestock ownership mismatch. Owner ID does not match livestock owner."
                )

            clearance = PoliceClearanceDB(
                id=str(uuid4()),
                clearance_number=self.numbers.next_clearance_number(officer.province),
                livestock_id=livestock.id,
                owner_id=owner.id,
                issued_by_id=officer.id,
                status=ClearanceStatus.PENDING,
                issue_latitude=latitude,
                issue_longitude=longitude,
            )
            self.db.add(clearance)

        logger.info(f"Police clearance created: {clearance.clearance_number}")
        return clearance

    def approve(self, clearance_id: str, officer_id: str) -> PoliceClearanceDB:
        """PENDING → APPROVED. Starts the validity window and attaches the QR code."""
        logger.info(f"Approving clearance: {clearance_id}")

        with self.unit_of_work("approve clearance"):
            officer = self._require_officer(officer_id, CLEARANCE_ISSUER_ROLES, "approve clearances")
            clearance = self._get_or_404(PoliceClearanceDB, "Police Clearance", clearance_id)

            clearance.status = self.state_machine.transition(clearance.status, "approve")
            clearance.approved_by_id = officer.id
            clearance.clearance_date = utcnow()
            clearance.expiry_date = date.today() + timedelta(days=self.validity_days)

            clearance.qr_ref = self._store_qr(
                clearance_payload(
                    clearance.clearance_number,
                    clearance.livestock.tag_code,
                    clearance.expiry_date,
                ),
                "clearances",
                clearance.id,
            )

        logger.info(f"Clearance approved: {clearance.clearance_number} (expires {clearance.expiry_date})")
        return clearance

    def reject(self, clearance_id: str, reason: str, officer_id: str) -> PoliceClearanceDB:
        """PENDING → REJECTED. A reason is mandatory and stored."""
        logger.info(f"Rejecting clearance: {clearance_id}")

        if reason is None or not reason.strip():
            raise ValidationError("reason", "Rejection reason is required")

        with self.unit_of_work("reject clearance"):
            self._require_officer(officer_id, CLEARANCE_ISSUER_ROLES, "reject clearances")
            clearance = self._get_or_404(PoliceClearanceDB, "Police Clearance", clearance_id)

            clearance.status = self.state_machine.transition(clearance.status, "reject")
            clearance.rejection_reason = reason.strip()

        logger.info(f"Clearance rejected: {clearance.clearance_number}")
        return clearance

    # =========================================================================
    # READS
    # =========================================================================

    def get(self, clearance_id: str) -> PoliceClearanceDB:
        return self._get_or_404(PoliceClearanceDB, "Police Clearance", clearance_id)

    def get_by_number(self, clearance_number: str) -> PoliceClearanceDB:
        clearance = self.db.query(PoliceClearanceDB).filter(
            PoliceClearanceDB.clearance_number == clearance_number
        ).first()
        if clearance is None:
            raise NotFoundError("Police Clearance", "clearanceNumber", clearance_number)
        return clearance

    def list_valid_for_livestock(self, livestock_id: str, page: int = 0, size: int = 20) -> Tuple[List[PoliceClearanceDB], int]:
        query = self.db.query(PoliceClearanceDB).filter(
            PoliceClearanceDB.livestock_id == livestock_id,
            PoliceClearanceDB.status == ClearanceStatus.APPROVED,
            PoliceClearanceDB.expiry_date >= date.today(),
        ).order_by(PoliceClearanceDB.clearance_date.desc())
        return paginate(query, page, size)

    def list_by_owner(self, owner_id: str, page: int = 0, size: int = 20) -> Tuple[List[PoliceClearanceDB], int]:
        query = self.db.query(PoliceClearanceDB).filter(
            PoliceClearanceDB.owner_id == owner_id
        ).order_by(PoliceClearanceDB.created_at.desc())
        return paginate(query, page, size)

    def list_pending(self, page: int = 0, size: int = 20) -> Tuple[List[PoliceClearanceDB], int]:
        query = self.db.query(PoliceClearanceDB).filter(
            PoliceClearanceDB.status == ClearanceStatus.PENDING
        ).order_by(PoliceClearanceDB.created_at.desc())
        return paginate(query, page, size)
