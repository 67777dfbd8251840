"""
Movement Permit Workflow

Lifecycle:
    (create) → APPROVED → IN_TRANSIT → COMPLETED
    any state except COMPLETED → CANCELLED

A permit is issued directly in APPROVED against an approved, unexpired
clearance for the same animal. The first checkpoint scan moves it to
IN_TRANSIT; later scans only append verification records.

Validity (APPROVED and today within [valid_from, valid_until]) is derived
and never gates verify/complete/cancel, which look at status only.
"""
import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple
from uuid import uuid4

from sqlalchemy.orm import Session

from ...config import PERMIT_DEFAULT_VALIDITY_DAYS
from ...models.db_models import (
    ClearanceStatus, LivestockDB, MovementPermitDB, OfficerRole, PermitStatus,
    PermitVerificationDB, PoliceClearanceDB, utcnow,
)
from ..errors import BusinessRuleError, ConflictError, NotFoundError, ValidationError
from ..storage import StorageService, permit_payload
from .base import WorkflowService, paginate
from .checkpoint_verifier import CheckpointVerifier
from .document_numbers import DocumentNumberGenerator
from .state_machine import PERMIT_STATE_MACHINE

logger = logging.getLogger(__name__)


PERMIT_ISSUER_ROLES = (OfficerRole.AGRITEX_OFFICER, OfficerRole.ADMIN)


class PermitService(WorkflowService):
    """Issues movement permits and drives them to completion or cancellation."""

    def __init__(
        self,
        db: Session,
        storage: Optional[StorageService] = None,
        default_validity_days: int = PERMIT_DEFAULT_VALIDITY_DAYS,
    ):
        super().__init__(db, storage)
        self.numbers = DocumentNumberGenerator(db)
        self.verifier = CheckpointVerifier(db)
        self.state_machine = PERMIT_STATE_MACHINE
        self.default_validity_days = default_validity_days

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def create(
        self,
        clearance_id: str,
        livestock_id: str,
        from_location: str,
        to_location: str,
        officer_id: str,
        valid_from: Optional[date] = None,
        valid_until: Optional[date] = None,
        purpose: Optional[str] = None,
        transport_mode: Optional[str] = None,
        vehicle_number: Optional[str] = None,
        driver_name: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> MovementPermitDB:
        """
        Issue a permit in APPROVED.

        Fails unless the clearance is APPROVED and unexpired, the animal is not
        stolen, the clearance covers this animal, and valid_until >= valid_from.
        """
        logger.info(f"Creating movement permit for livestock: {livestock_id}")

        if not from_location or not from_location.strip():
            raise ValidationError("from_location", "Origin location is required")
        if not to_location or not to_location.strip():
            raise ValidationError("to_location", "Destination location is required")

        valid_from = valid_from or date.today()
        valid_until = valid_until or valid_from + timedelta(days=self.default_validity_days)

        with self.unit_of_work("create permit"):
            officer = self._require_officer(officer_id, PERMIT_ISSUER_ROLES, "issue movement permits")

            clearance = self._get_or_404(PoliceClearanceDB, "Police Clearance", clearance_id)
            if clearance.status != ClearanceStatus.APPROVED:
                raise BusinessRuleError(
                    f"Clearance must be APPROVED. Current status: {clearance.status.value}"
                )
            if not clearance.is_valid():
                raise BusinessRuleError(f"Clearance has expired. Expiry date: {clearance.expiry_date}")

            livestock = self._get_or_404(LivestockDB, "Livestock", livestock_id)
            if livestock.stolen:
                logger.warning(f"Permit requested for stolen livestock: {livestock.tag_code}")
                raise BusinessRuleError(f"Cannot issue permit for stolen livestock: {livestock.tag_code}")

            if clearance.livestock_id != livestock.id:
                raise BusinessRuleError("Clearance is not for this livestock")

            if valid_until < valid_from:
                raise BusinessRuleError("Valid until date must be on or after valid from date")

            permit = MovementPermitDB(
                id=str(uuid4()),
                permit_number=self.numbers.next_permit_number(),
                clearance_id=clearance.id,
                livestock_id=livestock.id,
                issued_by_id=officer.id,
                from_location=from_location.strip(),
                to_location=to_location.strip(),
                purpose=purpose,
                transport_mode=transport_mode,
                vehicle_number=vehicle_number,
                driver_name=driver_name,
                status=PermitStatus.APPROVED,
                issued_at=utcnow(),
                valid_from=valid_from,
                valid_until=valid_until,
                issue_latitude=latitude,
                issue_longitude=longitude,
            )
            permit.qr_ref = self._store_qr(
                permit_payload(permit.permit_number, livestock.tag_code, valid_until),
                "permits",
                permit.id,
            )
            self.db.add(permit)

        logger.info(f"Movement permit created: {permit.permit_number}")
        return permit

    def verify(
        self,
        permit_id: str,
        officer_id: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        notes: Optional[str] = None,
        location_description: Optional[str] = None,
    ) -> Tuple[MovementPermitDB, PermitVerificationDB]:
        """
        Record a checkpoint scan.

        Always records; never fails on a flagged scan. The first scan of an
        APPROVED permit marks the movement as begun (IN_TRANSIT).

        Two first scans racing on an APPROVED permit: the loser is rolled
        back and recorded once more against the now IN_TRANSIT permit.
        """
        logger.info(f"Verifying permit: {permit_id} by officer: {officer_id}")

        details = dict(
            latitude=latitude,
            longitude=longitude,
            notes=notes,
            location_description=location_description,
        )
        try:
            return self._record_scan(permit_id, officer_id, details)
        except ConflictError:
            logger.warning(f"Permit {permit_id} changed during scan; recording the scan again")
            return self._record_scan(permit_id, officer_id, details)

    def _record_scan(
        self, permit_id: str, officer_id: str, details: dict
    ) -> Tuple[MovementPermitDB, PermitVerificationDB]:
        with self.unit_of_work("verify permit"):
            permit = self._get_or_404(MovementPermitDB, "Movement Permit", permit_id)
            officer = self._require_officer(officer_id, action="verify permits")

            verification = self.verifier.record(permit, officer, **details)

            if self.state_machine.can_transition(permit.status, "begin_transit"):
                permit.status = self.state_machine.transition(permit.status, "begin_transit")
                logger.info(f"Permit {permit.permit_number} is now IN_TRANSIT")

        return permit, verification

    def complete(
        self,
        permit_id: str,
        officer_id: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> MovementPermitDB:
        """APPROVED | IN_TRANSIT → COMPLETED. Irreversible."""
        logger.info(f"Completing movement permit: {permit_id}")

        with self.unit_of_work("complete permit"):
            self._require_officer(officer_id, action="complete permits")
            permit = self._get_or_404(MovementPermitDB, "Movement Permit", permit_id)

            permit.status = self.state_machine.transition(permit.status, "complete")
            permit.completed_at = utcnow()
            permit.completion_latitude = latitude
            permit.completion_longitude = longitude

        logger.info(f"Movement permit completed: {permit.permit_number}")
        return permit

    def cancel(self, permit_id: str, officer_id: str, reason: str) -> MovementPermitDB:
        """Any state except COMPLETED → CANCELLED, storing the reason."""
        logger.info(f"Cancelling permit: {permit_id}")

        if reason is None or not reason.strip():
            raise ValidationError("reason", "Cancellation reason is required")

        with self.unit_of_work("cancel permit"):
            self._require_officer(officer_id, action="cancel permits")
            permit = self._get_or_404(MovementPermitDB, "Movement Permit", permit_id)

            permit.status = self.state_machine.transition(permit.status, "cancel")
            permit.cancellation_reason = reason.strip()

        logger.info(f"Permit cancelled: {permit.permit_number}")
        return permit

    # =========================================================================
    # READS
    # =========================================================================

    def get(self, permit_id: str) -> MovementPermitDB:
        return self._get_or_404(MovementPermitDB, "Movement Permit", permit_id)

    def get_by_number(self, permit_number: str) -> MovementPermitDB:
        permit = self.db.query(MovementPermitDB).filter(
            MovementPermitDB.permit_number == permit_number
        ).first()
        if permit is None:
            raise NotFoundError("Movement Permit", "permitNumber", permit_number)
        return permit

    def list_by_livestock(self, livestock_id: str, page: int = 0, size: int = 20) -> Tuple[List[MovementPermitDB], int]:
        query = self.db.query(MovementPermitDB).filter(
            MovementPermitDB.livestock_id == livestock_id
        ).order_by(MovementPermitDB.issued_at.desc())
        return paginate(query, page, size)

    def list_by_status(self, status: PermitStatus, page: int = 0, size: int = 20) -> Tuple[List[MovementPermitDB], int]:
        query = self.db.query(MovementPermitDB).filter(
            MovementPermitDB.status == status
        ).order_by(MovementPermitDB.issued_at.desc())
        return paginate(query, page, size)

    def list_valid(self, page: int = 0, size: int = 20, today: Optional[date] = None) -> Tuple[List[MovementPermitDB], int]:
        today = today or date.today()
        query = self.db.query(MovementPermitDB).filter(
            MovementPermitDB.status == PermitStatus.APPROVED,
            MovementPermitDB.valid_from <= today,
            MovementPermitDB.valid_until >= today,
        ).order_by(MovementPermitDB.issued_at.desc())
        return paginate(query, page, size)

    def verifications(self, permit_id: str) -> List[PermitVerificationDB]:
        self.get(permit_id)
        return self.verifier.history(permit_id)

    def verification_count(self, permit_id: str) -> int:
        return self.verifier.count(permit_id)
