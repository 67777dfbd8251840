"""
Checkpoint Verifier

Append-only recorder of permit scans. A failed check is data, not an error:
every scan produces a PermitVerification row carrying valid/flag_reason,
and the verifier never blocks or reverses permit state.

Checks, in priority order (first match wins):
1. Livestock flagged stolen          → "ALERT: stolen livestock alert"
2. Status not APPROVED / IN_TRANSIT  → "Permit status is <STATUS>"
3. Today before valid_from           → "Permit not yet valid ..."
4. Today after valid_until           → "Permit has expired ..."
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from ...models.db_models import (
    MovementPermitDB, OfficerDB, PermitStatus, PermitVerificationDB, utcnow,
)

logger = logging.getLogger(__name__)


STOLEN_ALERT = "ALERT: stolen livestock alert"

ACTIVE_PERMIT_STATUSES = {PermitStatus.APPROVED, PermitStatus.IN_TRANSIT}


@dataclass
class ScanResult:
    """Outcome of evaluating a permit at a checkpoint."""
    is_valid: bool
    flag_reason: Optional[str] = None


def evaluate_permit(permit: MovementPermitDB, today: Optional[date] = None) -> ScanResult:
    """Pure evaluation of a permit against the checkpoint rules."""
    today = today or date.today()

    if permit.livestock.stolen:
        return ScanResult(False, STOLEN_ALERT)

    if permit.status not in ACTIVE_PERMIT_STATUSES:
        return ScanResult(False, f"Permit status is {permit.status.value}")

    if today < permit.valid_from:
        return ScanResult(False, f"Permit not yet valid. Valid from: {permit.valid_from.isoformat()}")

    if today > permit.valid_until:
        return ScanResult(False, f"Permit has expired. Valid until: {permit.valid_until.isoformat()}")

    return ScanResult(True)


class CheckpointVerifier:
    """Writes one PermitVerification per scan. Runs inside the caller's unit of work."""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        permit: MovementPermitDB,
        officer: OfficerDB,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        notes: Optional[str] = None,
        location_description: Optional[str] = None,
        today: Optional[date] = None,
        verified_at: Optional[datetime] = None,
    ) -> PermitVerificationDB:
        result = evaluate_permit(permit, today)

        if result.flag_reason == STOLEN_ALERT:
            logger.warning(f"Stolen livestock detected during verification: {permit.livestock.tag_code}")
        elif not result.is_valid:
            logger.warning(f"Permit {permit.permit_number} flagged at checkpoint: {result.flag_reason}")

        verification = PermitVerificationDB(
            id=str(uuid4()),
            permit_id=permit.id,
            verified_by_id=officer.id,
            verified_at=verified_at or utcnow(),
            latitude=latitude,
            longitude=longitude,
            location_description=location_description,
            notes=notes,
            valid=result.is_valid,
            flag_reason=result.flag_reason,
        )
        self.db.add(verification)
        self.db.flush()  # Get ID without committing

        logger.info(f"Permit verification recorded for {permit.permit_number}. Valid: {result.is_valid}")
        return verification

    def history(self, permit_id: str) -> List[PermitVerificationDB]:
        """All scans of a permit, oldest first."""
        return self.db.query(PermitVerificationDB).filter(
            PermitVerificationDB.permit_id == permit_id
        ).order_by(PermitVerificationDB.verified_at.asc()).all()

    def count(self, permit_id: str) -> int:
        return self.db.query(PermitVerificationDB).filter(
            PermitVerificationDB.permit_id == permit_id
        ).count()
