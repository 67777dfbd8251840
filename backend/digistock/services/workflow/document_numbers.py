"""
Document Number Generator

Sequential, human-readable identifiers per scope:
    clearance: PC-{PROVINCE_CODE}-{SEQUENCE:06d}   e.g. PC-HA-000042
    permit:    DG-{YEAR}-{SEQUENCE:06d}            e.g. DG-2026-000007

Each scope owns a counter row in document_sequences. The counter is advanced
with a single UPDATE (last_value = last_value + 1), which holds the row lock
until the caller's transaction ends, so two concurrent callers can never read
the same value. Numbers are never reused, even if the document is later
rejected or cancelled.
"""
import logging
from datetime import date
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models.db_models import DocumentSequenceDB

logger = logging.getLogger(__name__)


CLEARANCE_PREFIX = "PC"
PERMIT_PREFIX = "DG"
UNKNOWN_PROVINCE_CODE = "XX"


def province_code(province: Optional[str]) -> str:
    """Two-letter upper-case code from a province name ("Harare" -> "HA")."""
    if province and len(province.strip()) >= 2:
        return province.strip()[:2].upper()
    return UNKNOWN_PROVINCE_CODE


def clearance_scope(province: Optional[str]) -> str:
    return f"{CLEARANCE_PREFIX}-{province_code(province)}"


def permit_scope(year: Optional[int] = None) -> str:
    return f"{PERMIT_PREFIX}-{year or date.today().year}"


def format_number(scope: str, sequence: int) -> str:
    return f"{scope}-{sequence:06d}"


class DocumentNumberGenerator:
    """
    Atomic fetch-and-increment counter per scope.

    Runs inside the caller's session so the number and the document that
    carries it are committed (or rolled back) together.
    """

    def __init__(self, db: Session):
        self.db = db

    def next(self, scope: str) -> str:
        """Reserve the next number in scope."""
        value = self._increment(scope)
        if value is None:
            self._create_scope(scope)
            value = self._increment(scope)
        number = format_number(scope, value)
        logger.info(f"Issued document number {number}")
        return number

    def next_clearance_number(self, province: Optional[str]) -> str:
        return self.next(clearance_scope(province))

    def next_permit_number(self, year: Optional[int] = None) -> str:
        return self.next(permit_scope(year))

    def current(self, scope: str) -> int:
        """Last issued sequence value in scope (0 if nothing issued)."""
        value = self.db.execute(
            select(DocumentSequenceDB.last_value).where(DocumentSequenceDB.scope == scope)
        ).scalar_one_or_none()
        return value or 0

    def _increment(self, scope: str) -> Optional[int]:
        result = self.db.execute(
            update(DocumentSequenceDB)
            .where(DocumentSequenceDB.scope == scope)
            .values(last_value=DocumentSequenceDB.last_value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        # Same transaction - the row stays locked until commit/rollback
        return self.db.execute(
            select(DocumentSequenceDB.last_value).where(DocumentSequenceDB.scope == scope)
        ).scalar_one()

    def _create_scope(self, scope: str) -> None:
        """Insert the counter row; a concurrent creator winning the race is fine."""
        try:
            with self.db.begin_nested():
                self.db.add(DocumentSequenceDB(scope=scope, last_value=0))
        except IntegrityError:
            logger.info(f"Sequence scope {scope} created concurrently")
