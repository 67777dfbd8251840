"""
Analytics Service

Read-only counts over clearances and permits for the reporting routes.
Nothing here writes; every figure is derived from the document tables.
"""
import logging
from datetime import date, datetime
from typing import Dict, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.db_models import (
    ClearanceStatus, MovementPermitDB, PermitStatus, PoliceClearanceDB, utcnow,
)
from ..models.schemas import ClearanceAnalytics, PermitAnalytics

logger = logging.getLogger(__name__)


def month_bounds(day: date) -> Tuple[datetime, datetime]:
    """[first instant of day's month, first instant of the next month)."""
    start = datetime(day.year, day.month, 1)
    if day.month == 12:
        end = datetime(day.year + 1, 1, 1)
    else:
        end = datetime(day.year, day.month + 1, 1)
    return start, end


class AnalyticsService:
    """Aggregate document counts."""

    def __init__(self, db: Session):
        self.db = db

    def _count_by_status(self, column, statuses) -> Dict[str, int]:
        rows = self.db.query(column, func.count()).group_by(column).all()
        counts = {status.value: c for status, c in rows}
        # Every status is reported, in declaration order
        return {s.value: counts.get(s.value, 0) for s in statuses}

    def permit_analytics(self, today: Optional[date] = None) -> PermitAnalytics:
        today = today or utcnow().date()
        start, end = month_bounds(today)

        total = self.db.query(func.count(MovementPermitDB.id)).scalar() or 0
        issued_this_month = self.db.query(func.count(MovementPermitDB.id)).filter(
            MovementPermitDB.issued_at >= start,
            MovementPermitDB.issued_at < end,
        ).scalar() or 0

        logger.info(f"Permit analytics: {total} permits, {issued_this_month} issued since {start.date()}")
        return PermitAnalytics(
            total_permits=total,
            by_status=self._count_by_status(MovementPermitDB.status, PermitStatus),
            issued_this_month=issued_this_month,
        )

    def clearance_analytics(self) -> ClearanceAnalytics:
        total = self.db.query(func.count(PoliceClearanceDB.id)).scalar() or 0

        logger.info(f"Clearance analytics: {total} clearances")
        return ClearanceAnalytics(
            total_clearances=total,
            by_status=self._count_by_status(PoliceClearanceDB.status, ClearanceStatus),
        )
