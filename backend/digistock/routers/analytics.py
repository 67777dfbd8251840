"""
Analytics API Routes

Read-only reporting for admins and police. Counts only, never mutates.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import require_analytics_viewer
from ..config import API_V1_PREFIX
from ..database import get_db
from ..models.db_models import OfficerDB
from ..models.schemas import ClearanceAnalytics, PermitAnalytics
from ..services.analytics_service import AnalyticsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{API_V1_PREFIX}/analytics", tags=["analytics"])


@router.get("/permits", response_model=PermitAnalytics)
async def get_permit_analytics(
    db: Session = Depends(get_db),
    officer: OfficerDB = Depends(require_analytics_viewer),
):
    """Permit totals by status, plus permits issued in the current month."""
    logger.info(f"GET {API_V1_PREFIX}/analytics/permits by officer {officer.officer_code}")
    return AnalyticsService(db).permit_analytics()


@router.get("/clearances", response_model=ClearanceAnalytics)
async def get_clearance_analytics(
    db: Session = Depends(get_db),
    officer: OfficerDB = Depends(require_analytics_viewer),
):
    logger.info(f"GET {API_V1_PREFIX}/analytics/clearances by officer {officer.officer_code}")
    return AnalyticsService(db).clearance_analytics()
