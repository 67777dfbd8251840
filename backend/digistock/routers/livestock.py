"""
Livestock API Routes

Stolen-flag reporting and recovery.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..auth import get_current_officer
from ..config import API_V1_PREFIX, DEFAULT_PAGE_SIZE
from ..database import get_db
from ..models.db_models import OfficerDB
from ..models.schemas import LivestockResponse, Page, livestock_to_response, page_of
from ..services.errors import WorkflowError
from ..services.workflow import LivestockService


router = APIRouter(prefix=f"{API_V1_PREFIX}/livestock", tags=["livestock"])


@router.post("/{livestock_id}/report-stolen", response_model=LivestockResponse)
async def report_stolen(
    livestock_id: str,
    db: Session = Depends(get_db),
    officer: OfficerDB = Depends(get_current_officer),
):
    """Flag an animal as stolen. Blocks new clearances and permits."""
    try:
        livestock = LivestockService(db).report_stolen(livestock_id, officer.id)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return livestock_to_response(livestock)


@router.post("/{livestock_id}/recover", response_model=LivestockResponse)
async def recover(
    livestock_id: str,
    db: Session = Depends(get_db),
    officer: OfficerDB = Depends(get_current_officer),
):
    try:
        livestock = LivestockService(db).recover(livestock_id, officer.id)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return livestock_to_response(livestock)


@router.get("/stolen", response_model=Page[LivestockResponse])
async def list_stolen(
    page: int = Query(0, ge=0),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_db),
):
    items, total = LivestockService(db).list_stolen(page, size)
    return page_of(items, total, page, size, livestock_to_response)


@router.get("/{livestock_id}", response_model=LivestockResponse)
async def get_livestock(livestock_id: str, db: Session = Depends(get_db)):
    try:
        livestock = LivestockService(db).get(livestock_id)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return livestock_to_response(livestock)
