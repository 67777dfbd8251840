"""
Police Clearance API Routes

Create, approve and reject clearances; look them up by id, number,
livestock, owner or pending status.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..auth import get_current_officer
from ..config import API_V1_PREFIX, DEFAULT_PAGE_SIZE
from ..database import get_db
from ..models.db_models import OfficerDB
from ..models.schemas import ClearanceResponse, Page, clearance_to_response, page_of
from ..services.errors import WorkflowError
from ..services.storage import StorageService, get_storage
from ..services.workflow import ClearanceService


router = APIRouter(prefix=f"{API_V1_PREFIX}/clearances", tags=["clearances"])


# =============================================================================
# REQUEST MODELS
# =============================================================================

class CreateClearanceRequest(BaseModel):
    """Request to open a police clearance for an animal/owner pair."""
    livestock_id: str = Field(..., description="Livestock the clearance covers")
    owner_id: str = Field(..., description="Current owner of the livestock")
    latitude: Optional[float] = Field(None, description="Issue location latitude")
    longitude: Optional[float] = Field(None, description="Issue location longitude")


class RejectClearanceRequest(BaseModel):
    reason: str = Field(..., description="Why the clearance was rejected")


# =============================================================================
# TRANSITIONS
# =============================================================================

@router.post("", response_model=ClearanceResponse, status_code=201)
async def create_clearance(
    request: CreateClearanceRequest,
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage),
    officer: OfficerDB = Depends(get_current_officer),
):
    """Open a clearance in PENDING, numbered from the officer's province."""
    service = ClearanceService(db, storage)
    try:
        clearance = service.create(
            livestock_id=request.livestock_id,
            owner_id=request.owner_id,
            officer_id=officer.id,
            latitude=request.latitude,
            longitude=request.longitude,
        )
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return clearance_to_response(clearance)


@router.post("/{clearance_id}/approve", response_model=ClearanceResponse)
async def approve_clearance(
    clearance_id: str,
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage),
    officer: OfficerDB = Depends(get_current_officer),
):
    """PENDING → APPROVED. Starts the expiry window and attaches a QR code."""
    service = ClearanceService(db, storage)
    try:
        clearance = service.approve(clearance_id, officer.id)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return clearance_to_response(clearance)


@router.post("/{clearance_id}/reject", response_model=ClearanceResponse)
async def reject_clearance(
    clearance_id: str,
    request: RejectClearanceRequest,
    db: Session = Depends(get_db),
    officer: OfficerDB = Depends(get_current_officer),
):
    """PENDING → REJECTED with a mandatory reason."""
    service = ClearanceService(db)
    try:
        clearance = service.reject(clearance_id, request.reason, officer.id)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return clearance_to_response(clearance)


# =============================================================================
# READ-ONLY ENDPOINTS
# =============================================================================

@router.get("/pending", response_model=Page[ClearanceResponse])
async def list_pending_clearances(
    page: int = Query(0, ge=0),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_db),
):
    items, total = ClearanceService(db).list_pending(page, size)
    return page_of(items, total, page, size, clearance_to_response)


@router.get("/number/{clearance_number}", response_model=ClearanceResponse)
async def get_clearance_by_number(clearance_number: str, db: Session = Depends(get_db)):
    try:
        clearance = ClearanceService(db).get_by_number(clearance_number)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return clearance_to_response(clearance)


@router.get("/livestock/{livestock_id}/valid", response_model=Page[ClearanceResponse])
async def list_valid_clearances_for_livestock(
    livestock_id: str,
    page: int = Query(0, ge=0),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_db),
):
    """Approved, unexpired clearances for one animal."""
    items, total = ClearanceService(db).list_valid_for_livestock(livestock_id, page, size)
    return page_of(items, total, page, size, clearance_to_response)


@router.get("/owner/{owner_id}", response_model=Page[ClearanceResponse])
async def list_owner_clearances(
    owner_id: str,
    page: int = Query(0, ge=0),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_db),
):
    items, total = ClearanceService(db).list_by_owner(owner_id, page, size)
    return page_of(items, total, page, size, clearance_to_response)


@router.get("/{clearance_id}", response_model=ClearanceResponse)
async def get_clearance(clearance_id: str, db: Session = Depends(get_db)):
    try:
        clearance = ClearanceService(db).get(clearance_id)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return clearance_to_response(clearance)
