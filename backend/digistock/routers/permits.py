"""
Movement Permit API Routes

Issue permits, record checkpoint scans, complete or cancel movements.
A flagged scan still returns 200; callers must surface flag_reason.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..auth import get_current_officer
from ..config import API_V1_PREFIX, DEFAULT_PAGE_SIZE
from ..database import get_db
from ..models.db_models import OfficerDB, PermitStatus
from ..models.schemas import (
    Page, PermitResponse, VerificationResponse, VerifyPermitResponse,
    page_of, permit_to_response, verification_to_response,
)
from ..services.errors import WorkflowError
from ..services.storage import StorageService, get_storage
from ..services.workflow import PermitService


router = APIRouter(prefix=f"{API_V1_PREFIX}/permits", tags=["permits"])


# =============================================================================
# REQUEST MODELS
# =============================================================================

class CreatePermitRequest(BaseModel):
    """Request to issue a movement permit against an approved clearance."""
    clearance_id: str = Field(..., description="Approved, unexpired clearance for the livestock")
    livestock_id: str = Field(..., description="Livestock being moved")
    from_location: str = Field(..., description="Origin")
    to_location: str = Field(..., description="Destination")
    valid_from: Optional[date] = Field(None, description="First valid day (default today)")
    valid_until: Optional[date] = Field(None, description="Last valid day (default valid_from + window)")
    purpose: Optional[str] = None
    transport_mode: Optional[str] = None
    vehicle_number: Optional[str] = None
    driver_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class VerifyPermitRequest(BaseModel):
    """Checkpoint scan details. Everything is optional."""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    notes: Optional[str] = None
    location_description: Optional[str] = None


class CompletePermitRequest(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class CancelPermitRequest(BaseModel):
    reason: str = Field(..., description="Why the permit was cancelled")


def _permit_view(service: PermitService, permit) -> PermitResponse:
    return permit_to_response(permit, service.verification_count(permit.id))


def _parse_status(value: str) -> PermitStatus:
    try:
        return PermitStatus(value.upper())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid permit status: {value}")


# =============================================================================
# TRANSITIONS
# =============================================================================

@router.post("", response_model=PermitResponse, status_code=201)
async def create_permit(
    request: CreatePermitRequest,
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage),
    officer: OfficerDB = Depends(get_current_officer),
):
    """Issue a permit directly in APPROVED."""
    service = PermitService(db, storage)
    try:
        permit = service.create(
            clearance_id=request.clearance_id,
            livestock_id=request.livestock_id,
            from_location=request.from_location,
            to_location=request.to_location,
            officer_id=officer.id,
            valid_from=request.valid_from,
            valid_until=request.valid_until,
            purpose=request.purpose,
            transport_mode=request.transport_mode,
            vehicle_number=request.vehicle_number,
            driver_name=request.driver_name,
            latitude=request.latitude,
            longitude=request.longitude,
        )
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return _permit_view(service, permit)


@router.post("/{permit_id}/verify", response_model=VerifyPermitResponse)
async def verify_permit(
    permit_id: str,
    request: Optional[VerifyPermitRequest] = None,
    db: Session = Depends(get_db),
    officer: OfficerDB = Depends(get_current_officer),
):
    """
    Record a checkpoint scan.

    The first scan of an APPROVED permit moves it to IN_TRANSIT.
    """
    request = request or VerifyPermitRequest()
    service = PermitService(db)
    try:
        permit, verification = service.verify(
            permit_id,
            officer.id,
            latitude=request.latitude,
            longitude=request.longitude,
            notes=request.notes,
            location_description=request.location_description,
        )
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return VerifyPermitResponse(
        permit=_permit_view(service, permit),
        verification=verification_to_response(verification),
    )


@router.post("/{permit_id}/complete", response_model=PermitResponse)
async def complete_permit(
    permit_id: str,
    request: Optional[CompletePermitRequest] = None,
    db: Session = Depends(get_db),
    officer: OfficerDB = Depends(get_current_officer),
):
    request = request or CompletePermitRequest()
    service = PermitService(db)
    try:
        permit = service.complete(permit_id, officer.id, request.latitude, request.longitude)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return _permit_view(service, permit)


@router.post("/{permit_id}/cancel", response_model=PermitResponse)
async def cancel_permit(
    permit_id: str,
    request: CancelPermitRequest,
    db: Session = Depends(get_db),
    officer: OfficerDB = Depends(get_current_officer),
):
    service = PermitService(db)
    try:
        permit = service.cancel(permit_id, officer.id, request.reason)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return _permit_view(service, permit)


# =============================================================================
# READ-ONLY ENDPOINTS
# =============================================================================

@router.get("/valid", response_model=Page[PermitResponse])
async def list_valid_permits(
    page: int = Query(0, ge=0),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_db),
):
    """APPROVED permits whose window spans today."""
    service = PermitService(db)
    items, total = service.list_valid(page, size)
    return page_of(items, total, page, size, lambda p: _permit_view(service, p))


@router.get("/number/{permit_number}", response_model=PermitResponse)
async def get_permit_by_number(permit_number: str, db: Session = Depends(get_db)):
    service = PermitService(db)
    try:
        permit = service.get_by_number(permit_number)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return _permit_view(service, permit)


@router.get("/livestock/{livestock_id}", response_model=Page[PermitResponse])
async def list_livestock_permits(
    livestock_id: str,
    page: int = Query(0, ge=0),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_db),
):
    service = PermitService(db)
    items, total = service.list_by_livestock(livestock_id, page, size)
    return page_of(items, total, page, size, lambda p: _permit_view(service, p))


@router.get("/status/{status}", response_model=Page[PermitResponse])
async def list_permits_by_status(
    status: str,
    page: int = Query(0, ge=0),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_db),
):
    permit_status = _parse_status(status)
    service = PermitService(db)
    items, total = service.list_by_status(permit_status, page, size)
    return page_of(items, total, page, size, lambda p: _permit_view(service, p))


@router.get("/{permit_id}/verifications", response_model=List[VerificationResponse])
async def list_permit_verifications(permit_id: str, db: Session = Depends(get_db)):
    """Scan history of a permit, oldest first."""
    try:
        verifications = PermitService(db).verifications(permit_id)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return [verification_to_response(v) for v in verifications]


@router.get("/{permit_id}", response_model=PermitResponse)
async def get_permit(permit_id: str, db: Session = Depends(get_db)):
    service = PermitService(db)
    try:
        permit = service.get(permit_id)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return _permit_view(service, permit)
