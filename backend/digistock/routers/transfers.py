"""
Ownership Transfer API Routes

Two-party confirmed handover of livestock. Each confirm endpoint accepts an
optional fingerprint proof as a multipart upload.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..auth import get_current_officer
from ..config import API_V1_PREFIX, DEFAULT_PAGE_SIZE
from ..database import get_db
from ..models.db_models import OfficerDB, TransferStatus
from ..models.schemas import Page, TransferResponse, page_of, transfer_to_response
from ..services.errors import WorkflowError
from ..services.storage import StorageService, get_storage
from ..services.workflow import TransferService


router = APIRouter(prefix=f"{API_V1_PREFIX}/transfers", tags=["transfers"])


# =============================================================================
# REQUEST MODELS
# =============================================================================

class InitiateTransferRequest(BaseModel):
    """Request to hand an animal over to a new owner."""
    livestock_id: str = Field(..., description="Livestock being transferred")
    to_owner_id: str = Field(..., description="Owner receiving the livestock")
    reason: Optional[str] = Field(None, description="Sale, inheritance, gift, ...")
    transfer_date: Optional[date] = None


class CancelTransferRequest(BaseModel):
    reason: str = Field(..., description="Why the transfer was cancelled")


async def _read_proof(fingerprint: Optional[UploadFile]):
    if fingerprint is None:
        return None, "application/octet-stream"
    data = await fingerprint.read()
    return data or None, fingerprint.content_type or "application/octet-stream"


# =============================================================================
# TRANSITIONS
# =============================================================================

@router.post("", response_model=TransferResponse, status_code=201)
async def initiate_transfer(
    request: InitiateTransferRequest,
    db: Session = Depends(get_db),
    officer: OfficerDB = Depends(get_current_officer),
):
    """Open a PENDING transfer from the current owner."""
    service = TransferService(db)
    try:
        transfer = service.initiate(
            livestock_id=request.livestock_id,
            to_owner_id=request.to_owner_id,
            officer_id=officer.id,
            reason=request.reason,
            transfer_date=request.transfer_date,
        )
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return transfer_to_response(transfer)


@router.post("/{transfer_id}/confirm-current-owner", response_model=TransferResponse)
async def confirm_by_current_owner(
    transfer_id: str,
    fingerprint: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage),
    officer: OfficerDB = Depends(get_current_officer),
):
    data, content_type = await _read_proof(fingerprint)
    service = TransferService(db, storage)
    try:
        transfer = service.confirm_by_current_owner(transfer_id, officer.id, data, content_type)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return transfer_to_response(transfer)


@router.post("/{transfer_id}/confirm-new-owner", response_model=TransferResponse)
async def confirm_by_new_owner(
    transfer_id: str,
    fingerprint: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage),
    officer: OfficerDB = Depends(get_current_officer),
):
    data, content_type = await _read_proof(fingerprint)
    service = TransferService(db, storage)
    try:
        transfer = service.confirm_by_new_owner(transfer_id, officer.id, data, content_type)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return transfer_to_response(transfer)


@router.post("/{transfer_id}/complete", response_model=TransferResponse)
async def complete_transfer(
    transfer_id: str,
    db: Session = Depends(get_db),
    officer: OfficerDB = Depends(get_current_officer),
):
    """CONFIRMED → COMPLETED. Moves the livestock to the new owner."""
    service = TransferService(db)
    try:
        transfer = service.complete(transfer_id, officer.id)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return transfer_to_response(transfer)


@router.post("/{transfer_id}/cancel", response_model=TransferResponse)
async def cancel_transfer(
    transfer_id: str,
    request: CancelTransferRequest,
    db: Session = Depends(get_db),
    officer: OfficerDB = Depends(get_current_officer),
):
    service = TransferService(db)
    try:
        transfer = service.cancel(transfer_id, officer.id, request.reason)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return transfer_to_response(transfer)


# =============================================================================
# READ-ONLY ENDPOINTS
# =============================================================================

@router.get("/livestock/{livestock_id}", response_model=Page[TransferResponse])
async def list_livestock_transfers(
    livestock_id: str,
    page: int = Query(0, ge=0),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_db),
):
    items, total = TransferService(db).list_by_livestock(livestock_id, page, size)
    return page_of(items, total, page, size, transfer_to_response)


@router.get("/status/{status}", response_model=Page[TransferResponse])
async def list_transfers_by_status(
    status: str,
    page: int = Query(0, ge=0),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_db),
):
    try:
        transfer_status = TransferStatus(status.upper())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid transfer status: {status}")
    items, total = TransferService(db).list_by_status(transfer_status, page, size)
    return page_of(items, total, page, size, transfer_to_response)


@router.get("/{transfer_id}", response_model=TransferResponse)
async def get_transfer(transfer_id: str, db: Session = Depends(get_db)):
    try:
        transfer = TransferService(db).get(transfer_id)
    except WorkflowError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return transfer_to_response(transfer)
