"""
DigiStock - API Response Models
Pydantic views of the workflow entities
"""
from datetime import date, datetime
from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel

from ..config import MAX_PAGE_SIZE
from .db_models import (
    ClearanceStatus, LivestockDB, MovementPermitDB, OfficerDB, OwnerDB, OwnershipTransferDB,
    PermitStatus, PermitVerificationDB, PoliceClearanceDB, TransferStatus,
)

T = TypeVar("T")


# =============================================================================
# SUMMARIES
# =============================================================================

class LivestockSummary(BaseModel):
    id: str
    tag_code: str
    name: Optional[str] = None
    breed: Optional[str] = None
    stolen: bool = False


class OwnerSummary(BaseModel):
    id: str
    national_id: str
    full_name: str
    phone_number: Optional[str] = None
    district: Optional[str] = None
    province: Optional[str] = None


class OfficerSummary(BaseModel):
    id: str
    officer_code: str
    full_name: str
    role: str


class ClearanceSummary(BaseModel):
    id: str
    clearance_number: str
    expiry_date: Optional[date] = None


# =============================================================================
# DOCUMENTS
# =============================================================================

class ClearanceResponse(BaseModel):
    id: str
    clearance_number: str
    status: ClearanceStatus
    valid: bool
    clearance_date: Optional[datetime] = None
    expiry_date: Optional[date] = None
    livestock: LivestockSummary
    owner: OwnerSummary
    issued_by: OfficerSummary
    approved_by: Optional[OfficerSummary] = None
    rejection_reason: Optional[str] = None
    qr_ref: Optional[str] = None
    issue_latitude: Optional[float] = None
    issue_longitude: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PermitResponse(BaseModel):
    id: str
    permit_number: str
    status: PermitStatus
    valid: bool
    from_location: str
    to_location: str
    purpose: Optional[str] = None
    transport_mode: Optional[str] = None
    vehicle_number: Optional[str] = None
    driver_name: Optional[str] = None
    issued_at: Optional[datetime] = None
    valid_from: date
    valid_until: date
    clearance: ClearanceSummary
    livestock: LivestockSummary
    issued_by: OfficerSummary
    qr_ref: Optional[str] = None
    issue_latitude: Optional[float] = None
    issue_longitude: Optional[float] = None
    completed_at: Optional[datetime] = None
    completion_latitude: Optional[float] = None
    completion_longitude: Optional[float] = None
    cancellation_reason: Optional[str] = None
    verification_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class VerificationResponse(BaseModel):
    id: str
    permit_id: str
    verified_by: OfficerSummary
    verified_at: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_description: Optional[str] = None
    notes: Optional[str] = None
    valid: bool
    flag_reason: Optional[str] = None


class VerifyPermitResponse(BaseModel):
    """Permit after the scan, plus the scan itself (flag_reason must be surfaced)."""
    permit: PermitResponse
    verification: VerificationResponse


class TransferResponse(BaseModel):
    id: str
    livestock: LivestockSummary
    from_owner: OwnerSummary
    to_owner: OwnerSummary
    initiated_by: OfficerSummary
    status: TransferStatus
    transfer_date: Optional[date] = None
    reason: Optional[str] = None
    from_owner_confirmed: bool
    to_owner_confirmed: bool
    from_owner_fingerprint_ref: Optional[str] = None
    to_owner_fingerprint_ref: Optional[str] = None
    completed_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LivestockResponse(LivestockSummary):
    owner_id: str
    mother_id: Optional[str] = None
    father_id: Optional[str] = None
    stolen_date: Optional[date] = None


class Page(BaseModel, Generic[T]):
    items: List[T]
    page: int
    size: int
    total: int


# =============================================================================
# ANALYTICS
# =============================================================================

class PermitAnalytics(BaseModel):
    """Permit counts; by_status lists every status, zero included."""
    total_permits: int
    by_status: Dict[str, int]
    issued_this_month: int


class ClearanceAnalytics(BaseModel):
    total_clearances: int
    by_status: Dict[str, int]


# =============================================================================
# MAPPERS
# =============================================================================

def livestock_summary(livestock: LivestockDB) -> LivestockSummary:
    return LivestockSummary(
        id=livestock.id,
        tag_code=livestock.tag_code,
        name=livestock.name,
        breed=livestock.breed,
        stolen=livestock.stolen,
    )


def owner_summary(owner: OwnerDB) -> OwnerSummary:
    return OwnerSummary(
        id=owner.id,
        national_id=owner.national_id,
        full_name=owner.full_name,
        phone_number=owner.phone_number,
        district=owner.district,
        province=owner.province,
    )


def officer_summary(officer: OfficerDB) -> OfficerSummary:
    return OfficerSummary(
        id=officer.id,
        officer_code=officer.officer_code,
        full_name=officer.full_name,
        role=officer.role.value,
    )


def clearance_to_response(clearance: PoliceClearanceDB) -> ClearanceResponse:
    return ClearanceResponse(
        id=clearance.id,
        clearance_number=clearance.clearance_number,
        status=clearance.status,
        valid=clearance.is_valid(),
        clearance_date=clearance.clearance_date,
        expiry_date=clearance.expiry_date,
        livestock=livestock_summary(clearance.livestock),
        owner=owner_summary(clearance.owner),
        issued_by=officer_summary(clearance.issued_by),
        approved_by=officer_summary(clearance.approved_by) if clearance.approved_by else None,
        rejection_reason=clearance.rejection_reason,
        qr_ref=clearance.qr_ref,
        issue_latitude=clearance.issue_latitude,
        issue_longitude=clearance.issue_longitude,
        created_at=clearance.created_at,
        updated_at=clearance.updated_at,
    )


def permit_to_response(permit: MovementPermitDB, verification_count: int = 0) -> PermitResponse:
    return PermitResponse(
        id=permit.id,
        permit_number=permit.permit_number,
        status=permit.status,
        valid=permit.is_valid(),
        from_location=permit.from_location,
        to_location=permit.to_location,
        purpose=permit.purpose,
        transport_mode=permit.transport_mode,
        vehicle_number=permit.vehicle_number,
        driver_name=permit.driver_name,
        issued_at=permit.issued_at,
        valid_from=permit.valid_from,
        valid_until=permit.valid_until,
        clearance=ClearanceSummary(
            id=permit.clearance.id,
            clearance_number=permit.clearance.clearance_number,
            expiry_date=permit.clearance.expiry_date,
        ),
        livestock=livestock_summary(permit.livestock),
        issued_by=officer_summary(permit.issued_by),
        qr_ref=permit.qr_ref,
        issue_latitude=permit.issue_latitude,
        issue_longitude=permit.issue_longitude,
        completed_at=permit.completed_at,
        completion_latitude=permit.completion_latitude,
        completion_longitude=permit.completion_longitude,
        cancellation_reason=permit.cancellation_reason,
        verification_count=verification_count,
        created_at=permit.created_at,
        updated_at=permit.updated_at,
    )


def verification_to_response(verification: PermitVerificationDB) -> VerificationResponse:
    return VerificationResponse(
        id=verification.id,
        permit_id=verification.permit_id,
        verified_by=officer_summary(verification.verified_by),
        verified_at=verification.verified_at,
        latitude=verification.latitude,
        longitude=verification.longitude,
        location_description=verification.location_description,
        notes=verification.notes,
        valid=verification.valid,
        flag_reason=verification.flag_reason,
    )


def transfer_to_response(transfer: OwnershipTransferDB) -> TransferResponse:
    return TransferResponse(
        id=transfer.id,
        livestock=livestock_summary(transfer.livestock),
        from_owner=owner_summary(transfer.from_owner),
        to_owner=owner_summary(transfer.to_owner),
        initiated_by=officer_summary(transfer.initiated_by),
        status=transfer.status,
        transfer_date=transfer.transfer_date,
        reason=transfer.reason,
        from_owner_confirmed=transfer.from_owner_confirmed,
        to_owner_confirmed=transfer.to_owner_confirmed,
        from_owner_fingerprint_ref=transfer.from_owner_fingerprint_ref,
        to_owner_fingerprint_ref=transfer.to_owner_fingerprint_ref,
        completed_at=transfer.completed_at,
        cancellation_reason=transfer.cancellation_reason,
        created_at=transfer.created_at,
        updated_at=transfer.updated_at,
    )


def livestock_to_response(livestock: LivestockDB) -> LivestockResponse:
    return LivestockResponse(
        id=livestock.id,
        tag_code=livestock.tag_code,
        name=livestock.name,
        breed=livestock.breed,
        stolen=livestock.stolen,
        owner_id=livestock.owner_id,
        mother_id=livestock.mother_id,
        father_id=livestock.father_id,
        stolen_date=livestock.stolen_date,
    )


def page_of(items, total: int, page: int, size: int, mapper) -> Page:
    """Wrap a paginate() result; size is reported after clamping."""
    return Page(
        items=[mapper(item) for item in items],
        page=max(page, 0),
        size=min(max(size, 1), MAX_PAGE_SIZE),
        total=total,
    )
