"""
DigiStock - SQLAlchemy ORM Models
Relational storage for clearances, movement permits, checkpoint scans and ownership transfers
"""
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Column, String, Integer, Float, DateTime, Date, Text, Boolean, ForeignKey, Index,
    Enum as SQLEnum, text,
)
from sqlalchemy.orm import relationship

from ..database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp used for every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =============================================================================
# ENUMS
# =============================================================================

class OfficerRole(str, Enum):
    """Officer roles relevant to document issuance."""
    NATIONAL_ADMIN = "NATIONAL_ADMIN"
    PROVINCIAL_ADMIN = "PROVINCIAL_ADMIN"
    DISTRICT_ADMIN = "DISTRICT_ADMIN"
    ADMIN = "ADMIN"
    AGRITEX_OFFICER = "AGRITEX_OFFICER"  # Extension officer - issues movement permits
    POLICE_OFFICER = "POLICE_OFFICER"  # Issues clearances, verifies at checkpoints
    VETERINARY_OFFICER = "VETERINARY_OFFICER"
    TRANSPORTER = "TRANSPORTER"


class ClearanceStatus(str, Enum):
    """Police clearance lifecycle. EXPIRED is observed from expiry_date, never stored by a transition."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


class PermitStatus(str, Enum):
    """Movement permit lifecycle."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    IN_TRANSIT = "IN_TRANSIT"
    COMPLETED = "COMPLETED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"


class TransferStatus(str, Enum):
    """Ownership transfer lifecycle."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# =============================================================================
# IDENTITY HOLDERS
# =============================================================================

class OfficerDB(Base):
    """Officer identity - issuer of clearances and permits, checkpoint verifier."""
    __tablename__ = "officers"

    id = Column(String(36), primary_key=True)  # UUID
    officer_code = Column(String(50), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    phone_number = Column(String(20), nullable=True)
    role = Column(SQLEnum(OfficerRole), nullable=False)
    province = Column(String(100), nullable=True)  # First two letters scope clearance numbers
    district = Column(String(100), nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class OwnerDB(Base):
    """Livestock owner of record."""
    __tablename__ = "owners"

    id = Column(String(36), primary_key=True)  # UUID
    national_id = Column(String(50), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone_number = Column(String(20), nullable=True)
    district = Column(String(100), nullable=True)
    province = Column(String(100), nullable=True)

    created_at = Column(DateTime, default=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class LivestockDB(Base):
    """
    A tagged animal.

    Parentage is stored as plain foreign-key ids (mother_id / father_id),
    with no offspring collections or cascades.
    """
    __tablename__ = "livestock"

    id = Column(String(36), primary_key=True)  # UUID
    tag_code = Column(String(32), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=True)
    breed = Column(String(100), nullable=True)
    sex = Column(String(10), nullable=True)
    birth_date = Column(Date, nullable=True)

    # Changed only by a completed ownership transfer
    owner_id = Column(String(36), ForeignKey("owners.id"), nullable=False, index=True)

    mother_id = Column(String(36), ForeignKey("livestock.id"), nullable=True, index=True)
    father_id = Column(String(36), ForeignKey("livestock.id"), nullable=True, index=True)

    stolen = Column(Boolean, nullable=False, default=False)
    stolen_date = Column(Date, nullable=True)

    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    owner = relationship("OwnerDB")

    __mapper_args__ = {"version_id_col": version}


# =============================================================================
# DOCUMENT NUMBERING
# =============================================================================

class DocumentSequenceDB(Base):
    """One counter row per numbering scope (e.g. PC-HA, DG-2026)."""
    __tablename__ = "document_sequences"

    scope = Column(String(32), primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)


# =============================================================================
# POLICE CLEARANCE
# =============================================================================

class PoliceClearanceDB(Base):
    """Police attestation that an animal/owner pair is not associated with theft."""
    __tablename__ = "police_clearances"

    id = Column(String(36), primary_key=True)  # UUID
    clearance_number = Column(String(50), unique=True, nullable=False, index=True)

    livestock_id = Column(String(36), ForeignKey("livestock.id"), nullable=False, index=True)
    owner_id = Column(String(36), ForeignKey("owners.id"), nullable=False, index=True)
    issued_by_id = Column(String(36), ForeignKey("officers.id"), nullable=False)
    approved_by_id = Column(String(36), ForeignKey("officers.id"), nullable=True)

    status = Column(SQLEnum(ClearanceStatus), nullable=False, default=ClearanceStatus.PENDING, index=True)
    rejection_reason = Column(Text, nullable=True)  # Present iff REJECTED

    clearance_date = Column(DateTime, nullable=True)  # Set at approval
    expiry_date = Column(Date, nullable=True)  # Set at approval

    qr_ref = Column(String(500), nullable=True)
    issue_latitude = Column(Float, nullable=True)
    issue_longitude = Column(Float, nullable=True)

    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    livestock = relationship("LivestockDB")
    owner = relationship("OwnerDB")
    issued_by = relationship("OfficerDB", foreign_keys=[issued_by_id])
    approved_by = relationship("OfficerDB", foreign_keys=[approved_by_id])

    __mapper_args__ = {"version_id_col": version}

    def is_valid(self, on: Optional[date] = None) -> bool:
        """APPROVED and not past expiry on the given day (default today)."""
        on = on or date.today()
        return (
            self.status == ClearanceStatus.APPROVED
            and self.expiry_date is not None
            and self.expiry_date >= on
        )


# =============================================================================
# MOVEMENT PERMIT
# =============================================================================

class MovementPermitDB(Base):
    """Authorization to move one animal between two locations."""
    __tablename__ = "movement_permits"

    id = Column(String(36), primary_key=True)  # UUID
    permit_number = Column(String(50), unique=True, nullable=False, index=True)

    clearance_id = Column(String(36), ForeignKey("police_clearances.id"), nullable=False, index=True)
    livestock_id = Column(String(36), ForeignKey("livestock.id"), nullable=False, index=True)
    issued_by_id = Column(String(36), ForeignKey("officers.id"), nullable=False)

    from_location = Column(Text, nullable=False)
    to_location = Column(Text, nullable=False)
    purpose = Column(Text, nullable=True)
    transport_mode = Column(String(100), nullable=True)
    vehicle_number = Column(String(50), nullable=True)
    driver_name = Column(String(200), nullable=True)

    status = Column(SQLEnum(PermitStatus), nullable=False, index=True)
    issued_at = Column(DateTime, nullable=True)
    valid_from = Column(Date, nullable=False)
    valid_until = Column(Date, nullable=False)

    qr_ref = Column(String(500), nullable=True)
    issue_latitude = Column(Float, nullable=True)
    issue_longitude = Column(Float, nullable=True)

    completed_at = Column(DateTime, nullable=True)
    completion_latitude = Column(Float, nullable=True)
    completion_longitude = Column(Float, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    clearance = relationship("PoliceClearanceDB")
    livestock = relationship("LivestockDB")
    issued_by = relationship("OfficerDB")
    verifications = relationship(
        "PermitVerificationDB",
        back_populates="permit",
        order_by="PermitVerificationDB.verified_at",
    )

    __mapper_args__ = {"version_id_col": version}

    def is_valid(self, on: Optional[date] = None) -> bool:
        """APPROVED and on within [valid_from, valid_until], both ends inclusive."""
        on = on or date.today()
        return (
            self.status == PermitStatus.APPROVED
            and self.valid_from <= on <= self.valid_until
        )


class PermitVerificationDB(Base):
    """
    Checkpoint scan of a permit.

    Append-only: rows are never updated or deleted.
    """
    __tablename__ = "permit_verifications"

    id = Column(String(36), primary_key=True)  # UUID
    permit_id = Column(String(36), ForeignKey("movement_permits.id"), nullable=False, index=True)
    verified_by_id = Column(String(36), ForeignKey("officers.id"), nullable=False, index=True)
    verified_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    location_description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    valid = Column(Boolean, nullable=False)
    flag_reason = Column(Text, nullable=True)

    permit = relationship("MovementPermitDB", back_populates="verifications")
    verified_by = relationship("OfficerDB")


# =============================================================================
# OWNERSHIP TRANSFER
# =============================================================================

class OwnershipTransferDB(Base):
    """Two-party confirmed handover of an animal's owner of record."""
    __tablename__ = "ownership_transfers"

    id = Column(String(36), primary_key=True)  # UUID
    livestock_id = Column(String(36), ForeignKey("livestock.id"), nullable=False, index=True)
    from_owner_id = Column(String(36), ForeignKey("owners.id"), nullable=False, index=True)
    to_owner_id = Column(String(36), ForeignKey("owners.id"), nullable=False, index=True)
    initiated_by_id = Column(String(36), ForeignKey("officers.id"), nullable=False)

    status = Column(SQLEnum(TransferStatus), nullable=False, default=TransferStatus.PENDING)
    transfer_date = Column(Date, nullable=True)
    reason = Column(String(500), nullable=True)

    from_owner_confirmed = Column(Boolean, nullable=False, default=False)
    to_owner_confirmed = Column(Boolean, nullable=False, default=False)
    from_owner_fingerprint_ref = Column(String(500), nullable=True)
    to_owner_fingerprint_ref = Column(String(500), nullable=True)

    completed_by_id = Column(String(36), ForeignKey("officers.id"), nullable=True)
    completed_at = Column(DateTime, nullable=True)
    cancelled_by_id = Column(String(36), ForeignKey("officers.id"), nullable=True)
    cancellation_reason = Column(String(500), nullable=True)

    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    livestock = relationship("LivestockDB")
    from_owner = relationship("OwnerDB", foreign_keys=[from_owner_id])
    to_owner = relationship("OwnerDB", foreign_keys=[to_owner_id])
    initiated_by = relationship("OfficerDB", foreign_keys=[initiated_by_id])

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        # At most one PENDING transfer per animal
        Index(
            "uq_transfer_pending_livestock",
            "livestock_id",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
        Index("idx_transfer_status", "status"),
    )
