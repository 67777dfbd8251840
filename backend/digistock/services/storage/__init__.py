"""Storage collaborator and QR rendering"""
from .storage_service import StorageService, FileSystemStorage, StorageError, get_storage
from .qr_service import QrCodeService, clearance_payload, permit_payload

__all__ = [
    "StorageService", "FileSystemStorage", "StorageError", "get_storage",
    "QrCodeService", "clearance_payload", "permit_payload",
]
