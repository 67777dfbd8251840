"""
Storage Service

Resolves opaque object references ("qr/permits/<id>/<uuid>.png") to bytes.
Workflows only ever hold the reference string.
"""
import logging
import os
from typing import Protocol

from ...config import STORAGE_ROOT

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when an object cannot be stored, read or deleted."""
    pass


class StorageService(Protocol):
    """Create/read/delete by reference."""

    def put(self, data: bytes, key: str, content_type: str = "application/octet-stream") -> str:
        ...

    def get(self, ref: str) -> bytes:
        ...

    def delete(self, ref: str) -> None:
        ...


class FileSystemStorage:
    """Storage backed by a directory tree; the reference is the relative key."""

    def __init__(self, root: str = STORAGE_ROOT):
        self.root = os.path.abspath(root)

    def _path(self, ref: str) -> str:
        path = os.path.abspath(os.path.join(self.root, ref))
        if not path.startswith(self.root + os.sep):
            raise StorageError(f"Reference escapes storage root: {ref}")
        return path

    def put(self, data: bytes, key: str, content_type: str = "application/octet-stream") -> str:
        path = self._path(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
        logger.info(f"Stored {len(data)} bytes ({content_type}) at {key}")
        return key

    def get(self, ref: str) -> bytes:
        path = self._path(ref)
        if not os.path.exists(path):
            raise StorageError(f"Object not found: {ref}")
        with open(path, "rb") as f:
            return f.read()

    def delete(self, ref: str) -> None:
        path = self._path(ref)
        if os.path.exists(path):
            os.remove(path)
            logger.info(f"Deleted stored object {ref}")


_storage = None


def get_storage() -> StorageService:
    """Dependency for FastAPI - process-wide filesystem storage."""
    global _storage
    if _storage is None:
        _storage = FileSystemStorage()
    return _storage
