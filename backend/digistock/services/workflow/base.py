"""
Workflow Service Base

Shared plumbing for the workflow services:
- entity lookup that raises NotFoundError
- officer identity/role checks
- one atomic unit of work per operation (commit on success, rollback otherwise)
"""
import logging
from contextlib import contextmanager
from typing import Iterable, List, Optional, Tuple, Type

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session
from sqlalchemy.orm.exc import StaleDataError

from ...config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ...models.db_models import OfficerDB, OfficerRole
from ..errors import BusinessRuleError, ConflictError, NotFoundError, StorageUnavailableError
from ..storage import QrCodeService, StorageError, StorageService

logger = logging.getLogger(__name__)


def paginate(query: Query, page: int = 0, size: int = DEFAULT_PAGE_SIZE) -> Tuple[List, int]:
    """Zero-indexed page of a query. Returns (items, total)."""
    page = max(page, 0)
    size = min(max(size, 1), MAX_PAGE_SIZE)
    total = query.count()
    items = query.offset(page * size).limit(size).all()
    return items, total


class WorkflowService:
    """Base class for workflow services bound to one session."""

    def __init__(self, db: Session, storage: Optional[StorageService] = None):
        self.db = db
        self.storage = storage
        self.qr = QrCodeService()
        self._uploaded: List[str] = []

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def _get_or_404(self, model: Type, entity_name: str, entity_id: str):
        entity = self.db.get(model, entity_id)
        if entity is None:
            raise NotFoundError(entity_name, "id", entity_id)
        return entity

    def _require_officer(
        self,
        officer_id: str,
        roles: Optional[Iterable[OfficerRole]] = None,
        action: str = "perform this action",
    ) -> OfficerDB:
        """Resolve an active officer, optionally restricted to roles."""
        officer = self._get_or_404(OfficerDB, "Officer", officer_id)
        if not officer.active:
            raise BusinessRuleError(f"Officer {officer.officer_code} is not active")
        if roles is not None and officer.role not in set(roles):
            allowed = ", ".join(sorted(r.value for r in roles))
            raise BusinessRuleError(f"Only {allowed} officers can {action}")
        return officer

    # =========================================================================
    # UNIT OF WORK
    # =========================================================================

    def _store(self, data: bytes, key: str, content_type: str) -> str:
        """Upload an object that is removed again if the unit of work fails."""
        try:
            ref = self.storage.put(data, key, content_type)
        except (StorageError, OSError) as e:
            logger.error(f"Failed to store {key}: {e}")
            raise StorageUnavailableError(f"Could not store {key}")
        self._uploaded.append(ref)
        return ref

    def _store_qr(self, content: str, entity_type: str, entity_id: str) -> Optional[str]:
        """Render and store a QR code; None when no storage is configured."""
        if self.storage is None:
            return None
        ref = self._store(self.qr.render_png(content), QrCodeService.object_key(entity_type, entity_id), "image/png")
        logger.info(f"Generated QR code for {entity_type} {entity_id}: {ref}")
        return ref

    @contextmanager
    def unit_of_work(self, description: str):
        """
        Run one workflow operation atomically.

        Lost optimistic-version races and unique-constraint collisions surface
        as ConflictError; any failure rolls back and discards uploads.
        """
        self._uploaded = []
        try:
            yield
            self.db.commit()
        except StaleDataError:
            self._abort()
            logger.warning(f"Concurrent modification detected while trying to {description}")
            raise ConflictError(f"Concurrent update - could not {description}; reload and retry")
        except IntegrityError as e:
            self._abort()
            logger.warning(f"Constraint violation while trying to {description}: {e.orig}")
            raise ConflictError(f"Could not {description}: conflicting record exists")
        except Exception:
            self._abort()
            raise
        finally:
            self._uploaded = []

    def _abort(self) -> None:
        self.db.rollback()
        for ref in self._uploaded:
            try:
                self.storage.delete(ref)
            except (StorageError, OSError) as e:
                logger.error(f"Failed to discard stored object {ref}: {e}")
