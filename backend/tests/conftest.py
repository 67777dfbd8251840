"""
Shared fixtures for the DigiStock test suite.

Each test gets its own SQLite database file, so sessions opened from
different threads (or two sessions racing on one row) see a real shared
store with real locking.
"""
import os

# Must be set before digistock.database builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from digistock.database import Base, get_db
from digistock.main import app
from digistock.models.db_models import (
    LivestockDB, OfficerDB, OfficerRole, OwnerDB,
)
from digistock.services.storage import StorageError, get_storage


# =============================================================================
# STORAGE DOUBLES
# =============================================================================

class InMemoryStorage:
    """Dict-backed storage collaborator."""

    def __init__(self):
        self.objects = {}

    def put(self, data: bytes, key: str, content_type: str = "application/octet-stream") -> str:
        self.objects[key] = (data, content_type)
        return key

    def get(self, ref: str) -> bytes:
        if ref not in self.objects:
            raise StorageError(f"Object not found: {ref}")
        return self.objects[ref][0]

    def delete(self, ref: str) -> None:
        self.objects.pop(ref, None)


class BrokenDisk:
    """Storage whose writes fail."""

    def put(self, data: bytes, key: str, content_type: str = "application/octet-stream") -> str:
        raise StorageError("disk full")

    def get(self, ref: str) -> bytes:
        raise StorageError(f"Object not found: {ref}")

    def delete(self, ref: str) -> None:
        pass


# =============================================================================
# DATABASE
# =============================================================================

@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'digistock.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def broken_storage():
    return BrokenDisk()


# =============================================================================
# FACTORIES
# =============================================================================

@pytest.fixture
def make_officer(db):
    def _make(role=OfficerRole.POLICE_OFFICER, province="Harare", active=True):
        officer = OfficerDB(
            id=str(uuid4()),
            officer_code=f"OFF-{uuid4().hex[:8]}",
            first_name="Tendai",
            last_name="Moyo",
            role=role,
            province=province,
            active=active,
        )
        db.add(officer)
        db.commit()
        return officer
    return _make


@pytest.fixture
def make_owner(db):
    def _make(first_name="Chipo", last_name="Mutasa"):
        owner = OwnerDB(
            id=str(uuid4()),
            national_id=f"63-{uuid4().hex[:6]}-A-12",
            first_name=first_name,
            last_name=last_name,
            province="Harare",
        )
        db.add(owner)
        db.commit()
        return owner
    return _make


@pytest.fixture
def make_livestock(db):
    def _make(owner, stolen=False):
        livestock = LivestockDB(
            id=str(uuid4()),
            tag_code=f"ZW-{uuid4().hex[:8].upper()}",
            name="Bella",
            breed="Mashona",
            sex="F",
            birth_date=date(2022, 3, 1),
            owner_id=owner.id,
            stolen=stolen,
            stolen_date=date.today() if stolen else None,
        )
        db.add(livestock)
        db.commit()
        return livestock
    return _make


@pytest.fixture
def police(make_officer):
    return make_officer(OfficerRole.POLICE_OFFICER)


@pytest.fixture
def agritex(make_officer):
    return make_officer(OfficerRole.AGRITEX_OFFICER)


@pytest.fixture
def owner(make_owner):
    return make_owner()


@pytest.fixture
def new_owner(make_owner):
    return make_owner("Tatenda", "Sibanda")


@pytest.fixture
def cow(make_livestock, owner):
    return make_livestock(owner)


# =============================================================================
# WORKFLOW SHORTCUTS
# =============================================================================

@pytest.fixture
def approved_clearance(db, storage, police, cow, owner):
    from digistock.services.workflow import ClearanceService

    service = ClearanceService(db, storage)
    clearance = service.create(cow.id, owner.id, police.id)
    return service.approve(clearance.id, police.id)


@pytest.fixture
def permit(db, storage, agritex, cow, approved_clearance):
    from digistock.services.workflow import PermitService

    return PermitService(db, storage).create(
        clearance_id=approved_clearance.id,
        livestock_id=cow.id,
        from_location="Mazowe",
        to_location="Harare Abattoir",
        officer_id=agritex.id,
    )


# =============================================================================
# HTTP
# =============================================================================

@pytest.fixture
def client(session_factory, storage):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()
