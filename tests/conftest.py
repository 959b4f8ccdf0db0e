import os

# Must be set before agencyhub.core.database builds its engine.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from agencyhub.core.config import get_settings
from agencyhub.core.database import get_db
from agencyhub.core.security import create_access_token
from agencyhub.main import app
from agencyhub.models import registry  # noqa: F401
from agencyhub.models.base import Base
from agencyhub.models.client import Client
from agencyhub.models.team_member import TeamMember
from agencyhub.services.role_service import list_roles
from agencyhub.services.seed_service import seed_permission_catalog
from agencyhub.services.tenant_service import create_tenant

# 1) One shared in-memory SQLite connection
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# 2) Fresh schema for every test
@pytest.fixture(autouse=True)
def prepare_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


# 3) Override the get_db dependency
@pytest.fixture(autouse=True)
def db_session_override():
    def _get_test_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    yield
    app.dependency_overrides.clear()


# 4) TestClient fixture
@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def storage_root(tmp_path, monkeypatch):
    monkeypatch.setattr(get_settings(), "file_storage_root", str(tmp_path))
    return tmp_path


# -------------------------
# Agency fixtures
# -------------------------
@pytest.fixture
def agency(db):
    """
    A tenant with the permission catalog, its system roles and an owner.
    Returns (tenant, owner, roles-by-legacy-slug).
    """
    seed_permission_catalog(db)
    tenant, owner = create_tenant(db, name="Velvet Agency", owner_email="owner@velvet.test", owner_name="Olive Owner")
    db.commit()

    roles = {r.slug: r for r in list_roles(db, tenant.id)}
    return tenant, owner, roles


@pytest.fixture
def make_member(db, agency):
    tenant, _, roles = agency

    def _make(legacy_role: str = "chatter", *, with_role: bool = True, email: str | None = None, **fields):
        role = roles.get(legacy_role) if with_role else None
        member = TeamMember(
            id=uuid.uuid4(),
            tenant_id=tenant.id,
            email=email or f"{legacy_role}-{uuid.uuid4().hex[:6]}@velvet.test",
            full_name=f"{legacy_role.title()} Member",
            role=legacy_role,
            role_id=role.id if role is not None else None,
            **fields,
        )
        db.add(member)
        db.commit()
        db.refresh(member)
        return member

    return _make


@pytest.fixture
def agency_client(db, agency):
    tenant, _, _ = agency
    row = Client(tenant_id=tenant.id, username="lunabelle", display_name="Luna Belle")
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def auth_headers(member: TeamMember) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(str(member.id))}"}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def custom_request_payload(agency_client):
    return {
        "client_id": str(agency_client.id),
        "fan_name": "Big Spender",
        "description": "Two minute video in the red outfit",
        "proposed_amount": "100.00",
        "amount_paid": "40.00",
    }


