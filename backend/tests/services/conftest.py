"""Service test fixtures - async DB, fake platform, seeded tenants and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test DB session factory
    - app.state.platform is the FakePlatform of the test (lifespan is not run)
    - Tenants: org 1 (alice admin, bob and carol members), org 2 (eve admin);
      root is a global admin without membership; mallory has no organization

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for service and route tests
    - db_manager patched: the readiness probe uses db_manager directly
    - Projects are seeded through the real create saga so boards, groups and folders exist
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from projectcreator.db.base import Base
from projectcreator.infrastructure.database import get_db, DatabaseSessionManager
import projectcreator.infrastructure.database as db_module
import projectcreator.models  # noqa: F401
from projectcreator.main import app
from projectcreator.models.organization import (
    Organization, OrganizationMember, Plan, Subscription,
)
from projectcreator.services.project_access import resolve_caller
from projectcreator.services.project_service import ProjectDraft, ProjectService
from tests.services.fake_platform import FakePlatform

USERS = ("alice", "bob", "carol", "eve", "root", "mallory")


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def platform():
    fake = FakePlatform()
    for uid in USERS:
        fake.users.add(uid)
    fake.groups.groups["admin"].add("root")
    return fake


@pytest.fixture
async def tenants(test_db):
    """Two organizations with plans and active subscriptions."""
    plan = Plan(name="Team", max_projects=5, shared_storage_per_project=1_073_741_824)
    small = Plan(name="Starter", max_projects=1)
    org1 = Organization(name="Acme")
    org2 = Organization(name="Globex")
    test_db.add_all([plan, small, org1, org2])
    await test_db.flush()
    test_db.add_all([
        Subscription(organization_id=org1.id, plan_id=plan.id, status="active"),
        Subscription(organization_id=org2.id, plan_id=small.id, status="active"),
        OrganizationMember(organization_id=org1.id, user_uid="alice", role="admin"),
        OrganizationMember(organization_id=org1.id, user_uid="bob", role="member"),
        OrganizationMember(organization_id=org1.id, user_uid="carol", role="member"),
        OrganizationMember(organization_id=org2.id, user_uid="eve", role="admin"),
    ])
    await test_db.commit()
    return {"org1": org1.id, "org2": org2.id}


@pytest.fixture
def caller_for(test_db, platform):
    async def _resolve(user_id: str):
        return await resolve_caller(test_db, platform, user_id)
    return _resolve


@pytest.fixture
async def project(test_db, platform, tenants, caller_for):
    """Combi project 'Alpha' owned by alice with bob as member."""
    alice = await caller_for("alice")
    created = await ProjectService(test_db, platform).create_project(
        alice, ProjectDraft(name="Alpha", number="P-001", type=0, members=["bob"]),
    )
    platform.calls.clear()
    return created


@pytest.fixture
async def client(test_engine, test_session_factory, platform):
    """FastAPI test client with DB dependency overridden and the fake platform installed."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.platform = platform

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    app.state.platform = None
    db_module.db_manager = original_manager
