"""
Test configuration: in-memory database, factories and an API client.

Every test gets a fresh SQLite schema built from the ORM metadata. SQLite
is driven in autocommit mode with an explicit BEGIN so SAVEPOINTs behave
the way they do on PostgreSQL.
"""

import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")

from uuid import UUID

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from dashboard_feedback.core.database import get_session
from dashboard_feedback.core.security import create_access_token, hash_password
from dashboard_feedback.models import (
    Base,
    Chart,
    Dashboard,
    Issue,
    IssueStatus,
    Team,
    User,
    UserRole,
)
from dashboard_feedback.services import ConnectionHub, NotificationService, get_hub

TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_PASSWORD = "correct-horse"


# =============================================================================
# DATABASE
# =============================================================================


@pytest.fixture
async def db_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def hub() -> ConnectionHub:
    return ConnectionHub(queue_size=10)


@pytest.fixture
def notifications(session, hub) -> NotificationService:
    return NotificationService(session, hub)


# =============================================================================
# FACTORIES
# =============================================================================


class Factory:
    """Creates committed rows so both services and the API can see them."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def _save(self, obj):
        self.session.add(obj)
        await self.session.commit()
        return obj

    async def team(self, name: str | None = None) -> Team:
        return await self._save(Team(name=name or f"Team {self._next()}"))

    async def user(
        self,
        role: UserRole,
        team: Team | None = None,
        name: str | None = None,
        password: str | None = None,
    ) -> User:
        n = self._next()
        return await self._save(
            User(
                name=name or f"{role.value.title()} User {n}",
                email=f"{role.value}{n}@example.com",
                password_hash=hash_password(password) if password else None,
                role=role,
                team_id=team.id if team else None,
            )
        )

    async def dashboard(self, team: Team | None = None, name: str | None = None) -> Dashboard:
        return await self._save(
            Dashboard(
                name=name or f"Dashboard {self._next()}",
                assigned_team_id=team.id if team else None,
            )
        )

    async def chart(self, dashboard: Dashboard, name: str | None = None) -> Chart:
        return await self._save(
            Chart(dashboard_id=dashboard.id, name=name or f"Chart {self._next()}")
        )

    async def issue(
        self,
        submitter: User,
        dashboard: Dashboard,
        status: IssueStatus = IssueStatus.PENDING,
        subject: str | None = None,
        assigned_team_id: UUID | None = None,
    ) -> Issue:
        return await self._save(
            Issue(
                dashboard_id=dashboard.id,
                submitted_by_user_id=submitter.id,
                subject=subject or f"Thread {self._next()}",
                description="Numbers look off",
                status=status,
                priority=1,
                assigned_team_id=assigned_team_id or dashboard.assigned_team_id,
            )
        )


@pytest.fixture
def factory(session) -> Factory:
    return Factory(session)


@pytest.fixture
async def team(factory) -> Team:
    return await factory.team("Forecasting")


@pytest.fixture
async def other_team(factory) -> Team:
    return await factory.team("Growth")


@pytest.fixture
async def admin(factory) -> User:
    return await factory.user(UserRole.ADMIN, name="Alice Admin")


@pytest.fixture
async def business_user(factory) -> User:
    return await factory.user(UserRole.BUSINESS, name="Dana Ruiz", password=TEST_PASSWORD)


@pytest.fixture
async def other_business_user(factory) -> User:
    return await factory.user(UserRole.BUSINESS, name="Evan Brooks")


@pytest.fixture
async def data_scientist(factory, team) -> User:
    return await factory.user(UserRole.DATA_SCIENCE, team=team, name="Bob Nguyen")


@pytest.fixture
async def teammate(factory, team) -> User:
    return await factory.user(UserRole.DATA_SCIENCE, team=team, name="Carol Singh")


@pytest.fixture
async def outsider(factory, other_team) -> User:
    return await factory.user(UserRole.DATA_SCIENCE, team=other_team, name="Greg Okafor")


@pytest.fixture
async def dashboard(factory, team) -> Dashboard:
    return await factory.dashboard(team, name="Weekly Revenue")


@pytest.fixture
async def unassigned_dashboard(factory) -> Dashboard:
    return await factory.dashboard(name="Warehouse Ops")


# =============================================================================
# API CLIENT
# =============================================================================


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
async def client(session_factory, hub):
    """
    Async client against the application.

    Each request gets its own session, committed or rolled back like in
    production. Tests must not hold an open transaction on the fixture
    session while a request runs.
    """
    from dashboard_feedback.main import app

    async def override_get_session():
        async with session_factory() as request_session:
            try:
                yield request_session
                await request_session.commit()
            except Exception:
                await request_session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_hub] = lambda: hub

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth():
    """Bearer header builder for a given user."""
    return auth_headers
