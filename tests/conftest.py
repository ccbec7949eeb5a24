"""Pytest configuration and fixtures."""

import os

# Settings are read at import time by admin_api.main
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("INBOX_OPEN_STATUSES", "new,submitted")

from typing import Any, Dict, List, Optional

import httpx
import pytest
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from admin_api.auth.dependencies import get_current_claims
from admin_api.auth.jwks import TokenClaims
from admin_api.clients.auth0_management import get_auth0_management_client
from admin_api.clients.resend_client import get_resend_client
from admin_api.database.models import DEFAULT_LEAD_STATUSES, Base, LeadStatus, Staff
from admin_api.database.session import get_session
from admin_api.dependencies import get_status_registry
from admin_api.exceptions import AuthenticationError, ExternalServiceError
from admin_api.main import app
from admin_api.services.status_registry import StatusRegistry

# Test database URL (in-memory SQLite for unit tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_SUB = "auth0|admin"
ADMIN_EMAIL = "admin@ausa.io"


@pytest.fixture
async def engine():
    """Create test database engine with the status registry seeded."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(insert(LeadStatus), DEFAULT_LEAD_STATUSES)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def registry(session_factory):
    return StatusRegistry(session_factory, ttl_seconds=30.0, initial_code="new")


class FakeResend:
    """Stands in for ResendClient; records every send."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[Dict[str, Any]] = []

    async def send_email(self, to, subject, text=None, html=None) -> Dict[str, Any]:
        if self.fail:
            raise ExternalServiceError("resend", message="Resend send failed: rejected")
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html})
        return {"id": f"re_{len(self.sent)}"}


class FakeAuth0:
    """Stands in for Auth0ManagementClient."""

    def __init__(self, existing: Optional[Dict[str, Dict[str, Any]]] = None, fail: bool = False):
        self.users = dict(existing or {})
        self.fail = fail
        self.tickets: List[str] = []

    async def get_or_create_user_by_email(self, email: str) -> Dict[str, Any]:
        if self.fail:
            raise ExternalServiceError("auth0", message="Auth0 unreachable")
        if email not in self.users:
            self.users[email] = {"user_id": f"auth0|{len(self.users) + 1}", "email": email}
        return self.users[email]

    async def create_password_change_ticket(self, auth0_user_id: str) -> str:
        self.tickets.append(auth0_user_id)
        return f"https://ausa.us.auth0.com/lo/reset?ticket={auth0_user_id}"


@pytest.fixture
def resend():
    return FakeResend()


@pytest.fixture
def auth0():
    return FakeAuth0()


@pytest.fixture
def failing_resend():
    return FakeResend(fail=True)


@pytest.fixture
def failing_auth0():
    return FakeAuth0(fail=True)


@pytest.fixture
def token_claims():
    """Mutable claims returned for the current request; None means no token."""
    return {"claims": {"sub": ADMIN_SUB, "email": ADMIN_EMAIL}}


@pytest.fixture
async def admin_staff(session):
    staff = Staff(auth0_sub=ADMIN_SUB, email=ADMIN_EMAIL, role="admin", active=True)
    session.add(staff)
    await session.commit()
    return staff


@pytest.fixture
async def client(session_factory, registry, resend, auth0, token_claims):
    """HTTP client against the app with storage and collaborators overridden."""

    async def override_session():
        async with session_factory() as s:
            yield s
            await s.commit()

    async def override_claims():
        if token_claims["claims"] is None:
            raise AuthenticationError("Missing bearer token", code="MISSING_TOKEN")
        return TokenClaims(token_claims["claims"])

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_current_claims] = override_claims
    app.dependency_overrides[get_status_registry] = lambda: registry
    app.dependency_overrides[get_resend_client] = lambda: resend
    app.dependency_overrides[get_auth0_management_client] = lambda: auth0

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
