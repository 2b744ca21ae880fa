"""
Shared test fixtures.

- In-memory SQLite database (aiosqlite, StaticPool) created fresh per test
- Fake identity provider with scripted users and failures
- Controllable clock for the slug service
- HTTP client over the ASGI app with shared clients injected (no lifespan)
"""

import os

os.environ.setdefault("THROTTLE_ENABLED", "false")

from datetime import datetime, timedelta, timezone

import httpx
import pytest
from sqlalchemy.pool import StaticPool

from app.core.clients import ServiceClients
from app.db.gateway import SlugStoreGateway
from app.db.session import build_engine, build_session_maker, create_tables
from app.services.identity import IdentityGate, UserLookup
from app.services.slug_service import SlugService


class FakeIdentityProvider:
    """Identity provider answering from an in-memory user set."""

    def __init__(self, users=()):
        self.users = set(users)
        self.failures = {}
        self.calls = []
        self.closed = False

    def lookup_user(self, user_id):
        self.calls.append(user_id)
        if user_id in self.failures:
            return UserLookup.failed(self.failures[user_id])
        if user_id in self.users:
            return UserLookup.found()
        return UserLookup.not_found()

    def close(self):
        self.closed = True


class Clock:
    """Clock returning a fixed aware UTC time until advanced."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://", connect_timeout=5, poolclass=StaticPool)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    async with build_session_maker(engine)() as session:
        yield session


@pytest.fixture
def gateway(session) -> SlugStoreGateway:
    return SlugStoreGateway(session, timeout=5)


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider(users={"u1", "u2"})


@pytest.fixture
def identity(identity_provider) -> IdentityGate:
    return IdentityGate(identity_provider, timeout=5)


@pytest.fixture
def clock() -> Clock:
    return Clock(datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def service(gateway, identity, clock) -> SlugService:
    return SlugService(gateway, identity, now=clock)


@pytest.fixture
async def client(engine, identity):
    from app.core.rate_limit import limiter
    from app.main import app

    limiter.enabled = False
    app.state.clients = ServiceClients(
        engine=engine,
        session_maker=build_session_maker(engine),
        identity=identity,
        store_timeout=5,
        connect_timeout=5,
        rate_limit_count=30,
        rate_limit_window=timedelta(days=30),
    )
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    del app.state.clients
