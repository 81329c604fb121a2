"""Pytest configuration and fixtures.

Unit tests run the pipeline over the in-memory store in tests/fakes.py.
API tests drive create_app() through httpx ASGITransport with the unit of
work and dispatchers overridden, so no database or provider is needed.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from fixlify.api.v1.dependencies import (
    get_email_dispatcher,
    get_sms_dispatcher,
    get_uow_factory,
)
from fixlify.core.limiter import limiter
from fixlify.domain.exceptions import SqlNotConfiguredException
from fixlify.infrastructure.persistence.database import get_session_factory
from fixlify.main import create_app
from tests.fakes import (
    FakeUnitOfWork,
    FixedClock,
    InMemoryStore,
    RecordingEmailDispatcher,
    RecordingSmsDispatcher,
    build_runner,
)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def uow_factory(store: InMemoryStore):
    return lambda: FakeUnitOfWork(store)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def sms() -> RecordingSmsDispatcher:
    return RecordingSmsDispatcher()


@pytest.fixture
def email() -> RecordingEmailDispatcher:
    return RecordingEmailDispatcher()


@pytest.fixture
def runner(store, sms, email, clock):
    return build_runner(store, sms, email, clock)


@pytest.fixture
async def client(store, uow_factory, sms, email) -> AsyncClient:
    """Async HTTP client against a fresh app (ASGI) backed by the in-memory store."""
    app = create_app()
    app.dependency_overrides[get_uow_factory] = lambda: uow_factory
    app.dependency_overrides[get_sms_dispatcher] = lambda: sms
    app.dependency_overrides[get_email_dispatcher] = lambda: email
    limiter.reset()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def owner_headers() -> dict[str, str]:
    return {"X-User-ID": "user_1", "X-Organization-ID": "org_1"}


@pytest.fixture
async def db_session():
    """Database session for repository tests. Rolls back after each test.

    Requires DATABASE_URL and a migrated schema (alembic upgrade head);
    skips otherwise. Run without a database via: pytest -m 'not requires_db'.
    """
    try:
        session_factory = get_session_factory()
    except SqlNotConfiguredException:
        pytest.skip("Postgres not configured: set DATABASE_URL, then run: alembic upgrade head")
    async with session_factory() as session:
        yield session
        await session.rollback()
