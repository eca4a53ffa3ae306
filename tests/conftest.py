"""
Pytest fixtures for the price survey backend tests.

Every test gets a fresh SQLite file database; the app under test is pointed
at it through a get_db override.
"""

import os
import tempfile
from datetime import timedelta
from typing import AsyncGenerator, Awaitable, Callable

# Settings are read at import time; point them at SQLite before anything loads
_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from pricesurvey.config import AuthConfig, get_auth_config, get_settings

get_settings.cache_clear()
get_auth_config.cache_clear()

from pricesurvey.api.middleware.rate_limit import get_store
from pricesurvey.database import build_engine, build_session_maker, get_db
from pricesurvey.kernel.identity import password as password_module
from pricesurvey.kernel.identity.identity_service import IdentityService, claims_for
from pricesurvey.kernel.identity.jwt import TokenIssuer
from pricesurvey.kernel.identity.password import hash_password
from pricesurvey.kernel.identity.store import SqlActorStore
from pricesurvey.kernel.models import Base
from pricesurvey.kernel.models.actor import Actor, ActorType
from pricesurvey.kernel.permissions.policy import full_module_grants
from pricesurvey.main import app

TEST_PASSWORD = "CorrectHorse123"

ActorFactory = Callable[..., Awaitable[Actor]]


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Minimum bcrypt cost so hashing does not dominate the run."""
    monkeypatch.setattr(password_module, "BCRYPT_ROUNDS", 4)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    get_store().reset()
    yield
    get_store().reset()


@pytest_asyncio.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a test database engine with fresh tables."""
    engine = build_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_maker(db_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(
        secret_key="test-secret-key-for-testing-only-0123456789",
        algorithm="HS256",
        access_token_ttl=timedelta(minutes=15),
        refresh_token_ttl=timedelta(days=7),
    )


@pytest.fixture
def issuer(auth_config: AuthConfig) -> TokenIssuer:
    return TokenIssuer(auth_config)


@pytest.fixture
def identity(db_session: AsyncSession, issuer: TokenIssuer) -> IdentityService:
    return IdentityService.for_session(db_session, issuer)


@pytest.fixture
def make_actor(session_maker) -> ActorFactory:
    """
    Factory that commits an actor in its own session and returns it detached.

    Usage:
        operative = await make_actor(ActorType.OPERATIVE_USER, "op@example.com")
    """

    async def _make(
        actor_type: ActorType,
        email: str,
        username: str | None = None,
        password: str = TEST_PASSWORD,
        **fields,
    ) -> Actor:
        async with session_maker() as session:
            store = SqlActorStore(session, actor_type)
            actor = await store.create(
                full_name=fields.pop("full_name", "Test Actor"),
                email=email,
                username=username or email.split("@")[0],
                password_hash=hash_password(password),
                **fields,
            )
            await session.commit()
            return actor

    return _make


@pytest_asyncio.fixture
async def admin(make_actor: ActorFactory) -> Actor:
    """Administrator holding every module grant."""
    return await make_actor(ActorType.ADMIN, "admin@example.com", modules=full_module_grants())


@pytest_asyncio.fixture
async def user(make_actor: ActorFactory) -> Actor:
    return await make_actor(ActorType.USER, "shopper@example.com")


@pytest_asyncio.fixture
async def operative(make_actor: ActorFactory, admin: Actor) -> Actor:
    return await make_actor(
        ActorType.OPERATIVE_USER,
        "field@example.com",
        created_by_id=admin.id,
    )


@pytest_asyncio.fixture
async def client(session_maker, auth_config: AuthConfig) -> AsyncGenerator[AsyncClient, None]:
    """Async client against the app, bound to the test database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_auth_config] = lambda: auth_config
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_db, None)
        app.dependency_overrides.pop(get_auth_config, None)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(issuer: TokenIssuer) -> Callable[[Actor], dict]:
    """Build an access-token header for an actor without going through login."""

    def _headers(actor: Actor) -> dict:
        return bearer(issuer.issue(claims_for(actor)).access_token)

    return _headers


def pytest_sessionfinish(session, exitstatus):
    """Clean up temp DB file after test run."""
    for suffix in ("", "-wal", "-shm"):
        path = TEST_DB_PATH + suffix
        if os.path.exists(path):
            os.unlink(path)
