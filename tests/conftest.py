import os

os.environ.setdefault("MODE", "test")

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from main import app as fastapi_app
import db as project_db
import db_models  # ensure models are imported
from db_base import Base
from db_models.catalog import Brand, BikeModel
from db_models.user import User, UserRole
from api.auth.db_manager import load_user_access
from core.notifier import Notifier
from core.rate_limit import limiter
from core.role_cache import RoleCache
from core.security import get_password_hash, create_access_token
from seed_database import seed_access_catalog, seed_brands

# In-memory SQLite shared across connections of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "bikeshop-pass"
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)

# One user per seeded role, plus one without any role
TEST_USERS = ("admin", "manager", "medewerker", "readonly", "norole")


class FakeConnection:
    """Stand-in for a WebSocket that records what it is sent."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[str] = []
        self.closed_with: int | None = None

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise ConnectionResetError("client went away")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.closed_with = code


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seed(session_factory):
    """Roles, permissions, the brand catalog and one user per role."""
    async with session_factory() as session:
        roles = await seed_access_catalog(session)
        await seed_brands(session)

        users = {}
        for name in TEST_USERS:
            user = User(
                email=f"{name}@bikeshop.nl",
                hashed_password=TEST_PASSWORD_HASH,
                full_name=f"Test {name.title()}",
                is_active=True,
            )
            session.add(user)
            await session.flush()
            if name in roles:
                session.add(UserRole(user_id=user.id, role_id=roles[name].id))
            users[name] = user.id

        brands = {}
        result = await session.execute(select(Brand))
        for brand in result.scalars().all():
            brands[brand.name] = brand.id

        models = {}
        result = await session.execute(select(BikeModel))
        for model in result.scalars().all():
            models[model.name] = model.id

        await session.commit()

    return {"users": users, "brands": brands, "models": models}


@pytest.fixture
def role_cache():
    return RoleCache(loader=load_user_access)


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
async def async_client(session_factory, seed, role_cache, notifier):
    # Override the get_session dependency to create a fresh session for each request
    async def override_get_session():
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[project_db.get_session] = override_get_session
    fastapi_app.state.role_cache = role_cache
    fastapi_app.state.notifier = notifier
    limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://testserver") as ac:
        yield ac

    # Clean up
    fastapi_app.dependency_overrides.clear()
    await notifier.stop()
    await role_cache.stop()


@pytest.fixture
def headers_for(seed):
    """Build bearer headers for one of the seeded users."""
    def build(name: str) -> dict[str, str]:
        token = create_access_token(data={"sub": str(seed["users"][name])})
        return {"Authorization": f"Bearer {token}"}
    return build


@pytest.fixture
def admin_headers(headers_for):
    return headers_for("admin")


@pytest.fixture
def medewerker_headers(headers_for):
    return headers_for("medewerker")


@pytest.fixture
def readonly_headers(headers_for):
    return headers_for("readonly")


@pytest.fixture
async def listener(notifier):
    """A live fake connection registered with the app's notifier."""
    conn = FakeConnection()
    assert await notifier.connect(conn)
    conn.sent.clear()
    return conn


@pytest.fixture
def make_bike(async_client, admin_headers, seed):
    """Create a bike through the API and return its JSON."""
    counter = {"n": 0}

    async def create(**overrides):
        counter["n"] += 1
        payload = {
            "frame_number": f"WTU{counter['n']:06d}",
            "brand_id": seed["brands"]["Giant"],
            "model_id": seed["models"]["Defy"],
            "year": 2023,
            "color": "blue",
            "size": "M",
            "purchase_price": 800,
            "selling_price": 1200,
        }
        payload.update(overrides)
        resp = await async_client.post("/api/v1/bikes", json=payload, headers=admin_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return create


@pytest.fixture
def fake_connection():
    return FakeConnection
