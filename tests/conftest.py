"""
Test infrastructure for the MyBlog backend.

Strategy
--------
- SQLite in-memory via aiosqlite, shared through StaticPool: in-memory
  databases are connection-scoped, so every session must reuse the one
  connection or it would see an empty database.
- Foreign keys are switched on per connection so ON DELETE CASCADE behaves
  as it does on PostgreSQL.
- ``get_db`` and ``get_read_db`` are overridden to hand out handles on the
  test ``Database``.
- Tables are created before and dropped after each test.
- Redis is disabled (``cache._redis = None``); the CacheManager degrades to
  no-ops.  Tests that exercise Redis behaviour use ``FakeRedis`` instead.
"""
import fnmatch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.pool import StaticPool

from myblog.cache import cache
from myblog.database import Database, DBHandle, get_db, get_read_db
from myblog.main import app
from myblog.middleware import install_query_counter

# ---------------------------------------------------------------------------
# Test database: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_database = Database(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(test_database.engine.sync_engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


install_query_counter(test_database.engine)


# ---------------------------------------------------------------------------
# Dependency overrides
# ---------------------------------------------------------------------------

async def override_get_db():
    yield test_database.write()


async def override_get_read_db():
    yield test_database.read()


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_read_db] = override_get_read_db


# ---------------------------------------------------------------------------
# In-memory Redis stand-in
# ---------------------------------------------------------------------------

class FakeRedis:
    """
    The handful of redis.asyncio calls the cache and the lock store make.

    Expiry is not simulated; ``px``/``ex`` are recorded so tests can assert
    on them.
    """

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.closed = False

    async def ping(self) -> bool:
        return True

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None, px=None, nx=False):
        if nx and key in self.data:
            return None
        self.data[key] = value
        self.ttls[key] = px if px is not None else ex
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def scan_iter(self, match="*"):
        for key in list(self.data):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def eval(self, script, numkeys, key, token):
        # Compare-and-delete, the only script in use.
        if self.data.get(key) == token:
            return await self.delete(key)
        return 0

    async def aclose(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    cache._redis = None
    await test_database.create_all()
    yield
    await test_database.drop_all()
    cache._redis = None


@pytest.fixture
def database() -> Database:
    return test_database


@pytest.fixture
def db() -> DBHandle:
    """Pool-bound handle for service and repository tests."""
    return test_database.write()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def register_and_login(
    client: AsyncClient,
    username: str = "alice",
    email: str = "alice@example.com",
    password: str = "secret-pass",
) -> tuple[str, dict]:
    """Register a user and return ``(user_id, auth_headers)``."""
    resp = await client.post("/api/v1/users/register", json={
        "username": username, "email": email, "password": password,
    })
    assert resp.status_code == 201, resp.text
    user_id = resp.json()["id"]
    resp = await client.post("/api/v1/users/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return user_id, {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest_asyncio.fixture
async def auth(async_client: AsyncClient) -> tuple[str, dict]:
    return await register_and_login(async_client)
