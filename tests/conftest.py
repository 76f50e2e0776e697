import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from bookshelf.app import create_app
from bookshelf.database import Base
from bookshelf.deps import get_store
from bookshelf.services.shelf_service import ShelfService
from bookshelf.services.sql_store import SqlShelfStore
import bookshelf.models  # noqa: F401

TEST_DB_URL = "sqlite+aiosqlite://"  # in-memory

engine = create_async_engine(TEST_DB_URL, echo=False)
TestSession = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(autouse=True)
async def setup_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def session():
    async with TestSession() as s:
        yield s


@pytest.fixture
def store(session):
    return SqlShelfStore(session)


@pytest.fixture
def service(store):
    return ShelfService(store, timeout=5.0)


@pytest.fixture
async def client():
    app = create_app()

    async def override_store():
        async with TestSession() as s:
            yield SqlShelfStore(s)

    app.dependency_overrides[get_store] = override_store
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test", headers={"X-User-Id": "u1"}
    ) as c:
        yield c
