import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tradejournal.core.auth import get_current_user
from tradejournal.models.db import get_session, init_models
from tradejournal.services import mentor_service


@pytest.fixture
def user_id():
    return "trader-1"


@pytest_asyncio.fixture
async def db_engine():
    # One shared in-memory database per test
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture(autouse=True)
def reset_mentor_locks():
    mentor_service._user_locks.clear()
    yield
    mentor_service._user_locks.clear()


@pytest_asyncio.fixture
async def client(session_factory, user_id):
    from tradejournal.main import app

    async def _session():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_current_user] = lambda: user_id
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
