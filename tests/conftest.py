import os

os.environ["ENVIRONMENT"] = "testing"

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from blogapi.main import app
from blogapi.api.dependencies import get_cache_service, get_search_indexer
from blogapi.auth.security import create_access_token
from blogapi.clients.redis import RedisClient
from blogapi.constants import Role
from blogapi.db.database import get_session
from blogapi.services.cache_service import CacheService
from blogapi.services.search_indexer import SearchIndexer
from tests.factories import CategoryFactory, UserFactory, set_factory_session


@pytest.fixture
def test_engine():
    """In-memory database shared by every connection of one test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()


@pytest.fixture
def db_session(test_engine):
    with Session(test_engine) as session:
        set_factory_session(session)
        yield session


@pytest.fixture(autouse=True)
def clear_cache_locks():
    """Locks bind to the event loop that first waits on them"""
    CacheService._key_locks.clear()
    yield
    CacheService._key_locks.clear()


@pytest.fixture
def redis_store():
    return {}


@pytest.fixture
def mock_redis_client(redis_store):
    """Redis client backed by a plain dict"""

    async def _get(key):
        return redis_store.get(key)

    async def _set(key, value, expire=3600):
        redis_store[key] = value

    async def _delete(key):
        redis_store.pop(key, None)

    client = MagicMock(spec=RedisClient)
    client.get = AsyncMock(side_effect=_get)
    client.set = AsyncMock(side_effect=_set)
    client.delete = AsyncMock(side_effect=_delete)
    return client


@pytest.fixture
def cache_service(mock_redis_client):
    return CacheService(mock_redis_client)


@pytest.fixture
def mock_indexer():
    return MagicMock(spec=SearchIndexer)


@pytest.fixture
def client(db_session, cache_service, mock_indexer):
    """Test client with database, cache and search overridden"""

    def override_get_session():
        yield db_session

    async def override_get_cache_service():
        return cache_service

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_cache_service] = override_get_cache_service
    app.dependency_overrides[get_search_indexer] = lambda: mock_indexer

    yield TestClient(app)

    app.dependency_overrides = {}


@pytest.fixture
def category(db_session):
    return CategoryFactory()


@pytest.fixture
def admin(db_session):
    return UserFactory(role=Role.ADMIN, name="Admin")


@pytest.fixture
def editor(db_session):
    return UserFactory(role=Role.EDITOR, name="Editor")


@pytest.fixture
def contributor(db_session):
    return UserFactory(role=Role.CONTRIBUTOR, name="Contributor")


@pytest.fixture
def subscriber(db_session):
    return UserFactory(role=Role.SUBSCRIBER, name="Subscriber")


def auth_headers(user) -> dict:
    token = create_access_token(data={"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def editor_headers(editor):
    return auth_headers(editor)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def contributor_headers(contributor):
    return auth_headers(contributor)


@pytest.fixture
def subscriber_headers(subscriber):
    return auth_headers(subscriber)


@pytest.fixture
def mock_search_tasks():
    with patch("blogapi.services.search_indexer.search_tasks") as mock:
        yield mock
