"""Pytest configuration and fixtures."""

from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from backend.app.core.config import settings
from backend.app.db import base as db_base
from backend.app.db.base import Base, get_db
from backend.app.main import app
from backend.app.services import llm as llm_module
from backend.app.services.embedding import EmbeddingService, get_embedding_service
from backend.app.services.enrichment import enricher

KEYWORDS = ("Next.js", "Firebase", "デザイン")


class KeywordEmbeddingProvider:
    """
    Deterministic embedding provider for tests.

    Each dimension counts one keyword, so texts sharing a keyword are
    similar and texts with none of them embed to the zero vector.
    """

    def __init__(self, fail_on: str | None = None):
        self.fail_on = fail_on
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_on and self.fail_on in text:
            raise RuntimeError("embedding backend unavailable")
        return [float(text.count(keyword)) for keyword in KEYWORDS]


@pytest.fixture
def keyword_provider() -> KeywordEmbeddingProvider:
    return KeywordEmbeddingProvider()


@pytest.fixture
def keyword_embedding_service(keyword_provider) -> EmbeddingService:
    """EmbeddingService over the keyword provider (dimension 3)."""
    return EmbeddingService(provider=keyword_provider, dimension=len(KEYWORDS))


@pytest.fixture
def keyword_service_factory():
    """Build keyword EmbeddingServices, optionally failing on texts containing a marker."""
    def _make(fail_on: str | None = None) -> EmbeddingService:
        return EmbeddingService(provider=KeywordEmbeddingProvider(fail_on), dimension=len(KEYWORDS))
    return _make


@pytest.fixture(autouse=True)
def offline_services(monkeypatch):
    """Run every test without hosted model credentials or cached gateways."""
    monkeypatch.setattr(settings, "openai_api_key", None)
    monkeypatch.setattr(settings, "embedding_provider", "openai")
    monkeypatch.setattr(llm_module, "_llm_service", None)
    get_embedding_service.cache_clear()
    yield
    get_embedding_service.cache_clear()


@pytest.fixture(scope="function")
async def test_engine(tmp_path):
    """
    Create a test database engine.

    Each test gets a fresh file database with all tables created. A file is
    used instead of :memory: so that background tasks opening their own
    sessions see the same data.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup
    await engine.dispose()


@pytest.fixture(scope="function")
def test_session_factory(test_engine, monkeypatch):
    """Session factory bound to the test engine, also used by background tasks."""
    factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    monkeypatch.setattr(db_base, "AsyncSessionLocal", factory)
    return factory


@pytest.fixture(scope="function")
async def test_db(test_session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with test_session_factory() as session:
        yield session


@pytest.fixture(scope="function")
async def test_client_with_db(test_session_factory, tmp_path, monkeypatch) -> AsyncGenerator[AsyncClient, None]:
    """
    Create test client with a fresh database.

    Overrides the app's database dependency and points image storage at a
    temporary directory.
    """
    monkeypatch.setattr(settings, "media_root", str(tmp_path / "media"))

    # Override get_db dependency
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    # Cleanup
    await enricher.drain()
    app.dependency_overrides.clear()


async def login(client: AsyncClient, access_id: str = "admin", member_id: str | None = None) -> dict[str, str]:
    """Log in and return the Authorization header."""
    payload = {"access_id": access_id}
    if member_id:
        payload["member_id"] = member_id
    response = await client.post("/api/auth/login", json=payload)
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def login_as(test_client_with_db):
    """Log in with any access id / member and return the Authorization header."""
    async def _login(access_id: str = "admin", member_id: str | None = None) -> dict[str, str]:
        return await login(test_client_with_db, access_id, member_id)
    return _login


@pytest.fixture
async def auth_headers(test_client_with_db) -> dict[str, str]:
    """Authorization header of a logged-in session without edit mode."""
    return await login(test_client_with_db)


@pytest.fixture
async def edit_headers(test_client_with_db) -> dict[str, str]:
    """Authorization header of a separate session with edit mode enabled."""
    headers = await login(test_client_with_db)
    response = await test_client_with_db.put(
        "/api/auth/edit-mode",
        json={"enabled": True},
        headers=headers,
    )
    assert response.status_code == 200
    return headers
