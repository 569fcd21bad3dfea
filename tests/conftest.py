"""Pytest configuration and fixtures."""
import os

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import sessionmaker

from app.core.security import create_access_token
from app.db.base_class import Base
from app.db.session import build_engine

# --- Constants ---
EDITOR_EMAIL = "jane.doe@example.com"
EDITOR_NAME = "Jane.doe"


def _build_test_db_url(tmp_path) -> str:
    """Build a test DB URL (a throwaway SQLite file unless overridden)."""
    env_url = os.getenv("TEST_DATABASE_URL")
    if env_url:
        return env_url
    return f"sqlite:///{tmp_path / 'releases_test.db'}"


# --- Per-test fixtures ---

@pytest.fixture
def test_engine(tmp_path):
    """Engine with fresh tables (create_all / drop_all)."""
    import app.models  # noqa: F401

    engine = build_engine(_build_test_db_url(tmp_path))
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(test_engine):
    TestSession = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
async def client(test_engine):
    """
    Async HTTP client with get_db overridden to use the test database.
    """
    from app.main import app as fastapi_app
    from app.api.deps import get_db

    TestSession = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

    def _override_get_db():
        db = TestSession()
        try:
            yield db
        finally:
            db.close()

    fastapi_app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict:
    """Authorization headers for a signed-in editor."""
    token = create_access_token(EDITOR_EMAIL)
    return {"Authorization": f"Bearer {token}"}
