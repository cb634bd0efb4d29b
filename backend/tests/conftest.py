"""
Notes API Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    ├── user / other_user: resolved caller identities
    ├── identity_provider: AsyncMock provider ("token-user-1" → user-1, ...)
    ├── mock_repository: AsyncMock NoteRepository (pipeline unit tests)
    ├── make_note: factory for transient Note rows
    ├── database: throwaway SQLite database (aiosqlite) with the schema created
    ├── repository: real NoteRepository over `database`
    └── make_client: HTTPX AsyncClient bound to an app built around `repository`
"""

import os
from datetime import datetime, timezone
from typing import Optional
from unittest.mock import AsyncMock

# Override settings for testing BEFORE any app imports
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["SUPABASE_URL"] = "http://identity.test"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-service-key"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.config import Settings
from app.container import AppServices
from app.database import Database
from app.main import create_app
from app.models.note import Note
from app.schemas.note import UserIdentity
from app.services.identity_base import IdentityProvider
from app.services.note_pipeline import NotePipeline
from app.services.note_repository import NoteRepository
from app.services.token_verifier import TokenVerifier

USER_TOKEN = "token-user-1"
OTHER_TOKEN = "token-user-2"


def auth(token: str = USER_TOKEN) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user() -> UserIdentity:
    return UserIdentity(id="user-1", email="one@example.com")


@pytest.fixture
def other_user() -> UserIdentity:
    return UserIdentity(id="user-2", email="two@example.com")


@pytest.fixture
def identity_provider(user, other_user):
    """
    Provider double: two known tokens, everything else rejected.

    Tests can replace `resolve_user.side_effect` to simulate an outage.
    """
    known = {USER_TOKEN: user, OTHER_TOKEN: other_user}
    provider = AsyncMock(spec=IdentityProvider)
    provider.resolve_user.side_effect = lambda token: known.get(token)
    return provider


@pytest.fixture
def mock_repository():
    return AsyncMock(spec=NoteRepository)


@pytest.fixture
def make_note():
    """Factory for transient Note rows (never attached to a session)."""

    def _make(
        note_id: int = 1,
        user_id: str = "user-1",
        title: str = "t",
        content: Optional[str] = "c",
        deleted_at: Optional[datetime] = None,
    ) -> Note:
        return Note(
            id=note_id,
            title=title,
            content=content,
            user_id=user_id,
            created_at=datetime.now(timezone.utc),
            deleted_at=deleted_at,
        )

    return _make


@pytest_asyncio.fixture
async def database(tmp_path):
    """A fresh SQLite database file per test, schema created from the models."""
    settings = Settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'notes.db'}")
    db = Database.from_settings(settings)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def repository(database) -> NoteRepository:
    return NoteRepository(database)


@pytest_asyncio.fixture
async def make_client(repository, identity_provider):
    """
    Build an HTTP client for an app wired to the SQLite repository.

    Usage:
        client = await make_client(environment="development")
        response = await client.get("/notes", headers=auth())

    raise_app_exceptions=False: unexpected errors must come back as the
    error mapper's 500 response instead of being re-raised into the test.
    """
    clients = []

    async def _make(environment: str = "production", repo=None) -> AsyncClient:
        pipeline = NotePipeline(
            verifier=TokenVerifier(identity_provider),
            repository=repo or repository,
        )
        services = AppServices(pipeline=pipeline, identity_provider=identity_provider)
        app = create_app(settings=Settings(environment=environment), services=services)
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        client = AsyncClient(transport=transport, base_url="http://test")
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.aclose()
