"""
Shared pytest fixtures.

Every test gets its own SQLite file under tmp_path and a fast bcrypt
work factor. HTTP tests talk to the app through httpx's ASGITransport,
which does not run the lifespan, so the store is connected here.

Fixture Hierarchy (all function-scoped):
    settings
    └── database (connected SQLiteDatabase)
        ├── credential_store
        ├── note_access
        └── app
            └── client (httpx AsyncClient)
                └── signup (register + login helper)
"""

from typing import Any, Dict

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from config import Settings
from main import create_app
from services.credential_store import CredentialStore
from services.note_access import NoteAccessController
from services.note_store import NoteStore
from sqlite_db import SQLiteDatabase

TEST_SECRET = "test-secret-key"
DEFAULT_PASSWORD = "correct horse battery"


def make_settings(tmp_path, **overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "jwt_secret_key": TEST_SECRET,
        "bcrypt_rounds": 4,
        "database_path": str(tmp_path / "test.db"),
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest_asyncio.fixture
async def database(settings):
    db = SQLiteDatabase(settings.database_path)
    await db.connect()
    yield db
    await db.close()


@pytest.fixture
def credential_store(database) -> CredentialStore:
    return CredentialStore(database, bcrypt_rounds=4)


@pytest.fixture
def note_access(database) -> NoteAccessController:
    return NoteAccessController(NoteStore(database))


@pytest.fixture
def app(settings, database):
    return create_app(settings=settings, database=database)


@pytest.fixture
def make_app(tmp_path, database):
    """Build an app over the shared store with settings overrides."""

    def _make(**overrides: Any):
        return create_app(settings=make_settings(tmp_path, **overrides), database=database)

    return _make


@pytest_asyncio.fixture
async def client(app):
    """
    HTTPX AsyncClient bound to the app.

    Usage:
        async def test_health(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def signup(client):
    """
    Register a user and log in with a bearer token.

    Returns an async callable: ``user_id, headers = await signup("a@x.com")``.
    """

    async def _signup(email: str, password: str = DEFAULT_PASSWORD,
                      full_name: str = "Test User"):
        response = await client.post(
            "/auth/register",
            json={"fullName": full_name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        user_id = response.json()["user"]["id"]

        response = await client.post(
            "/auth/login", json={"email": email, "password": password}
        )
        assert response.status_code == 200, response.text
        token = response.json()["token"]
        return user_id, {"Authorization": f"Bearer {token}"}

    return _signup
