"""
Shared fixtures: an app on a throwaway SQLite database and helpers for
registering / logging in test users.
"""

from typing import Any, Dict

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from config.settings import Settings
from database.session import build_engine, build_session_factory, create_tables
from main import create_app

TEST_SECRET = "kodbank-test-secret"

ALICE = {
    "username": "alice",
    "email": "a@x.com",
    "password": "secret1",
    "phone": "555",
}


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        jwt_secret=TEST_SECRET,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'kodbank.db'}",
        bcrypt_rounds=4,
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def session_factory(settings):
    engine = build_engine(settings)
    await create_tables(engine)
    yield build_session_factory(engine)
    await engine.dispose()


def register(client: TestClient, **overrides: Any):
    return client.post("/auth/register", json={**ALICE, **overrides})


def login_token(client: TestClient, username: str = "alice", password: str = "secret1") -> str:
    """Log in and return the token, dropping the cookie so requests stay explicit."""
    r = client.post("/auth/login", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    client.cookies.clear()
    return r.json()["token"]


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
