"""
tests/conftest.py -- Shared test fixtures for NoteVault.

This module provides:
  - make_settings(): Settings with a fixed secret and a cheap bcrypt cost
  - hasher / codec: unit-level building blocks matching those settings
  - api_client: TestClient over create_app() with an isolated database

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the API fixture because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. The named URI format
(file:name?mode=memory&cache=shared&uri=true) shares one in-memory instance
across all connections in the same process.

No environment variables are needed: every test builds its Settings
explicitly and passes it to create_app().
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.main import create_app
from auth.tokens import PasswordHasher, TokenCodec
from core.config import Settings

TEST_SECRET = "test-secret-key-for-notevault-0123456789"


def make_settings(**overrides) -> Settings:
    """Return Settings for tests. bcrypt_rounds=4 is the minimum cost bcrypt accepts."""
    values = {
        "secret_key": TEST_SECRET,
        "database_url": "sqlite:///:memory:",
        "bcrypt_rounds": 4,
        "allowed_hosts": "*",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings_factory():
    """Expose make_settings() to test modules without importing conftest."""
    return make_settings


@pytest.fixture(scope="session")
def secret_key() -> str:
    return TEST_SECRET


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(TEST_SECRET, expire_seconds=3600)


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, FastAPI], None, None]:
    """Yield (client, app) for API integration tests.

    One app and one in-memory database per test module. The lifespan runs on
    entering the TestClient context, so app.state.user_store is available to
    tests that need to inspect the database directly.
    """
    db_name = request.module.__name__.replace(".", "_")
    settings = make_settings(database_url=f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true")
    app = create_app(settings)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, app
