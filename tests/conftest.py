"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory credential store, recording notifier and controllable clock
  (see doubles.py)
- JWT signer with a test secret
- PostgreSQL connection pool (skipped when the database is unreachable)
"""

from collections.abc import Generator
from datetime import timedelta

import pytest
from doubles import TEST_JWT_SECRET, FakeClock, InMemoryCredentialStore, RecordingNotifier
from psycopg_pool import ConnectionPool, PoolTimeout

from src.adapters.repository.postgres import run_migrations
from src.adapters.signing.jwt_signer import JWTTokenSigner
from src.config.settings import get_settings


@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def signer() -> JWTTokenSigner:
    return JWTTokenSigner(TEST_JWT_SECRET, ttl=timedelta(minutes=30))


@pytest.fixture(scope="session")
def pg_pool() -> Generator[ConnectionPool, None, None]:
    """
    Session-wide connection pool with migrations applied.

    Skips the requesting test when PostgreSQL is not reachable.
    """
    settings = get_settings()
    pool = ConnectionPool(conninfo=settings.database_url, min_size=1, max_size=10, open=True)
    try:
        pool.wait(timeout=3.0)
    except PoolTimeout:
        pool.close()
        pytest.skip("PostgreSQL not reachable")
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def pool(pg_pool: ConnectionPool) -> Generator[ConnectionPool, None, None]:
    """Connection pool with empty tables for each test."""
    with pg_pool.connection() as conn:
        conn.execute("DELETE FROM activation_tokens")
        conn.execute("DELETE FROM users")
    yield pg_pool
