"""
Fixtures for tests that run against a real PostgreSQL database.

Requires PostgreSQL at DATABASE_URL; the tests are skipped when it
cannot be reached.
"""

from collections.abc import Iterator

import pytest
from psycopg_pool import ConnectionPool, PoolTimeout

from accountguard.adapters.repository.postgres import PostgresAccountRepository, run_migrations
from accountguard.config.settings import get_settings


@pytest.fixture(scope="session")
def pool() -> Iterator[ConnectionPool]:
    """Create connection pool for integration tests and apply migrations."""
    settings = get_settings()
    pool = ConnectionPool(conninfo=settings.database_url, min_size=1, max_size=10, open=False)
    try:
        pool.open(wait=True, timeout=3.0)
    except PoolTimeout:
        pool.close()
        pytest.skip("PostgreSQL is not reachable")
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def repository(pool: ConnectionPool) -> PostgresAccountRepository:
    """Create repository instance for each test."""
    return PostgresAccountRepository(pool)


@pytest.fixture(autouse=True)
def clean_database(pool: ConnectionPool) -> Iterator[None]:
    """Clean accounts table before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM accounts")
        conn.commit()
    yield
