"""Integration test configuration with testcontainers.

The SQL store suite runs against a session-scoped PostgreSQL 16 container.
The container starts on first use only, so suites that stay in memory never
need Docker. Setting DATABASE_URL points the suite at an existing database
instead; that database should be disposable, because every test truncates
the territory tables.

Usage:
    @pytest.mark.integration
    async def test_store(territory_database_url: str) -> None:
        engine = create_async_engine(territory_database_url)
"""

from __future__ import annotations

import os
from collections.abc import Generator
from typing import TYPE_CHECKING

import pytest

from territory.bootstrap.database import DATABASE_URL_ENV, get_database_url

if TYPE_CHECKING:
    from testcontainers.postgres import PostgresContainer


@pytest.fixture(scope="session")
def postgres_container() -> Generator["PostgresContainer", None, None]:
    """Session-scoped PostgreSQL 16 container, started once and reused."""
    pytest.importorskip("testcontainers.postgres")
    from docker.errors import DockerException
    from testcontainers.postgres import PostgresContainer

    container = PostgresContainer("postgres:16-alpine")
    try:
        container.start()
    except DockerException as exc:
        pytest.skip(f"Docker unavailable for PostgreSQL container: {exc}")
    try:
        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session")
def territory_database_url(request: pytest.FixtureRequest) -> str:
    """asyncpg URL of the database the SQL store tests run against."""
    if os.environ.get(DATABASE_URL_ENV):
        return get_database_url()
    container: PostgresContainer = request.getfixturevalue("postgres_container")
    sync_url = container.get_connection_url()
    # testcontainers returns a psycopg2 URL
    return sync_url.replace("postgresql+psycopg2://", "postgresql+asyncpg://").replace(
        "postgresql://", "postgresql+asyncpg://"
    )
