"""Postgres container setup for end-to-end tests."""

import logging
import uuid
from collections.abc import AsyncGenerator, Generator

import pytest
from docker.errors import DockerException
from testcontainers.postgres import PostgresContainer

from argminmax.persistence.sql.executor import ArtifactExecutor

# Pass --log-cli-level info to see these
logger = logging.getLogger(__name__)

POSTGRES_IMAGE = "postgres:16-alpine"


@pytest.fixture(scope="session")
def postgres_url() -> Generator[str]:
    """Start a Postgres container for the whole session, skip without Docker."""
    try:
        container = PostgresContainer(POSTGRES_IMAGE, driver="asyncpg")
        container.start()
    except DockerException as exc:
        pytest.skip(f"Docker is not available: {exc}")

    logger.info("Started %s", POSTGRES_IMAGE)
    try:
        yield container.get_connection_url()
    finally:
        container.stop()


@pytest.fixture
async def executor(postgres_url: str) -> AsyncGenerator[ArtifactExecutor]:
    """Yield an executor connected to the test database."""
    executor = ArtifactExecutor()
    executor.init(db_url=postgres_url)
    yield executor
    await executor.close()


@pytest.fixture
async def schema_name(executor: ArtifactExecutor) -> AsyncGenerator[str]:
    """Yield a fresh schema, so every test starts without generated objects."""
    name = f"test_{uuid.uuid4().hex[:12]}"
    async with executor.connect() as connection:
        await connection.exec_driver_sql(f"create schema {name}")
    yield name
    async with executor.connect() as connection:
        await connection.exec_driver_sql(f"drop schema {name} cascade")
