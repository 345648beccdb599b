"""Shared pytest fixtures for fluentsql unit and integration tests."""
from __future__ import annotations

import pytest

import fluentsql  # noqa: F401  registers the built-in dialects and drivers
from fluentsql.compile.context import CompilationContext
from fluentsql.compile.postgres import PostgresDialect
from fluentsql.compile.sqlite import SQLiteDialect
from fluentsql.database import Database
from tests.fixtures import RecordingDriver


@pytest.fixture()
def pg() -> CompilationContext:
    return CompilationContext(PostgresDialect())


@pytest.fixture()
def sq() -> CompilationContext:
    return CompilationContext(SQLiteDialect())


@pytest.fixture()
def driver() -> RecordingDriver:
    return RecordingDriver(rows=[{"id": 1, "name": "Ada"}])


@pytest.fixture()
def db(driver: RecordingDriver) -> Database:
    """Postgres-dialect database over the recording driver."""
    return Database(PostgresDialect(), driver)


@pytest.fixture()
def sqlite_db(driver: RecordingDriver) -> Database:
    return Database(SQLiteDialect(), driver)
