"""
Core pytest configuration for the entire test suite.

Provides the logging setup and the database fixtures every integration test needs.
Domain-specific fixtures (schemas, test tables, in-memory store) live in
tests/test_fixtures/ and are registered at the bottom of this module.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import AsyncGenerator
from urllib.parse import urlparse

# -------------------------------
# Early logging tuning
# -------------------------------
# Keep third-party loggers quiet before anything imports them.
NOISY_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "aiosqlite",
    "asyncio",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

# Ensure 'src' on sys.path so `import recordmodel...` works without an install
SRC = Path(__file__).resolve().parents[2]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# On Windows, psycopg async needs the SelectorEventLoop (not the default ProactorEventLoop).
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

import pytest
from pytest import FixtureRequest
from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncEngine

from recordmodel.config import get_settings
from recordmodel.core.logging.builder import setup_logging
from recordmodel.database import SqlStore, create_store_engine

settings = get_settings()
logger = logging.getLogger(__name__)


@pytest.fixture(scope="session", autouse=True)
def configure_logging(request: FixtureRequest):
    """
    Install the package logging configuration for the whole session.

    pytest adds its capture handler back around every test phase, so `caplog`
    keeps working after dictConfig replaced the root handlers.
    """
    setup_logging(settings)
    yield


# ------------------------------------------------------------------------------------------------
# Test database URL
# ------------------------------------------------------------------------------------------------


def safe_log_db_url(db_url: str) -> str:
    """Database URL without credentials, for logging."""
    parsed = urlparse(db_url)
    return f"{parsed.scheme}://{parsed.hostname or ''}:{parsed.port or ''}/{parsed.path.lstrip('/')}"


def get_test_database_url(tmp_path: Path) -> str:
    """
    1. `TEST_DATABASE_URL` environment variable (CI override, e.g. a Postgres database)
    2. settings.database_url when TESTING=true and TEST_POSTGRES_DB is set
    3. a SQLite file under the test's tmp_path
    """
    if test_url := os.getenv("TEST_DATABASE_URL"):
        return test_url
    if settings.TESTING and settings.TEST_POSTGRES_DB:
        return settings.database_url
    return f"sqlite+aiosqlite:///{tmp_path / 'recordmodel_test.db'}"


# ------------------------------------------------------------------------------------------------
# Database fixtures
# ------------------------------------------------------------------------------------------------


@pytest.fixture
async def store_engine(tmp_path: Path, table_metadata: MetaData) -> AsyncGenerator[AsyncEngine, None]:
    """
    Engine on a freshly created schema.

    Tables are dropped and recreated for every test, so generated ids start at 1.
    A file database (not :memory:) lets concurrent updates use separate connections.
    """
    url = get_test_database_url(tmp_path)
    logger.debug("Using test DB: %s", safe_log_db_url(url))
    engine = create_store_engine(url=url)

    async with engine.begin() as conn:
        await conn.run_sync(table_metadata.drop_all)
        await conn.run_sync(table_metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(table_metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def store(store_engine: AsyncEngine, table_metadata: MetaData) -> SqlStore:
    return SqlStore(store_engine, table_metadata, prefix="")


# Model test fixtures
from recordmodel.tests.test_fixtures.model_fixtures import (  # noqa: E402
    memory_store,
    table_metadata,
)
