import os
import uuid
from collections.abc import Generator
from typing import Any

import psycopg
import pytest

from app.config.settings import Settings
from app.database.connection import close_pool, get_connection, init_pool

_CREATE_SOURCES = """
CREATE TABLE IF NOT EXISTS sources (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id TEXT NOT NULL,
    file_name TEXT NOT NULL,
    file_type TEXT NOT NULL,
    file_size BIGINT NOT NULL,
    file_checksum CHAR(64) NOT NULL,
    storage_path TEXT NOT NULL,
    source_type TEXT NOT NULL,
    processing_status TEXT NOT NULL DEFAULT 'pending',
    raw_text TEXT,
    structured_data JSONB,
    processing_error TEXT,
    processing_retryable BOOLEAN,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "profile_ingest_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            conn.execute(_CREATE_SOURCES)
            conn.commit()
    except Exception as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a disposable database"
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def owner_id(integration_pool: None) -> Generator[str, None, None]:
    """A fresh owner whose sources are deleted after the test."""
    owner = f"it-{uuid.uuid4()}"
    yield owner
    with get_connection() as conn:
        conn.execute("DELETE FROM sources WHERE user_id = %s", (owner,))
        conn.commit()
