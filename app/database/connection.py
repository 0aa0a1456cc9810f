from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg_pool import ConnectionPool

from app.config.settings import Settings

_pool: ConnectionPool | None = None


class PoolNotInitializedError(RuntimeError):
    """Raised when a connection is requested before init_pool()."""


def build_conninfo(settings: Settings) -> str:
    return (
        f"host={settings.db_host} "
        f"port={settings.db_port} "
        f"dbname={settings.db_database} "
        f"user={settings.db_username} "
        f"password={settings.db_password} "
        f"application_name=profile-ingest"
    )


def init_pool(settings: Settings) -> None:
    """Initialize the global connection pool from settings.

    Background workers and the request path share the pool, so it is sized to
    the worker count plus headroom for synchronous uploads.
    """
    global _pool  # noqa: PLW0603
    _pool = ConnectionPool(
        build_conninfo(settings),
        min_size=1,
        max_size=settings.background_max_workers + 5,
    )


def close_pool() -> None:
    """Close the global connection pool."""
    global _pool  # noqa: PLW0603
    if _pool is not None:
        _pool.close()
        _pool = None


@contextmanager
def get_connection() -> Generator[psycopg.Connection[Any], None, None]:
    """Yield a connection from the pool. Caller manages commit/rollback."""
    if _pool is None:
        raise PoolNotInitializedError("Connection pool not initialized. Call init_pool() first.")
    with _pool.connection() as conn:
        yield conn
