"""Postgres connection pool shared by the problem store and the CLI."""

import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

import psycopg
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

log = logging.getLogger(__name__)

# One pipeline run touches the database from a single thread
POOL_MIN_SIZE = 1
POOL_MAX_SIZE = 4


class DatabaseConfig:
    """Connection settings resolved from a ``postgres`` config section."""

    def __init__(self, config: Dict[str, Any]) -> None:
        self.host = config.get("host") or "localhost"
        self.port = config.get("port") or 5432
        self.database = config.get("database") or "civicmerge"
        self.user = config.get("user") or "civicmerge"
        self.connect_timeout = config.get("connect_timeout", 10)

        # An exported password wins over one written in the file
        password_env = config.get("password_env")
        if password_env and os.environ.get(password_env):
            self.password = os.environ[password_env]
        else:
            self.password = config.get("password") or ""

    @property
    def conninfo(self) -> str:
        """libpq connection string; quoting handled by psycopg."""
        return make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.user,
            password=self.password or None,
            connect_timeout=self.connect_timeout,
            application_name="civicmerge",
        )


_connection_pool: Optional[ConnectionPool] = None


def get_connection_pool(config: Dict[str, Any]) -> ConnectionPool:
    """Get or create the process-wide pool."""
    global _connection_pool
    if _connection_pool is None:
        db_config = DatabaseConfig(config)
        log.debug("Opening connection pool to %s:%s/%s", db_config.host, db_config.port, db_config.database)
        _connection_pool = ConnectionPool(
            db_config.conninfo,
            min_size=POOL_MIN_SIZE,
            max_size=POOL_MAX_SIZE,
            kwargs={"row_factory": dict_row},
            open=True,
        )
    return _connection_pool


def close_connection_pool() -> None:
    """Close the pool if one was opened."""
    global _connection_pool
    if _connection_pool is not None:
        _connection_pool.close()
        _connection_pool = None


@contextmanager
def get_connection(config: Dict[str, Any]) -> Generator[psycopg.Connection, None, None]:
    """Borrow a dict-row connection from the pool."""
    pool = get_connection_pool(config)
    with pool.connection() as conn:
        yield conn
