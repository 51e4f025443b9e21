"""Database operations for link-overlay."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from .config import Config, get_config
from .errors import StoreError
from .schema import SCHEMA_SQL, SCHEMA_VERSION


def _get_connection(db_path: Path) -> sqlite3.Connection:
    """Create a database connection."""
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    # Enable WAL mode for better concurrency
    conn.execute("PRAGMA journal_mode=WAL")
    # Enable foreign keys
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


@contextmanager
def get_db(config: Optional[Config] = None) -> Generator[sqlite3.Connection, None, None]:
    """Get a database connection as a context manager.

    Any ``sqlite3.Error`` raised while the connection is open is rolled back
    and re-raised as :class:`StoreError`.
    """
    if config is None:
        config = get_config()

    try:
        conn = _get_connection(config.db_path)
    except sqlite3.Error as e:
        raise StoreError(f"Could not open database {config.db_path}: {e}") from e

    try:
        yield conn
    except sqlite3.Error as e:
        conn.rollback()
        raise StoreError(str(e)) from e
    finally:
        conn.close()


def init_db(config: Optional[Config] = None) -> None:
    """Initialize the database with schema.

    Args:
        config: Configuration to use. Defaults to global config.

    Raises:
        StoreError: If the database directory or file cannot be created.
    """
    if config is None:
        config = get_config()

    # Ensure directory exists
    try:
        config.db_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StoreError(f"Could not create database directory {config.db_path.parent}: {e}") from e

    with get_db(config) as conn:
        cursor = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='meta'"
        )
        is_new = cursor.fetchone() is None

        conn.executescript(SCHEMA_SQL)

        if is_new:
            conn.execute(
                "INSERT INTO meta (key, value) VALUES ('schema_version', ?)",
                (str(SCHEMA_VERSION),),
            )
        else:
            _run_migrations(conn)

        conn.commit()


def ensure_initialized(config: Optional[Config] = None) -> None:
    """Ensure the database is initialized and migrated."""
    if config is None:
        config = get_config()
    # Always call init_db - it handles both new DBs and migrations
    init_db(config)


def _run_migrations(conn: sqlite3.Connection) -> None:
    """Run database migrations for existing databases."""
    cursor = conn.execute("SELECT value FROM meta WHERE key = 'schema_version'")
    row = cursor.fetchone()
    current_version = int(row[0]) if row else 1

    if current_version < 2:
        # v2 adds link_candidates and candidate_occurrences (created by SCHEMA_SQL)
        current_version = 2

    conn.execute(
        "INSERT OR REPLACE INTO meta (key, value) VALUES ('schema_version', ?)",
        (str(current_version),),
    )


def get_schema_version(config: Optional[Config] = None) -> Optional[int]:
    """Get the current schema version from the database."""
    if config is None:
        config = get_config()

    if not config.db_path.exists():
        return None

    with get_db(config) as conn:
        cursor = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        )
        row = cursor.fetchone()
        return int(row[0]) if row else None
