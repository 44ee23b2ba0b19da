"""
Database connection management for regindex.

The index lives in a single SQLite file. A Database object owns the one
connection to it; whoever creates the Database closes it. The connection
runs in autocommit mode so every statement is its own transaction, and
may be shared across request threads.
"""

import logging
import os
import sqlite3
from pathlib import Path
from typing import Optional, Union

from ..exceptions import SchemaError, StoreError
from .schema import ensure_schema, get_schema_version

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


def get_db_path(config: Optional[dict] = None) -> Path:
    """
    Get the database file path.

    Checks in order:
    1. REGINDEX_DB environment variable
    2. config['database']['path'] if provided
    3. Default: ~/.regindex/registry.sqlite3

    Args:
        config: Optional configuration dictionary

    Returns:
        Path to database file
    """
    # Environment variable override
    if 'REGINDEX_DB' in os.environ:
        return Path(os.environ['REGINDEX_DB'])

    # Config override
    if config and 'database' in config and config['database'].get('path'):
        return Path(config['database']['path']).expanduser()

    # Default location
    return Path.home() / '.regindex' / 'registry.sqlite3'


def get_connection(
    db_path: Union[str, Path],
    timeout: float = DEFAULT_TIMEOUT,
) -> sqlite3.Connection:
    """
    Open a connection to the index database and apply the schema.

    Uses WAL mode so readers do not block the writer.

    Args:
        db_path: Path to database file (":memory:" for a private in-memory store)
        timeout: Seconds to wait on a locked database

    Returns:
        SQLite connection

    Raises:
        SchemaError: If the file cannot be opened or the schema applied
    """
    conn = None
    try:
        if str(db_path) != ':memory:':
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(
            str(db_path),
            timeout=timeout,
            isolation_level=None,  # autocommit
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row  # Enable dict-like access
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA synchronous = NORMAL")

        ensure_schema(conn)
    except (sqlite3.Error, OSError) as e:
        logger.error(f"Failed to prepare database {db_path}: {e}")
        if conn is not None:
            conn.close()
        raise SchemaError(f"failed to open index database {db_path}: {e}") from e

    return conn


class Database:
    """
    Owned handle to the index database.

    Usage:
        db = Database(db_path)
        db.open()
        cursor = db.execute("SELECT * FROM repositories")
        db.close()

        # Or as a context manager
        with Database(config=my_config) as db:
            ...
    """

    def __init__(
        self,
        db_path: Optional[Union[str, Path]] = None,
        config: Optional[dict] = None,
    ):
        self.db_path = db_path if db_path is not None else get_db_path(config)
        self.timeout = float(
            (config or {}).get('database', {}).get('timeout', DEFAULT_TIMEOUT)
        )
        self._conn: Optional[sqlite3.Connection] = None

    def open(self) -> 'Database':
        """Open the connection and apply the schema (no-op if already open)."""
        if self._conn is None:
            self._conn = get_connection(self.db_path, timeout=self.timeout)
            logger.debug(f"Opened index database {self.db_path}")
        return self

    def close(self) -> None:
        """Release the connection. Safe to call more than once."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.debug(f"Closed index database {self.db_path}")

    def __enter__(self) -> 'Database':
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def conn(self) -> sqlite3.Connection:
        """Get the underlying connection."""
        if self._conn is None:
            raise sqlite3.ProgrammingError("Database is closed")
        return self._conn

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute one SQL statement and return its cursor."""
        return self.conn.execute(sql, params)

    def run(self, sql: str, params: tuple = (), what: str = "statement") -> sqlite3.Cursor:
        """
        Execute one statement, translating store failures.

        Args:
            sql: SQL statement
            params: Statement parameters
            what: Short label for the log line ("upsert", "delete", ...)

        Raises:
            StoreError: If the statement fails
        """
        try:
            return self.conn.execute(sql, params)
        except sqlite3.Error as e:
            logger.error(f"sqlite {what}: {e}")
            raise StoreError(f"{what} failed: {e}") from e

    def schema_version(self) -> int:
        return get_schema_version(self.conn)


def get_database_info(db: Database) -> dict:
    """
    Get information about the database.

    Returns:
        Dictionary with database stats
    """
    repo_count = db.execute("SELECT COUNT(*) FROM repositories").fetchone()[0]
    tag_count = db.execute("SELECT COUNT(*) FROM tags").fetchone()[0]

    info = {
        'path': str(db.db_path),
        'schema_version': db.schema_version(),
        'repositories': repo_count,
        'tags': tag_count,
    }

    path = Path(db.db_path)
    if str(db.db_path) != ':memory:' and path.exists():
        size = path.stat().st_size
        info['size_bytes'] = size
        info['size_human'] = _human_size(size)

    return info


def _human_size(size_bytes: int) -> str:
    """Convert bytes to human-readable size."""
    size: float = float(size_bytes)
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"
