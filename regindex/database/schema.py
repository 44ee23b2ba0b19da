"""
Database schema for regindex.

This module defines the SQLite schema. Every statement is idempotent
(IF NOT EXISTS) so the schema can be applied on every startup:
- repositories: one row per repository, the last manifest seen
- tags: status string per (repository, tag)
"""

import logging
import sqlite3

logger = logging.getLogger(__name__)

# Current schema version - increment when schema changes
# v1: repositories table with unique repository name
# v2: tags table for per-tag status
CURRENT_VERSION = 2

SCHEMA_INFO = """
CREATE TABLE IF NOT EXISTS _schema_info (
    version INTEGER PRIMARY KEY,
    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    description TEXT
)
"""

REPOSITORIES_TABLE = """
CREATE TABLE IF NOT EXISTS repositories (
    id INTEGER PRIMARY KEY,
    repository VARCHAR(256),
    digest VARCHAR(80),
    url VARCHAR(256),
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""

REPOSITORIES_INDEX = """
CREATE UNIQUE INDEX IF NOT EXISTS idx_repositories_name ON repositories(repository)
"""

TAGS_TABLE = """
CREATE TABLE IF NOT EXISTS tags (
    id INTEGER PRIMARY KEY,
    repository VARCHAR(256) NOT NULL,
    tag VARCHAR(128) NOT NULL,
    status TEXT NOT NULL DEFAULT '',
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""

TAGS_INDEX = """
CREATE UNIQUE INDEX IF NOT EXISTS idx_tags_repository_tag ON tags(repository, tag)
"""

# Applied in order, one statement each
STATEMENTS = [
    SCHEMA_INFO,
    REPOSITORIES_TABLE,
    REPOSITORIES_INDEX,
    TAGS_TABLE,
    TAGS_INDEX,
]


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Get current schema version from database."""
    try:
        cursor = conn.execute(
            "SELECT MAX(version) FROM _schema_info"
        )
        result = cursor.fetchone()
        return result[0] if result[0] is not None else 0
    except sqlite3.OperationalError:
        # Table doesn't exist yet
        return 0


def ensure_schema(conn: sqlite3.Connection) -> None:
    """
    Ensure the index tables and unique indexes exist.

    Safe to run against an existing database; rows are never touched.

    Raises:
        sqlite3.Error: If any statement fails
    """
    current = get_schema_version(conn)

    for statement in STATEMENTS:
        conn.execute(statement)

    if current < CURRENT_VERSION:
        logger.info(f"Schema version {current} -> {CURRENT_VERSION}")
        conn.execute(
            "INSERT OR REPLACE INTO _schema_info (version, description) VALUES (?, ?)",
            (CURRENT_VERSION, "repositories index and tag status")
        )

