"""
Repository index operations for regindex.

Writes to the repositories table, one statement per call. Rows are keyed
by repository name; an upsert replaces every column of the existing row.
"""

from datetime import datetime, timezone
from typing import Optional

from ..domain.event import Target
from .connection import Database


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def upsert_record(db: Database, target: Target, updated_at: Optional[str] = None) -> None:
    """
    Insert or replace the index row for a repository.

    Args:
        db: Database handle
        target: Event target carrying repository, digest and url
        updated_at: ISO timestamp to store (defaults to now, UTC)
    """
    db.run(
        """INSERT INTO repositories (repository, digest, url, updated_at)
           VALUES (?, ?, ?, ?)
           ON CONFLICT(repository) DO UPDATE SET
               digest = excluded.digest,
               url = excluded.url,
               updated_at = excluded.updated_at""",
        (target.repository, target.digest, target.url, updated_at or _now()),
        what="upsert",
    )


def delete_record(db: Database, repository: str) -> bool:
    """
    Delete the index row for a repository.

    Returns:
        True if a row was removed, False if there was none
    """
    cursor = db.run(
        "DELETE FROM repositories WHERE repository = ?",
        (repository,),
        what="delete",
    )
    return cursor.rowcount > 0


def get_record_count(db: Database) -> int:
    """Get total number of indexed repositories."""
    row = db.run("SELECT COUNT(*) FROM repositories", what="count").fetchone()
    return row[0] if row else 0
