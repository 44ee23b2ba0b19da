"""
Tag status operations for regindex.

Each (repository, tag) pair has one opaque status string.
"""

from datetime import datetime, timezone
from typing import Optional

from ..exceptions import NotFoundError
from .connection import Database


def register_tag(db: Database, repository: str, tag: str) -> None:
    """
    Make sure a (repository, tag) row exists.

    An existing row keeps its status.
    """
    db.run(
        "INSERT OR IGNORE INTO tags (repository, tag, updated_at) VALUES (?, ?, ?)",
        (repository, tag, datetime.now(timezone.utc).isoformat()),
        what="tag insert",
    )


def set_tag_status(db: Database, repository: str, tag: str, status: str) -> None:
    """
    Set the status of an existing (repository, tag) pair.

    Raises:
        NotFoundError: If the pair is not in the tags table
        StoreError: If the update fails
    """
    cursor = db.run(
        "UPDATE tags SET status = ?, updated_at = ? WHERE repository = ? AND tag = ?",
        (status, datetime.now(timezone.utc).isoformat(), repository, tag),
        what="tag status update",
    )
    if cursor.rowcount == 0:
        raise NotFoundError(
            f"no tag {tag!r} in repository {repository!r}",
            repository=repository,
            tag=tag,
        )


def get_tag_status(db: Database, repository: str, tag: str) -> Optional[str]:
    """Get the status of a (repository, tag) pair, or None if unknown."""
    row = db.run(
        "SELECT status FROM tags WHERE repository = ? AND tag = ?",
        (repository, tag),
        what="tag status select",
    ).fetchone()
    return row['status'] if row else None
