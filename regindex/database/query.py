"""
Page queries for regindex.

Builds the SELECT for one page of a keyword search and decodes the rows
it returns. Keyword matching is a plain substring match using SQLite's
default LIKE comparison (case-insensitive for ASCII); LIKE wildcards in
the keyword are escaped so they match literally.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional

import sqlite3

from ..domain.record import IndexRecord, QueryArgs
from .connection import Database

logger = logging.getLogger(__name__)

LIKE_ESCAPE = '\\'

COLUMNS = "repository, digest, url, updated_at"


@dataclass
class CompiledQuery:
    """A page query ready to execute."""
    sql: str
    params: List[Any]


def escape_like(keyword: str) -> str:
    """Escape LIKE wildcards so the keyword matches as a literal substring."""
    return (
        keyword
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace('%', LIKE_ESCAPE + '%')
        .replace('_', LIKE_ESCAPE + '_')
    )


def _where(keyword: str, params: List[Any]) -> str:
    if not keyword:
        return ""
    params.append(f"%{escape_like(keyword)}%")
    return f" WHERE repository LIKE ? ESCAPE '{LIKE_ESCAPE}'"


def compile_page_query(args: QueryArgs) -> CompiledQuery:
    """
    Compile normalized query args into a paginated SELECT.

    Results are ordered by repository name so consecutive pages never
    overlap or skip rows while the table is unchanged.
    """
    params: List[Any] = []
    sql = f"SELECT {COLUMNS} FROM repositories"
    sql += _where(args.keyword, params)
    sql += " ORDER BY repository ASC, id ASC LIMIT ? OFFSET ?"
    params.extend([args.limit, args.skip])
    return CompiledQuery(sql=sql, params=params)


def compile_count_query(keyword: str = "") -> CompiledQuery:
    """Compile a COUNT over the rows a keyword matches."""
    params: List[Any] = []
    sql = "SELECT COUNT(*) FROM repositories" + _where(keyword, params)
    return CompiledQuery(sql=sql, params=params)


def row_to_record(row: sqlite3.Row) -> IndexRecord:
    """
    Decode a repositories row.

    Raises:
        ValueError: If a column is missing or malformed
    """
    repository = row['repository']
    if not isinstance(repository, str) or not repository:
        raise ValueError(f"bad repository value {repository!r}")

    digest = row['digest'] if row['digest'] is not None else ""
    url = row['url'] if row['url'] is not None else ""
    if not isinstance(digest, str) or not isinstance(url, str):
        raise ValueError(f"non-text digest/url for {repository!r}")

    updated_at = _parse_updated_at(row['updated_at'])
    return IndexRecord(repository=repository, digest=digest, url=url, updated_at=updated_at)


def _parse_updated_at(value: Any) -> datetime:
    if not isinstance(value, str):
        raise ValueError(f"bad updated_at value {value!r}")
    parsed = datetime.fromisoformat(value)
    # CURRENT_TIMESTAMP defaults are UTC without an offset
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def fetch_page(db: Database, args: QueryArgs) -> List[IndexRecord]:
    """
    Run a page query and decode its rows.

    Rows that fail to decode are logged and left out of the page.

    Args:
        db: Database handle
        args: Normalized query args

    Returns:
        Decoded records, possibly fewer than args.limit
    """
    query = compile_page_query(args)
    cursor = db.run(query.sql, tuple(query.params), what="select")

    records: List[IndexRecord] = []
    for row in cursor.fetchall():
        try:
            records.append(row_to_record(row))
        except (ValueError, TypeError, IndexError) as e:
            logger.warning(f"failed to scan row: {e}")
            continue
    return records


def count_matching(db: Database, keyword: Optional[str] = None) -> int:
    """Count rows whose repository contains keyword (all rows if empty)."""
    query = compile_count_query(keyword or "")
    row = db.run(query.sql, tuple(query.params), what="count").fetchone()
    return row[0] if row else 0
