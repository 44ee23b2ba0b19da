"""
Database module for regindex.

Provides SQLite-based persistence for the repository index.

Key components:
- connection: Owned database handle
- schema: Table definitions, applied idempotently on open
- repository: Upsert/delete of index rows
- query: Paginated keyword search
- tags: Per-tag status
"""

from .connection import (
    get_connection,
    get_db_path,
    get_database_info,
    Database,
)
from .schema import CURRENT_VERSION, ensure_schema, get_schema_version
from .repository import (
    upsert_record,
    delete_record,
    get_record_count,
)
from .query import (
    CompiledQuery,
    compile_page_query,
    compile_count_query,
    escape_like,
    fetch_page,
    count_matching,
    row_to_record,
)
from .tags import (
    register_tag,
    set_tag_status,
    get_tag_status,
)

__all__ = [
    # Connection
    'get_connection',
    'get_db_path',
    'get_database_info',
    'Database',
    # Schema
    'ensure_schema',
    'get_schema_version',
    'CURRENT_VERSION',
    # Repository index
    'upsert_record',
    'delete_record',
    'get_record_count',
    # Query
    'CompiledQuery',
    'compile_page_query',
    'compile_count_query',
    'escape_like',
    'fetch_page',
    'count_matching',
    'row_to_record',
    # Tags
    'register_tag',
    'set_tag_status',
    'get_tag_status',
]
