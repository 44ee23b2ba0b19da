"""
Service layer for regindex.

Contains the logic that orchestrates domain objects and the database:
- IndexService: Event projection, search, tag status

Services are the primary API for commands and the HTTP server to use.
"""

from .index_service import IndexService

__all__ = [
    'IndexService',
]
