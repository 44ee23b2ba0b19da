"""
Index record domain objects for regindex.

IndexRecord is one row of the repository index: the latest manifest
seen for a repository. QueryArgs describes one page of a search.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Any

DEFAULT_LIMIT = 20

# Largest value SQLite accepts for LIMIT/OFFSET
MAX_INT64 = 2**63 - 1


@dataclass(frozen=True)
class IndexRecord:
    """The current manifest of one repository."""
    repository: str
    digest: str
    url: str
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'repository': self.repository,
            'digest': self.digest,
            'url': self.url,
            'updated_at': self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class QueryArgs:
    """
    Search/list arguments.

    Attributes:
        keyword: Substring to look for in repository names ("" = all)
        skip: Number of matching rows to skip
        limit: Page size
    """
    keyword: str = ""
    skip: int = 0
    limit: int = 0

    def normalized(self, default_limit: int = DEFAULT_LIMIT) -> 'QueryArgs':
        """Clamp skip and limit to SQLite integer range.

        Negative skip becomes 0 and a non-positive limit becomes
        default_limit.
        """
        skip = min(self.skip, MAX_INT64) if self.skip > 0 else 0
        limit = min(self.limit, MAX_INT64) if self.limit > 0 else default_limit
        return replace(self, keyword=self.keyword or "", skip=skip, limit=limit)
