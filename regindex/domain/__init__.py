"""
Domain layer for regindex.

Contains pure domain objects with no I/O or side effects:
- ChangeEvent: A registry notification (push, pull, delete)
- IndexRecord: The current manifest of one repository
- QueryArgs: One page of a keyword search
"""

from .event import (
    ChangeEvent,
    Target,
    parse_envelope,
    MANIFEST_MEDIA_TYPE,
    ENVELOPE_MEDIA_TYPE,
    ACTION_PUSH,
    ACTION_PULL,
    ACTION_DELETE,
)
from .record import IndexRecord, QueryArgs, DEFAULT_LIMIT, MAX_INT64

__all__ = [
    'ChangeEvent',
    'Target',
    'parse_envelope',
    'MANIFEST_MEDIA_TYPE',
    'ENVELOPE_MEDIA_TYPE',
    'ACTION_PUSH',
    'ACTION_PULL',
    'ACTION_DELETE',
    'IndexRecord',
    'QueryArgs',
    'DEFAULT_LIMIT',
    'MAX_INT64',
]
