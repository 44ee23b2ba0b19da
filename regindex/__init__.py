"""
regindex - A searchable index of registry repositories.

regindex mirrors the current manifest of every repository in a container
registry into a small SQLite table, driven by the registry's change
notifications, and serves keyword search and per-tag status over HTTP.

Quick Start:
    from regindex import IndexService, QueryArgs, parse_envelope

    with IndexService(load_config()) as service:
        # Apply a notification envelope
        service.write(parse_envelope(body))

        # Search
        for record in service.get_page(QueryArgs(keyword="library", limit=10)):
            print(record.repository, record.digest)

        # Tag status
        service.set_tag_status("library/ubuntu", "latest", "approved")

HTTP API:
    from regindex.server import create_app
    app = create_app(config=load_config())
"""

__version__ = "0.1.0"

# Domain objects
from .domain import (
    ChangeEvent,
    Target,
    IndexRecord,
    QueryArgs,
    parse_envelope,
    MANIFEST_MEDIA_TYPE,
)

# Services
from .services import IndexService

# Errors
from .exceptions import (
    IndexServiceError,
    SchemaError,
    StoreError,
    NotFoundError,
    EventDecodeError,
)

# Configuration
from .config import load_config, save_config

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "ChangeEvent",
    "Target",
    "IndexRecord",
    "QueryArgs",
    "parse_envelope",
    "MANIFEST_MEDIA_TYPE",
    # Services
    "IndexService",
    # Errors
    "IndexServiceError",
    "SchemaError",
    "StoreError",
    "NotFoundError",
    "EventDecodeError",
    # Configuration
    "load_config",
    "save_config",
]
