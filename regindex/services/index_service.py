"""
Index service for regindex.

Keeps the repository index in step with registry change events and
answers searches against it.

Example:
    with IndexService(config) as service:
        service.write(parse_envelope(body))

        for record in service.get_page(QueryArgs(keyword="library")):
            print(record.repository, record.digest)

        service.set_tag_status("library/ubuntu", "latest", "approved")
"""

from pathlib import Path
from typing import Iterable, List, Optional, Union
import logging

from ..database import (
    Database,
    count_matching,
    delete_record,
    fetch_page,
    get_tag_status,
    register_tag,
    set_tag_status,
    upsert_record,
)
from ..domain import ChangeEvent, IndexRecord, QueryArgs, MANIFEST_MEDIA_TYPE, DEFAULT_LIMIT

logger = logging.getLogger(__name__)


class IndexService:
    """
    Event-driven index of registry repositories.

    The service owns its Database handle: construction opens the store
    and applies the schema, close() releases it. Every method issues
    self-contained statements, so one instance can serve concurrent
    request threads.
    """

    def __init__(
        self,
        config: Optional[dict] = None,
        db_path: Optional[Union[str, Path]] = None,
    ):
        """
        Open the index.

        Args:
            config: Configuration dictionary (see regindex.config)
            db_path: Explicit database path, overrides config

        Raises:
            SchemaError: If the store cannot be opened or initialized
        """
        config = config or {}
        index_config = config.get('index', {})

        media_types = index_config.get('media_types') or (MANIFEST_MEDIA_TYPE,)
        if isinstance(media_types, str):
            media_types = (media_types,)
        self.media_types = tuple(media_types)
        self.default_limit = int(index_config.get('default_limit') or DEFAULT_LIMIT)

        self.db = Database(db_path=db_path, config=config).open()

    def __enter__(self) -> 'IndexService':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Release the database handle."""
        logger.debug("index service close")
        self.db.close()

    def write(self, events: Iterable[ChangeEvent]) -> int:
        """
        Apply a batch of change events to the index.

        Events are applied in order. Non-manifest events are skipped.
        The first failure stops the batch and is raised; events already
        applied stay applied, so the sender may retry the whole batch.

        Args:
            events: Change events, in delivery order

        Returns:
            Number of events applied

        Raises:
            StoreError: If a statement fails
        """
        applied = 0
        for event in events:
            if not event.is_manifest(self.media_types):
                logger.debug(f"Skipping non-manifest event: {event}")
                continue

            if event.is_delete:
                delete_record(self.db, event.target.repository)
            else:
                upsert_record(self.db, event.target)
                if event.target.tag:
                    register_tag(self.db, event.target.repository, event.target.tag)

            logger.debug(f"Applied event: {event}")
            applied += 1
        return applied

    def get_page(self, args: Optional[QueryArgs] = None) -> List[IndexRecord]:
        """
        Get one page of index records.

        Negative skip is treated as 0 and a non-positive limit as the
        default page size. Unreadable rows are left out of the page.

        Raises:
            StoreError: If the query fails
        """
        args = (args or QueryArgs()).normalized(self.default_limit)
        return fetch_page(self.db, args)

    def count(self, keyword: str = "") -> int:
        """Number of records whose repository contains keyword."""
        return count_matching(self.db, keyword)

    def set_tag_status(self, repository: str, tag: str, status: str) -> None:
        """
        Set the status of a (repository, tag) pair.

        Raises:
            NotFoundError: If the pair is unknown
            StoreError: On any other store failure
        """
        set_tag_status(self.db, repository, tag, status)
        logger.info(f"Tag {repository}:{tag} status -> {status!r}")

    def get_tag_status(self, repository: str, tag: str) -> Optional[str]:
        return get_tag_status(self.db, repository, tag)
