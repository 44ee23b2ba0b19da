"""
Change event domain objects for regindex.

A ChangeEvent is what the registry's notification system reports when a
manifest or blob is pushed, pulled or deleted. Events arrive wrapped in
an envelope:

    {"events": [{"id": "...", "timestamp": "...", "action": "push",
                 "target": {"mediaType": "...", "repository": "library/ubuntu",
                            "digest": "sha256:...", "url": "http://...",
                            "tag": "latest"}}]}

Only the fields the index needs are kept; everything else in the
envelope (actor, request, source) is ignored.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any, List, Optional, Union
import json

from ..exceptions import EventDecodeError

MANIFEST_MEDIA_TYPE = "application/vnd.docker.distribution.manifest.v1+json"
ENVELOPE_MEDIA_TYPE = "application/vnd.docker.distribution.events.v1+json"

ACTION_PUSH = "push"
ACTION_PULL = "pull"
ACTION_DELETE = "delete"


@dataclass(frozen=True)
class Target:
    """The artifact an event refers to."""
    repository: str
    media_type: str = ""
    digest: str = ""
    url: str = ""
    tag: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'mediaType': self.media_type,
            'repository': self.repository,
            'digest': self.digest,
            'url': self.url,
        }
        if self.tag:
            data['tag'] = self.tag
        return data


@dataclass(frozen=True)
class ChangeEvent:
    """
    A single registry change notification.

    Attributes:
        action: push, pull or delete (anything but delete is an upsert)
        target: The artifact the action applied to
        id: Envelope event ID, if the sender supplied one
        timestamp: When the registry emitted the event
    """
    action: str
    target: Target
    id: Optional[str] = None
    timestamp: Optional[datetime] = None

    @property
    def is_delete(self) -> bool:
        return self.action == ACTION_DELETE

    def is_manifest(self, media_types=(MANIFEST_MEDIA_TYPE,)) -> bool:
        """True if the target is a top-level manifest."""
        return self.target.media_type in media_types

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChangeEvent':
        """Build an event from one entry of a notification envelope."""
        if not isinstance(data, dict):
            raise EventDecodeError(f"event must be an object, got {type(data).__name__}")

        action = data.get('action')
        target = data.get('target')
        if not isinstance(action, str) or not action:
            raise EventDecodeError("event is missing 'action'")
        if not isinstance(target, dict):
            raise EventDecodeError("event is missing 'target'")

        repository = target.get('repository')
        if not isinstance(repository, str) or not repository:
            raise EventDecodeError("event target is missing 'repository'")

        timestamp = None
        if data.get('timestamp'):
            timestamp = _parse_timestamp(data['timestamp'])

        return cls(
            action=action,
            target=Target(
                repository=repository,
                media_type=str(target.get('mediaType') or ''),
                digest=str(target.get('digest') or ''),
                url=str(target.get('url') or ''),
                tag=target.get('tag') or None,
            ),
            id=data.get('id'),
            timestamp=timestamp,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to envelope-entry form for JSON serialization."""
        data: Dict[str, Any] = {
            'action': self.action,
            'target': self.target.to_dict(),
        }
        if self.id:
            data['id'] = self.id
        if self.timestamp:
            data['timestamp'] = self.timestamp.isoformat()
        return data

    def __str__(self) -> str:
        return f"{self.action} {self.target.repository}@{self.target.digest or '-'}"


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp; unparseable values are dropped."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    # Registry timestamps can carry nanoseconds, fromisoformat takes micro
    if '.' in text:
        head, _, rest = text.partition('.')
        frac = ''
        while rest and rest[0].isdigit():
            frac += rest[0]
            rest = rest[1:]
        text = f"{head}.{frac[:6].ljust(6, '0')}{rest}"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def parse_envelope(payload: Union[str, bytes, Dict[str, Any]]) -> List[ChangeEvent]:
    """
    Decode a notification envelope into change events.

    Args:
        payload: Raw JSON text/bytes or an already decoded dict

    Returns:
        Events in the order the envelope lists them

    Raises:
        EventDecodeError: If the payload is not a valid envelope
    """
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise EventDecodeError(f"invalid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise EventDecodeError("envelope must be a JSON object")

    events = payload.get('events')
    if not isinstance(events, list):
        raise EventDecodeError("envelope is missing an 'events' list")

    return [ChangeEvent.from_dict(item) for item in events]
