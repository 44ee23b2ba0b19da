"""
Ingest command for regindex.

Applies registry notification envelopes from a file or stdin, for
backfilling the index or replaying captured notifications.
"""

import click
import json
from typing import Iterator, List

from ..config import load_config, configure_logging
from ..domain import ChangeEvent, parse_envelope
from ..exceptions import EventDecodeError, IndexServiceError
from ..exit_codes import exit_code_for, exit_with_code
from ..services import IndexService


def read_envelopes(text: str) -> Iterator[List[ChangeEvent]]:
    """
    Decode one JSON envelope, or a JSONL stream of envelopes.

    Yields:
        The events of each envelope, in file order
    """
    stripped = text.strip()
    if not stripped:
        return

    try:
        payload = json.loads(stripped)
    except ValueError:
        payload = None

    if payload is not None:
        yield parse_envelope(payload)
        return

    for lineno, line in enumerate(stripped.splitlines(), 1):
        line = line.strip()
        if not line:
            continue
        try:
            yield parse_envelope(line)
        except EventDecodeError as e:
            raise EventDecodeError(f"line {lineno}: {e}") from e


@click.command('ingest')
@click.argument('source', type=click.File('r'), default='-')
@click.option('--debug', is_flag=True, help='Enable debug logging')
def ingest_handler(source, debug: bool):
    """
    Apply registry notification envelopes to the index.

    SOURCE is a file holding one envelope ({"events": [...]}) or one
    envelope per line. Reads stdin when omitted or '-'.

    \b
    Examples:
        regindex ingest notifications.json
        cat captured.jsonl | regindex ingest
    """
    config = load_config()
    configure_logging(config, debug=debug)

    applied = 0
    try:
        with IndexService(config) as service:
            for events in read_envelopes(source.read()):
                applied += service.write(events)
    except IndexServiceError as e:
        click.echo(f"Applied {applied} events before failure", err=True)
        exit_with_code(exit_code_for(e), f"Error ingesting events: {e}")

    click.echo(f"Applied {applied} events")
