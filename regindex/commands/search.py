"""
Search command for regindex.

Lists one page of the repository index from the command line.
"""

import click
import json
from typing import Optional

from ..config import load_config
from ..domain import QueryArgs
from ..exceptions import IndexServiceError
from ..exit_codes import exit_code_for, exit_with_code
from ..render import render_records_table
from ..services import IndexService


@click.command('search')
@click.argument('keyword', required=False, default='')
@click.option('--skip', '-s', type=int, default=0, help='Number of matches to skip')
@click.option('--limit', '-n', type=int, default=0,
              help='Page size (default: index.default_limit)')
@click.option('--pretty', is_flag=True, help='Display results as a formatted table')
def search_handler(keyword: Optional[str], skip: int, limit: int, pretty: bool):
    """
    Search the index for repositories whose name contains KEYWORD.

    Output is JSONL by default (one record per line).

    \b
    Examples:
        regindex search library
        regindex search --skip 20 --limit 20
        regindex search library --pretty
    """
    config = load_config()

    try:
        with IndexService(config) as service:
            page = service.get_page(QueryArgs(keyword=keyword or '', skip=skip, limit=limit))
            total = service.count(keyword or '') if pretty else None
    except IndexServiceError as e:
        exit_with_code(exit_code_for(e), f"Error searching index: {e}")

    if pretty:
        render_records_table(page, title=f"Repositories ({len(page)} of {total})")
        return

    for record in page:
        click.echo(json.dumps(record.to_dict()))
