"""
Database commands for regindex.
"""

import click
import json

from ..config import load_config
from ..database import Database, get_database_info, get_db_path
from ..exceptions import IndexServiceError
from ..exit_codes import exit_code_for, exit_with_code
from ..render import render_info_table


@click.group('db')
def db_cmd():
    """Inspect the index database."""
    pass


@db_cmd.command('info')
@click.option('--json', 'output_json', is_flag=True, help='Output as JSON')
def db_info(output_json: bool):
    """Show database location, schema version and row counts."""
    config = load_config()

    try:
        with Database(config=config) as db:
            info = get_database_info(db)
    except IndexServiceError as e:
        exit_with_code(exit_code_for(e), f"Error opening database: {e}")

    if output_json:
        click.echo(json.dumps(info, indent=2))
    else:
        render_info_table(info)


@db_cmd.command('path')
def db_path():
    """Print the database file path."""
    click.echo(str(get_db_path(load_config())))
