#!/usr/bin/env python3

import click

from regindex.commands.serve import serve_handler
from regindex.commands.ingest import ingest_handler
from regindex.commands.search import search_handler
from regindex.commands.tag import tag_status_handler
from regindex.commands.db import db_cmd


@click.group()
@click.version_option(package_name='regindex')
def cli():
    """regindex - Searchable index of registry repositories.

    Keeps a table of each repository's current manifest, fed by registry
    notifications, and serves keyword search and tag status over HTTP.
    """
    pass


cli.add_command(serve_handler, name='serve')
cli.add_command(ingest_handler, name='ingest')
cli.add_command(search_handler, name='search')
cli.add_command(tag_status_handler, name='tag-status')

# Command groups
cli.add_command(db_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
