"""
Tag status command for regindex.
"""

import click

from ..config import load_config
from ..exceptions import IndexServiceError
from ..exit_codes import NOT_FOUND, exit_code_for, exit_with_code
from ..services import IndexService


@click.command('tag-status')
@click.argument('repository')
@click.argument('tag')
@click.argument('status', required=False)
def tag_status_handler(repository: str, tag: str, status):
    """
    Show or set the status of a repository tag.

    With STATUS, sets it (the tag must already be known to the index).
    Without, prints the current status.

    \b
    Examples:
        regindex tag-status library/ubuntu latest approved
        regindex tag-status library/ubuntu latest
    """
    config = load_config()

    try:
        with IndexService(config) as service:
            if status is None:
                current = service.get_tag_status(repository, tag)
                if current is None:
                    exit_with_code(
                        NOT_FOUND,
                        f"No tag {tag!r} in repository {repository!r}",
                    )
                click.echo(current)
                return
            service.set_tag_status(repository, tag, status)
    except IndexServiceError as e:
        exit_with_code(exit_code_for(e), f"Error: {e}")

    click.echo(f"{repository}:{tag} -> {status}")
