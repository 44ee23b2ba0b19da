"""
Serve command for regindex.

Runs the HTTP API with uvicorn.
"""

import click

from ..config import load_config, configure_logging


@click.command('serve')
@click.option('--host', default=None, help='Bind address (default: server.host)')
@click.option('--port', '-p', default=None, type=int, help='Port (default: server.port)')
@click.option('--debug', is_flag=True, help='Enable debug logging')
def serve_handler(host, port, debug):
    """Start the regindex HTTP API.

    \b
    Endpoints:
      GET   /v2/_index?keyword=&skip=&limit=   Search repositories
      PATCH /v2/_index                         Set tag status
      POST  /events                            Registry notification endpoint

    \b
    Examples:
      regindex serve
      regindex serve --port 8080 --debug
    """
    import uvicorn

    from ..server import create_app

    config = load_config()
    configure_logging(config, debug=debug)

    server_config = config.get('server', {})
    host = host or server_config.get('host', '127.0.0.1')
    port = port or server_config.get('port', 5050)

    click.echo(f"Starting regindex API on http://{host}:{port}", err=True)
    uvicorn.run(
        create_app(config=config),
        host=host,
        port=port,
        log_level='debug' if debug else 'info',
    )
