#!/usr/bin/env python3
"""
Greeting Server - just another greeting server
"""

import logging

import typer
import uvicorn
from fastapi import FastAPI, Response
from fastapi.responses import PlainTextResponse

from greeting_server._version import __version__

logger = logging.getLogger(__name__)

DEFAULT_BIND = ":80"
DEFAULT_NAME = "anonymous"

cli = typer.Typer(name="greeting-server", help="Just another greeting server")


def create_app(name: str) -> FastAPI:
    """Build the greeting application presenting itself as ``name``"""
    app = FastAPI(title="Greeting Server", version=__version__)

    @app.get("/greet", response_class=PlainTextResponse)
    async def greet() -> str:
        """Answer the server name"""
        logger.debug("Greet")
        return f"I am {name}"

    @app.get("/health")
    async def health_check() -> Response:
        """Health check endpoint"""
        logger.debug("Health check")
        return Response(status_code=200)

    return app


def parse_bind(bind: str) -> tuple[str, int]:
    """Split a ``host:port`` binding address; an empty host listens everywhere."""
    host, sep, port = bind.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid binding address: {bind!r}")
    # IPv6 literals come bracketed, as in "[::1]:80"
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host or "0.0.0.0", int(port)


@cli.command()
def serve(
    bind: str = typer.Option(
        DEFAULT_BIND, "--bind", "-b", envvar="BIND", help="Binding address for HTTP server"
    ),
    name: str = typer.Option(
        DEFAULT_NAME, "--name", "-n", envvar="NAME", help="Greeting name for the server"
    ),
) -> None:
    """Serve /greet and /health."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    try:
        host, port = parse_bind(bind)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    logger.info("Starting listening on %s as %s", bind, name)
    uvicorn.run(create_app(name), host=host, port=port)


def main() -> None:
    """Main entry point for the greeting server."""
    cli()


if __name__ == "__main__":
    main()
