"""`cardwise server` — run the HTTP API."""

from typing import Annotated

import typer


def server(
    host: Annotated[str, typer.Option(help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port to listen on.")] = 8777,
    reload: Annotated[bool, typer.Option("--reload", help="Auto-reload on code changes.")] = False,
):
    """Start the scheduling API with uvicorn."""
    import uvicorn

    uvicorn.run("cardwise.server:app", host=host, port=port, reload=reload)
