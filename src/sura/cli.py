"""Command line entrypoint: ``sura routes APP`` and ``sura serve APP``.

APP is ``module:attribute`` naming a SuraApp, an Application, or a
zero-argument factory returning either.
"""

from __future__ import annotations

import asyncio
import importlib
from typing import Any

import hypercorn.asyncio
import typer
from hypercorn import Config

from sura.application import Application
from sura.quart_app import SuraApp

app = typer.Typer(help="Sura framework command line")


def load_target(target: str) -> SuraApp | Application:
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise typer.BadParameter(f"Expected 'module:attribute', got '{target}'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise typer.BadParameter(f"Cannot import module '{module_name}': {e}") from e

    obj: Any = getattr(module, attr, None)
    if obj is None:
        raise typer.BadParameter(f"Module '{module_name}' has no attribute '{attr}'")
    if callable(obj) and not isinstance(obj, (SuraApp, Application)):
        obj = obj()
    if not isinstance(obj, (SuraApp, Application)):
        raise typer.BadParameter(f"'{target}' is not a SuraApp or Application")
    return obj


def _handler_name(handler: Any) -> str:
    if isinstance(handler, str):
        return handler
    if isinstance(handler, (tuple, list)):
        controller, method = handler
        if not isinstance(controller, str):
            controller = getattr(controller, "__name__", repr(controller))
        return f"{controller}@{method}"
    return getattr(handler, "__qualname__", repr(handler))


@app.command()
def routes(target: str = typer.Argument(..., help="Application as 'module:attribute'")) -> None:
    """Print the route table."""

    loaded = load_target(target)
    application = loaded.application if isinstance(loaded, SuraApp) else loaded
    table = application.router.routes
    if not table:
        typer.secho("No routes registered.", fg=typer.colors.YELLOW)
        return

    for route in table:
        methods = ",".join(sorted(route.methods))
        typer.echo(
            f"{methods:<16} {route.pattern:<40} {route.name or '-':<20} "
            f"{_handler_name(route.handler)}"
        )


@app.command()
def serve(
    target: str = typer.Argument(..., help="Application as 'module:attribute'"),
    host: str = typer.Option("127.0.0.1", help="Interface to bind"),
    port: int = typer.Option(8000, help="Port to bind"),
) -> None:
    """Serve the application with hypercorn."""

    loaded = load_target(target)
    quart_app = loaded if isinstance(loaded, SuraApp) else SuraApp("sura", loaded)

    config = Config()
    config.bind = [f"{host}:{port}"]
    config.loglevel = quart_app.application.settings.LOG_LEVEL.lower()

    typer.secho(f"Serving on http://{host}:{port}", fg=typer.colors.GREEN)
    asyncio.run(hypercorn.asyncio.serve(quart_app, config))


if __name__ == "__main__":
    app()
