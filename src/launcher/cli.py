"""CLI entry point for the container launcher.

Provides commands to serve the HTTP endpoint or reconcile one configuration.
"""

import asyncio
from typing import Annotated

import typer
import uvicorn
from pydantic import ValidationError
from rich import print as rprint
from rich.markup import escape

from launcher.common.config import configure_logging, load_config
from launcher.common.models import ContainerConfiguration
from launcher.docker_handler.client import create_engine
from launcher.docker_handler.exceptions import ConfigurationError, ContainerRunError
from launcher.runner import ContainerRunner
from launcher.server import create_app

# Create CLI app
app = typer.Typer(
    name="launcher",
    help="Container launcher - create and start containers on request",
    no_args_is_help=True,
)


@app.command("serve")
def cmd_serve(
    host: Annotated[
        str | None,
        typer.Option("--host", help="Listen address (default from settings)"),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Listen port (default from settings)"),
    ] = None,
    env_file: Annotated[
        str | None,
        typer.Option("--env-file", help="Path to .env file"),
    ] = None,
) -> None:
    """Serve POST /run."""
    config = load_config(env_file)
    configure_logging(config.logging)

    if host is None:
        host = config.server.server_host
    if port is None:
        port = config.server.server_port
    rprint(f"[blue]Serving on http://{host}:{port}[/blue]")
    uvicorn.run(create_app(config), host=host, port=port, log_config=None)


@app.command("run")
def cmd_run(
    config_file: Annotated[str, typer.Argument(help="Path to container configuration YAML")],
    env_file: Annotated[
        str | None,
        typer.Option("--env-file", help="Path to .env file"),
    ] = None,
) -> None:
    """Create the configured container if needed and start it."""
    config = load_config(env_file)
    configure_logging(config.logging)

    try:
        conf = ContainerConfiguration.from_yaml(config_file)
    except (FileNotFoundError, ValidationError) as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    async def run() -> None:
        engine = create_engine(config.docker)
        try:
            await ContainerRunner(engine).run_container(conf)
        finally:
            await engine.close()

    try:
        asyncio.run(run())
    except ConfigurationError as e:
        rprint(f"[red]Error:[/red] {escape(e.message)}")
        raise typer.Exit(1) from None
    except ContainerRunError as e:
        rprint(f"[red]Error ({e.reason.value}):[/red] {escape(str(e))}")
        rprint(f"  {escape(e.message)}")
        raise typer.Exit(1) from None

    rprint(f"[green]✓[/green] Container '{conf.name}' started")


# Entry point for the CLI
if __name__ == "__main__":
    app()
