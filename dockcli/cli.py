"""CLI entry point for dockcli."""

import logging
import os
import platform
from dataclasses import dataclass
from typing import NoReturn

import typer
from dotenv import load_dotenv

from dockcli import __version__
from dockcli.client import (
    API_VERSION,
    DEFAULT_HOST,
    DockerClient,
    DockerClientError,
    user_agent,
)
from dockcli.config import (
    ConfigError,
    load_config,
    locate_config_dir,
    require_config_dir,
)
from dockcli.render import containers_table, key_value_block

load_dotenv()

app = typer.Typer(help="Container engine client.", no_args_is_help=True)

SERVER_VERSION_KEYS = ["Version", "ApiVersion", "GitCommit", "GoVersion", "Os", "Arch"]
INFO_KEYS = [
    "Containers",
    "ContainersRunning",
    "ContainersPaused",
    "ContainersStopped",
    "Images",
    "ServerVersion",
    "Driver",
    "OperatingSystem",
    "OSType",
    "Architecture",
    "NCPU",
    "MemTotal",
    "Name",
    "ID",
]


@dataclass(frozen=True)
class GlobalOptions:
    config: str | None
    host: str


def _fail(message: str) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _open_client(ctx: typer.Context) -> DockerClient:
    """Resolve and load the config once, then build the client that carries it."""
    opts: GlobalOptions = ctx.obj
    location = locate_config_dir(opts.config, os.environ)
    try:
        # An explicit --config must exist; never fall back to DOCKER_CONFIG
        require_config_dir(location)
        config = load_config(location.path)
    except ConfigError as e:
        _fail(str(e))

    try:
        return DockerClient(opts.host, config=config)
    except ValueError as e:
        _fail(str(e))


@app.callback()
def main(
    ctx: typer.Context,
    config: str = typer.Option(
        None,
        "--config",
        help="Location of client config files (default: $DOCKER_CONFIG or ~/.docker)",
    ),
    host: str = typer.Option(
        DEFAULT_HOST,
        "--host",
        "-H",
        envvar="DOCKER_HOST",
        help="Daemon socket to connect to",
    ),
    debug: bool = typer.Option(False, "--debug", "-D", help="Enable debug output"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = GlobalOptions(config=config, host=host)


@app.command()
def ps(
    ctx: typer.Context,
    show_all: bool = typer.Option(
        False, "--all", "-a", help="Show all containers (default shows just running)"
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only display numeric IDs"
    ),
    fmt: str = typer.Option(
        None,
        "--format",
        help="Go-template style format, e.g. 'table {{.ID}}\\t{{.Names}}' (default: psFormat from config.json)",
    ),
) -> None:
    """List containers."""
    with _open_client(ctx) as client:
        try:
            containers = client.containers(all=show_all)
        except DockerClientError as e:
            _fail(str(e))
        ps_format = fmt or client.config.ps_format

    try:
        text = containers_table(containers, quiet=quiet, fmt=ps_format)
    except ValueError as e:
        _fail(str(e))
    if text:
        typer.echo(text)


@app.command()
def version(ctx: typer.Context) -> None:
    """Show the client and server version information."""
    client_info = {
        "Version": __version__,
        "API version": API_VERSION,
        "OS/Arch": f"{platform.system().lower()}/{platform.machine().lower()}",
        "User-Agent": user_agent(),
    }
    typer.echo(key_value_block("Client", client_info))

    with _open_client(ctx) as client:
        try:
            server = client.version()
        except DockerClientError as e:
            _fail(str(e))
    typer.echo()
    typer.echo(key_value_block("Server", server, SERVER_VERSION_KEYS))


@app.command()
def info(ctx: typer.Context) -> None:
    """Display system-wide information."""
    with _open_client(ctx) as client:
        try:
            data = client.info()
        except DockerClientError as e:
            _fail(str(e))
    typer.echo(key_value_block("Server", data, INFO_KEYS))
