from __future__ import annotations

import logging
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

import typer

from . import __version__
from .channels import LocalFileChannel
from .config import AppConfig, load_config
from .exceptions import ConfigurationError
from .live import LiveProperties
from .propfile import FileProperties
from .simulator import SimulatedProps, SimulatedShell

app = typer.Typer(help="Read and edit Android device properties.")
live_app = typer.Typer(help="Live properties (getprop/setprop).")
file_app = typer.Typer(help="Property files such as build.prop.")
config_app = typer.Typer(help="Inspect configuration.")


@dataclass
class State:
    config: AppConfig


def _setup_logging(debug: bool, logs_dir: Path) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / "devprops.log"

    # Remove any existing handlers to avoid duplicate logs across invocations
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(),
            RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8"),
        ],
    )


def _echo_props(props: Dict[str, str]) -> None:
    if not props:
        typer.echo("<empty>")
    for k, v in sorted(props.items()):
        typer.echo(f"{k}={v}")


@app.callback()
def _load_config(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a configuration file (TOML or YAML). Overrides discovery.",
    ),
    base_dir: Optional[Path] = typer.Option(
        None,
        "--base-dir",
        help="Base directory for relative paths. Defaults to the current working directory.",
    ),
) -> None:
    try:
        cfg = load_config(config_path=config, base_dir=base_dir)
    except ConfigurationError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2)
    _setup_logging(debug=cfg.debug, logs_dir=cfg.paths.logs_dir)
    ctx.obj = State(config=cfg)


@app.command(name="version")
def version() -> None:
    """Print version information."""
    typer.echo(__version__)


def _live_store(ctx: typer.Context, simulate: bool, props: Optional[Path]) -> LiveProperties:
    assert isinstance(ctx.obj, State)
    if simulate:
        return LiveProperties(SimulatedShell(SimulatedProps.load(props)))
    return LiveProperties(ctx.obj.config.device.channel())


SimulateOption = typer.Option(False, "--simulate", "-s", help="Answer from a simulated device instead of adb.")
PropsOption = typer.Option(None, "--props", help="JSON object overlaying the simulated device properties.")


@live_app.command("list")
def live_list(ctx: typer.Context, simulate: bool = SimulateOption, props: Optional[Path] = PropsOption) -> None:
    """List all device properties."""
    _echo_props(_live_store(ctx, simulate, props).get_all())


@live_app.command("get")
def live_get(
    ctx: typer.Context, name: str, simulate: bool = SimulateOption, props: Optional[Path] = PropsOption
) -> None:
    """Print the value of one property."""
    value = _live_store(ctx, simulate, props).get(name)
    if value is None:
        typer.echo(f"{name}: not found", err=True)
        raise typer.Exit(code=1)
    typer.echo(value)


@live_app.command("set")
def live_set(
    ctx: typer.Context,
    name: str,
    value: str,
    simulate: bool = SimulateOption,
    props: Optional[Path] = PropsOption,
) -> None:
    """Set a property with setprop."""
    if not _live_store(ctx, simulate, props).set(name, value):
        typer.echo(f"Failed to set {name}", err=True)
        raise typer.Exit(code=1)


def _file_store(ctx: typer.Context, path: Optional[Path]) -> FileProperties:
    assert isinstance(ctx.obj, State)
    return FileProperties(LocalFileChannel(path or ctx.obj.config.paths.prop_file))


PathOption = typer.Option(None, "--path", "-p", help="Property file. Defaults to paths.prop_file from config.")


@file_app.command("list")
def file_list(ctx: typer.Context, path: Optional[Path] = PathOption) -> None:
    """List all properties defined in the file."""
    _echo_props(_file_store(ctx, path).get_all())


@file_app.command("get")
def file_get(ctx: typer.Context, name: str, path: Optional[Path] = PathOption) -> None:
    """Print the value of one property from the file."""
    value = _file_store(ctx, path).get(name)
    if value is None:
        typer.echo(f"{name}: not found", err=True)
        raise typer.Exit(code=1)
    typer.echo(value)


@file_app.command("set")
def file_set(ctx: typer.Context, name: str, value: str, path: Optional[Path] = PathOption) -> None:
    """Update a property in place, or append it when the file lacks it."""
    store = _file_store(ctx, path)
    store.get_all()
    if not store.set(name, value):
        typer.echo(f"Failed to write {name}", err=True)
        raise typer.Exit(code=1)


@file_app.command("remove")
def file_remove(ctx: typer.Context, name: str, path: Optional[Path] = PathOption) -> None:
    """Remove every line defining a property."""
    store = _file_store(ctx, path)
    store.get_all()
    if not store.remove(name):
        typer.echo(f"Failed to remove {name}", err=True)
        raise typer.Exit(code=1)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the resolved configuration values."""
    assert isinstance(ctx.obj, State)
    cfg = ctx.obj.config
    lines = [
        f"debug: {cfg.debug}",
        "paths:",
        f"  base_dir:  {cfg.paths.base_dir}",
        f"  prop_file: {cfg.paths.prop_file}",
        f"  logs_dir:  {cfg.paths.logs_dir}",
        "device:",
        f"  command: {' '.join(cfg.device.command_prefix())}",
        f"  su: {cfg.device.su}",
        f"  timeout: {cfg.device.timeout}",
    ]
    for line in lines:
        typer.echo(line)


app.add_typer(live_app, name="live")
app.add_typer(file_app, name="file")
app.add_typer(config_app, name="config")
