"""uistable config — inspect and edit the YAML config file."""

from __future__ import annotations

from pathlib import Path

import typer
import yaml

from uistable.core.config import (
    DEFAULT_CONFIG_FILENAME,
    config_keys,
    env_var_name,
    find_config_file,
    load_config,
    save_config,
    set_config_value,
)
from uistable.core.exceptions import ConfigError
from uistable.core.models import Config

config_app = typer.Typer(
    name="config",
    help="Configuration management commands.",
    no_args_is_help=True,
)


def _target_path(config_path: str | None) -> Path:
    """Explicit path, else the file load_config would read, else cwd."""
    if config_path:
        return Path(config_path)
    return find_config_file() or Path.cwd() / DEFAULT_CONFIG_FILENAME


@config_app.command(name="show")
def config_show(
    config_path: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
) -> None:
    """Show the effective configuration and where it was read from."""
    path = Path(config_path) if config_path else find_config_file()
    try:
        config = load_config(config_path=path)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    source = path if path is not None and path.exists() else "defaults (no config file)"
    typer.echo(f"# source: {source}")
    typer.echo(
        yaml.safe_dump(config.model_dump(mode="json"), default_flow_style=False, sort_keys=False)
    )


@config_app.command(name="keys")
def config_keys_command() -> None:
    """List settable keys with their defaults and environment variables."""
    defaults = Config.model_construct().model_dump(mode="json")
    for key in config_keys():
        value = defaults
        for part in key.split("."):
            value = value[part]
        typer.echo(f"{key} = {value!r}  [{env_var_name(key)}]")


@config_app.command(name="init")
def config_init(
    config_path: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file."),
) -> None:
    """Write a config file with default values."""
    path = Path(config_path) if config_path else Path.cwd() / DEFAULT_CONFIG_FILENAME
    if path.exists() and not force:
        typer.echo(f"Error: {path} already exists (use --force to overwrite)", err=True)
        raise typer.Exit(code=1)
    try:
        save_config(Config.model_construct(), path)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None
    typer.echo(f"Created {path}")


@config_app.command(name="set")
def config_set(
    key: str = typer.Argument(help="Dotted config key (see 'uistable config keys')."),
    value: str = typer.Argument(help="Value to set."),
    config_path: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
) -> None:
    """Set one key in the config file, keeping its other entries."""
    path = _target_path(config_path)
    try:
        stored = set_config_value(path, key, value)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None
    typer.echo(f"Set {key} = {stored} in {path}")
