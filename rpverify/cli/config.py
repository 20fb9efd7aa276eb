"""Configuration management CLI commands."""

from __future__ import annotations

import json
import sys
from typing import Any, NoReturn

import click

# Common option for JSON output
json_option = click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output results as JSON for scripting",
)


def output_result(data: dict[str, Any], as_json: bool = False) -> None:
    """Output result as JSON or formatted text.

    Args:
        data: Data to output
        as_json: If True, output as JSON
    """
    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
        return
    for key, value in data.items():
        click.echo(f"{key}: {value}")


def error_result(message: str, as_json: bool = False) -> NoReturn:
    """Output error message and exit.

    This function never returns - it either raises ClickException or calls sys.exit.

    Args:
        message: Error message
        as_json: If True, output as JSON
    """
    if as_json:
        click.echo(json.dumps({"error": message}, indent=2), err=True)
        sys.exit(1)
    raise click.ClickException(message)


@click.group()
def config() -> None:
    """Manage rpverify configuration."""
    pass


@config.command("init")
@click.option(
    "--force",
    is_flag=True,
    help="Overwrite an existing config file.",
)
@json_option
def config_init(force: bool, output_json: bool) -> None:
    """Write a default config.yaml.

    Examples:

        # Create ~/.rpverify/config.yaml
        rpverify config init

        # Replace an existing file
        rpverify config init --force
    """
    from rpverify.core.config import get_config_path, get_default_config_yaml

    config_path = get_config_path()

    if config_path.exists() and not force:
        if output_json:
            output_result({
                "status": "already_exists",
                "config_file": str(config_path),
                "message": "Config file already exists. Use --force to overwrite.",
            }, as_json=True)
            return
        click.echo(f"Config file already exists: {config_path}")
        click.echo("Use --force to overwrite it")
        return

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(get_default_config_yaml())

    if output_json:
        output_result({"status": "created", "config_file": str(config_path)}, as_json=True)
        return
    click.echo(f"Config file written to: {config_path}")


@config.command("show")
@json_option
def config_show(output_json: bool) -> None:
    """Show the effective configuration (file plus environment)."""
    from rpverify.core.config import load_config

    try:
        app_config = load_config()
    except ValueError as e:
        error_result(f"Invalid configuration: {e}", output_json)

    data = app_config.to_dict()
    if output_json:
        output_result(data, as_json=True)
        return

    for section, values in data.items():
        click.echo(f"{section}:")
        for key, value in values.items():
            click.echo(f"  {key}: {value}")


@config.command("path")
def config_path() -> None:
    """Print the config file location."""
    from rpverify.core.config import get_config_path

    click.echo(str(get_config_path()))
