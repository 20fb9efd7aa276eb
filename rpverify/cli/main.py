"""CLI entry point for rpverify."""

import click

from rpverify import __version__
from rpverify.cli import config as config_commands
from rpverify.cli import request as request_commands
from rpverify.cli import serve as serve_commands


@click.group()
@click.version_option(version=__version__, prog_name="rpverify")
@click.option(
    "--log-level",
    type=click.Choice(["ERROR", "INFO", "DEBUG", "TRACE"], case_sensitive=False),
    default=None,
    help="Log level (default: from config or INFO)",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """rpverify - GOV.UK Verify relying party toolkit."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level


cli.add_command(config_commands.config)
cli.add_command(request_commands.request)
cli.add_command(serve_commands.serve)
