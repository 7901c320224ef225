"""Selefra CLI entry point."""

from __future__ import annotations

import logging

import click

from .commands.cache import cache as cache_group
from .commands.modules import modules as modules_group
from .logging_setup import init_console_logging
from .logging_setup import init_json_logging
from .paths import create_settings

logger = logging.getLogger(__name__)


@click.group(invoke_without_command=True)
@click.version_option(package_name="selefra-cli")
@click.option("--verbose", "-v", is_flag=True, help="Mirror log output to the terminal")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (default: settings log_level, then SELEFRA_LOG_LEVEL)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, log_level: str | None):
    """Selefra - policy as code for cloud infrastructure."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    init_json_logging(level=log_level or create_settings().get_log_level())
    if verbose:
        init_console_logging(log_level or "DEBUG")
    logger.debug(f"selefra started (verbose={verbose})")

    if ctx.invoked_subcommand is None:
        click.echo("\n" + ctx.get_help())
        ctx.exit()


cli.add_command(modules_group)
cli.add_command(cache_group)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
