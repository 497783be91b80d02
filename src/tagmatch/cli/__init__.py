# ABOUTME: CLI package for tagmatch, built on Click.
# ABOUTME: Defines the root command group, sets up logging, and registers subcommands.

import logging

import click
from rich.logging import RichHandler

from tagmatch.cli.commands import match_cmd, score_cmd, search_cmd

_LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def _configure_logging(verbosity: int) -> None:
    level = _LOG_LEVELS.get(verbosity, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=verbosity > 1)],
        force=True,
    )


@click.group()
@click.version_option(package_name="tagmatch")
@click.option("-v", "--verbose", count=True, help="Increase log output (-v info, -vv debug).")
def cli(verbose: int) -> None:
    """tagmatch - match local tracks against Beatport and Traxsource."""
    _configure_logging(verbose)


cli.add_command(match_cmd.match)
cli.add_command(search_cmd.search)
cli.add_command(score_cmd.score)
