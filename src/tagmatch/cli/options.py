# ABOUTME: Shared Click options for tagmatch CLI commands.
# ABOUTME: Provides reusable decorators for common flags like --config.

from pathlib import Path

import click

from tagmatch.config import DEFAULT_CONFIG_PATH, TaggerConfig, load_config
from tagmatch.metadata.errors import ConfigError

config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help=f"Path to tagger config file (default: {DEFAULT_CONFIG_PATH})",
)


def load_cli_config(config_path: Path | None) -> TaggerConfig:
    """Load tagger config, reporting problems as a usage error on --config."""
    try:
        return load_config(config_path)
    except ConfigError as exc:
        raise click.BadParameter(str(exc), param_hint="--config") from exc
