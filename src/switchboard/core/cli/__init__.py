"""Switchboard CLI: inspect channel availability and manage channel order."""

import click

from switchboard import __version__


@click.group()
@click.version_option(version=__version__, package_name="switchboard")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Config file (YAML or JSON). Defaults to ~/.switchboard/config.yaml.",
)
@click.option("--log-level", default=None, help="Override logging.level (DEBUG, INFO, WARNING, ERROR).")
@click.pass_context
def main(ctx: click.Context, config_file: str | None, log_level: str | None) -> None:
    """Switchboard: channel ordering for upstream API credential pools."""
    from switchboard.core.utils.logging import setup_logging_from_config

    from .common import load_config

    config = load_config(config_file)
    if log_level:
        config.set("logging.level", log_level)
    setup_logging_from_config(config)
    ctx.obj = config


# Register subcommands
from .channels_cmd import autosort, channels, move

main.add_command(channels)
main.add_command(autosort)
main.add_command(move)
