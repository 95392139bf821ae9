"""Shared setup and rendering for CLI commands."""

from __future__ import annotations

import math
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from switchboard.channels import (
    Channel,
    ChannelStatus,
    HttpChannelBackend,
    OrderChange,
    Protocol,
    ReorderSessionController,
    cost_factor,
)
from switchboard.core.config import Config
from switchboard.core.events import NOTIFY, NOTIFY_ERROR, Event

SWITCHBOARD_DIR = Path.home() / ".switchboard"
CONFIG_PATH = SWITCHBOARD_DIR / "config.yaml"

PROTOCOL_CHOICE = click.Choice([p.value for p in Protocol], case_sensitive=False)

console = Console()


def load_config(config_file: str | None = None) -> Config:
    """Load config from *config_file*, or ~/.switchboard/config.yaml when present."""
    return Config(config_file=config_file or str(CONFIG_PATH))


def echo_notification(event: Event) -> None:
    """Render a ``notify`` event on the terminal."""
    level = event.payload.get("level")
    message = event.payload.get("message", "")
    reason = event.payload.get("reason")
    if level == NOTIFY_ERROR:
        click.echo(f"Error: {message}" + (f" ({reason})" if reason else ""), err=True)
    else:
        click.echo(message)


def build_controller(config: Config) -> ReorderSessionController:
    controller = ReorderSessionController(HttpChannelBackend.from_config(config))
    controller.bus.on(NOTIFY, echo_notification)
    return controller


def format_cost(cost: float) -> str:
    return "∞" if math.isinf(cost) else f"{cost:g}"


def channels_table(protocol: Protocol, channels: list[Channel], statuses: dict[str, ChannelStatus]) -> Table:
    table = Table(title=f"{protocol.value} channels")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("ID", style="dim")
    table.add_column("Priority", justify="right")
    table.add_column("Status")
    table.add_column("Available")
    table.add_column("Cooldown")
    table.add_column("Cost", justify="right")

    for position, channel in enumerate(channels, start=1):
        status = statuses[channel.id]
        cooldown = f"{status.min_cooldown_minutes} min" if status.min_cooldown_minutes is not None else ""
        table.add_row(
            str(position),
            channel.name,
            channel.id,
            str(channel.priority),
            "enabled" if channel.enabled else "disabled",
            "[green]yes[/green]" if status.available else "[red]no[/red]",
            cooldown,
            format_cost(cost_factor(channel)),
        )
    return table


def diff_table(protocol: Protocol, rows: list[OrderChange]) -> Table:
    table = Table(title=f"Suggested {protocol.value} order")
    table.add_column("New #", justify="right")
    table.add_column("Old #", justify="right")
    table.add_column("Name")
    table.add_column("Cost", justify="right")
    for row in rows:
        style = "bold" if row.moved else None
        table.add_row(str(row.new_position), str(row.old_position), row.name, format_cost(row.cost_factor), style=style)
    return table
