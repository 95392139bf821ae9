"""switchboard channels / autosort / move."""

from __future__ import annotations

import asyncio
import sys

import click

from switchboard.channels import (
    Protocol,
    ReorderSessionController,
    SessionOutcome,
    changed,
    diff_order,
    evaluate,
    now_ms,
    propose_order,
)
from switchboard.core.config import Config

from .common import PROTOCOL_CHOICE, build_controller, channels_table, console, diff_table


async def _load(controller: ReorderSessionController) -> None:
    if not await controller.refresh():
        sys.exit(1)


@click.command()
@click.option("--protocol", type=PROTOCOL_CHOICE, default=None, help="Only show this protocol.")
@click.pass_obj
def channels(config: Config, protocol: str | None) -> None:
    """Show channels in priority order with availability and cooldowns."""
    controller = build_controller(config)
    asyncio.run(_load(controller))

    # One clock read for the whole listing
    now = now_ms()
    protocols = [Protocol(protocol.lower())] if protocol else list(Protocol)
    for p in protocols:
        listed = controller.store.channels(p)
        if not listed:
            if protocol:
                click.echo(f"No {p.value} channels.")
            continue
        console.print(channels_table(p, listed, evaluate(listed, now)))


@click.command()
@click.option("--protocol", type=PROTOCOL_CHOICE, required=True, help="Protocol whose channels to sort.")
@click.option("--apply", "apply_", is_flag=True, help="Save the suggested order.")
@click.pass_obj
def autosort(config: Config, protocol: str, apply_: bool) -> None:
    """Suggest a cost-based channel order, and optionally save it."""
    outcome = asyncio.run(_autosort(build_controller(config), Protocol(protocol.lower()), apply_))
    if outcome is SessionOutcome.ROLLED_BACK:
        sys.exit(1)


async def _autosort(controller: ReorderSessionController, protocol: Protocol, apply_: bool) -> SessionOutcome | None:
    await _load(controller)
    current = controller.store.channels(protocol)
    proposed = propose_order(current)
    if not changed([c.id for c in current], [c.id for c in proposed]):
        click.echo(f"{protocol.value} channels are already in the suggested order.")
        return None

    console.print(diff_table(protocol, diff_order(current, proposed)))
    if not apply_:
        click.echo("Run again with --apply to save this order.")
        return None
    return await controller.apply_auto_sort(protocol)


@click.command()
@click.argument("channel_id")
@click.option("--protocol", type=PROTOCOL_CHOICE, required=True, help="Protocol the channel belongs to.")
@click.option("--before", "before_id", default=None, help="Place the channel before this channel id.")
@click.option("--to-end", is_flag=True, help="Place the channel last.")
@click.pass_obj
def move(config: Config, channel_id: str, protocol: str, before_id: str | None, to_end: bool) -> None:
    """Move one channel and save the new order."""
    if bool(before_id) == to_end:
        raise click.UsageError("Pass exactly one of --before or --to-end.")
    outcome = asyncio.run(_move(build_controller(config), Protocol(protocol.lower()), channel_id, before_id))
    if outcome is not SessionOutcome.COMMITTED:
        sys.exit(1)


async def _move(
    controller: ReorderSessionController,
    protocol: Protocol,
    channel_id: str,
    before_id: str | None,
) -> SessionOutcome | None:
    await _load(controller)
    order = controller.store.order(protocol)
    for wanted in filter(None, (channel_id, before_id)):
        if wanted not in order:
            click.echo(f"No {protocol.value} channel with id {wanted}.", err=True)
            return None

    if controller.start_drag(protocol, channel_id) is None:
        click.echo("Channel order is being saved; try again shortly.", err=True)
        return None
    return await controller.drop(protocol, before_id)
