"""Command line front-end for the ePO DXL client."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from .application.client import EpoClient
from .domain.enums import OutputFormat
from .domain.exceptions import EpoClientError
from .domain.models import FabricEvent
from .infrastructure.config import EpoClientConfig, NATSConnectionConfig
from .infrastructure.nats_fabric import NATSFabricAdapter
from .infrastructure.simple_logger import SimpleLogger

console = Console()
error_console = Console(stderr=True)


def parse_params(values: tuple[str, ...]) -> dict[str, Any]:
    """Turn ``key=value`` pairs into command parameters.

    Values that parse as JSON (numbers, booleans, lists) keep their type;
    anything else is passed as a string.
    """
    params: dict[str, Any] = {}
    for item in values:
        key, sep, raw = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected key=value, got {item!r}", param_hint="--param")
        try:
            params[key] = json.loads(raw)
        except json.JSONDecodeError:
            params[key] = raw
    return params


class CLIContext:
    """Settings shared by every sub-command."""

    def __init__(
        self,
        servers: tuple[str, ...],
        epo_id: str | None,
        timeout: float | None,
        verbose: bool,
    ):
        overrides: dict[str, Any] = {"request_timeout": timeout}
        if servers:
            overrides["servers"] = list(servers)
        self.nats_config = NATSConnectionConfig.from_env(**overrides)
        self.client_config = EpoClientConfig.from_env(epo_unique_id=epo_id)
        self.logger = SimpleLogger(level=logging.DEBUG if verbose else logging.WARNING)

    def run(self, action: Callable[[NATSFabricAdapter], Awaitable[None]]) -> None:
        async def main() -> None:
            fabric = NATSFabricAdapter(self.nats_config, logger=self.logger)
            await fabric.connect()
            try:
                await action(fabric)
            finally:
                await fabric.disconnect()

        try:
            asyncio.run(main())
        except EpoClientError as e:
            error_console.print(f"[red]Error:[/red] {e.message}")
            raise SystemExit(1) from e

    def client(self, fabric: NATSFabricAdapter) -> EpoClient:
        return EpoClient(fabric, config=self.client_config, logger=self.logger)


pass_context = click.make_pass_decorator(CLIContext)


@click.group()
@click.option(
    "--server",
    "-s",
    "servers",
    multiple=True,
    help="NATS server URL (repeatable; defaults to $NATS_URL or nats://localhost:4222)",
)
@click.option("--epo-id", "-e", help="ePO unique identifier (defaults to $EPO_UNIQUE_ID)")
@click.option("--timeout", "-t", type=float, help="Request timeout in seconds")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output")
@click.pass_context
def main(
    ctx: click.Context,
    servers: tuple[str, ...],
    epo_id: str | None,
    timeout: float | None,
    verbose: bool,
) -> None:
    """Invoke ePO remote commands over the DXL fabric."""
    ctx.obj = CLIContext(servers, epo_id, timeout, verbose)


@main.command("ids")
@pass_context
def list_ids(cli: CLIContext) -> None:
    """List the ePO unique identifiers registered with the fabric."""

    async def action(fabric: NATSFabricAdapter) -> None:
        identifiers = await EpoClient.lookup_epo_unique_identifiers(fabric, logger=cli.logger)
        if not identifiers:
            console.print("[yellow]No ePO DXL services are registered with the DXL fabric[/yellow]")
            return
        table = Table(title="ePO servers")
        table.add_column("ePO unique identifier", style="cyan")
        for identifier in identifiers:
            table.add_row(identifier)
        console.print(table)

    cli.run(action)


@main.command("help")
@pass_context
def show_help(cli: CLIContext) -> None:
    """Show the remote commands the ePO server supports."""

    async def action(fabric: NATSFabricAdapter) -> None:
        console.print(await cli.client(fabric).help(), markup=False, highlight=False)

    cli.run(action)


@main.command("run")
@click.argument("command_name")
@click.option("--param", "-p", "params", multiple=True, help="Command parameter as key=value")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice([f.value for f in OutputFormat]),
    default=OutputFormat.OBJECT.value,
    show_default=True,
    help="How to decode the response",
)
@pass_context
def run_command(
    cli: CLIContext, command_name: str, params: tuple[str, ...], output_format: str
) -> None:
    """Run an ePO remote command, e.g. ``run system.find -p searchText=host``."""
    parsed = parse_params(params)

    async def action(fabric: NATSFabricAdapter) -> None:
        result = await cli.client(fabric).run_command(
            command_name, params=parsed, output_format=output_format
        )
        if isinstance(result, bytes):
            click.echo(result, nl=False)
        elif isinstance(result, str):
            click.echo(result)
        else:
            console.print_json(data=result)

    cli.run(action)


@main.command("watch-threats")
@click.option("--topic", help="Threat event topic (defaults to the ePO threat response topic)")
@pass_context
def watch_threats(cli: CLIContext, topic: str | None) -> None:
    """Print ePO threat events until interrupted."""

    async def on_threat(threat: Any, event: FabricEvent) -> None:
        console.rule(f"Threat event on topic: {event.destination_topic}")
        console.print_json(data=threat)

    async def action(fabric: NATSFabricAdapter) -> None:
        client = cli.client(fabric)
        await client.add_threat_event_callback(on_threat, topic)
        console.print("Waiting for threat event notifications...")
        try:
            await asyncio.Event().wait()
        finally:
            await client.remove_threat_event_callback(on_threat, topic)

    with contextlib.suppress(KeyboardInterrupt):
        cli.run(action)


if __name__ == "__main__":
    main()
