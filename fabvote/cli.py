"""
fabvote CLI.

    fabvote initialize=true
    fabvote vote=Tom vote=Cat
    fabvote query=Tom getAllVotes=true

Every modifier runs as its own task on one shared channel.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from fabvote import __version__
from fabvote.assets import Asset, AssetContract
from fabvote.channel import Channel, new_channel
from fabvote.commands import (
    Command,
    CommandParseError,
    Initialize,
    ListAll,
    Query,
    Vote,
    parse_modifiers,
)
from fabvote.config import GatewaySettings
from fabvote.crypto import sha256
from fabvote.exceptions import ConnectionSetupError, FabVoteError
from fabvote.gateway import TimeoutPolicy, connect
from fabvote.identity import new_identity, new_signer
from fabvote.tally import VoteTally

console = Console()
logger = logging.getLogger("fabvote.cli")


def open_channel(settings: GatewaySettings) -> Channel:
    """Create the shared channel from the configured TLS root certificate."""
    try:
        tls_root_cert = settings.tls_cert_path.read_bytes()
    except OSError as e:
        raise ConnectionSetupError(f"Cannot read {settings.tls_cert_path}: {e}") from e
    return new_channel(tls_root_cert, settings.peer_endpoint, settings.peer_host_alias)


def _assets_table(assets: dict[str, Asset]) -> Table:
    table = Table(title="Votes")
    table.add_column("Key", style="dim")
    table.add_column("ID")
    table.add_column("Candidate", style="bold")
    table.add_column("Votes", justify="right")
    for key, asset in assets.items():
        table.add_row(key, asset.id, asset.owner, asset.size)
    return table


async def run_command(tally: VoteTally, command: Command) -> None:
    if isinstance(command, Query):
        console.print(f"\n--> Evaluate Transaction: GetAllAssets, looking up [bold]{command.name}[/]")
        match = await tally.query(command.name)
        if match is not None:
            console.print(
                f"*** Query Result: {match.appraised_value} {match.color} "
                f"{match.id} {match.owner} {match.size}"
            )
    elif isinstance(command, Vote):
        console.print(f"\n--> Submit Transaction: vote for [bold]{command.name}[/]")
        result = await tally.vote(command.name)
        kind = "creation" if result.created else "update"
        console.print(f"[green]*** Transaction committed successfully - {kind}[/] ({result.asset_id}: {result.count})")
    elif isinstance(command, ListAll):
        console.print("\n--> Evaluate Transaction: GetAllAssets")
        console.print(_assets_table(await tally.list_all()))
    elif isinstance(command, Initialize):
        console.print("\n--> Submit Transaction: CreateAsset for the initial candidates")
        report = await tally.initialize()
        for owner in report.skipped:
            console.print(f"[yellow]{owner} already created[/]")
        console.print("[green]*** Transaction committed successfully[/]")
    else:
        raise TypeError(f"Unknown command: {command!r}")


async def run(settings: GatewaySettings, commands: list[Command]) -> list[BaseException]:
    """Run ``commands`` concurrently; return the failures, if any.

    Credential and channel setup errors propagate. The channel is
    closed exactly once whatever the commands do.
    """
    identity = new_identity(settings.msp_id, settings.cert_directory_path)
    signer = new_signer(settings.key_directory_path)
    timeouts = TimeoutPolicy(
        evaluate=settings.evaluate_timeout,
        endorse=settings.endorse_timeout,
        submit=settings.submit_timeout,
        commit_status=settings.commit_status_timeout,
    )

    async with open_channel(settings) as channel:
        with connect(channel, identity, signer, sha256, timeouts) as gateway:
            contract = gateway.get_network(settings.channel_name).get_contract(
                settings.chaincode_name
            )
            tally = VoteTally(AssetContract(contract))
            outcomes = await asyncio.gather(
                *(run_command(tally, c) for c in commands),
                return_exceptions=True,
            )
    return [o for o in outcomes if isinstance(o, BaseException)]


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("modifiers", nargs=-1)
@click.option("--endpoint", default=None, help="Gateway endpoint (overrides PEER_ENDPOINT)")
@click.option("--host-alias", default=None, help="TLS host name override (overrides PEER_HOST_ALIAS)")
@click.option("--channel", "channel_name", default=None, help="Channel name (overrides CHANNEL_NAME)")
@click.option("--chaincode", default=None, help="Chaincode name (overrides CHAINCODE_NAME)")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.version_option(__version__, prog_name="fabvote")
def cli(modifiers, endpoint, host_alias, channel_name, chaincode, verbose) -> None:
    """Vote on a ledger: query=<name>, vote=<name>, getAllVotes=true, initialize=true."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    try:
        commands = parse_modifiers(modifiers)
    except CommandParseError as e:
        raise click.UsageError(str(e)) from e

    try:
        settings = GatewaySettings.from_env()
    except FabVoteError as e:
        console.print(f"[red]******** FAILED to run the application:[/] {e}")
        sys.exit(1)

    overrides = {
        "peer_endpoint": endpoint,
        "peer_host_alias": host_alias,
        "channel_name": channel_name,
        "chaincode_name": chaincode,
    }
    settings = dataclasses.replace(
        settings, **{k: v for k, v in overrides.items() if v is not None}
    )

    for label, value in settings.describe():
        console.print(f"[dim]{label + ':':<19}[/]{value}")

    if not commands:
        console.print("[yellow]Nothing to do.[/]")
        return

    try:
        failures = asyncio.run(run(settings, commands))
    except FabVoteError as e:
        console.print(f"[red]******** FAILED to run the application:[/] {e}")
        sys.exit(1)

    if failures:
        for failure in failures:
            logger.debug("Command failed", exc_info=failure)
            console.print(f"[red]******** FAILED to run the application:[/] {failure}")
        sys.exit(1)


if __name__ == "__main__":
    cli()
