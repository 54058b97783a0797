"""
Theurgy Send - Sign and broadcast a transfer.

Missing fields (nonce, gas limit, fees) are filled in from the node.
With --dry-run the transaction is signed but never sent.
"""

from __future__ import annotations

from typing import Optional

import click

from ..errors import ConfirmationTimeoutError, GhostEthError
from ..pneuma.models import Transaction
from ..utils import format_ether, format_gwei, hex_to_bytes, parse_ether
from .session import connect, fail


@click.command()
@click.option("--to", "to", required=True, help="Recipient address")
@click.option("--value", "value_eth", default=None, help="Amount in ETH (e.g. 0.001)")
@click.option("--wei", "value_wei", default=None, type=int, help="Amount in wei")
@click.option("--data", "data_hex", default="", help="Hex calldata (0x...)")
@click.option("--account", "label", default=None, help="Account label (default: first)")
@click.option("--nonce", default=None, type=int, help="Explicit nonce")
@click.option("--gas-limit", default=None, type=int, help="Explicit gas limit")
@click.option("--gas-price", default=None, type=int, help="Legacy gas price in wei")
@click.option("--max-fee", default=None, type=int, help="Max fee per gas in wei")
@click.option("--priority-fee", default=None, type=int, help="Max priority fee per gas in wei")
@click.option("--wait/--no-wait", default=False, help="Wait for confirmation")
@click.option("--dry-run", is_flag=True, help="Sign only, do not broadcast")
@click.pass_context
def send(
    ctx: click.Context,
    to: str,
    value_eth: Optional[str],
    value_wei: Optional[int],
    data_hex: str,
    label: Optional[str],
    nonce: Optional[int],
    gas_limit: Optional[int],
    gas_price: Optional[int],
    max_fee: Optional[int],
    priority_fee: Optional[int],
    wait: bool,
    dry_run: bool,
) -> None:
    """Send ETH (and optional calldata) from a configured account."""
    if value_eth is not None and value_wei is not None:
        raise click.UsageError("Use either --value or --wei, not both")
    try:
        value = parse_ether(value_eth) if value_eth is not None else (value_wei or 0)
        data = hex_to_bytes(data_hex)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    tx = Transaction(
        to=to,
        value=value,
        data=data,
        nonce=nonce,
        gas_limit=gas_limit,
        gas_price=gas_price,
        max_fee_per_gas=max_fee,
        max_priority_fee_per_gas=priority_fee,
    )

    with connect(ctx, label) as client:
        click.echo("=== ghosteth send ===")
        click.echo("")
        click.echo(f"  Sender: {client.account.address}")
        click.echo(f"  Recipient: {to}")
        click.echo(f"  Value: {format_ether(value)} ETH")
        click.echo("")

        try:
            signed = client.sign_transaction(tx)
        except GhostEthError as exc:
            fail(exc)

        click.echo(f"  Nonce: {signed.nonce}")
        click.echo(f"  Gas limit: {signed.gas_limit}")
        if signed.is_fee_market:
            click.echo(f"  Max fee: {format_gwei(signed.max_fee_per_gas)} gwei")
            click.echo(f"  Priority fee: {format_gwei(signed.max_priority_fee_per_gas)} gwei")
        else:
            click.echo(f"  Gas price: {format_gwei(signed.gas_price)} gwei")
        click.echo(f"  TX: {signed.hash}")

        if dry_run:
            click.echo(f"  Raw: {signed.raw_hex}")
            click.secho("DRY RUN: transaction signed, not sent", fg="yellow")
            return

        try:
            pending = client.send_transaction(signed)
        except GhostEthError as exc:
            fail(exc)
        click.secho("SENT: Transaction broadcast", fg="cyan")

        if not wait:
            return

        click.echo("Waiting for confirmation...")
        try:
            receipt = client.wait_for_transaction(pending.tx_hash)
        except ConfirmationTimeoutError as exc:
            click.secho(f"PENDING: {exc}", fg="yellow")
            ctx.exit(exc.exit_code)
        except GhostEthError as exc:
            fail(exc)

        if receipt.succeeded:
            click.secho("SUCCESS: Transaction confirmed!", fg="green")
        else:
            click.secho("FAILED: Transaction reverted", fg="red")
        click.echo(f"  Block: {receipt.block_number}")
        click.echo(f"  Gas used: {receipt.gas_used}")
        if not receipt.succeeded:
            ctx.exit(1)
