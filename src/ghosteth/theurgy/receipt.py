"""
Theurgy Receipt - Inspect transaction outcomes.
"""

from __future__ import annotations

import json
from typing import Optional

import click

from ..errors import ConfirmationTimeoutError, GhostEthError, TransactionNotFoundError
from ..pneuma.models import TransactionReceipt
from .session import connect, fail


@click.command()
@click.argument("tx_hash")
@click.option("--account", "label", default=None, help="Account label (default: first)")
@click.option("--json", "as_json", is_flag=True, help="Print the receipt as JSON")
@click.pass_context
def receipt(ctx: click.Context, tx_hash: str, label: Optional[str], as_json: bool) -> None:
    """Show the receipt of a mined transaction."""
    with connect(ctx, label) as client:
        try:
            result = client.get_transaction_receipt(tx_hash)
        except TransactionNotFoundError:
            click.secho(f"Transaction {tx_hash} not found or pending", fg="yellow")
            ctx.exit(1)
        except GhostEthError as exc:
            fail(exc)
    _show(result, as_json)


@click.command()
@click.argument("tx_hash")
@click.option("--account", "label", default=None, help="Account label (default: first)")
@click.option("--json", "as_json", is_flag=True, help="Print the receipt as JSON")
@click.pass_context
def wait(ctx: click.Context, tx_hash: str, label: Optional[str], as_json: bool) -> None:
    """Wait until a transaction is mined."""
    with connect(ctx, label) as client:
        try:
            result = client.wait_for_transaction(tx_hash)
        except ConfirmationTimeoutError as exc:
            click.secho(f"PENDING: {exc}", fg="yellow")
            ctx.exit(exc.exit_code)
        except GhostEthError as exc:
            fail(exc)
    _show(result, as_json)


def _show(result: TransactionReceipt, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return
    colour = "green" if result.succeeded else "red"
    click.echo(f"  TX:       {result.tx_hash}")
    click.echo("  Status:   " + click.style(result.status.value, fg=colour))
    click.echo(f"  Block:    {result.block_number}")
    click.echo(f"  Gas used: {result.gas_used}")
    click.echo(f"  From:     {result.from_address}")
    click.echo(f"  To:       {result.to}")
    click.echo(f"  Logs:     {len(result.logs)}")
