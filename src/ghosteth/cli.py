"""
ghosteth CLI

Command-line interface for the ghosteth hot wallet client.

Configuration comes from the environment (or a .env file): ETH_RPC_URL,
ETH_CHAIN_ID, ETH_ACCOUNTS and the per-account key variables.

Commands:
  accounts  - List configured accounts
  balance   - Show the ETH balance of an account or address
  send      - Sign and broadcast a transfer
  receipt   - Show the receipt of a mined transaction
  wait      - Wait for a transaction to be mined
  info      - Show effective configuration
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .errors import RpcError
from .pneuma.rpc import HttpNodeConnector
from .utils import format_ether, format_gwei
from .theurgy.session import fail, load_settings, select_account


# ============ Constants ============

VERSION = "0.3.0"


# ============ Main CLI Group ============


@click.group()
@click.version_option(version=VERSION, prog_name="ghosteth")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="GHOSTETH_ENV_FILE",
    default=None,
    help="Load settings from this .env file",
)
@click.option("-v", "--verbose", is_flag=True, help="Log lifecycle steps to stderr")
@click.pass_context
def cli(ctx: click.Context, env_file: Optional[Path], verbose: bool) -> None:
    """ghosteth - sign, send and track Ethereum transactions."""
    ctx.ensure_object(dict)
    ctx.obj["env_file"] = env_file
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )


# ============ Top-level Commands ============

from .theurgy.send import send
from .theurgy.receipt import receipt, wait

cli.add_command(send)
cli.add_command(receipt)
cli.add_command(wait)


# ============ Accounts ============


@cli.command()
@click.pass_context
def accounts(ctx: click.Context) -> None:
    """List configured accounts."""
    settings = load_settings(ctx)
    for account in settings.accounts:
        mode = click.style("signer", fg="green") if account.can_sign else click.style("read-only", fg="yellow")
        click.echo(f"  {account.label:<12} {account.address}  {mode}")


@cli.command()
@click.argument("target", required=False)
@click.pass_context
def balance(ctx: click.Context, target: Optional[str]) -> None:
    """Show the balance of an account label or 0x address."""
    if target and target.startswith("0x"):
        settings = load_settings(ctx, require_accounts=False)
        address = target
    else:
        settings = load_settings(ctx)
        address = select_account(settings, target).address

    connector = HttpNodeConnector(settings.rpc_url)
    try:
        wei = connector.get_balance(address)
    except RpcError as exc:
        fail(exc)
    finally:
        connector.close()

    click.echo(f"Address: {address}")
    click.echo(f"Balance: {format_ether(wei)} ETH ({wei} wei)")


# ============ Info ============


@cli.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """Show effective configuration."""
    settings = load_settings(ctx, require_accounts=False)

    click.secho("  Network ────────────────────────────────", fg="cyan")
    click.echo(f"  RPC URL:          {settings.rpc_url}")
    click.echo(f"  Chain ID:         {settings.chain_id}")
    click.echo(f"  Accounts:         {len(settings.accounts)}")
    click.echo()
    click.secho("  Fees ───────────────────────────────────", fg="cyan")
    click.echo(f"  Max fee per gas:  {format_gwei(settings.max_fee_per_gas)} gwei")
    click.echo(f"  Priority fee:     {format_gwei(settings.priority_fee_for(settings.chain_id))} gwei")
    click.echo(f"  Gas buffers:      simple={settings.gas_limit_buffer_simple} complex={settings.gas_limit_buffer_complex}")
    click.echo()
    click.secho("  Confirmation ───────────────────────────", fg="cyan")
    click.echo(f"  Timeout:          {settings.transaction_timeout_seconds}s")
    click.echo(f"  Poll interval:    {settings.transaction_ticker_seconds}s")


# ============ Entry Points ============


def main() -> None:
    """ghosteth CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
