"""Shared loading for CLI commands: settings, accounts, connected client."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn, Optional

import click

from ..config import Settings
from ..errors import GhostEthError
from ..pneuma.client import EthereumClient
from ..sigil.accounts import Account, find_account


def load_settings(ctx: click.Context, require_accounts: bool = True) -> Settings:
    env_file: Optional[Path] = (ctx.obj or {}).get("env_file")
    try:
        return Settings.from_env(env_path=env_file, require_accounts=require_accounts)
    except GhostEthError as exc:
        fail(exc)


def select_account(settings: Settings, label: Optional[str]) -> Account:
    try:
        return find_account(list(settings.accounts), label)
    except GhostEthError as exc:
        fail(exc)


def connect(ctx: click.Context, label: Optional[str]) -> EthereumClient:
    settings = load_settings(ctx)
    account = select_account(settings, label)
    try:
        return EthereumClient.connect(account, settings)
    except GhostEthError as exc:
        fail(exc)


def fail(exc: GhostEthError) -> NoReturn:
    click.secho(f"ERROR: {exc}", fg="red", err=True)
    sys.exit(exc.exit_code)
