"""
Configuration - settings for the transaction lifecycle engine.

Settings are read from environment variables, optionally seeded from a
``.env`` file.  Required values (RPC URL, chain ID) fail loudly; tuning
values fall back to their defaults when missing, unparsable, or out of range.

Recommended buffers:
  Development/Testing:     simple=1.2   complex=1.4
  Production - Base:       simple=1.05  complex=1.15
  Production - Mainnet:    simple=1.1   complex=1.25
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError
from .sigil.accounts import Account, ENV_ACCOUNTS, load_accounts
from .utils import GWEI

ENV_RPC_URL = "ETH_RPC_URL"
ENV_CHAIN_ID = "ETH_CHAIN_ID"
ENV_GAS_LIMIT_BUFFER_SIMPLE = "ETH_GAS_LIMIT_BUFFER_SIMPLE"
ENV_GAS_LIMIT_BUFFER_COMPLEX = "ETH_GAS_LIMIT_BUFFER_COMPLEX"
ENV_MAX_FEE_PER_GAS = "ETH_MAX_FEE_PER_GAS"
ENV_PRIORITY_FEE_MAINNET = "ETH_PRIORITY_FEE_MAINNET"
ENV_PRIORITY_FEE_BASE = "ETH_PRIORITY_FEE_BASE"
ENV_PRIORITY_FEE_DEFAULT = "ETH_PRIORITY_FEE_DEFAULT"
ENV_TRANSACTION_TIMEOUT = "ETH_TRANSACTION_TIMEOUT_SECONDS"
ENV_TRANSACTION_TICKER = "ETH_TRANSACTION_TICKER_SECONDS"

MAINNET_CHAIN_ID = 1
BASE_CHAIN_ID = 8453

DEFAULT_GAS_LIMIT_BUFFER_SIMPLE = 1.1
DEFAULT_GAS_LIMIT_BUFFER_COMPLEX = 1.2
GAS_LIMIT_BUFFER_MIN = 0.5
GAS_LIMIT_BUFFER_MAX = 3.0

DEFAULT_MAX_FEE_PER_GAS = 500 * GWEI
DEFAULT_PRIORITY_FEE_MAINNET = 2 * GWEI
DEFAULT_PRIORITY_FEE_BASE = 1 * GWEI
DEFAULT_PRIORITY_FEE_DEFAULT = 15 * GWEI // 10

DEFAULT_TRANSACTION_TIMEOUT_SECONDS = 300
DEFAULT_TRANSACTION_TICKER_SECONDS = 3


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    chain_id: int
    gas_limit_buffer_simple: float = DEFAULT_GAS_LIMIT_BUFFER_SIMPLE
    gas_limit_buffer_complex: float = DEFAULT_GAS_LIMIT_BUFFER_COMPLEX
    max_fee_per_gas: int = DEFAULT_MAX_FEE_PER_GAS
    priority_fee_mainnet: int = DEFAULT_PRIORITY_FEE_MAINNET
    priority_fee_base: int = DEFAULT_PRIORITY_FEE_BASE
    priority_fee_default: int = DEFAULT_PRIORITY_FEE_DEFAULT
    transaction_timeout_seconds: int = DEFAULT_TRANSACTION_TIMEOUT_SECONDS
    transaction_ticker_seconds: int = DEFAULT_TRANSACTION_TICKER_SECONDS
    accounts: tuple[Account, ...] = field(default=(), repr=False)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        env_path: Optional[Path] = None,
        require_accounts: bool = True,
    ) -> "Settings":
        """
        Build settings from the environment.

        Args:
            environ: Mapping to read instead of ``os.environ`` (no .env loading)
            env_path: .env file to load into ``os.environ`` first
            require_accounts: Fail if ``ETH_ACCOUNTS`` is missing

        Raises:
            ConfigurationError: If a required setting is missing or invalid
        """
        if environ is None:
            if env_path is not None:
                if env_path.exists():
                    load_dotenv(env_path, override=True)
            else:
                load_dotenv()
            environ = os.environ

        rpc_url = environ.get(ENV_RPC_URL, "").strip()
        if not rpc_url:
            raise ConfigurationError(f"{ENV_RPC_URL} environment variable is not set")

        chain_id_str = environ.get(ENV_CHAIN_ID, "").strip()
        if not chain_id_str:
            raise ConfigurationError(f"{ENV_CHAIN_ID} environment variable is not set")
        try:
            chain_id = int(chain_id_str)
        except ValueError as exc:
            raise ConfigurationError(f"invalid {ENV_CHAIN_ID}: {chain_id_str!r}") from exc
        if chain_id <= 0:
            raise ConfigurationError(f"invalid {ENV_CHAIN_ID}: {chain_id}")

        accounts: tuple[Account, ...] = ()
        if require_accounts or environ.get(ENV_ACCOUNTS):
            accounts = tuple(load_accounts(chain_id, environ))

        return cls(
            rpc_url=rpc_url,
            chain_id=chain_id,
            gas_limit_buffer_simple=_parse_buffer(
                environ.get(ENV_GAS_LIMIT_BUFFER_SIMPLE), DEFAULT_GAS_LIMIT_BUFFER_SIMPLE
            ),
            gas_limit_buffer_complex=_parse_buffer(
                environ.get(ENV_GAS_LIMIT_BUFFER_COMPLEX), DEFAULT_GAS_LIMIT_BUFFER_COMPLEX
            ),
            max_fee_per_gas=_parse_wei(environ.get(ENV_MAX_FEE_PER_GAS), DEFAULT_MAX_FEE_PER_GAS),
            priority_fee_mainnet=_parse_wei(
                environ.get(ENV_PRIORITY_FEE_MAINNET), DEFAULT_PRIORITY_FEE_MAINNET
            ),
            priority_fee_base=_parse_wei(environ.get(ENV_PRIORITY_FEE_BASE), DEFAULT_PRIORITY_FEE_BASE),
            priority_fee_default=_parse_wei(
                environ.get(ENV_PRIORITY_FEE_DEFAULT), DEFAULT_PRIORITY_FEE_DEFAULT
            ),
            transaction_timeout_seconds=_parse_positive_int(
                environ.get(ENV_TRANSACTION_TIMEOUT), DEFAULT_TRANSACTION_TIMEOUT_SECONDS
            ),
            transaction_ticker_seconds=_parse_positive_int(
                environ.get(ENV_TRANSACTION_TICKER), DEFAULT_TRANSACTION_TICKER_SECONDS
            ),
            accounts=accounts,
        )

    def priority_fee_for(self, chain_id: int) -> int:
        """Fixed priority fee for a network, in wei."""
        if chain_id == MAINNET_CHAIN_ID:
            return self.priority_fee_mainnet
        if chain_id == BASE_CHAIN_ID:
            return self.priority_fee_base
        return self.priority_fee_default


def _parse_buffer(value: Optional[str], default: float) -> float:
    if not value:
        return default
    try:
        buffer = float(value)
    except ValueError:
        return default
    # NaN fails both comparisons, so check the accepted range directly
    if not GAS_LIMIT_BUFFER_MIN <= buffer <= GAS_LIMIT_BUFFER_MAX:
        return default
    return buffer


def _parse_wei(value: Optional[str], default: int) -> int:
    if not value:
        return default
    try:
        wei = int(value.strip(), 10)
    except ValueError:
        return default
    if wei <= 0:
        return default
    return wei


def _parse_positive_int(value: Optional[str], default: int) -> int:
    if not value:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    if parsed <= 0:
        return default
    return parsed
