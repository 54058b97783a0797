"""
Accounts - secp256k1 identities used for signing and as default sender.

An account is built once at startup from key material (hex strings, usually
from the environment) and then only read.  Accounts loaded from a public
key alone are read-only: they can be queried for balance or used as a
recipient, but never sign.

Dependencies: eth-keys (ships with eth-account), python-dotenv via config.
"""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass, field
from typing import Mapping, Optional

from eth_keys import keys
from eth_keys.exceptions import ValidationError as KeyValidationError

from ..errors import AccountError, ConfigurationError
from ..utils import ZERO_ADDRESS

ENV_ACCOUNTS = "ETH_ACCOUNTS"
ENV_PRIVATE_KEY_FMT = "ETH_ACCOUNT_{}_PRIVATE_KEY"
ENV_PUBLIC_KEY_FMT = "ETH_ACCOUNT_{}_PUBLIC_KEY"


@dataclass(frozen=True)
class Account:
    """
    An Ethereum account.

    Attributes:
        address: 0x-prefixed checksummed address
        public_key: 0x-prefixed 64-byte uncompressed public key (no 0x04 prefix)
        chain_id: Chain ID the account signs for
        label: Optional human-readable label
        private_key: 0x-prefixed hex private key, None for read-only accounts
    """

    address: str
    public_key: Optional[str]
    chain_id: int
    label: str = ""
    private_key: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_private_key(cls, private_key: str, chain_id: int, label: str = "") -> "Account":
        try:
            key = keys.PrivateKey(_hex_bytes(private_key))
        except (ValueError, KeyValidationError) as exc:
            raise AccountError(f"invalid private key for account[{label}]: {exc}") from exc
        return cls(
            address=key.public_key.to_checksum_address(),
            public_key=key.public_key.to_hex(),
            chain_id=chain_id,
            label=label,
            private_key=key.to_hex(),
        )

    @classmethod
    def from_public_key(cls, public_key: str, chain_id: int, label: str = "") -> "Account":
        """Build a read-only account.

        Accepts 64-byte raw, 65-byte uncompressed (0x04 prefix) or 33-byte
        compressed encodings.
        """
        try:
            raw = _hex_bytes(public_key)
            if len(raw) == 65 and raw[0] == 4:
                raw = raw[1:]
            if len(raw) == 33:
                pub = keys.PublicKey.from_compressed_bytes(raw)
            else:
                pub = keys.PublicKey(raw)
        except (ValueError, KeyValidationError) as exc:
            raise AccountError(f"invalid public key for account[{label}]: {exc}") from exc
        return cls(
            address=pub.to_checksum_address(),
            public_key=pub.to_hex(),
            chain_id=chain_id,
            label=label,
        )

    @classmethod
    def generate(cls, chain_id: int, label: str = "") -> "Account":
        return cls.from_private_key("0x" + secrets.token_hex(32), chain_id, label)

    @property
    def can_sign(self) -> bool:
        return (
            self.private_key is not None
            and self.public_key is not None
            and self.address.lower() != ZERO_ADDRESS
            and self.chain_id != 0
        )

    def require_signing(self) -> None:
        """Raise AccountError unless this account can sign transactions."""
        if self.private_key is None:
            raise AccountError("account private key is not set")
        if not self.address or self.address.lower() == ZERO_ADDRESS:
            raise AccountError("account address is not set")
        if not self.chain_id:
            raise AccountError("account chain ID is not set")
        if self.public_key is None:
            raise AccountError("account public key is not set")


def load_accounts(chain_id: int, environ: Optional[Mapping[str, str]] = None) -> list[Account]:
    """
    Load labelled accounts from the environment.

    ``ETH_ACCOUNTS`` holds a comma-separated list of labels; each label needs
    ``ETH_ACCOUNT_<LABEL>_PRIVATE_KEY`` or ``ETH_ACCOUNT_<LABEL>_PUBLIC_KEY``.
    A private key wins when both are present.

    Raises:
        ConfigurationError: If the list is empty or a label has no usable key
    """
    env = os.environ if environ is None else environ
    raw_labels = env.get(ENV_ACCOUNTS, "")
    labels = [label.strip() for label in raw_labels.split(",") if label.strip()]
    if not labels:
        raise ConfigurationError(f"{ENV_ACCOUNTS} environment variable is not set")

    accounts = []
    for label in labels:
        private_hex = env.get(ENV_PRIVATE_KEY_FMT.format(label.upper()), "").strip()
        public_hex = env.get(ENV_PUBLIC_KEY_FMT.format(label.upper()), "").strip()

        try:
            if private_hex:
                accounts.append(Account.from_private_key(private_hex, chain_id, label))
            elif public_hex:
                accounts.append(Account.from_public_key(public_hex, chain_id, label))
            else:
                raise ConfigurationError(
                    f"no private or public key found for account[{label}] in environment variables"
                )
        except AccountError as exc:
            raise ConfigurationError(str(exc)) from exc

    return accounts


def find_account(accounts: list[Account], label: Optional[str]) -> Account:
    """Pick an account by label (case-insensitive), or the first one."""
    if not accounts:
        raise ConfigurationError("no accounts configured")
    if label is None:
        return accounts[0]
    for account in accounts:
        if account.label.lower() == label.lower():
            return account
    raise ConfigurationError(f"account[{label}] not found")


def _hex_bytes(value: str) -> bytes:
    value = value.strip()
    if value.startswith(("0x", "0X")):
        value = value[2:]
    return bytes.fromhex(value)
