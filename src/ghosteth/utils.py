from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from eth_hash.auto import keccak

GWEI = 10**9
ETHER = 10**18

ZERO_ADDRESS = "0x" + "0" * 40


def keccak256(data: bytes) -> bytes:
    # NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    return keccak(data)


def to_checksum_address(address: str) -> str:
    """Convert an address to EIP-55 checksummed format.

    eth-account requires checksummed addresses in transaction fields.
    """
    addr = address.lower().replace("0x", "")
    if len(addr) != 40:
        raise ValueError(f"Address must be 20 bytes: {address}")
    if not _is_hex(addr):
        raise ValueError(f"Address must be hex: {address}")
    addr_hash = keccak256(addr.encode("utf-8")).hex()
    result = "0x"
    for i, c in enumerate(addr):
        if c in "abcdef":
            result += c.upper() if int(addr_hash[i], 16) >= 8 else c
        else:
            result += c
    return result


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    if a is None or b is None:
        return False
    return a.lower() == b.lower()


def hex_to_int(value: Union[str, int, None]) -> Optional[int]:
    """Decode a JSON-RPC quantity (``"0x1a"``) to int. ``None`` passes through."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    return int(value, 16)


def int_to_hex(value: int) -> str:
    return hex(value)


def hex_to_bytes(value: Optional[str]) -> bytes:
    if not value:
        return b""
    raw = value[2:] if value.startswith("0x") else value
    return bytes.fromhex(raw)


def bytes_to_hex(data: bytes) -> str:
    return "0x" + data.hex()


def format_ether(wei: int, places: int = 6) -> str:
    return f"{Decimal(wei) / Decimal(ETHER):.{places}f}"


def format_gwei(wei: int) -> str:
    return f"{Decimal(wei) / Decimal(GWEI):f}"


def parse_ether(value: str) -> int:
    """Parse a decimal ether amount (``"0.001"``) into wei."""
    try:
        amount = Decimal(value) * ETHER
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {value}") from exc
    if not amount.is_finite():
        raise ValueError(f"Amount must be finite: {value}")
    if amount != amount.to_integral_value():
        raise ValueError(f"Amount has more than 18 decimals: {value}")
    if amount < 0:
        raise ValueError(f"Amount must not be negative: {value}")
    return int(amount)


def _is_hex(value: str) -> bool:
    return all(c in "0123456789abcdef" for c in value)
