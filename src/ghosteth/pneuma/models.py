from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .rpc import LogEntry


@dataclass
class Transaction:
    """
    A transfer intent, completed in place by the signer.

    Every optional field uses ``None`` for "unset"; a nonce of 0 is a real
    nonce.  ``chain_id`` is informational only: signing always uses the chain
    ID verified when the client connected.
    """

    to: str
    value: int = 0
    data: bytes = b""
    from_address: Optional[str] = None
    gas_limit: Optional[int] = None
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None
    nonce: Optional[int] = None
    chain_id: Optional[int] = None

    @property
    def is_simple(self) -> bool:
        return len(self.data) == 0

    @property
    def has_fee_market_fields(self) -> bool:
        return self.max_fee_per_gas is not None and self.max_priority_fee_per_gas is not None


@dataclass(frozen=True)
class SignedTransaction:
    hash: str
    raw_transaction: bytes = field(repr=False)
    chain_id: int
    nonce: int
    gas_limit: int
    to: str
    value: int
    data: bytes
    v: int
    r: int
    s: int
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None

    @property
    def is_fee_market(self) -> bool:
        return self.max_fee_per_gas is not None

    @property
    def raw_hex(self) -> str:
        return "0x" + self.raw_transaction.hex()


class ReceiptStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    REVERTED = "reverted"


@dataclass(frozen=True)
class TransactionReceipt:
    """
    Normalized transaction outcome.

    A provisional receipt (``PENDING``, no block number) is returned at
    broadcast time and replaced by a final one once the transaction is mined.
    """

    tx_hash: str
    status: ReceiptStatus
    from_address: str
    to: Optional[str]
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    logs: tuple[LogEntry, ...] = ()

    @property
    def is_pending(self) -> bool:
        return self.status is ReceiptStatus.PENDING

    @property
    def succeeded(self) -> bool:
        return self.status is ReceiptStatus.SUCCESS

    @property
    def status_code(self) -> int:
        """Legacy 0/1 encoding. Pending and reverted both map to 0."""
        return 1 if self.status is ReceiptStatus.SUCCESS else 0

    def to_dict(self) -> dict:
        return {
            "tx_hash": self.tx_hash,
            "status": self.status.value,
            "status_code": self.status_code,
            "block_number": self.block_number,
            "gas_used": self.gas_used,
            "from": self.from_address,
            "to": self.to,
            "logs": [
                {
                    "address": log.address,
                    "topics": list(log.topics),
                    "data": "0x" + log.data.hex(),
                    "log_index": log.log_index,
                }
                for log in self.logs
            ],
        }
