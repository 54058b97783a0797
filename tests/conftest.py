"""Shared fixtures: an in-memory node and a deterministic clock."""

from __future__ import annotations

from typing import Optional

import pytest

from ghosteth.config import Settings
from ghosteth.errors import RpcError, TransactionNotFoundError
from ghosteth.pneuma.client import EthereumClient
from ghosteth.pneuma.rpc import BlockHeader, NodeReceipt, NodeTransaction
from ghosteth.sigil.accounts import Account
from ghosteth.utils import to_checksum_address

TEST_PRIVATE_KEY = "0x4f3edf983ac636a65a842ce7c78d9aa706d3b113b37e5a4d5e1e4e6a1f7a1e08"
RECIPIENT = "0x00000000000000000000000000000000000000aA"
RECIPIENT_CHECKSUM = to_checksum_address(RECIPIENT)


class FakeNodeConnector:
    """In-memory NodeConnector.

    ``failures`` maps a method name to the exception it should raise.
    ``mined_after`` maps a hash to the number of receipt lookups that return
    "not found" before the stored receipt is served.
    """

    def __init__(
        self,
        chain: int = 1,
        gas_estimate: int = 21_000,
        header: Optional[BlockHeader] = None,
        gas_price: int = 12_345,
        nonce: int = 0,
    ) -> None:
        self.chain = chain
        self.gas_estimate = gas_estimate
        self.header = header or BlockHeader(number=100, gas_limit=30_000_000, base_fee_per_gas=100)
        self.gas_price = gas_price
        self.nonce = nonce
        self.balances: dict[str, int] = {}
        self.receipts: dict[str, NodeReceipt] = {}
        self.transactions: dict[str, NodeTransaction] = {}
        self.mined_after: dict[str, int] = {}
        self.failures: dict[str, Exception] = {}
        self.sent: list[bytes] = []
        self.calls: list[str] = []
        self.close_calls = 0

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failures:
            raise self.failures[name]

    def chain_id(self) -> int:
        self._record("chain_id")
        return self.chain

    def get_balance(self, address: str, block="latest") -> int:
        self._record("get_balance")
        return self.balances.get(address.lower(), 0)

    def get_pending_nonce(self, address: str) -> int:
        self._record("get_pending_nonce")
        return self.nonce

    def estimate_gas(self, from_address: str, to: str, value: int, data: bytes) -> int:
        self._record("estimate_gas")
        return self.gas_estimate

    def get_latest_header(self) -> BlockHeader:
        self._record("get_latest_header")
        return self.header

    def suggest_gas_price(self) -> int:
        self._record("suggest_gas_price")
        return self.gas_price

    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        self._record("send_raw_transaction")
        self.sent.append(raw_transaction)
        return ""

    def get_transaction(self, tx_hash: str) -> Optional[NodeTransaction]:
        self._record("get_transaction")
        return self.transactions.get(tx_hash)

    def get_transaction_receipt(self, tx_hash: str) -> NodeReceipt:
        self._record("get_transaction_receipt")
        remaining = self.mined_after.get(tx_hash, 0)
        if remaining > 0:
            self.mined_after[tx_hash] = remaining - 1
            raise TransactionNotFoundError(tx_hash)
        if tx_hash not in self.receipts:
            raise TransactionNotFoundError(tx_hash)
        return self.receipts[tx_hash]

    def close(self) -> None:
        self.close_calls += 1

    def mine(self, tx_hash: str, to: str = RECIPIENT_CHECKSUM, status: int = 1, block: int = 123) -> None:
        self.receipts[tx_hash] = NodeReceipt(
            transaction_hash=tx_hash,
            status=status,
            block_number=block,
            gas_used=21_000,
        )
        self.transactions[tx_hash] = NodeTransaction(
            hash=tx_hash,
            from_address=None,
            to=to,
            nonce=0,
            value=0,
            block_number=block,
        )


class FakeClock:
    """Monotonic clock that only advances when ``sleep`` is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def rpc_failure(message: str = "boom") -> RpcError:
    return RpcError(message, code=-32000)


@pytest.fixture()
def account() -> Account:
    return Account.from_private_key(TEST_PRIVATE_KEY, chain_id=1, label="main")


@pytest.fixture()
def settings(account: Account) -> Settings:
    return Settings(rpc_url="http://localhost:8545", chain_id=1, accounts=(account,))


@pytest.fixture()
def node() -> FakeNodeConnector:
    return FakeNodeConnector()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def client(account: Account, settings: Settings, node: FakeNodeConnector, clock: FakeClock) -> EthereumClient:
    return EthereumClient.connect(account, settings, connector=node, clock=clock, sleep=clock.sleep)
