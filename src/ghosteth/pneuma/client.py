"""
Ethereum Client - the transaction lifecycle for one connected account.

    account = settings.accounts[0]
    with EthereumClient.connect(account, settings) as client:
        signed = client.sign_transaction(Transaction(to=recipient, value=10**15))
        pending = client.send_transaction(signed)
        receipt = client.wait_for_transaction(pending.tx_hash)

Construction validates the account, connects to the node and verifies that
the node's chain ID matches both the account and the configuration.  No
process-wide state (logging or otherwise) is touched.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..config import Settings
from ..errors import NodeConnectionError, RpcError
from ..sigil.accounts import Account
from .fees import FeeEstimator
from .models import SignedTransaction, Transaction, TransactionReceipt
from .receipts import ConfirmationPoller, ReceiptMapper
from .rpc import BlockTag, HttpNodeConnector, NodeConnector, call_node
from .tx import Broadcaster, TransactionSigner


class EthereumClient:
    def __init__(
        self,
        connector: NodeConnector,
        account: Account,
        settings: Settings,
        chain_id: int,
        logger: Optional[logging.Logger] = None,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        """Wire up an already-verified connection.  Prefer ``connect()``."""
        self._connector: Optional[NodeConnector] = connector
        self._log = logger or logging.getLogger(__name__)
        self.account = account
        self.settings = settings
        self.chain_id = chain_id

        self.fees = FeeEstimator(connector, settings, chain_id, logger=self._log)
        self.signer = TransactionSigner(connector, self.fees, account, chain_id, logger=self._log)
        self.mapper = ReceiptMapper(connector, account.address)
        self.broadcaster = Broadcaster(connector, self.mapper, logger=self._log)

        poller_kwargs = {}
        if clock is not None:
            poller_kwargs["clock"] = clock
        if sleep is not None:
            poller_kwargs["sleep"] = sleep
        self.poller = ConfirmationPoller(
            self.mapper,
            timeout=settings.transaction_timeout_seconds,
            interval=settings.transaction_ticker_seconds,
            logger=self._log,
            **poller_kwargs,
        )

    @classmethod
    def connect(
        cls,
        account: Account,
        settings: Settings,
        connector: Optional[NodeConnector] = None,
        logger: Optional[logging.Logger] = None,
        **kwargs,
    ) -> "EthereumClient":
        """
        Connect an account to the configured node.

        Raises:
            AccountError: If the account cannot sign
            NodeConnectionError: If the node is unreachable or on the wrong chain
        """
        log = logger or logging.getLogger(__name__)
        account.require_signing()

        if connector is None:
            log.info("Connecting to Ethereum RPC: url=%s", settings.rpc_url)
            connector = HttpNodeConnector(settings.rpc_url, logger=log)

        try:
            node_chain_id = connector.chain_id()
        except RpcError as exc:
            connector.close()
            raise NodeConnectionError(f"failed to get chain ID: {exc}") from exc

        for expected in (account.chain_id, settings.chain_id):
            if node_chain_id != expected:
                connector.close()
                raise NodeConnectionError(f"expected chain ID {expected}, got {node_chain_id}")

        log.info(
            "Successfully connected to Ethereum network: chain_id=%d account=%s",
            node_chain_id,
            account.address,
        )
        return cls(connector, account, settings, node_chain_id, logger=log, **kwargs)

    @property
    def connector(self) -> NodeConnector:
        self._ensure_open()
        return self._connector

    def _ensure_open(self) -> None:
        if self._connector is None:
            raise NodeConnectionError("client is closed")

    # ============ Lifecycle ============

    def sign_transaction(self, tx: Transaction) -> SignedTransaction:
        self._ensure_open()
        return self.signer.sign(tx)

    def send_transaction(self, signed: SignedTransaction) -> TransactionReceipt:
        self._ensure_open()
        return self.broadcaster.broadcast(signed)

    def wait_for_transaction(self, tx_hash: str) -> TransactionReceipt:
        self._ensure_open()
        return self.poller.wait(tx_hash)

    def get_transaction_receipt(self, tx_hash: str) -> TransactionReceipt:
        """Return the final receipt, or raise TransactionNotFoundError if not mined."""
        self._ensure_open()
        return self.mapper.lookup(tx_hash)

    def transfer(
        self,
        to: str,
        value: int,
        data: bytes = b"",
        wait: bool = False,
    ) -> TransactionReceipt:
        """
        Build, sign, and send a transfer.

        Convenience function combining sign + send (+ wait).
        """
        signed = self.sign_transaction(Transaction(to=to, value=value, data=data))
        pending = self.send_transaction(signed)
        if not wait:
            return pending
        return self.wait_for_transaction(pending.tx_hash)

    # ============ Queries ============

    def get_balance(self, address: Optional[str] = None, block: BlockTag = "latest") -> int:
        return call_node(
            "get balance",
            self.connector.get_balance,
            address or self.account.address,
            block,
        )

    def close(self) -> None:
        if self._connector is not None:
            self._connector.close()
            self._connector = None

    def __enter__(self) -> "EthereumClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
