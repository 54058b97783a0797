"""
Receipts - normalize node receipts and poll until a transaction is mined.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Optional

from ..errors import ConfirmationTimeoutError, RpcError, TransactionLookupError, TransactionNotFoundError
from .models import ReceiptStatus, SignedTransaction, TransactionReceipt
from .rpc import NodeConnector, NodeReceipt, NodeTransaction, call_node


class ReceiptMapper:
    """
    Build ``TransactionReceipt`` records.

    The sender always comes from the connected account, never from node data
    (some nodes omit it); the recipient comes from the transaction itself.
    """

    def __init__(self, connector: NodeConnector, sender: str) -> None:
        self._connector = connector
        self._sender = sender

    def pending(self, signed: SignedTransaction) -> TransactionReceipt:
        return TransactionReceipt(
            tx_hash=signed.hash,
            status=ReceiptStatus.PENDING,
            from_address=self._sender,
            to=signed.to,
        )

    def to_receipt(self, receipt: NodeReceipt, tx: NodeTransaction) -> TransactionReceipt:
        status = ReceiptStatus.SUCCESS if receipt.status == 1 else ReceiptStatus.REVERTED
        return TransactionReceipt(
            tx_hash=receipt.transaction_hash,
            status=status,
            block_number=receipt.block_number,
            gas_used=receipt.gas_used,
            from_address=self._sender,
            to=tx.to,
            logs=receipt.logs,
        )

    def lookup(self, tx_hash: str) -> TransactionReceipt:
        """
        Fetch and map the final receipt for a hash.

        Raises:
            TransactionNotFoundError: If the transaction is not mined yet
            NodeCallError: If the receipt lookup fails
            TransactionLookupError: If the receipt exists but the transaction lookup fails
        """
        receipt = call_node("get transaction receipt", self._connector.get_transaction_receipt, tx_hash)

        try:
            tx = self._connector.get_transaction(tx_hash)
        except RpcError as exc:
            raise TransactionLookupError("get transaction", exc) from exc
        if tx is None:
            raise TransactionLookupError("get transaction", f"transaction {tx_hash} not found")

        return self.to_receipt(receipt, tx)


class PollState(str, Enum):
    WAITING = "waiting"
    CONFIRMED = "confirmed"
    TIMED_OUT = "timed-out"
    FAILED = "failed"


class ConfirmationPoller:
    """
    Wait for a broadcast transaction to be mined.

    Lookups run on a fixed interval.  "Not found" is the only error that is
    retried; anything else ends the wait.  If the next tick would land past
    the timeout, the wait ends with ``ConfirmationTimeoutError``.
    """

    def __init__(
        self,
        mapper: ReceiptMapper,
        timeout: float,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if timeout <= 0 or interval <= 0:
            raise ValueError("timeout and interval must be positive")
        self._mapper = mapper
        self.timeout = timeout
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._log = logger or logging.getLogger(__name__)
        self.last_state: Optional[PollState] = None

    def wait(self, tx_hash: str) -> TransactionReceipt:
        """
        Block until ``tx_hash`` is mined or the timeout elapses.

        Returns:
            The final receipt

        Raises:
            ConfirmationTimeoutError: If no receipt was observed in time
            TransactionLookupError: If the transaction lookup fails after the receipt was found
            NodeCallError: If a receipt lookup fails for a reason other than "not found"
        """
        self.last_state = PollState.WAITING
        started = self._clock()
        attempts = 0

        while True:
            remaining = self.timeout - (self._clock() - started)
            if remaining < self.interval:
                if remaining > 0:
                    self._sleep(remaining)
                self.last_state = PollState.TIMED_OUT
                self._log.warning("Transaction timeout: hash=%s attempts=%d", tx_hash, attempts)
                raise ConfirmationTimeoutError(tx_hash, self.timeout)

            self._sleep(self.interval)
            attempts += 1

            try:
                receipt = self._mapper.lookup(tx_hash)
            except TransactionNotFoundError:
                self._log.debug("Transaction not mined yet: hash=%s attempt=%d", tx_hash, attempts)
                continue
            except Exception:
                self.last_state = PollState.FAILED
                raise

            self.last_state = PollState.CONFIRMED
            self._log.info(
                "Transaction confirmed: hash=%s block=%s status=%s",
                tx_hash,
                receipt.block_number,
                receipt.status.value,
            )
            return receipt
