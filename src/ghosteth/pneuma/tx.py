"""
Transaction Builder - Complete, sign, and send Ethereum transactions.

Uses eth-account for signing and the node connector for everything the
intent leaves out (nonce, gas limit, fees).  Node calls run strictly in
order: nonce, gas estimate, header, fees.

Concurrent signing for the same account is not coordinated here; two
callers can observe the same pending nonce.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from eth_account import Account as EthAccount

from ..errors import BroadcastError, InvalidTransactionError, MissingFeeError, RpcError, SigningError
from ..sigil.accounts import Account
from ..utils import same_address, to_checksum_address
from .fees import FeeEstimator
from .models import SignedTransaction, Transaction, TransactionReceipt
from .receipts import ReceiptMapper
from .rpc import NodeConnector, call_node

DYNAMIC_FEE_TX_TYPE = 2


class TransactionSigner:
    def __init__(
        self,
        connector: NodeConnector,
        fees: FeeEstimator,
        account: Account,
        chain_id: int,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._connector = connector
        self._fees = fees
        self._account = account
        self._chain_id = chain_id
        self._log = logger or logging.getLogger(__name__)

    def sign(self, tx: Transaction) -> SignedTransaction:
        """
        Complete and sign a transaction intent.

        ``tx`` is mutated in place: sender, nonce, gas limit and fee fields
        are written back.

        Returns:
            The signed transaction

        Raises:
            InvalidTransactionError: If the intent is malformed
            NodeCallError: If a node call fails
            PolicyError: If gas or fees exceed the configured limits
            MissingFeeError: If no fee specification could be determined
            SigningError: If signing fails
        """
        self._prepare(tx)
        self._log.info("Starting transaction signing process: from=%s to=%s", tx.from_address, tx.to)

        if tx.nonce is None:
            tx.nonce = call_node("get nonce", self._connector.get_pending_nonce, tx.from_address)
            self._log.info("Got nonce: %d", tx.nonce)

        if tx.gas_limit is None:
            tx.gas_limit = self._fees.estimate_gas_limit(tx)

        self._log.info("Calculating optimal fees")
        self._fees.compute_fees(tx)

        envelope = self.build_envelope(tx)

        self._log.info("Signing transaction")
        try:
            signed = EthAccount.sign_transaction(envelope, self._account.private_key)
        except Exception as exc:
            raise SigningError(f"failed to sign transaction: {exc}") from exc

        result = SignedTransaction(
            hash="0x" + bytes(signed.hash).hex(),
            raw_transaction=bytes(signed.raw_transaction),
            chain_id=self._chain_id,
            nonce=tx.nonce,
            gas_limit=tx.gas_limit,
            to=tx.to,
            value=tx.value,
            data=tx.data,
            v=signed.v,
            r=signed.r,
            s=signed.s,
            gas_price=envelope.get("gasPrice"),
            max_fee_per_gas=envelope.get("maxFeePerGas"),
            max_priority_fee_per_gas=envelope.get("maxPriorityFeePerGas"),
        )
        self._log.info("Transaction signed successfully: hash=%s", result.hash)
        return result

    def build_envelope(self, tx: Transaction) -> dict[str, Any]:
        """Build the eth-account transaction dict for a completed intent."""
        if tx.has_fee_market_fields:
            self._log.info(
                "Creating EIP-1559 transaction: max_fee_per_gas=%d max_priority_fee_per_gas=%d",
                tx.max_fee_per_gas,
                tx.max_priority_fee_per_gas,
            )
            return {
                "type": DYNAMIC_FEE_TX_TYPE,
                "chainId": self._chain_id,
                "nonce": tx.nonce,
                "maxPriorityFeePerGas": tx.max_priority_fee_per_gas,
                "maxFeePerGas": tx.max_fee_per_gas,
                "gas": tx.gas_limit,
                "to": tx.to,
                "value": tx.value,
                "data": tx.data,
            }

        if tx.gas_price is not None:
            self._log.info("Creating legacy transaction: gas_price=%d", tx.gas_price)
            return {
                "chainId": self._chain_id,
                "nonce": tx.nonce,
                "gasPrice": tx.gas_price,
                "gas": tx.gas_limit,
                "to": tx.to,
                "value": tx.value,
                "data": tx.data,
            }

        raise MissingFeeError(
            "transaction must specify either EIP-1559 fields "
            "(max_fee_per_gas, max_priority_fee_per_gas) or legacy gas_price"
        )

    def _prepare(self, tx: Transaction) -> None:
        if not tx.to:
            raise InvalidTransactionError("transaction recipient is not set")
        try:
            tx.to = to_checksum_address(tx.to)
        except ValueError as exc:
            raise InvalidTransactionError(f"invalid recipient address: {tx.to}") from exc
        if tx.value < 0:
            raise InvalidTransactionError(f"transaction value must not be negative: {tx.value}")

        if tx.from_address is None:
            tx.from_address = self._account.address
        elif not same_address(tx.from_address, self._account.address):
            raise InvalidTransactionError(
                f"sender {tx.from_address} does not match signing account {self._account.address}"
            )

        if tx.chain_id is not None and tx.chain_id != self._chain_id:
            self._log.warning(
                "Ignoring transaction chain ID %d, signing for connected chain %d",
                tx.chain_id,
                self._chain_id,
            )


class Broadcaster:
    def __init__(
        self,
        connector: NodeConnector,
        mapper: ReceiptMapper,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._connector = connector
        self._mapper = mapper
        self._log = logger or logging.getLogger(__name__)

    def broadcast(self, signed: SignedTransaction) -> TransactionReceipt:
        """
        Send a signed transaction without waiting for inclusion.

        Returns:
            A pending receipt for the transaction

        Raises:
            BroadcastError: If the node rejects the transaction
        """
        self._log.info("Sending transaction to network: hash=%s", signed.hash)
        try:
            node_hash = self._connector.send_raw_transaction(signed.raw_transaction)
        except RpcError as exc:
            self._log.error("Failed to send transaction: %s", exc)
            raise BroadcastError("send transaction", exc) from exc

        if node_hash and node_hash.lower() != signed.hash.lower():
            self._log.warning("Node reported hash %s for transaction %s", node_hash, signed.hash)

        self._log.info("Transaction sent successfully: hash=%s", signed.hash)
        return self._mapper.pending(signed)
