"""
Node connector - the only way the engine talks to a chain.

``NodeConnector`` is the capability the lifecycle engine consumes;
``HttpNodeConnector`` is the production adapter, a lightweight JSON-RPC 2.0
client on httpx (no web3.py).  Tests substitute their own connector.
"""

from __future__ import annotations

import itertools
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, TypeVar, Union

import httpx

from ..errors import NodeCallError, RpcError, TransactionNotFoundError
from ..utils import bytes_to_hex, hex_to_bytes, hex_to_int, int_to_hex, to_checksum_address

BlockTag = Union[int, str]
T = TypeVar("T")

DEFAULT_RPC_TIMEOUT = 30.0


# ============ Node views ============


@dataclass(frozen=True)
class BlockHeader:
    number: int
    gas_limit: int
    base_fee_per_gas: Optional[int] = None

    @classmethod
    def from_rpc(cls, payload: dict[str, Any]) -> "BlockHeader":
        return cls(
            number=hex_to_int(payload.get("number")) or 0,
            gas_limit=hex_to_int(payload.get("gasLimit")) or 0,
            base_fee_per_gas=hex_to_int(payload.get("baseFeePerGas")),
        )


@dataclass(frozen=True)
class LogEntry:
    address: str
    topics: tuple[str, ...]
    data: bytes
    log_index: Optional[int] = None

    @classmethod
    def from_rpc(cls, payload: dict[str, Any]) -> "LogEntry":
        return cls(
            address=to_checksum_address(payload["address"]),
            topics=tuple(payload.get("topics") or ()),
            data=hex_to_bytes(payload.get("data")),
            log_index=hex_to_int(payload.get("logIndex")),
        )


@dataclass(frozen=True)
class NodeTransaction:
    hash: str
    from_address: Optional[str]
    to: Optional[str]
    nonce: int
    value: int
    block_number: Optional[int] = None

    @classmethod
    def from_rpc(cls, payload: dict[str, Any]) -> "NodeTransaction":
        sender = payload.get("from")
        recipient = payload.get("to")
        return cls(
            hash=payload["hash"],
            from_address=to_checksum_address(sender) if sender else None,
            to=to_checksum_address(recipient) if recipient else None,
            nonce=hex_to_int(payload.get("nonce")) or 0,
            value=hex_to_int(payload.get("value")) or 0,
            block_number=hex_to_int(payload.get("blockNumber")),
        )


@dataclass(frozen=True)
class NodeReceipt:
    transaction_hash: str
    status: int
    block_number: int
    gas_used: int
    logs: tuple[LogEntry, ...] = ()
    contract_address: Optional[str] = None

    @classmethod
    def from_rpc(cls, payload: dict[str, Any]) -> "NodeReceipt":
        contract = payload.get("contractAddress")
        return cls(
            transaction_hash=payload["transactionHash"],
            status=hex_to_int(payload.get("status")) or 0,
            block_number=hex_to_int(payload.get("blockNumber")) or 0,
            gas_used=hex_to_int(payload.get("gasUsed")) or 0,
            logs=tuple(LogEntry.from_rpc(entry) for entry in payload.get("logs") or ()),
            contract_address=to_checksum_address(contract) if contract else None,
        )


# ============ Capability ============


class NodeConnector(Protocol):
    """Remote node capability.  Failures surface as ``RpcError``."""

    def chain_id(self) -> int:
        ...

    def get_balance(self, address: str, block: BlockTag = "latest") -> int:
        ...

    def get_pending_nonce(self, address: str) -> int:
        ...

    def estimate_gas(self, from_address: str, to: str, value: int, data: bytes) -> int:
        ...

    def get_latest_header(self) -> BlockHeader:
        ...

    def suggest_gas_price(self) -> int:
        ...

    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        ...

    def get_transaction(self, tx_hash: str) -> Optional[NodeTransaction]:
        """Return the transaction, or None when the node does not know it."""
        ...

    def get_transaction_receipt(self, tx_hash: str) -> NodeReceipt:
        """Raises TransactionNotFoundError while the transaction is not mined."""
        ...

    def close(self) -> None:
        ...


# ============ JSON-RPC adapter ============


class HttpNodeConnector:
    """
    JSON-RPC over HTTP.

    HTTP_PROXY / HTTPS_PROXY are honoured through httpx's environment
    handling.  ``close()`` is idempotent.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = DEFAULT_RPC_TIMEOUT,
        client: Optional[httpx.Client] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self._log = logger or logging.getLogger(__name__)
        self._client: Optional[httpx.Client] = client or httpx.Client(timeout=timeout)
        self._ids = itertools.count(1)

        http_proxy = os.environ.get("HTTP_PROXY")
        https_proxy = os.environ.get("HTTPS_PROXY")
        if http_proxy or https_proxy:
            self._log.info(
                "Using proxy for Ethereum RPC: http_proxy=%s https_proxy=%s",
                http_proxy,
                https_proxy,
            )

    def _call(self, method: str, params: list) -> Any:
        """
        Make a JSON-RPC call.

        Returns:
            Result field from the RPC response

        Raises:
            RpcError: If the transport fails or the node returns an error object
        """
        if self._client is None:
            raise RpcError(f"{method}: connector is closed")

        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }

        try:
            response = self._client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise RpcError(f"{method}: {exc}") from exc
        except ValueError as exc:
            raise RpcError(f"{method}: invalid JSON response") from exc

        if "error" in data and data["error"] is not None:
            error = data["error"]
            if isinstance(error, dict):
                raise RpcError(f"{method}: {error.get('message', error)}", code=error.get("code"))
            raise RpcError(f"{method}: {error}")

        return data.get("result")

    def _quantity(self, method: str, params: list) -> int:
        result = self._call(method, params)
        if result is None:
            raise RpcError(f"{method}: empty result")
        try:
            return int(result, 16)
        except (TypeError, ValueError) as exc:
            raise RpcError(f"{method}: invalid quantity {result!r}") from exc

    def chain_id(self) -> int:
        return self._quantity("eth_chainId", [])

    def get_balance(self, address: str, block: BlockTag = "latest") -> int:
        tag = int_to_hex(block) if isinstance(block, int) else block
        return self._quantity("eth_getBalance", [address, tag])

    def get_pending_nonce(self, address: str) -> int:
        return self._quantity("eth_getTransactionCount", [address, "pending"])

    def estimate_gas(self, from_address: str, to: str, value: int, data: bytes) -> int:
        call = {
            "from": from_address,
            "to": to,
            "value": int_to_hex(value),
        }
        if data:
            call["data"] = bytes_to_hex(data)
        return self._quantity("eth_estimateGas", [call])

    def get_latest_header(self) -> BlockHeader:
        block = self._call("eth_getBlockByNumber", ["latest", False])
        if block is None:
            raise RpcError("eth_getBlockByNumber: latest block not available")
        return BlockHeader.from_rpc(block)

    def suggest_gas_price(self) -> int:
        return self._quantity("eth_gasPrice", [])

    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        return self._call("eth_sendRawTransaction", [bytes_to_hex(raw_transaction)])

    def get_transaction(self, tx_hash: str) -> Optional[NodeTransaction]:
        result = self._call("eth_getTransactionByHash", [tx_hash])
        if result is None:
            return None
        return NodeTransaction.from_rpc(result)

    def get_transaction_receipt(self, tx_hash: str) -> NodeReceipt:
        result = self._call("eth_getTransactionReceipt", [tx_hash])
        if result is None:
            raise TransactionNotFoundError(tx_hash)
        return NodeReceipt.from_rpc(result)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


def call_node(operation: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a connector call, wrapping ``RpcError`` as ``NodeCallError(operation)``.

    ``TransactionNotFoundError`` is already an operation-level error and passes
    through unchanged.
    """
    try:
        return func(*args, **kwargs)
    except TransactionNotFoundError:
        raise
    except RpcError as exc:
        raise NodeCallError(operation, exc) from exc
