"""JSON-RPC adapter against a mocked HTTP transport."""

from __future__ import annotations

import json

import httpx
import pytest

from conftest import RECIPIENT, RECIPIENT_CHECKSUM
from ghosteth.errors import NodeCallError, RpcError, TransactionNotFoundError
from ghosteth.pneuma.rpc import HttpNodeConnector, call_node

TX_HASH = "0x" + "cd" * 32
RPC_URL = "http://node.test"


class RpcStub:
    """Answers JSON-RPC requests from a method -> result table."""

    def __init__(self, results: dict) -> None:
        self.results = results
        self.requests: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        answer = self.results[body["method"]]
        if isinstance(answer, httpx.Response):
            return answer
        if isinstance(answer, dict) and "error" in answer:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": answer["error"]})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": answer})


def _connector(results: dict) -> tuple[HttpNodeConnector, RpcStub]:
    stub = RpcStub(results)
    client = httpx.Client(transport=httpx.MockTransport(stub))
    return HttpNodeConnector(RPC_URL, client=client), stub


class TestQuantities:
    def test_chain_id(self) -> None:
        node, stub = _connector({"eth_chainId": "0x2105"})
        assert node.chain_id() == 8453
        assert stub.requests[0]["jsonrpc"] == "2.0"
        assert stub.requests[0]["params"] == []

    def test_balance_with_block_number(self) -> None:
        node, stub = _connector({"eth_getBalance": "0xde0b6b3a7640000"})
        assert node.get_balance(RECIPIENT, 16) == 10**18
        assert stub.requests[0]["params"] == [RECIPIENT, "0x10"]

    def test_pending_nonce(self) -> None:
        node, stub = _connector({"eth_getTransactionCount": "0x7"})
        assert node.get_pending_nonce(RECIPIENT) == 7
        assert stub.requests[0]["params"] == [RECIPIENT, "pending"]

    def test_estimate_gas_omits_empty_data(self) -> None:
        node, stub = _connector({"eth_estimateGas": "0x5208"})
        assert node.estimate_gas(RECIPIENT, RECIPIENT, 1, b"") == 21_000
        assert stub.requests[0]["params"] == [{"from": RECIPIENT, "to": RECIPIENT, "value": "0x1"}]

    def test_estimate_gas_with_data(self) -> None:
        node, stub = _connector({"eth_estimateGas": "0xc350"})
        node.estimate_gas(RECIPIENT, RECIPIENT, 0, b"\xa9\x05")
        assert stub.requests[0]["params"][0]["data"] == "0xa905"

    def test_ids_increase(self) -> None:
        node, stub = _connector({"eth_gasPrice": "0x1"})
        node.suggest_gas_price()
        node.suggest_gas_price()
        assert [r["id"] for r in stub.requests] == [1, 2]


class TestViews:
    def test_latest_header(self) -> None:
        node, _ = _connector(
            {
                "eth_getBlockByNumber": {
                    "number": "0x10",
                    "gasLimit": "0x1c9c380",
                    "baseFeePerGas": "0x64",
                }
            }
        )
        header = node.get_latest_header()
        assert (header.number, header.gas_limit, header.base_fee_per_gas) == (16, 30_000_000, 100)

    def test_legacy_header_has_no_base_fee(self) -> None:
        node, _ = _connector({"eth_getBlockByNumber": {"number": "0x1", "gasLimit": "0x1"}})
        assert node.get_latest_header().base_fee_per_gas is None

    def test_missing_latest_block(self) -> None:
        node, _ = _connector({"eth_getBlockByNumber": None})
        with pytest.raises(RpcError):
            node.get_latest_header()

    def test_send_raw_transaction(self) -> None:
        node, stub = _connector({"eth_sendRawTransaction": TX_HASH})
        assert node.send_raw_transaction(b"\x02\xf8") == TX_HASH
        assert stub.requests[0]["params"] == ["0x02f8"]

    def test_transaction(self) -> None:
        node, _ = _connector(
            {
                "eth_getTransactionByHash": {
                    "hash": TX_HASH,
                    "from": RECIPIENT.lower(),
                    "to": RECIPIENT.lower(),
                    "nonce": "0x3",
                    "value": "0x0",
                    "blockNumber": None,
                }
            }
        )
        tx = node.get_transaction(TX_HASH)
        assert tx.to == RECIPIENT_CHECKSUM
        assert tx.nonce == 3
        assert tx.block_number is None

    def test_unknown_transaction(self) -> None:
        node, _ = _connector({"eth_getTransactionByHash": None})
        assert node.get_transaction(TX_HASH) is None

    def test_receipt(self) -> None:
        node, _ = _connector(
            {
                "eth_getTransactionReceipt": {
                    "transactionHash": TX_HASH,
                    "status": "0x0",
                    "blockNumber": "0x7b",
                    "gasUsed": "0x5208",
                    "logs": [
                        {
                            "address": RECIPIENT.lower(),
                            "topics": ["0x" + "11" * 32],
                            "data": "0x01",
                            "logIndex": "0x0",
                        }
                    ],
                    "contractAddress": None,
                }
            }
        )
        receipt = node.get_transaction_receipt(TX_HASH)
        assert receipt.status == 0
        assert receipt.block_number == 123
        assert receipt.gas_used == 21_000
        assert receipt.logs[0].address == RECIPIENT_CHECKSUM
        assert receipt.logs[0].data == b"\x01"

    def test_receipt_not_found(self) -> None:
        node, _ = _connector({"eth_getTransactionReceipt": None})
        with pytest.raises(TransactionNotFoundError):
            node.get_transaction_receipt(TX_HASH)


class TestFailures:
    def test_error_object(self) -> None:
        node, _ = _connector(
            {"eth_sendRawTransaction": {"error": {"code": -32000, "message": "nonce too low"}}}
        )
        with pytest.raises(RpcError, match="nonce too low") as excinfo:
            node.send_raw_transaction(b"\x01")
        assert excinfo.value.code == -32000

    def test_http_status(self) -> None:
        node, _ = _connector({"eth_chainId": httpx.Response(502, text="bad gateway")})
        with pytest.raises(RpcError, match="eth_chainId"):
            node.chain_id()

    def test_invalid_json(self) -> None:
        node, _ = _connector({"eth_chainId": httpx.Response(200, text="<html>")})
        with pytest.raises(RpcError, match="invalid JSON"):
            node.chain_id()

    def test_transport_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        node = HttpNodeConnector(RPC_URL, client=httpx.Client(transport=httpx.MockTransport(refuse)))
        with pytest.raises(RpcError, match="connection refused"):
            node.chain_id()

    @pytest.mark.parametrize(
        "method, call",
        [
            ("eth_chainId", lambda node: node.chain_id()),
            ("eth_getBalance", lambda node: node.get_balance(RECIPIENT)),
            ("eth_getTransactionCount", lambda node: node.get_pending_nonce(RECIPIENT)),
            ("eth_estimateGas", lambda node: node.estimate_gas(RECIPIENT, RECIPIENT, 0, b"")),
            ("eth_gasPrice", lambda node: node.suggest_gas_price()),
        ],
    )
    def test_null_quantity(self, method: str, call) -> None:
        node, _ = _connector({method: None})
        with pytest.raises(RpcError, match="empty result"):
            call(node)

    def test_malformed_quantity(self) -> None:
        node, _ = _connector({"eth_chainId": "0xzz"})
        with pytest.raises(RpcError, match="invalid quantity"):
            node.chain_id()


class TestClose:
    def test_close_is_idempotent(self) -> None:
        node, _ = _connector({"eth_chainId": "0x1"})
        node.close()
        node.close()
        with pytest.raises(RpcError, match="closed"):
            node.chain_id()


class TestCallNode:
    def test_wraps_rpc_error(self) -> None:
        def failing():
            raise RpcError("boom")

        with pytest.raises(NodeCallError, match="failed to get nonce: boom") as excinfo:
            call_node("get nonce", failing)
        assert isinstance(excinfo.value.cause, RpcError)

    def test_not_found_passes_through(self) -> None:
        def missing():
            raise TransactionNotFoundError(TX_HASH)

        with pytest.raises(TransactionNotFoundError):
            call_node("get transaction receipt", missing)

    def test_returns_result(self) -> None:
        assert call_node("get balance", lambda address: 5, RECIPIENT) == 5
