"""
Error taxonomy for the ghosteth transaction lifecycle.

Every error carries a CLI ``exit_code`` so commands can translate a failure
into a process status without inspecting the message.
"""

from __future__ import annotations

from typing import Optional


class GhostEthError(RuntimeError):
    exit_code: int = 1


# ============ Startup ============


class ConfigurationError(GhostEthError):
    exit_code = 2


class NodeConnectionError(GhostEthError):
    exit_code = 3


# ============ Per-call validation ============


class ValidationError(GhostEthError):
    exit_code = 4


class AccountError(ValidationError):
    pass


class InvalidTransactionError(ValidationError):
    pass


class MissingFeeError(ValidationError):
    pass


class SigningError(GhostEthError):
    exit_code = 4


# ============ Policy ============


class PolicyError(GhostEthError):
    """Raised when a computed value is outside what we are willing to pay."""

    exit_code = 5

    def __init__(self, message: str, value: int, limit: int) -> None:
        super().__init__(message)
        self.value = value
        self.limit = limit


class ExcessiveGasError(PolicyError):
    pass


class ExcessiveFeeError(PolicyError):
    pass


# ============ Node ============


class RpcError(GhostEthError):
    """A JSON-RPC call failed, either at transport level or with an error object."""

    exit_code = 6

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code


class NodeCallError(GhostEthError):
    """A node call failed; ``operation`` names what we were trying to do."""

    exit_code = 6

    def __init__(self, operation: str, cause: object) -> None:
        super().__init__(f"failed to {operation}: {cause}")
        self.operation = operation
        self.cause = cause


class BroadcastError(NodeCallError):
    pass


class TransactionLookupError(NodeCallError):
    pass


class TransactionNotFoundError(NodeCallError):
    """The node has no receipt for the hash (pending or unknown)."""

    def __init__(self, tx_hash: str) -> None:
        super().__init__("get transaction receipt", f"transaction {tx_hash} not found or pending")
        self.tx_hash = tx_hash


class ConfirmationTimeoutError(GhostEthError):
    """The transaction was not observed as mined in time.

    This is inconclusive: the transaction may still be included later.
    """

    exit_code = 7

    def __init__(self, tx_hash: str, timeout: float) -> None:
        super().__init__(f"transaction timeout: {tx_hash} not confirmed within {timeout}s")
        self.tx_hash = tx_hash
        self.timeout = timeout


__all__ = [
    "GhostEthError",
    "ConfigurationError",
    "NodeConnectionError",
    "ValidationError",
    "AccountError",
    "InvalidTransactionError",
    "MissingFeeError",
    "SigningError",
    "PolicyError",
    "ExcessiveGasError",
    "ExcessiveFeeError",
    "RpcError",
    "NodeCallError",
    "BroadcastError",
    "TransactionLookupError",
    "TransactionNotFoundError",
    "ConfirmationTimeoutError",
]
