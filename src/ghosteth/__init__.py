__all__ = [
    # Configuration
    "Settings",
    # Accounts
    "Account",
    "load_accounts",
    # Lifecycle
    "EthereumClient",
    "FeeEstimator",
    "TransactionSigner",
    "Broadcaster",
    "ReceiptMapper",
    "ConfirmationPoller",
    "PollState",
    # Models
    "Transaction",
    "SignedTransaction",
    "TransactionReceipt",
    "ReceiptStatus",
    # Node
    "NodeConnector",
    "HttpNodeConnector",
    "BlockHeader",
    "NodeTransaction",
    "NodeReceipt",
    "LogEntry",
    # Errors
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

from .config import Settings
from .errors import (
    AccountError,
    BroadcastError,
    ConfigurationError,
    ConfirmationTimeoutError,
    ExcessiveFeeError,
    ExcessiveGasError,
    GhostEthError,
    InvalidTransactionError,
    MissingFeeError,
    NodeCallError,
    NodeConnectionError,
    PolicyError,
    RpcError,
    SigningError,
    TransactionLookupError,
    TransactionNotFoundError,
    ValidationError,
)
from .sigil.accounts import Account, load_accounts
from .pneuma.client import EthereumClient
from .pneuma.fees import FeeEstimator
from .pneuma.models import ReceiptStatus, SignedTransaction, Transaction, TransactionReceipt
from .pneuma.receipts import ConfirmationPoller, PollState, ReceiptMapper
from .pneuma.rpc import BlockHeader, HttpNodeConnector, LogEntry, NodeConnector, NodeReceipt, NodeTransaction
from .pneuma.tx import Broadcaster, TransactionSigner
