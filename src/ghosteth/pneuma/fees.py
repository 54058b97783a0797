"""
Fee Estimator - gas limit and fee policy.

Decides how much gas to request and what to pay for it, without overpaying
and without asking for more than a block can hold:

- Gas limit: node estimate times a buffer (simple transfers vs. contract
  calls), capped at 2/3 of the latest block gas limit.
- Fees: on EIP-1559 networks a fixed per-chain priority fee and a max fee
  of ``2 * baseFee + priorityFee``; on legacy networks the node's suggested
  gas price.  The max fee is then checked against a configured ceiling.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..config import Settings
from ..errors import ExcessiveFeeError, ExcessiveGasError, RpcError
from .models import Transaction
from .rpc import NodeConnector, call_node

BLOCK_GAS_LIMIT_NUMERATOR = 2
BLOCK_GAS_LIMIT_DENOMINATOR = 3
BASE_FEE_MULTIPLIER = 2


class FeeEstimator:
    def __init__(
        self,
        connector: NodeConnector,
        settings: Settings,
        chain_id: int,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._connector = connector
        self._settings = settings
        self._chain_id = chain_id
        self._log = logger or logging.getLogger(__name__)

    def gas_buffer(self, tx: Transaction) -> float:
        if tx.is_simple:
            return self._settings.gas_limit_buffer_simple
        return self._settings.gas_limit_buffer_complex

    def estimate_gas_limit(self, tx: Transaction) -> int:
        """
        Estimate a buffered gas limit for a transaction.

        The block cap is best effort: if the latest header cannot be fetched
        the buffered estimate is accepted as-is.

        Raises:
            NodeCallError: If the node cannot estimate gas
            ExcessiveGasError: If the buffered estimate exceeds 2/3 of the block gas limit
        """
        estimated = call_node(
            "estimate gas",
            self._connector.estimate_gas,
            tx.from_address,
            tx.to,
            tx.value,
            tx.data,
        )

        buffer = self.gas_buffer(tx)
        # float multiply then truncate: 21000 * 1.1 must give 23100
        gas_limit = int(estimated * buffer)
        self._log.info(
            "Gas limit calculated: estimated=%d buffer=%s with_buffer=%d",
            estimated,
            buffer,
            gas_limit,
        )

        try:
            header = self._connector.get_latest_header()
        except RpcError as exc:
            self._log.warning("Skipping block gas limit check, header unavailable: %s", exc)
            return gas_limit

        if header.gas_limit > 0:
            max_allowed = header.gas_limit * BLOCK_GAS_LIMIT_NUMERATOR // BLOCK_GAS_LIMIT_DENOMINATOR
            if gas_limit > max_allowed:
                self._log.error("Gas limit too high: gas_limit=%d max_allowed=%d", gas_limit, max_allowed)
                raise ExcessiveGasError(
                    f"gas limit {gas_limit} exceeds maximum allowed {max_allowed}",
                    value=gas_limit,
                    limit=max_allowed,
                )

        return gas_limit

    def priority_fee(self) -> int:
        return self._settings.priority_fee_for(self._chain_id)

    def compute_fees(self, tx: Transaction) -> None:
        """
        Fill in fee fields on ``tx`` from current network conditions.

        Unlike gas estimation, a header failure here is fatal: without it we
        cannot tell which pricing model the network uses.

        Raises:
            NodeCallError: If the header or suggested gas price cannot be fetched
            ExcessiveFeeError: If the max fee per gas exceeds the configured ceiling
        """
        header = call_node("get latest header", self._connector.get_latest_header)

        if header.base_fee_per_gas is not None and not tx.has_fee_market_fields:
            priority_fee = self.priority_fee()
            tx.max_priority_fee_per_gas = priority_fee
            tx.max_fee_per_gas = BASE_FEE_MULTIPLIER * header.base_fee_per_gas + priority_fee
            self._log.info(
                "Using EIP-1559 fee calculation: base_fee=%d priority_fee=%d max_fee=%d",
                header.base_fee_per_gas,
                priority_fee,
                tx.max_fee_per_gas,
            )
        else:
            # also reached when both fee-market fields were supplied; they are kept
            self._log.info("Using legacy fee calculation")
            if tx.gas_price is None:
                tx.gas_price = call_node("get gas price", self._connector.suggest_gas_price)
                self._log.info("Using suggested gas price: %d", tx.gas_price)

        self.validate_fees(tx)

    def validate_fees(self, tx: Transaction) -> None:
        if tx.max_fee_per_gas is None:
            return

        ceiling = self._settings.max_fee_per_gas
        if tx.max_fee_per_gas > ceiling:
            raise ExcessiveFeeError(
                f"max fee too high: {tx.max_fee_per_gas} wei (ceiling {ceiling} wei)",
                value=tx.max_fee_per_gas,
                limit=ceiling,
            )


__all__ = ["FeeEstimator"]
