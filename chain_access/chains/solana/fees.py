"""Priority fee estimation with a static fallback."""
from __future__ import annotations

import logging
import statistics
from typing import Protocol

from ...config import ChainConfig
from ...models import FeeEstimate

logger = logging.getLogger(__name__)


class PrioritizationFeeSource(Protocol):
    async def get_recent_prioritization_fees(
        self, addresses: list[str] | None = None
    ) -> list[dict]: ...


class FeeEstimator:
    """Returns (priority fee, compute limit) for a transaction.

    The priority fee is the median of the non-zero fees recently paid by
    transactions touching the same writable accounts. Any failure to obtain
    one falls back to the configured default; estimation never fails a
    transfer. The compute limit always comes from configuration.
    """

    def __init__(self, rpc: PrioritizationFeeSource, config: ChainConfig) -> None:
        self._rpc = rpc
        self.default_priority_fee = config.priority_fee
        self.compute_limit = config.compute_limit

    def fallback(self) -> FeeEstimate:
        return FeeEstimate(
            priority_fee=self.default_priority_fee,
            compute_limit=self.compute_limit,
            live=False,
        )

    async def estimate(self, writable_accounts: list[str] | None = None) -> FeeEstimate:
        try:
            samples = await self._rpc.get_recent_prioritization_fees(writable_accounts)
            fees = [int(s["prioritizationFee"]) for s in samples]
        except Exception as e:
            logger.warning("Priority fee query failed, using default %s: %s",
                           self.default_priority_fee, e)
            return self.fallback()

        paid = [f for f in fees if f > 0]
        if not paid:
            logger.warning("No recent priority fees observed, using default %s",
                           self.default_priority_fee)
            return self.fallback()

        fee = int(statistics.median_low(paid))
        logger.debug("Live priority fee %s over %d samples", fee, len(paid))
        return FeeEstimate(priority_fee=fee, compute_limit=self.compute_limit, live=True)
