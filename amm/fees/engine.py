"""Swap fee calculation and protocol fee accounting."""

from __future__ import annotations

import copy

import structlog

from amm.constants import BPS_DENOMINATOR
from amm.errors import NoFeesToCollect
from amm.fees.config import FeeConfig
from amm.fees.result import FeeStats, ProtocolFees, SwapFees
from amm.math.pair_math import calculate_protocol_fee, mul_div
from amm.pools.state import PairKey
from amm.safe_int import S

logger = structlog.get_logger()


class FeeEngine:
    """Holds the fee configuration and per-pool protocol fee counters.

    Every swap's trading fee is split in two: the protocol share is
    carved out and accumulated here until collected; the LP share is left
    inside the pool's reserves.
    """

    def __init__(self, config: FeeConfig) -> None:
        """Initialize with a fee configuration.

        Raises:
            InvalidFeeConfiguration: If the configuration is out of bounds
        """
        self._config = config.validate()
        self._accumulated: dict[PairKey, ProtocolFees] = {}
        self._stats: dict[PairKey, FeeStats] = {}

    @property
    def config(self) -> FeeConfig:
        return self._config

    def set_config(self, config: FeeConfig) -> FeeConfig:
        """Replace the configuration after validating it.

        Raises:
            InvalidFeeConfiguration: If the configuration is out of bounds
        """
        self._config = config.validate()
        logger.debug(
            "fee_config_set",
            trading_fee_bps=self._config.trading_fee_bps,
            protocol_fee_bps=self._config.protocol_fee_bps,
            fees_enabled=self._config.fees_enabled,
        )
        return self._config

    def calculate_swap_fees(self, amount_in: int) -> SwapFees:
        """Split the trading fee for a swap of amount_in."""
        if not self._config.fees_enabled:
            return SwapFees.zero()
        trading_fee = mul_div(amount_in, self._config.trading_fee_bps, BPS_DENOMINATOR)
        protocol_fee = calculate_protocol_fee(trading_fee, self._config.protocol_fee_bps)
        lp_fee = (S(trading_fee) - protocol_fee).value
        return SwapFees(trading_fee=trading_fee, protocol_fee=protocol_fee, lp_fee=lp_fee)

    @property
    def effective_fee_bps(self) -> int:
        """Trading fee actually charged, 0 while fees are disabled."""
        return self._config.trading_fee_bps if self._config.fees_enabled else 0

    def process_swap_fees(self, key: PairKey, token_in: str, fees: SwapFees, now: int) -> None:
        """Record a swap's fees against the input side of the pool.

        Only the protocol share is set aside. A zero trading fee is a no-op.
        """
        if fees.is_zero:
            return
        accumulated = self._accumulated.setdefault(key, ProtocolFees())
        stats = self._stats.setdefault(key, FeeStats())
        if key.is_token_a(token_in):
            accumulated.amount_a += fees.protocol_fee
            stats.total_trading_fees_a += fees.trading_fee
        else:
            accumulated.amount_b += fees.protocol_fee
            stats.total_trading_fees_b += fees.trading_fee
        stats.last_updated = now

    def accumulated(self, key: PairKey) -> ProtocolFees:
        """Protocol fees awaiting collection (copy)."""
        return copy.copy(self._accumulated.get(key, ProtocolFees()))

    def stats(self, key: PairKey) -> FeeStats:
        return copy.copy(self._stats.get(key, FeeStats()))

    def has_fees(self, key: PairKey) -> bool:
        return not self._accumulated.get(key, ProtocolFees()).is_empty

    def take_protocol_fees(self, key: PairKey) -> ProtocolFees:
        """Zero the pool's counters and return what they held.

        The caller pays the returned amounts to the fee recipient.

        Raises:
            NoFeesToCollect: If both counters are zero
        """
        accumulated = self._accumulated.get(key)
        if accumulated is None or accumulated.is_empty:
            raise NoFeesToCollect(f"No protocol fees accumulated for {key}")
        taken = ProtocolFees(accumulated.amount_a, accumulated.amount_b)
        accumulated.amount_a = 0
        accumulated.amount_b = 0
        return taken

    # --- Transaction support ---

    def checkpoint(self, key: PairKey) -> tuple[ProtocolFees | None, FeeStats | None]:
        return copy.deepcopy((self._accumulated.get(key), self._stats.get(key)))

    def restore(self, key: PairKey, saved: tuple[ProtocolFees | None, FeeStats | None]) -> None:
        accumulated, stats = saved
        if accumulated is None:
            self._accumulated.pop(key, None)
        else:
            self._accumulated[key] = accumulated
        if stats is None:
            self._stats.pop(key, None)
        else:
            self._stats[key] = stats
