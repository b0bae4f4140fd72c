"""Fee handling for the AMM engine.

This module provides:
- FeeConfig: validated trading/protocol fee parameters
- FeeEngine: per-swap fee split and protocol fee counters
- SwapFees / ProtocolFees / FeeStats: accounting records

Usage:
    from amm.fees import FeeConfig, FeeEngine

    engine = FeeEngine(FeeConfig(fee_recipient=treasury))
    fees = engine.calculate_swap_fees(10_000)
    assert (fees.trading_fee, fees.protocol_fee, fees.lp_fee) == (30, 5, 25)
"""

from amm.fees.config import FeeConfig
from amm.fees.engine import FeeEngine
from amm.fees.result import FeeStats, ProtocolFees, SwapFees

__all__ = [
    "FeeConfig",
    "FeeEngine",
    "SwapFees",
    "ProtocolFees",
    "FeeStats",
]
