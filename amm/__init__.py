"""Constant product AMM engine with fee accounting, liquidity locks and LP earnings."""

from amm.core import AMMCore
from amm.engine import get_default_engine
from amm.errors import AMMError
from amm.fees import FeeConfig, FeeEngine
from amm.pools import PairKey, Pool

__version__ = "0.1.0"
__all__ = [
    "AMMCore",
    "AMMError",
    "FeeConfig",
    "FeeEngine",
    "PairKey",
    "Pool",
    "get_default_engine",
    "__version__",
]
