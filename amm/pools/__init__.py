"""Pool records and storage."""

from amm.pools.state import PairKey, Pool, TWAPData
from amm.pools.store import PoolStore

__all__ = ["PairKey", "Pool", "TWAPData", "PoolStore"]
