"""Pool storage for the AMM engine.

PoolStore owns every Pool record, keyed by canonical PairKey. Reserves are
only ever written through ``update_reserves``, which also advances the
cumulative price oracle.
"""

from __future__ import annotations

import copy
import threading

import structlog

from amm.errors import PoolAlreadyExists, PoolDoesNotExist
from amm.pools.state import PairKey, Pool
from amm.safe_int import S

logger = structlog.get_logger()


class PoolStore:
    """Repository of pools keyed by canonical token pair."""

    def __init__(self) -> None:
        self._pools: dict[PairKey, Pool] = {}
        # Insertion order of pairs, for enumeration
        self._pairs: list[PairKey] = []
        self._create_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._pools)

    def __contains__(self, key: PairKey) -> bool:
        return key in self._pools

    @property
    def pairs(self) -> list[PairKey]:
        return list(self._pairs)

    def get(self, key: PairKey) -> Pool | None:
        return self._pools.get(key)

    def require(self, key: PairKey) -> Pool:
        """Get the pool for a key.

        Raises:
            PoolDoesNotExist: If the pair has no pool
        """
        pool = self._pools.get(key)
        if pool is None:
            raise PoolDoesNotExist(f"No pool for {key}")
        return pool

    def create(self, key: PairKey, now: int) -> Pool:
        """Create an empty pool for key.

        Raises:
            PoolAlreadyExists: If the pair already has a pool
        """
        with self._create_lock:
            if key in self._pools:
                raise PoolAlreadyExists(f"Pool already exists for {key}")
            pool = Pool(key=key, created_at=now)
            pool.twap.block_timestamp_last = now
            self._pools[key] = pool
            self._pairs.append(key)
        logger.debug("pool_record_created", pair=str(key))
        return pool

    def update_reserves(self, pool: Pool, reserve_a: int, reserve_b: int, now: int) -> None:
        """Overwrite reserves and advance the cumulative price oracle.

        Prices accumulate over the elapsed interval only when time moved
        forward and both prior reserves were non-zero. The oracle timestamp
        never goes backwards.
        """
        S(reserve_a).to_uint256()
        S(reserve_b).to_uint256()
        twap = pool.twap
        elapsed = now - twap.block_timestamp_last
        if elapsed > 0 and pool.reserve_a != 0 and pool.reserve_b != 0:
            twap.price0_cumulative_last += (S(pool.reserve_b) * elapsed // pool.reserve_a).value
            twap.price1_cumulative_last += (S(pool.reserve_a) * elapsed // pool.reserve_b).value
        if now > twap.block_timestamp_last:
            twap.block_timestamp_last = now

        pool.reserve_a = reserve_a
        pool.reserve_b = reserve_b
        pool.k_last = reserve_a * reserve_b

    # --- Transaction support ---

    def checkpoint(self, key: PairKey) -> Pool | None:
        """Copy of the pool record for later restore."""
        pool = self._pools.get(key)
        return copy.deepcopy(pool) if pool is not None else None

    def restore(self, key: PairKey, saved: Pool | None) -> None:
        """Restore a pool record captured by checkpoint.

        A pool that did not exist at checkpoint time is removed again.
        Restoring in place keeps references held by callers valid.
        """
        with self._create_lock:
            current = self._pools.get(key)
            if saved is None:
                if current is not None:
                    del self._pools[key]
                    self._pairs.remove(key)
                return
            if current is None:
                self._pools[key] = saved
                self._pairs.append(key)
                return
            current.__dict__.update(copy.deepcopy(saved).__dict__)
