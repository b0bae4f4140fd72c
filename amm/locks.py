"""Time-locked liquidity with lazy expiry.

Each (pool, owner) holds at most one lock record. A record moves
NoLock -> Active -> Inactive, where the last step happens either lazily,
on the first withdrawal check at or after ``unlock_time``, or through an
explicit manual unlock. Both paths flip the same state and emit a single
LiquidityUnlocked event; afterwards the record is inert.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass

import structlog

from amm.errors import InvalidLockData, LiquidityIsLocked, ZeroAmount
from amm.events import EventLog
from amm.models.events import LiquidityLocked, LiquidityUnlocked
from amm.models.types import normalize_address
from amm.pools.state import PairKey
from amm.safe_int import S

logger = structlog.get_logger()


@dataclass
class LiquidityLock:
    """Locked LP shares for one owner of one pool."""

    project_id: int
    project_owner: str
    unlock_time: int
    locked_lp_amount: int
    is_active: bool = True

    def is_expired(self, now: int) -> bool:
        return now >= self.unlock_time


class LockManager:
    """Per (pool, owner) liquidity locks."""

    def __init__(self, events: EventLog) -> None:
        self._events = events
        self._locks: dict[PairKey, dict[str, LiquidityLock]] = {}

    def create(
        self,
        key: PairKey,
        owner: str,
        lp_amount: int,
        duration: int,
        now: int,
        project_id: int = 0,
    ) -> LiquidityLock:
        """Lock lp_amount of owner's shares until now + duration.

        Any existing record for (pool, owner) is replaced, even if it is
        still active.

        Raises:
            InvalidLockData: If duration is not positive
            ZeroAmount: If lp_amount is not positive
        """
        if duration <= 0:
            raise InvalidLockData(f"Lock duration must be positive, got {duration}")
        if lp_amount <= 0:
            raise ZeroAmount("Cannot lock zero LP")

        owner = normalize_address(owner)
        pool_locks = self._locks.setdefault(key, {})
        previous = pool_locks.get(owner)
        if previous is not None and previous.is_active:
            logger.warning(
                "active_lock_overwritten",
                pair=str(key),
                owner=owner[-8:],
                previous_amount=previous.locked_lp_amount,
                previous_unlock_time=previous.unlock_time,
            )

        lock = LiquidityLock(
            project_id=project_id,
            project_owner=owner,
            unlock_time=(S(now) + duration).to_uint256(),
            locked_lp_amount=lp_amount,
        )
        pool_locks[owner] = lock
        self._events.emit(
            LiquidityLocked(
                timestamp=now,
                project_id=project_id,
                token_a=key.token_a,
                token_b=key.token_b,
                owner=owner,
                amount=lp_amount,
                unlock_time=lock.unlock_time,
            )
        )
        return copy.copy(lock)

    def get(self, key: PairKey, owner: str) -> LiquidityLock | None:
        lock = self._locks.get(key, {}).get(normalize_address(owner))
        return copy.copy(lock) if lock is not None else None

    def is_locked(self, key: PairKey, owner: str, now: int) -> bool:
        """True while an active lock has not yet reached its unlock time."""
        lock = self._locks.get(key, {}).get(normalize_address(owner))
        return lock is not None and lock.is_active and not lock.is_expired(now)

    def withdrawable(self, key: PairKey, owner: str, balance: int, now: int) -> int:
        """LP amount owner may withdraw right now out of balance."""
        lock = self._locks.get(key, {}).get(normalize_address(owner))
        if lock is None or not lock.is_active or lock.is_expired(now):
            return balance
        return S(balance).saturating_sub(lock.locked_lp_amount).value

    def check_on_withdraw(
        self,
        key: PairKey,
        owner: str,
        requested_amount: int,
        current_balance: int,
        now: int,
    ) -> None:
        """Gate a withdrawal against owner's lock.

        An expired active lock is released here, so no separate unlock call
        is needed before withdrawing.

        Raises:
            LiquidityIsLocked: If the request dips into still-locked shares
        """
        lock = self._locks.get(key, {}).get(normalize_address(owner))
        if lock is None or not lock.is_active:
            return

        if lock.is_expired(now):
            self._release(key, lock, now)
            logger.info("lock_expired_on_withdraw", pair=str(key), owner=lock.project_owner[-8:])
            return

        withdrawable = S(current_balance).saturating_sub(lock.locked_lp_amount).value
        if requested_amount > withdrawable:
            raise LiquidityIsLocked(
                f"Requested {requested_amount} LP but only {withdrawable} is withdrawable "
                f"until {lock.unlock_time}"
            )

    def manual_unlock(self, key: PairKey, owner: str, now: int) -> LiquidityLock:
        """Release an expired lock explicitly.

        Raises:
            InvalidLockData: If owner has no active lock
            LiquidityIsLocked: If the unlock time has not been reached
        """
        lock = self._locks.get(key, {}).get(normalize_address(owner))
        if lock is None or not lock.is_active:
            raise InvalidLockData(f"No active lock for {owner} in {key}")
        if not lock.is_expired(now):
            raise LiquidityIsLocked(f"Lock for {owner} in {key} expires at {lock.unlock_time}")
        self._release(key, lock, now)
        return copy.copy(lock)

    def _release(self, key: PairKey, lock: LiquidityLock, now: int) -> None:
        unlocked_amount = lock.locked_lp_amount
        lock.is_active = False
        lock.locked_lp_amount = 0
        self._events.emit(
            LiquidityUnlocked(
                timestamp=now,
                project_id=lock.project_id,
                token_a=key.token_a,
                token_b=key.token_b,
                owner=lock.project_owner,
                unlocked_amount=unlocked_amount,
            )
        )

    # --- Transaction support ---

    def checkpoint(self, key: PairKey, owner: str) -> LiquidityLock | None:
        return self.get(key, owner)

    def restore(self, key: PairKey, owner: str, saved: LiquidityLock | None) -> None:
        owner = normalize_address(owner)
        if saved is None:
            self._locks.get(key, {}).pop(owner, None)
        else:
            self._locks.setdefault(key, {})[owner] = saved
