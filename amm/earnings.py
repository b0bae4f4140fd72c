"""LP earnings analytics.

Every deposit appends an immutable snapshot of the pool at that moment.
Earnings are the growth in the token value of a position relative to the
value it was deposited at; since the LP share of every swap fee stays in
the reserves, this growth is how fee income shows up for a provider.

Withdrawals consume snapshots first-in first-out. Consumption is tracked
with a per-position cursor (LP already consumed from the head of the
list), so snapshots are never edited. A position is checkpointed as a
snapshot count plus its counters, which makes rollback O(1) however long
the history grows.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

import structlog

from amm.constants import BPS_DENOMINATOR, SECONDS_PER_YEAR
from amm.math.pair_math import mul_div
from amm.models.types import normalize_address
from amm.pools.state import PairKey, Pool
from amm.safe_int import S

logger = structlog.get_logger()


@dataclass(frozen=True)
class LPSnapshot:
    """Pool state right after a deposit, plus the LP minted by it."""

    reserve_a: int
    reserve_b: int
    lp_amount: int
    timestamp: int
    total_lp_supply: int

    def value_of(self, lp_amount: int) -> tuple[int, int]:
        """Token amounts lp_amount of these shares were worth at deposit."""
        if self.total_lp_supply == 0:
            return 0, 0
        return (
            mul_div(lp_amount, self.reserve_a, self.total_lp_supply),
            mul_div(lp_amount, self.reserve_b, self.total_lp_supply),
        )


@dataclass
class LPPosition:
    """Snapshot history and realized earnings of one user in one pool."""

    snapshots: list[LPSnapshot] = field(default_factory=list)
    # LP consumed from the head of ``snapshots`` by withdrawals
    consumed_lp: int = 0
    realized_a: int = 0
    realized_b: int = 0

    def open_slices(self) -> Iterator[tuple[LPSnapshot, int]]:
        """Yield (snapshot, unconsumed LP) oldest first, skipping consumed LP."""
        skip = self.consumed_lp
        for snapshot in self.snapshots:
            if skip >= snapshot.lp_amount:
                skip -= snapshot.lp_amount
                continue
            yield snapshot, snapshot.lp_amount - skip
            skip = 0


@dataclass(frozen=True)
class EarningsReport:
    """Unrealized earnings of a position.

    Attributes:
        lp_balance: LP shares currently held
        deposited_a, deposited_b: Value of the open deposits when made
        current_a, current_b: Value of lp_balance at current reserves
        earnings_a, earnings_b: Growth per token, floored at zero
        apy_bps: Annualized return in basis points, valued in token A
        first_deposit_time: Timestamp of the oldest open deposit (0 if none)
    """

    lp_balance: int
    deposited_a: int
    deposited_b: int
    current_a: int
    current_b: int
    earnings_a: int
    earnings_b: int
    apy_bps: int
    first_deposit_time: int


@dataclass(frozen=True)
class RealizedEarnings:
    """Earnings booked by a single withdrawal."""

    principal_a: int
    principal_b: int
    earnings_a: int
    earnings_b: int


class EarningsTracker:
    """Per (user, pool) deposit history and earnings."""

    def __init__(self) -> None:
        self._positions: dict[PairKey, dict[str, LPPosition]] = {}

    def _position(self, key: PairKey, user: str) -> LPPosition:
        return self._positions.setdefault(key, {}).setdefault(normalize_address(user), LPPosition())

    def _find(self, key: PairKey, user: str) -> LPPosition | None:
        return self._positions.get(key, {}).get(normalize_address(user))

    def record_snapshot(self, key: PairKey, user: str, lp_amount: int, pool: Pool, now: int) -> LPSnapshot:
        """Append a snapshot of pool (post-deposit state) for user."""
        snapshot = LPSnapshot(
            reserve_a=pool.reserve_a,
            reserve_b=pool.reserve_b,
            lp_amount=lp_amount,
            timestamp=now,
            total_lp_supply=pool.total_lp_supply,
        )
        self._position(key, user).snapshots.append(snapshot)
        logger.debug("lp_snapshot_recorded", pair=str(key), user=normalize_address(user)[-8:], lp=lp_amount)
        return snapshot

    def snapshots(self, key: PairKey, user: str) -> list[LPSnapshot]:
        position = self._find(key, user)
        return list(position.snapshots) if position is not None else []

    def realized(self, key: PairKey, user: str) -> tuple[int, int]:
        """Cumulative realized earnings (token A, token B)."""
        position = self._find(key, user)
        if position is None:
            return 0, 0
        return position.realized_a, position.realized_b

    def unrealized_earnings(self, key: PairKey, user: str, lp_balance: int, pool: Pool, now: int) -> EarningsReport:
        """Compare the current value of user's shares with what they were deposited at.

        Without open snapshots the whole balance counts as principal, so no
        earnings are reported.
        """
        if pool.total_lp_supply == 0:
            current_a = current_b = 0
        else:
            current_a = mul_div(lp_balance, pool.reserve_a, pool.total_lp_supply)
            current_b = mul_div(lp_balance, pool.reserve_b, pool.total_lp_supply)

        position = self._find(key, user)
        slices = list(position.open_slices()) if position is not None else []
        if not slices:
            return EarningsReport(
                lp_balance=lp_balance,
                deposited_a=current_a,
                deposited_b=current_b,
                current_a=current_a,
                current_b=current_b,
                earnings_a=0,
                earnings_b=0,
                apy_bps=0,
                first_deposit_time=0,
            )

        deposited_a = deposited_b = 0
        for snapshot, open_lp in slices:
            value_a, value_b = snapshot.value_of(open_lp)
            deposited_a += value_a
            deposited_b += value_b

        first_deposit_time = slices[0][0].timestamp
        apy_bps = self._apy_bps(
            deposited_a, deposited_b, current_a, current_b, pool, now - first_deposit_time
        )
        return EarningsReport(
            lp_balance=lp_balance,
            deposited_a=deposited_a,
            deposited_b=deposited_b,
            current_a=current_a,
            current_b=current_b,
            earnings_a=S(current_a).saturating_sub(deposited_a).value,
            earnings_b=S(current_b).saturating_sub(deposited_b).value,
            apy_bps=apy_bps,
            first_deposit_time=first_deposit_time,
        )

    @staticmethod
    def _apy_bps(
        deposited_a: int,
        deposited_b: int,
        current_a: int,
        current_b: int,
        pool: Pool,
        elapsed: int,
    ) -> int:
        # Both legs valued in token A at the current pool price
        if pool.reserve_b == 0 or elapsed <= 0:
            return 0
        value_at_deposit = deposited_a + mul_div(deposited_b, pool.reserve_a, pool.reserve_b)
        value_now = current_a + mul_div(current_b, pool.reserve_a, pool.reserve_b)
        if value_now <= value_at_deposit or value_at_deposit == 0:
            return 0
        profit = value_now - value_at_deposit
        return (S(profit) * SECONDS_PER_YEAR * BPS_DENOMINATOR // (S(value_at_deposit) * elapsed)).value

    def realize_on_withdrawal(
        self,
        key: PairKey,
        user: str,
        lp_removed: int,
        amount_a: int,
        amount_b: int,
    ) -> RealizedEarnings:
        """Book earnings for removing lp_removed shares paid out as (amount_a, amount_b).

        Snapshots are consumed oldest first. Removed shares beyond the open
        snapshot history are valued at their payout, i.e. carry no earnings.
        """
        position = self._position(key, user)
        remaining = lp_removed
        principal_a = principal_b = 0
        for snapshot, open_lp in position.open_slices():
            if remaining == 0:
                break
            take = min(open_lp, remaining)
            value_a, value_b = snapshot.value_of(take)
            principal_a += value_a
            principal_b += value_b
            remaining -= take

        covered = lp_removed - remaining
        position.consumed_lp += covered
        if remaining > 0 and lp_removed > 0:
            principal_a += mul_div(amount_a, remaining, lp_removed)
            principal_b += mul_div(amount_b, remaining, lp_removed)

        realized = RealizedEarnings(
            principal_a=principal_a,
            principal_b=principal_b,
            earnings_a=S(amount_a).saturating_sub(principal_a).value,
            earnings_b=S(amount_b).saturating_sub(principal_b).value,
        )
        position.realized_a += realized.earnings_a
        position.realized_b += realized.earnings_b
        logger.debug(
            "earnings_realized",
            pair=str(key),
            user=normalize_address(user)[-8:],
            lp_removed=lp_removed,
            uncovered_lp=remaining,
            earnings_a=realized.earnings_a,
            earnings_b=realized.earnings_b,
        )
        return realized

    # --- Transaction support ---

    def checkpoint(self, key: PairKey, user: str) -> tuple[int, int, int, int] | None:
        """Marker for one position: (snapshot count, consumed LP, realized A, realized B).

        Snapshots are append-only, so the count is enough to undo deposits.
        """
        position = self._find(key, user)
        if position is None:
            return None
        return len(position.snapshots), position.consumed_lp, position.realized_a, position.realized_b

    def restore(self, key: PairKey, user: str, saved: tuple[int, int, int, int] | None) -> None:
        if saved is None:
            self._positions.get(key, {}).pop(normalize_address(user), None)
            return
        position = self._position(key, user)
        count, position.consumed_lp, position.realized_a, position.realized_b = saved
        del position.snapshots[count:]
