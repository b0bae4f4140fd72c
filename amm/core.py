"""AMM engine orchestrating liquidity, swaps, fees, locks and earnings.

AMMCore is the only entry point for external callers. It composes:
- PoolStore: pool records, reserves and the cumulative price oracle
- FeeEngine: trading/protocol/LP fee split and protocol fee counters
- LockManager: time-locked liquidity with lazy expiry
- EarningsTracker: deposit snapshots and FIFO earnings attribution

Time and identity are explicit: every operation takes ``caller`` and
``now`` instead of reading ambient state.

Every mutating operation runs as one transaction on the pools it touches:
a per-pool mutex serializes it against other operations on those pools,
nested mutating calls (e.g. from a token transfer hook) are rejected, and
any failure restores all component state, undoes collaborator side
effects and discards buffered events. Event subscribers are notified only
after the transaction has committed and its mutexes are released.

Views that read more than one field of a pool take that pool's mutex, so
they never observe a half-applied operation.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Callable, Iterator
from contextlib import ExitStack, contextmanager
from functools import partial
from typing import Any

import structlog

from amm.collaborators import LPLedger, ProjectRegistry, TokenBank
from amm.earnings import EarningsReport, EarningsTracker, LPSnapshot
from amm.errors import (
    DeadlineExpired,
    InsufficientLiquidity,
    InsufficientLPBalance,
    InvalidLockData,
    InvalidRecipient,
    InvalidTokenAddress,
    ReentrantCall,
    SlippageTooHigh,
    TransferFailed,
    Unauthorized,
    UnauthorizedPoolCreation,
    ZeroAmount,
    ZeroLiquidity,
)
from amm.events import EventLog
from amm.fees.config import FeeConfig
from amm.fees.engine import FeeEngine
from amm.fees.result import FeeStats, SwapFees
from amm.locks import LiquidityLock, LockManager
from amm.math import pair_math
from amm.models.events import (
    FeeConfigUpdated,
    LiquidityAdded,
    LiquidityRemoved,
    PoolCreated,
    ProtocolFeesCollected,
    ReservesUpdated,
    Swap,
)
from amm.models.types import is_valid_address, is_zero_address, normalize_address
from amm.pools.state import PairKey, Pool, TWAPData
from amm.pools.store import PoolStore
from amm.results import AddLiquidityResult, CollectedFees, RemoveLiquidityResult, SwapResult
from amm.safe_int import S

logger = structlog.get_logger()


def _ordered(key: PairKey, token_a: str, x: int, y: int) -> tuple[int, int]:
    """Reorder a pair of values between caller order and canonical order."""
    if key.is_token_a(token_a):
        return x, y
    return y, x


class _Transaction:
    """Undo journal for one engine operation.

    Pool records and fee counters of the touched pools are saved up front.
    Earnings positions and locks are saved one (pool, account) at a time,
    just before the operation changes them, so the cost of a transaction
    does not grow with the number of providers or deposits in the pool.
    """

    def __init__(self, core: AMMCore, keys: list[PairKey]) -> None:
        self._core = core
        self._journal: list[tuple[str, Callable[[], Any]]] = []
        self._saved: set[tuple[str, PairKey, str]] = set()
        for key in keys:
            self._journal.append(("restore_pool", partial(core.pools.restore, key, core.pools.checkpoint(key))))
            self._journal.append(("restore_fees", partial(core.fees.restore, key, core.fees.checkpoint(key))))

    def save_position(self, key: PairKey, user: str) -> None:
        """Record how to undo changes to user's earnings position in key."""
        user = normalize_address(user)
        if ("position", key, user) in self._saved:
            return
        self._saved.add(("position", key, user))
        earnings = self._core.earnings
        self._journal.append(
            ("restore_position", partial(earnings.restore, key, user, earnings.checkpoint(key, user)))
        )

    def save_lock(self, key: PairKey, owner: str) -> None:
        """Record how to undo changes to owner's lock in key."""
        owner = normalize_address(owner)
        if ("lock", key, owner) in self._saved:
            return
        self._saved.add(("lock", key, owner))
        locks = self._core.locks
        self._journal.append(("restore_lock", partial(locks.restore, key, owner, locks.checkpoint(key, owner))))

    def pull(self, token: str, owner: str, amount: int) -> int:
        """Pull tokens from owner into the engine.

        Returns:
            The amount the engine actually received

        Raises:
            TransferFailed: If the token bank rejects the transfer
        """
        bank = self._core.token_bank
        engine = self._core.address
        before = bank.balance_of(token, engine)
        if not bank.transfer_from(token, owner, engine, amount):
            raise TransferFailed(f"transfer_from of {amount} {token} from {owner} failed")
        received = (S(bank.balance_of(token, engine)) - before).value
        self._journal.append(
            ("refund_pull", lambda: bank.transfer(token, engine, owner, received))
        )
        return received

    def push(self, token: str, recipient: str, amount: int) -> None:
        """Send tokens held by the engine to recipient.

        Raises:
            TransferFailed: If the token bank rejects the transfer
        """
        if amount == 0:
            return
        bank = self._core.token_bank
        engine = self._core.address
        if not bank.transfer(token, engine, recipient, amount):
            raise TransferFailed(f"transfer of {amount} {token} to {recipient} failed")
        self._journal.append(
            ("reclaim_push", lambda: bank.transfer_from(token, recipient, engine, amount))
        )

    def mint(self, key: PairKey, to: str, amount: int) -> None:
        ledger = self._core.lp_ledger
        ledger.mint(key.token_a, key.token_b, to, amount)
        self._journal.append(
            ("burn_minted", lambda: ledger.burn(key.token_a, key.token_b, to, amount))
        )

    def burn(self, key: PairKey, from_: str, amount: int) -> None:
        ledger = self._core.lp_ledger
        ledger.burn(key.token_a, key.token_b, from_, amount)
        self._journal.append(
            ("remint_burned", lambda: ledger.mint(key.token_a, key.token_b, from_, amount))
        )

    def rollback(self) -> None:
        """Undo side effects and restore saved state, newest entry first."""
        for name, undo in reversed(self._journal):
            try:
                undo()
            except Exception:
                logger.exception("compensation_failed", action=name)


class AMMCore:
    """Constant product AMM engine.

    Args:
        owner: Admin address for fee configuration and collection
        address: The engine's own account in the token bank
        token_bank: Token transfer collaborator
        lp_ledger: LP share ledger collaborator
        fee_config: Initial fee configuration (validated)
        registry: Launchpad registry gating project-token pools and locks
        events: Event log (a fresh one by default)
    """

    def __init__(
        self,
        *,
        owner: str,
        address: str,
        token_bank: TokenBank,
        lp_ledger: LPLedger,
        fee_config: FeeConfig,
        registry: ProjectRegistry | None = None,
        events: EventLog | None = None,
    ) -> None:
        self.owner = normalize_address(owner, validate=True)
        self.address = normalize_address(address, validate=True)
        self.token_bank = token_bank
        self.lp_ledger = lp_ledger
        self.registry = registry
        self.events = events or EventLog()

        self.pools = PoolStore()
        self.fees = FeeEngine(fee_config)
        self.locks = LockManager(self.events)
        self.earnings = EarningsTracker()

        self._mutexes: dict[PairKey, threading.RLock] = {}
        self._mutexes_guard = threading.Lock()
        self._admin_lock = threading.RLock()
        self._context = threading.local()

    # =========================================================================
    # Transactions
    # =========================================================================

    def _mutex_for(self, key: PairKey) -> threading.RLock:
        with self._mutexes_guard:
            mutex = self._mutexes.get(key)
            if mutex is None:
                mutex = self._mutexes[key] = threading.RLock()
            return mutex

    @contextmanager
    def _operation(self, name: str, *keys: PairKey) -> Iterator[_Transaction]:
        """Run a mutating operation atomically over the given pools.

        Raises:
            ReentrantCall: If called from within another operation
        """
        if getattr(self._context, "active", None) is not None:
            logger.warning("reentrant_call_blocked", operation=name, outer=self._context.active)
            raise ReentrantCall(f"{name} called during {self._context.active}")

        ordered = sorted(set(keys), key=lambda k: (k.token_a, k.token_b))
        with ExitStack() as stack:
            for key in ordered:
                stack.enter_context(self._mutex_for(key))
            self._context.active = name
            try:
                tx = _Transaction(self, ordered)
                with self.events.buffered() as pending:
                    try:
                        yield tx
                    except BaseException:
                        tx.rollback()
                        raise
            finally:
                self._context.active = None
            # Log order must match commit order on these pools
            self.events.commit(pending)
        # Subscribers run with no pool held, so they may call back into the engine
        self.events.notify(pending)

    # =========================================================================
    # Validation helpers
    # =========================================================================

    @staticmethod
    def _check_deadline(deadline: int, now: int) -> None:
        if now >= deadline:
            raise DeadlineExpired(f"Deadline {deadline} passed (now={now})")

    @staticmethod
    def _check_recipient(to: str) -> str:
        if not is_valid_address(to) or is_zero_address(to):
            raise InvalidRecipient(f"Invalid recipient: {to}")
        return normalize_address(to)

    @staticmethod
    def _check_token(token: str) -> str:
        if not is_valid_address(token) or is_zero_address(token):
            raise InvalidTokenAddress(f"Invalid token address: {token}")
        return normalize_address(token)

    def _pair_key(self, token_a: str, token_b: str) -> PairKey:
        return PairKey.of(self._check_token(token_a), self._check_token(token_b))

    def _require_owner(self, caller: str) -> None:
        if normalize_address(caller) != self.owner:
            raise Unauthorized(f"{caller} is not the owner")

    def _require_launchpad(self, caller: str) -> None:
        if self.registry is None or normalize_address(caller) != self.registry.address:
            raise Unauthorized(f"{caller} is not the launch collaborator")

    def _sync_supply(self, pool: Pool) -> None:
        pool.total_lp_supply = self.lp_ledger.total_supply(pool.token_a, pool.token_b)

    def _set_reserves(self, pool: Pool, reserve_a: int, reserve_b: int, now: int) -> None:
        self.pools.update_reserves(pool, reserve_a, reserve_b, now)
        self.events.emit(
            ReservesUpdated(
                timestamp=now,
                token_a=pool.token_a,
                token_b=pool.token_b,
                reserve_a=reserve_a,
                reserve_b=reserve_b,
            )
        )

    # =========================================================================
    # Liquidity
    # =========================================================================

    def add_liquidity(
        self,
        caller: str,
        token_a: str,
        token_b: str,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        deadline: int,
        now: int,
    ) -> AddLiquidityResult:
        """Deposit both tokens and mint LP shares to ``to``.

        Creates the pool on first deposit. Pools containing a registered
        project token can only be created by the launch collaborator.

        Raises:
            DeadlineExpired, InvalidRecipient, InvalidPair, ZeroAmount,
            UnauthorizedPoolCreation, SlippageTooHigh, ZeroLiquidity,
            TransferFailed
        """
        self._check_deadline(deadline, now)
        to = self._check_recipient(to)
        key = self._pair_key(token_a, token_b)

        with self._operation("add_liquidity", key) as tx:
            return self._add_liquidity(
                tx, caller, key, token_a, amount_a_desired, amount_b_desired,
                amount_a_min, amount_b_min, to, now,
            )

    def _add_liquidity(
        self,
        tx: _Transaction,
        caller: str,
        key: PairKey,
        token_a: str,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        now: int,
    ) -> AddLiquidityResult:
        if amount_a_desired <= 0 or amount_b_desired <= 0:
            raise ZeroAmount("Desired amounts must be positive")
        caller = normalize_address(caller)

        pool = self.pools.get(key)
        created = pool is None
        if pool is None:
            pool = self._create_pool(key, caller, now)

        desired_a, desired_b = _ordered(key, token_a, amount_a_desired, amount_b_desired)
        min_a, min_b = _ordered(key, token_a, amount_a_min, amount_b_min)

        amount_a, amount_b = pair_math.calculate_optimal_amounts(
            desired_a, desired_b, pool.reserve_a, pool.reserve_b
        )
        if amount_a < min_a or amount_b < min_b:
            raise SlippageTooHigh(
                f"Optimal deposit ({amount_a}, {amount_b}) below minimum ({min_a}, {min_b})"
            )
        if pair_math.calculate_liquidity(
            amount_a, amount_b, pool.reserve_a, pool.reserve_b, pool.total_lp_supply
        ) == 0:
            raise ZeroLiquidity(f"Deposit ({amount_a}, {amount_b}) mints no LP")

        # Credit what actually arrived, not what was requested
        received_a = tx.pull(key.token_a, caller, amount_a)
        received_b = tx.pull(key.token_b, caller, amount_b)
        liquidity = pair_math.calculate_liquidity(
            received_a, received_b, pool.reserve_a, pool.reserve_b, pool.total_lp_supply
        )
        if liquidity == 0:
            raise ZeroLiquidity(f"Received ({received_a}, {received_b}) mints no LP")

        self._set_reserves(pool, pool.reserve_a + received_a, pool.reserve_b + received_b, now)
        tx.mint(key, to, liquidity)
        self._sync_supply(pool)
        tx.save_position(key, to)
        self.earnings.record_snapshot(key, to, liquidity, pool, now)

        self.events.emit(
            LiquidityAdded(
                timestamp=now,
                provider=caller,
                to=to,
                token_a=key.token_a,
                token_b=key.token_b,
                amount_a=received_a,
                amount_b=received_b,
                liquidity=liquidity,
            )
        )
        logger.info(
            "liquidity_added",
            pair=str(key),
            provider=caller[-8:],
            amount_a=received_a,
            amount_b=received_b,
            liquidity=liquidity,
            total_supply=pool.total_lp_supply,
        )
        out_a, out_b = _ordered(key, token_a, received_a, received_b)
        return AddLiquidityResult(amount_a=out_a, amount_b=out_b, liquidity=liquidity, pool_created=created)

    def _create_pool(self, key: PairKey, caller: str, now: int) -> Pool:
        if self.registry is not None and (
            self.registry.is_project_token(key.token_a) or self.registry.is_project_token(key.token_b)
        ):
            if caller != self.registry.address:
                logger.warning("unauthorized_pool_creation", pair=str(key), caller=caller[-8:])
                raise UnauthorizedPoolCreation(f"{caller} may not create a pool for project token pair {key}")

        pool = self.pools.create(key, now)
        self.events.emit(
            PoolCreated(
                timestamp=now,
                token_a=key.token_a,
                token_b=key.token_b,
                creator=caller,
                pool_count=len(self.pools),
            )
        )
        logger.info("pool_created", pair=str(key), creator=caller[-8:])
        return pool

    def remove_liquidity(
        self,
        caller: str,
        token_a: str,
        token_b: str,
        lp_amount: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        deadline: int,
        now: int,
    ) -> RemoveLiquidityResult:
        """Burn caller's LP shares and pay out the pro-rata reserves to ``to``.

        An expired liquidity lock is released on the way; an active one
        limits the withdrawal to the unlocked part of the balance.

        Raises:
            DeadlineExpired, InvalidRecipient, ZeroAmount, PoolDoesNotExist,
            InsufficientLPBalance, LiquidityIsLocked, InsufficientLiquidity,
            SlippageTooHigh, TransferFailed
        """
        self._check_deadline(deadline, now)
        to = self._check_recipient(to)
        if lp_amount <= 0:
            raise ZeroAmount("lp_amount must be positive")
        key = self._pair_key(token_a, token_b)
        caller = normalize_address(caller)

        with self._operation("remove_liquidity", key) as tx:
            pool = self.pools.require(key)
            balance = self.lp_ledger.balance_of(key.token_a, key.token_b, caller)
            if lp_amount > balance:
                raise InsufficientLPBalance(f"{caller} holds {balance} LP, removing {lp_amount}")

            tx.save_lock(key, caller)
            self.locks.check_on_withdraw(key, caller, lp_amount, balance, now)

            amount_a, amount_b = pair_math.calculate_remove_amounts(
                lp_amount, pool.reserve_a, pool.reserve_b, pool.total_lp_supply
            )
            if amount_a == 0 or amount_b == 0:
                raise InsufficientLiquidity(f"Burning {lp_amount} LP returns ({amount_a}, {amount_b})")
            min_a, min_b = _ordered(key, token_a, amount_a_min, amount_b_min)
            if amount_a < min_a or amount_b < min_b:
                raise SlippageTooHigh(
                    f"Withdrawal ({amount_a}, {amount_b}) below minimum ({min_a}, {min_b})"
                )

            tx.burn(key, caller, lp_amount)
            self._sync_supply(pool)
            tx.save_position(key, caller)
            realized = self.earnings.realize_on_withdrawal(key, caller, lp_amount, amount_a, amount_b)

            tx.push(key.token_a, to, amount_a)
            tx.push(key.token_b, to, amount_b)
            self._set_reserves(
                pool, (S(pool.reserve_a) - amount_a).value, (S(pool.reserve_b) - amount_b).value, now
            )

            self.events.emit(
                LiquidityRemoved(
                    timestamp=now,
                    provider=caller,
                    to=to,
                    token_a=key.token_a,
                    token_b=key.token_b,
                    amount_a=amount_a,
                    amount_b=amount_b,
                    liquidity=lp_amount,
                )
            )
            logger.info(
                "liquidity_removed",
                pair=str(key),
                provider=caller[-8:],
                amount_a=amount_a,
                amount_b=amount_b,
                liquidity=lp_amount,
            )

        out_a, out_b = _ordered(key, token_a, amount_a, amount_b)
        earn_a, earn_b = _ordered(key, token_a, realized.earnings_a, realized.earnings_b)
        return RemoveLiquidityResult(
            amount_a=out_a, amount_b=out_b, liquidity=lp_amount, earnings_a=earn_a, earnings_b=earn_b
        )

    # =========================================================================
    # Swaps
    # =========================================================================

    def swap_token_for_token(
        self,
        caller: str,
        token_in: str,
        token_out: str,
        amount_in: int,
        min_amount_out: int,
        to: str,
        deadline: int,
        now: int,
    ) -> SwapResult:
        """Exact-input swap of token_in for token_out, paid to ``to``.

        The input side of the pool grows by amount_in minus the protocol
        fee, so the LP fee stays in reserves.

        Raises:
            DeadlineExpired, InvalidRecipient, InvalidTokenAddress, ZeroAmount,
            PoolDoesNotExist, InsufficientLiquidity, SlippageTooHigh,
            TransferFailed
        """
        self._check_deadline(deadline, now)
        to = self._check_recipient(to)
        token_in = self._check_token(token_in)
        token_out = self._check_token(token_out)
        if token_in == token_out:
            raise InvalidTokenAddress(f"Cannot swap {token_in} for itself")
        if amount_in <= 0:
            raise ZeroAmount("amount_in must be positive")
        key = PairKey.of(token_in, token_out)
        caller = normalize_address(caller)

        with self._operation("swap", key) as tx:
            pool = self.pools.require(key)
            reserve_in, reserve_out = pool.get_reserves(token_in)
            if reserve_in == 0 or reserve_out == 0:
                raise InsufficientLiquidity(f"Pool {key} has no liquidity")

            received = tx.pull(token_in, caller, amount_in)
            fees = self.fees.calculate_swap_fees(received)
            amount_out = pair_math.get_amount_out(
                (S(received) - fees.trading_fee).value, reserve_in, reserve_out, 0
            )
            if amount_out == 0 or amount_out >= reserve_out:
                raise InsufficientLiquidity(f"Swap output {amount_out} not payable from reserve {reserve_out}")
            if amount_out < min_amount_out:
                raise SlippageTooHigh(f"Output {amount_out} below minimum {min_amount_out}")

            self.fees.process_swap_fees(key, token_in, fees, now)
            tx.push(token_out, to, amount_out)

            new_in = (S(reserve_in) + received - fees.protocol_fee).value
            new_out = (S(reserve_out) - amount_out).value
            new_a, new_b = _ordered(key, token_in, new_in, new_out)
            self._set_reserves(pool, new_a, new_b, now)

            self.events.emit(
                Swap(
                    timestamp=now,
                    sender=caller,
                    to=to,
                    token_in=token_in,
                    token_out=token_out,
                    amount_in=received,
                    amount_out=amount_out,
                    trading_fee=fees.trading_fee,
                    protocol_fee=fees.protocol_fee,
                )
            )
            logger.info(
                "swap_executed",
                pair=str(key),
                token_in=token_in[-8:],
                amount_in=received,
                amount_out=amount_out,
                trading_fee=fees.trading_fee,
                protocol_fee=fees.protocol_fee,
            )

        return SwapResult(
            token_in=token_in, token_out=token_out, amount_in=received, amount_out=amount_out, fees=fees
        )

    # =========================================================================
    # Locked liquidity
    # =========================================================================

    def add_liquidity_with_lock(
        self,
        caller: str,
        token_a: str,
        token_b: str,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        deadline: int,
        now: int,
        project_id: int,
        lock_duration: int,
    ) -> AddLiquidityResult:
        """Add liquidity for ``to`` and lock the minted shares (launch collaborator only).

        Raises:
            Unauthorized: If caller is not the launch collaborator
            InvalidLockData: If lock_duration is not positive
            plus everything add_liquidity raises
        """
        self._require_launchpad(caller)
        if lock_duration <= 0:
            raise InvalidLockData(f"Lock duration must be positive, got {lock_duration}")
        self._check_deadline(deadline, now)
        to = self._check_recipient(to)
        key = self._pair_key(token_a, token_b)

        with self._operation("add_liquidity_with_lock", key) as tx:
            result = self._add_liquidity(
                tx, caller, key, token_a, amount_a_desired, amount_b_desired,
                amount_a_min, amount_b_min, to, now,
            )
            tx.save_lock(key, to)
            self.locks.create(key, to, result.liquidity, lock_duration, now, project_id)
        logger.info(
            "liquidity_locked",
            pair=str(key),
            owner=to[-8:],
            project_id=project_id,
            amount=result.liquidity,
            unlock_time=now + lock_duration,
        )
        return result

    def create_liquidity_lock(
        self,
        caller: str,
        token_a: str,
        token_b: str,
        owner: str,
        lp_amount: int,
        lock_duration: int,
        project_id: int,
        now: int,
    ) -> LiquidityLock:
        """Lock lp_amount of owner's existing shares (launch collaborator only).

        Raises:
            Unauthorized, PoolDoesNotExist, InvalidLockData, ZeroAmount,
            InsufficientLPBalance
        """
        self._require_launchpad(caller)
        key = self._pair_key(token_a, token_b)
        owner = self._check_recipient(owner)

        with self._operation("create_liquidity_lock", key) as tx:
            self.pools.require(key)
            balance = self.lp_ledger.balance_of(key.token_a, key.token_b, owner)
            if lp_amount > balance:
                raise InsufficientLPBalance(f"{owner} holds {balance} LP, locking {lp_amount}")
            tx.save_lock(key, owner)
            lock = self.locks.create(key, owner, lp_amount, lock_duration, now, project_id)
        logger.info(
            "liquidity_locked",
            pair=str(key),
            owner=owner[-8:],
            project_id=project_id,
            amount=lp_amount,
            unlock_time=lock.unlock_time,
        )
        return lock

    def unlock_liquidity(self, caller: str, token_a: str, token_b: str, now: int) -> LiquidityLock:
        """Release caller's expired lock explicitly.

        Raises:
            InvalidLockData: If caller has no active lock
            LiquidityIsLocked: If the lock has not expired
        """
        key = self._pair_key(token_a, token_b)
        with self._operation("unlock_liquidity", key) as tx:
            tx.save_lock(key, caller)
            lock = self.locks.manual_unlock(key, caller, now)
        logger.info("liquidity_unlocked", pair=str(key), owner=normalize_address(caller)[-8:])
        return lock

    # =========================================================================
    # Protocol fees and configuration
    # =========================================================================

    def set_fee_config(
        self,
        caller: str,
        trading_fee_bps: int,
        protocol_fee_bps: int,
        fee_recipient: str,
        now: int,
    ) -> FeeConfig:
        """Replace fee parameters (owner only).

        Raises:
            Unauthorized, InvalidFeeConfiguration
        """
        self._require_owner(caller)
        with self._admin_lock:
            current = self.fees.config
            config = self.fees.set_config(
                FeeConfig(
                    trading_fee_bps=trading_fee_bps,
                    protocol_fee_bps=protocol_fee_bps,
                    fee_recipient=fee_recipient,
                    fees_enabled=current.fees_enabled,
                )
            )
            self._emit_fee_config(config, now)
        return config

    def set_fees_enabled(self, caller: str, enabled: bool, now: int) -> FeeConfig:
        """Turn swap fees on or off (owner only)."""
        self._require_owner(caller)
        with self._admin_lock:
            current = self.fees.config
            config = self.fees.set_config(
                FeeConfig(
                    trading_fee_bps=current.trading_fee_bps,
                    protocol_fee_bps=current.protocol_fee_bps,
                    fee_recipient=current.fee_recipient,
                    fees_enabled=enabled,
                )
            )
            self._emit_fee_config(config, now)
        return config

    def _emit_fee_config(self, config: FeeConfig, now: int) -> None:
        self.events.emit(
            FeeConfigUpdated(
                timestamp=now,
                trading_fee_bps=config.trading_fee_bps,
                protocol_fee_bps=config.protocol_fee_bps,
                fee_recipient=config.fee_recipient,
                fees_enabled=config.fees_enabled,
            )
        )

    def set_lp_ledger(self, caller: str, lp_ledger: LPLedger) -> None:
        self._require_owner(caller)
        self.lp_ledger = lp_ledger

    def set_project_registry(self, caller: str, registry: ProjectRegistry) -> None:
        self._require_owner(caller)
        self.registry = registry

    def collect_protocol_fees(self, caller: str, token_a: str, token_b: str, now: int) -> CollectedFees:
        """Pay a pool's accumulated protocol fees to the fee recipient (owner only).

        Raises:
            Unauthorized, PoolDoesNotExist, NoFeesToCollect, TransferFailed
        """
        self._require_owner(caller)
        key = self._pair_key(token_a, token_b)
        with self._operation("collect_protocol_fees", key) as tx:
            self.pools.require(key)
            collected = self._collect(tx, key, now)
        return collected

    def batch_collect_protocol_fees(
        self, caller: str, pairs: list[tuple[str, str]], now: int
    ) -> list[CollectedFees]:
        """Collect protocol fees from several pools at once, skipping empty ones."""
        self._require_owner(caller)
        keys = [self._pair_key(a, b) for a, b in pairs]
        collected: list[CollectedFees] = []
        with self._operation("batch_collect_protocol_fees", *keys) as tx:
            for key in dict.fromkeys(keys):
                if key not in self.pools or not self.fees.has_fees(key):
                    logger.debug("fee_collection_skipped", pair=str(key))
                    continue
                collected.append(self._collect(tx, key, now))
        logger.info("protocol_fees_batch_collected", pools=len(collected), requested=len(keys))
        return collected

    def _collect(self, tx: _Transaction, key: PairKey, now: int) -> CollectedFees:
        recipient = self.fees.config.fee_recipient
        taken = self.fees.take_protocol_fees(key)
        tx.push(key.token_a, recipient, taken.amount_a)
        tx.push(key.token_b, recipient, taken.amount_b)
        self.events.emit(
            ProtocolFeesCollected(
                timestamp=now,
                token_a=key.token_a,
                token_b=key.token_b,
                recipient=recipient,
                amount_a=taken.amount_a,
                amount_b=taken.amount_b,
            )
        )
        logger.info(
            "protocol_fees_collected",
            pair=str(key),
            amount_a=taken.amount_a,
            amount_b=taken.amount_b,
            recipient=recipient[-8:],
        )
        return CollectedFees(
            token_a=key.token_a,
            token_b=key.token_b,
            amount_a=taken.amount_a,
            amount_b=taken.amount_b,
            recipient=recipient,
        )

    # =========================================================================
    # Views
    # =========================================================================

    def pool_exists(self, token_a: str, token_b: str) -> bool:
        return self._pair_key(token_a, token_b) in self.pools

    @contextmanager
    def _reading(self, key: PairKey) -> Iterator[Pool]:
        """Hold the pool's mutex while a view reads it."""
        self.pools.require(key)  # no mutex for pairs without a pool
        with self._mutex_for(key):
            yield self.pools.require(key)

    def get_pool(self, token_a: str, token_b: str) -> Pool:
        """Copy of the pool record, taken between operations."""
        with self._reading(self._pair_key(token_a, token_b)) as pool:
            return copy.deepcopy(pool)

    def get_all_pairs(self) -> list[PairKey]:
        return self.pools.pairs

    def get_all_pools(self) -> list[Pool]:
        """Copies of every pool record, each taken between operations on that pool."""
        pools = []
        for key in self.pools.pairs:
            with self._mutex_for(key):
                pool = self.pools.get(key)
                if pool is not None:
                    pools.append(copy.deepcopy(pool))
        return pools

    def get_reserves(self, token_a: str, token_b: str) -> tuple[int, int]:
        """Reserves in the caller's token order."""
        key = self._pair_key(token_a, token_b)
        with self._reading(key) as pool:
            return _ordered(key, token_a, pool.reserve_a, pool.reserve_b)

    def get_twap_data(self, token_a: str, token_b: str) -> TWAPData:
        pool = self.get_pool(token_a, token_b)
        return TWAPData(
            price0_cumulative_last=pool.twap.price0_cumulative_last,
            price1_cumulative_last=pool.twap.price1_cumulative_last,
            block_timestamp_last=pool.twap.block_timestamp_last,
        )

    def get_amount_out(self, amount_in: int, token_in: str, token_out: str) -> int:
        """Quote an exact-input swap at the current fee configuration."""
        with self._reading(self._pair_key(token_in, token_out)) as pool:
            reserve_in, reserve_out = pool.get_reserves(normalize_address(token_in))
        return pair_math.get_amount_out(amount_in, reserve_in, reserve_out, self.fees.effective_fee_bps)

    def calculate_expected_fees(self, amount_in: int) -> SwapFees:
        return self.fees.calculate_swap_fees(amount_in)

    def get_fee_config(self) -> FeeConfig:
        return self.fees.config

    def get_accumulated_protocol_fees(self, token_a: str, token_b: str) -> tuple[int, int]:
        """Uncollected protocol fees in the caller's token order."""
        key = self._pair_key(token_a, token_b)
        with self._reading(key):
            accumulated = self.fees.accumulated(key)
        return _ordered(key, token_a, accumulated.amount_a, accumulated.amount_b)

    def get_fee_stats(self, token_a: str, token_b: str) -> FeeStats:
        return self.fees.stats(self._pair_key(token_a, token_b))

    def get_remove_liquidity_quote(self, token_a: str, token_b: str, lp_amount: int) -> tuple[int, int]:
        """Payout for burning lp_amount, in the caller's token order."""
        key = self._pair_key(token_a, token_b)
        with self._reading(key) as pool:
            if pool.total_lp_supply == 0:
                raise InsufficientLiquidity(f"Pool {key} has no LP supply")
            amount_a, amount_b = pair_math.calculate_remove_amounts(
                lp_amount, pool.reserve_a, pool.reserve_b, pool.total_lp_supply
            )
        return _ordered(key, token_a, amount_a, amount_b)

    def get_lp_balance(self, token_a: str, token_b: str, owner: str) -> int:
        key = self._pair_key(token_a, token_b)
        return self.lp_ledger.balance_of(key.token_a, key.token_b, owner)

    def get_withdrawable_lp_amount(self, token_a: str, token_b: str, owner: str, now: int) -> int:
        key = self._pair_key(token_a, token_b)
        balance = self.lp_ledger.balance_of(key.token_a, key.token_b, owner)
        return self.locks.withdrawable(key, owner, balance, now)

    def is_liquidity_locked(self, token_a: str, token_b: str, owner: str, now: int) -> bool:
        return self.locks.is_locked(self._pair_key(token_a, token_b), owner, now)

    def get_liquidity_lock(self, token_a: str, token_b: str, owner: str) -> LiquidityLock | None:
        return self.locks.get(self._pair_key(token_a, token_b), owner)

    def get_unrealized_earnings(self, user: str, token_a: str, token_b: str, now: int) -> EarningsReport:
        """Unrealized earnings of user's position, reported in canonical pool order."""
        key = self._pair_key(token_a, token_b)
        with self._reading(key) as pool:
            balance = self.lp_ledger.balance_of(key.token_a, key.token_b, user)
            return self.earnings.unrealized_earnings(key, user, balance, pool, now)

    def get_realized_earnings(self, user: str, token_a: str, token_b: str) -> tuple[int, int]:
        """Cumulative realized earnings in the caller's token order."""
        key = self._pair_key(token_a, token_b)
        realized_a, realized_b = self.earnings.realized(key, user)
        return _ordered(key, token_a, realized_a, realized_b)

    def get_lp_snapshots(self, user: str, token_a: str, token_b: str) -> list[LPSnapshot]:
        return self.earnings.snapshots(self._pair_key(token_a, token_b), user)
