"""Tests for launch-collaborator liquidity locks."""

import pytest

from amm.collaborators import InMemoryLPLedger, InMemoryTokenBank
from amm.core import AMMCore
from amm.errors import (
    InsufficientLPBalance,
    InvalidLockData,
    LiquidityIsLocked,
    PoolDoesNotExist,
    Unauthorized,
)
from amm.fees.config import FeeConfig
from amm.models.events import LiquidityLocked, LiquidityUnlocked
from tests.helpers import (
    ALICE,
    BOB,
    ENGINE,
    FAR_DEADLINE,
    FEE_RECIPIENT,
    LAUNCHPAD,
    OWNER,
    PROJECT_TOKEN,
    TOKEN_A,
    TOKEN_B,
    seed_pool,
)


def add_locked(engine, now=0, duration=100, project_id=1, caller=LAUNCHPAD, to=ALICE):
    return engine.add_liquidity_with_lock(
        caller, PROJECT_TOKEN, TOKEN_B, 1_000, 1_000, 0, 0, to, FAR_DEADLINE, now, project_id, duration
    )


def withdraw(engine, lp_amount, now, provider=ALICE):
    return engine.remove_liquidity(
        provider, PROJECT_TOKEN, TOKEN_B, lp_amount, 0, 0, provider, FAR_DEADLINE, now
    )


class TestAddLiquidityWithLock:
    """Tests for locked deposits."""

    def test_locks_minted_shares(self, engine):
        result = add_locked(engine)

        lock = engine.get_liquidity_lock(PROJECT_TOKEN, TOKEN_B, ALICE)
        assert lock.locked_lp_amount == result.liquidity == 1_000
        assert lock.unlock_time == 100
        assert lock.project_id == 1
        assert engine.is_liquidity_locked(PROJECT_TOKEN, TOKEN_B, ALICE, now=99)
        assert len(engine.events.of_type(LiquidityLocked)) == 1

    def test_locked_shares_cannot_be_withdrawn(self, engine):
        add_locked(engine)

        with pytest.raises(LiquidityIsLocked):
            withdraw(engine, 1, now=50)

        assert engine.get_lp_balance(PROJECT_TOKEN, TOKEN_B, ALICE) == 1_000

    def test_expired_lock_releases_once(self, engine):
        """Withdrawing after expiry clears the lock and emits a single unlock."""
        add_locked(engine, duration=100)

        withdraw(engine, 500, now=101)
        withdraw(engine, 500, now=101)

        assert len(engine.events.of_type(LiquidityUnlocked)) == 1
        assert engine.get_lp_balance(PROJECT_TOKEN, TOKEN_B, ALICE) == 0
        assert not engine.get_liquidity_lock(PROJECT_TOKEN, TOKEN_B, ALICE).is_active

    def test_full_balance_withdrawal_after_expiry(self, engine):
        add_locked(engine, duration=100)

        result = withdraw(engine, 1_000, now=101)

        assert result.liquidity == 1_000
        assert len(engine.events.of_type(LiquidityUnlocked)) == 1

    def test_unlocked_surplus_is_withdrawable(self, engine):
        add_locked(engine)
        seed_pool(engine, ALICE, 500, 500, token_a=PROJECT_TOKEN, token_b=TOKEN_B, now=10)

        assert engine.get_withdrawable_lp_amount(PROJECT_TOKEN, TOKEN_B, ALICE, now=20) == 500
        withdraw(engine, 500, now=20)
        with pytest.raises(LiquidityIsLocked):
            withdraw(engine, 1, now=20)

    def test_regular_user_cannot_lock(self, engine):
        with pytest.raises(Unauthorized):
            add_locked(engine, caller=ALICE)

    def test_zero_duration(self, engine):
        with pytest.raises(InvalidLockData):
            add_locked(engine, duration=0)
        assert not engine.pool_exists(PROJECT_TOKEN, TOKEN_B)

    def test_without_registry(self):
        engine = AMMCore(
            owner=OWNER,
            address=ENGINE,
            token_bank=InMemoryTokenBank(),
            lp_ledger=InMemoryLPLedger(),
            fee_config=FeeConfig(fee_recipient=FEE_RECIPIENT),
        )
        with pytest.raises(Unauthorized):
            add_locked(engine)


class TestCreateLiquidityLock:
    """Tests for locking shares already held."""

    def test_locks_part_of_balance(self, engine):
        seed_pool(engine, ALICE, 1_000, 4_000)

        engine.create_liquidity_lock(LAUNCHPAD, TOKEN_A, TOKEN_B, ALICE, 1_500, 100, 9, now=0)

        assert engine.get_withdrawable_lp_amount(TOKEN_A, TOKEN_B, ALICE, now=0) == 500
        engine.remove_liquidity(ALICE, TOKEN_A, TOKEN_B, 500, 0, 0, ALICE, FAR_DEADLINE, 0)
        with pytest.raises(LiquidityIsLocked):
            engine.remove_liquidity(ALICE, TOKEN_A, TOKEN_B, 2, 0, 0, ALICE, FAR_DEADLINE, 0)

    def test_more_than_balance(self, engine):
        seed_pool(engine, ALICE, 1_000, 4_000)
        with pytest.raises(InsufficientLPBalance):
            engine.create_liquidity_lock(LAUNCHPAD, TOKEN_A, TOKEN_B, ALICE, 2_001, 100, 9, now=0)

    def test_missing_pool(self, engine):
        with pytest.raises(PoolDoesNotExist):
            engine.create_liquidity_lock(LAUNCHPAD, TOKEN_A, TOKEN_B, ALICE, 1, 100, 9, now=0)

    def test_regular_user(self, engine):
        seed_pool(engine, ALICE, 1_000, 4_000)
        with pytest.raises(Unauthorized):
            engine.create_liquidity_lock(BOB, TOKEN_A, TOKEN_B, ALICE, 1, 100, 9, now=0)


class TestUnlockLiquidity:
    """Tests for explicit unlock."""

    def test_before_expiry(self, engine):
        add_locked(engine)
        with pytest.raises(LiquidityIsLocked):
            engine.unlock_liquidity(ALICE, PROJECT_TOKEN, TOKEN_B, now=99)

    def test_after_expiry(self, engine):
        add_locked(engine)

        lock = engine.unlock_liquidity(ALICE, PROJECT_TOKEN, TOKEN_B, now=100)

        assert not lock.is_active
        assert not engine.is_liquidity_locked(PROJECT_TOKEN, TOKEN_B, ALICE, now=100)
        assert engine.get_withdrawable_lp_amount(PROJECT_TOKEN, TOKEN_B, ALICE, now=100) == 1_000
        # The later withdrawal does not unlock again
        withdraw(engine, 1_000, now=101)
        assert len(engine.events.of_type(LiquidityUnlocked)) == 1

    def test_no_lock(self, engine):
        with pytest.raises(InvalidLockData):
            engine.unlock_liquidity(BOB, TOKEN_A, TOKEN_B, now=0)
