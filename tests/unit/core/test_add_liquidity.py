"""Tests for depositing liquidity through the engine."""

import pytest

from amm.errors import (
    DeadlineExpired,
    InvalidPair,
    InvalidRecipient,
    SlippageTooHigh,
    TransferFailed,
    UnauthorizedPoolCreation,
    ZeroAmount,
    ZeroLiquidity,
)
from amm.models.events import LiquidityAdded, PoolCreated, ReservesUpdated
from tests.helpers import (
    ALICE,
    BOB,
    DEFAULT_BALANCE,
    ENGINE,
    FAR_DEADLINE,
    LAUNCHPAD,
    PROJECT_TOKEN,
    T0,
    TOKEN_A,
    TOKEN_B,
    ZERO,
    make_engine,
    seed_pool,
)


class TestFirstDeposit:
    """Tests for the deposit that creates a pool."""

    def test_mints_geometric_mean(self, engine):
        result = seed_pool(engine, ALICE, 1_000, 4_000)

        assert result.liquidity == 2_000
        assert result.pool_created
        assert engine.get_lp_balance(TOKEN_A, TOKEN_B, ALICE) == 2_000
        assert engine.get_reserves(TOKEN_A, TOKEN_B) == (1_000, 4_000)
        assert engine.get_pool(TOKEN_A, TOKEN_B).total_lp_supply == 2_000

    def test_emits_pool_and_liquidity_events(self, engine):
        seed_pool(engine, ALICE, 1_000, 4_000)

        names = [type(e) for e in engine.events.events]
        assert names == [PoolCreated, ReservesUpdated, LiquidityAdded]
        created = engine.events.of_type(PoolCreated)[0]
        assert created.pool_count == 1
        assert created.creator == ALICE

    def test_moves_tokens_into_engine(self, engine):
        seed_pool(engine, ALICE, 1_000, 4_000)

        bank = engine.token_bank
        assert bank.balance_of(TOKEN_A, ENGINE) == 1_000
        assert bank.balance_of(TOKEN_B, ENGINE) == 4_000
        assert bank.balance_of(TOKEN_A, ALICE) == DEFAULT_BALANCE - 1_000

    def test_reversed_token_order(self, engine):
        """Results follow the caller's order, storage the canonical one."""
        result = seed_pool(engine, ALICE, 4_000, 1_000, token_a=TOKEN_B, token_b=TOKEN_A)

        assert (result.amount_a, result.amount_b) == (4_000, 1_000)
        pool = engine.get_pool(TOKEN_B, TOKEN_A)
        assert (pool.reserve_a, pool.reserve_b) == (1_000, 4_000)
        assert engine.get_reserves(TOKEN_B, TOKEN_A) == (4_000, 1_000)

    def test_records_snapshot_for_recipient(self, engine):
        engine.add_liquidity(ALICE, TOKEN_A, TOKEN_B, 1_000, 4_000, 0, 0, BOB, FAR_DEADLINE, T0)

        snapshots = engine.get_lp_snapshots(BOB, TOKEN_A, TOKEN_B)
        assert len(snapshots) == 1
        assert snapshots[0].lp_amount == 2_000
        assert snapshots[0].reserve_a == 1_000
        assert engine.get_lp_snapshots(ALICE, TOKEN_A, TOKEN_B) == []


class TestSubsequentDeposit:
    """Tests for deposits into an existing pool."""

    def test_uses_optimal_amounts(self, engine):
        seed_pool(engine, ALICE, 1_000, 4_000)

        result = seed_pool(engine, BOB, 500, 5_000)

        assert (result.amount_a, result.amount_b) == (500, 2_000)
        assert result.liquidity == 1_000
        assert not result.pool_created
        assert engine.get_reserves(TOKEN_A, TOKEN_B) == (1_500, 6_000)

    def test_caps_token_a_when_b_is_short(self, engine):
        seed_pool(engine, ALICE, 1_000, 4_000)

        result = seed_pool(engine, BOB, 5_000, 400)

        assert (result.amount_a, result.amount_b) == (100, 400)
        assert result.liquidity == 200

    def test_minimum_not_met(self, engine):
        seed_pool(engine, ALICE, 1_000, 4_000)

        with pytest.raises(SlippageTooHigh):
            engine.add_liquidity(BOB, TOKEN_A, TOKEN_B, 500, 5_000, 0, 2_001, BOB, FAR_DEADLINE, T0)

        assert engine.get_reserves(TOKEN_A, TOKEN_B) == (1_000, 4_000)

    def test_dust_deposit_mints_nothing(self, engine):
        seed_pool(engine, ALICE, 1_000, 4_000)

        with pytest.raises(ZeroLiquidity):
            seed_pool(engine, BOB, 1, 1)


class TestValidation:
    """Tests for rejected deposits."""

    def test_deadline_reached(self, engine):
        with pytest.raises(DeadlineExpired):
            engine.add_liquidity(ALICE, TOKEN_A, TOKEN_B, 1_000, 1_000, 0, 0, ALICE, T0, T0)

    def test_zero_amount(self, engine):
        with pytest.raises(ZeroAmount):
            seed_pool(engine, ALICE, 0, 1_000)

    def test_identical_tokens(self, engine):
        with pytest.raises(InvalidPair):
            seed_pool(engine, ALICE, 1_000, 1_000, token_a=TOKEN_A, token_b=TOKEN_A)

    def test_null_recipient(self, engine):
        with pytest.raises(InvalidRecipient):
            engine.add_liquidity(ALICE, TOKEN_A, TOKEN_B, 1_000, 1_000, 0, 0, ZERO, FAR_DEADLINE, T0)

    def test_failed_transfer_leaves_no_pool(self, engine):
        engine.token_bank.set_failing(TOKEN_B)

        with pytest.raises(TransferFailed):
            seed_pool(engine, ALICE, 1_000, 4_000)

        assert not engine.pool_exists(TOKEN_A, TOKEN_B)
        assert engine.token_bank.balance_of(TOKEN_A, ALICE) == DEFAULT_BALANCE
        assert engine.events.events == []


class TestProjectTokenPools:
    """Tests for launch-collaborator-only pool creation."""

    def test_regular_user_cannot_create(self, engine):
        with pytest.raises(UnauthorizedPoolCreation):
            seed_pool(engine, ALICE, 1_000, 1_000, token_a=PROJECT_TOKEN, token_b=TOKEN_B)
        assert not engine.pool_exists(PROJECT_TOKEN, TOKEN_B)

    def test_launch_collaborator_creates(self, engine):
        result = seed_pool(engine, LAUNCHPAD, 1_000, 1_000, token_a=PROJECT_TOKEN, token_b=TOKEN_B)
        assert result.pool_created

    def test_anyone_adds_to_existing_pool(self, engine):
        seed_pool(engine, LAUNCHPAD, 1_000, 1_000, token_a=PROJECT_TOKEN, token_b=TOKEN_B)

        result = seed_pool(engine, ALICE, 100, 100, token_a=PROJECT_TOKEN, token_b=TOKEN_B)

        assert result.liquidity == 100

    def test_unregistered_tokens_are_open(self):
        engine = make_engine(project_tokens=set())
        assert seed_pool(engine, ALICE, 1_000, 1_000, token_a=PROJECT_TOKEN, token_b=TOKEN_B).pool_created


class TestFeeOnTransferTokens:
    """Tests for tokens that deliver less than was sent."""

    def test_credits_received_amount(self, engine):
        engine.token_bank.set_transfer_fee(TOKEN_A, 100)

        result = seed_pool(engine, ALICE, 1_000, 4_000)

        assert result.amount_a == 990
        assert result.liquidity == 1_989
        assert engine.get_reserves(TOKEN_A, TOKEN_B) == (990, 4_000)
        assert engine.token_bank.balance_of(TOKEN_A, ENGINE) == 990
