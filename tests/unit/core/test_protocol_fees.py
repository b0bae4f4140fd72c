"""Tests for protocol fee collection and fee administration."""

import pytest

from amm.collaborators import InMemoryLPLedger, InMemoryProjectRegistry
from amm.errors import InvalidFeeConfiguration, NoFeesToCollect, PoolDoesNotExist, Unauthorized
from amm.models.events import FeeConfigUpdated, ProtocolFeesCollected
from tests.helpers import (
    ALICE,
    BOB,
    ENGINE,
    FEE_RECIPIENT,
    OWNER,
    PROJECT_TOKEN,
    T0,
    TOKEN_A,
    TOKEN_B,
    seed_pool,
    swap,
)

OTHER_TOKEN = "0x" + "44" * 20


@pytest.fixture
def traded_engine(engine):
    """A (1000, 2000) pool after one 10000 A -> B swap (5 A of protocol fees)."""
    seed_pool(engine, ALICE, 1_000, 2_000)
    swap(engine, BOB, 10_000)
    return engine


class TestCollectProtocolFees:
    """Tests for paying out accumulated protocol fees."""

    def test_pays_recipient_and_resets(self, traded_engine):
        collected = traded_engine.collect_protocol_fees(OWNER, TOKEN_A, TOKEN_B, now=T0)

        assert (collected.amount_a, collected.amount_b) == (5, 0)
        assert collected.recipient == FEE_RECIPIENT
        assert traded_engine.token_bank.balance_of(TOKEN_A, FEE_RECIPIENT) == 5
        assert traded_engine.get_accumulated_protocol_fees(TOKEN_A, TOKEN_B) == (0, 0)
        assert len(traded_engine.events.of_type(ProtocolFeesCollected)) == 1

    def test_engine_holds_reserves_plus_fees(self, traded_engine):
        reserve_a, reserve_b = traded_engine.get_reserves(TOKEN_A, TOKEN_B)
        bank = traded_engine.token_bank

        assert bank.balance_of(TOKEN_A, ENGINE) == reserve_a + 5
        traded_engine.collect_protocol_fees(OWNER, TOKEN_A, TOKEN_B, now=T0)
        assert bank.balance_of(TOKEN_A, ENGINE) == reserve_a
        assert bank.balance_of(TOKEN_B, ENGINE) == reserve_b

    def test_reserves_untouched(self, traded_engine):
        before = traded_engine.get_reserves(TOKEN_A, TOKEN_B)
        traded_engine.collect_protocol_fees(OWNER, TOKEN_A, TOKEN_B, now=T0)
        assert traded_engine.get_reserves(TOKEN_A, TOKEN_B) == before

    def test_nothing_to_collect(self, traded_engine):
        traded_engine.collect_protocol_fees(OWNER, TOKEN_A, TOKEN_B, now=T0)
        with pytest.raises(NoFeesToCollect):
            traded_engine.collect_protocol_fees(OWNER, TOKEN_A, TOKEN_B, now=T0)

    def test_owner_only(self, traded_engine):
        with pytest.raises(Unauthorized):
            traded_engine.collect_protocol_fees(ALICE, TOKEN_A, TOKEN_B, now=T0)

    def test_missing_pool(self, traded_engine):
        with pytest.raises(PoolDoesNotExist):
            traded_engine.collect_protocol_fees(OWNER, TOKEN_A, PROJECT_TOKEN, now=T0)


class TestBatchCollect:
    """Tests for multi-pool collection."""

    def test_skips_empty_and_missing_pools(self, traded_engine):
        traded_engine.token_bank.mint(OTHER_TOKEN, ALICE, 1_000)
        seed_pool(traded_engine, ALICE, 1_000, 1_000, token_a=TOKEN_A, token_b=OTHER_TOKEN)

        collected = traded_engine.batch_collect_protocol_fees(
            OWNER,
            [(TOKEN_A, TOKEN_B), (TOKEN_A, OTHER_TOKEN), (TOKEN_A, PROJECT_TOKEN), (TOKEN_B, TOKEN_A)],
            now=T0,
        )

        assert len(collected) == 1
        assert (collected[0].token_a, collected[0].amount_a) == (TOKEN_A, 5)

    def test_owner_only(self, traded_engine):
        with pytest.raises(Unauthorized):
            traded_engine.batch_collect_protocol_fees(BOB, [(TOKEN_A, TOKEN_B)], now=T0)


class TestFeeAdministration:
    """Tests for owner-controlled fee configuration."""

    def test_set_fee_config(self, engine):
        config = engine.set_fee_config(OWNER, 100, 3_000, BOB, now=T0)

        assert (config.trading_fee_bps, config.protocol_fee_bps, config.fee_recipient) == (100, 3_000, BOB)
        assert engine.calculate_expected_fees(10_000).trading_fee == 100
        assert engine.events.of_type(FeeConfigUpdated)[0].trading_fee_bps == 100

    def test_out_of_bounds(self, engine):
        with pytest.raises(InvalidFeeConfiguration):
            engine.set_fee_config(OWNER, 101, 0, BOB, now=T0)
        with pytest.raises(InvalidFeeConfiguration):
            engine.set_fee_config(OWNER, 30, 3_001, BOB, now=T0)
        assert engine.get_fee_config().trading_fee_bps == 30

    def test_owner_only(self, engine):
        with pytest.raises(Unauthorized):
            engine.set_fee_config(ALICE, 10, 0, ALICE, now=T0)
        with pytest.raises(Unauthorized):
            engine.set_fees_enabled(ALICE, False, now=T0)

    def test_disable_fees(self, engine):
        seed_pool(engine, ALICE, 1_000, 2_000)

        engine.set_fees_enabled(OWNER, False, now=T0)

        assert engine.get_amount_out(10_000, TOKEN_A, TOKEN_B) == 10_000 * 2_000 // 11_000
        assert swap(engine, BOB, 10_000).fees.trading_fee == 0
        assert engine.get_fee_config().trading_fee_bps == 30

    def test_fee_stats(self, traded_engine):
        stats = traded_engine.get_fee_stats(TOKEN_A, TOKEN_B)
        assert (stats.total_trading_fees_a, stats.total_trading_fees_b) == (30, 0)
        assert stats.last_updated == T0

    def test_collaborator_setters_owner_only(self, engine):
        registry = InMemoryProjectRegistry(BOB)
        with pytest.raises(Unauthorized):
            engine.set_project_registry(ALICE, registry)

        engine.set_project_registry(OWNER, registry)
        ledger = InMemoryLPLedger()
        engine.set_lp_ledger(OWNER, ledger)

        assert engine.registry is registry
        assert engine.lp_ledger is ledger
