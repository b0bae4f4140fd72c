"""Tests for the environment-configured default engine."""

import pytest

from amm.engine import DEFAULT_LAUNCHPAD_ADDRESS, DEFAULT_OWNER, create_engine_from_env
from amm.errors import InvalidFeeConfiguration
from tests.helpers import FEE_RECIPIENT, PROJECT_TOKEN


class TestCreateEngineFromEnv:
    """Tests for create_engine_from_env."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in (
            "AMM_OWNER",
            "AMM_ENGINE_ADDRESS",
            "AMM_LAUNCHPAD_ADDRESS",
            "AMM_PROJECT_TOKENS",
            "AMM_TRADING_FEE_BPS",
            "AMM_PROTOCOL_FEE_BPS",
            "AMM_FEE_RECIPIENT",
            "AMM_FEES_ENABLED",
        ):
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self):
        engine = create_engine_from_env()

        assert engine.owner == DEFAULT_OWNER
        assert engine.registry.address == DEFAULT_LAUNCHPAD_ADDRESS
        config = engine.get_fee_config()
        assert (config.trading_fee_bps, config.protocol_fee_bps) == (30, 1667)
        # Fees go to the owner unless configured otherwise
        assert config.fee_recipient == DEFAULT_OWNER

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("AMM_TRADING_FEE_BPS", "50")
        monkeypatch.setenv("AMM_FEE_RECIPIENT", FEE_RECIPIENT)
        monkeypatch.setenv("AMM_FEES_ENABLED", "false")
        monkeypatch.setenv("AMM_PROJECT_TOKENS", PROJECT_TOKEN)

        engine = create_engine_from_env()

        config = engine.get_fee_config()
        assert config.trading_fee_bps == 50
        assert config.fee_recipient == FEE_RECIPIENT
        assert not config.fees_enabled
        assert engine.registry.is_project_token(PROJECT_TOKEN)

    def test_invalid_fee(self, monkeypatch):
        monkeypatch.setenv("AMM_TRADING_FEE_BPS", "500")
        with pytest.raises(InvalidFeeConfiguration):
            create_engine_from_env()
