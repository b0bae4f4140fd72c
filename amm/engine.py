"""Process-wide default engine, configured from the environment."""

from __future__ import annotations

import os
from functools import lru_cache

import structlog

from amm.collaborators import InMemoryLPLedger, InMemoryProjectRegistry, InMemoryTokenBank
from amm.core import AMMCore
from amm.fees.config import FeeConfig

logger = structlog.get_logger()

DEFAULT_OWNER = "0x" + "00" * 19 + "01"
DEFAULT_ENGINE_ADDRESS = "0x" + "00" * 19 + "a1"
DEFAULT_LAUNCHPAD_ADDRESS = "0x" + "00" * 19 + "1a"


def create_engine_from_env() -> AMMCore:
    """Create an engine backed by in-memory collaborators.

    Configuration via environment variables:
    - AMM_OWNER: Admin address (default: 0x...01)
    - AMM_ENGINE_ADDRESS: Engine account in the token bank (default: 0x...a1)
    - AMM_LAUNCHPAD_ADDRESS: Launch collaborator address (default: 0x...1a)
    - AMM_PROJECT_TOKENS: Comma-separated protected project tokens (default: none)
    - AMM_TRADING_FEE_BPS / AMM_PROTOCOL_FEE_BPS / AMM_FEE_RECIPIENT / AMM_FEES_ENABLED

    Returns:
        Configured AMMCore instance
    """
    owner = os.environ.get("AMM_OWNER", DEFAULT_OWNER)
    project_tokens = {t for t in os.environ.get("AMM_PROJECT_TOKENS", "").split(",") if t}
    registry = InMemoryProjectRegistry(
        os.environ.get("AMM_LAUNCHPAD_ADDRESS", DEFAULT_LAUNCHPAD_ADDRESS), project_tokens
    )
    engine = AMMCore(
        owner=owner,
        address=os.environ.get("AMM_ENGINE_ADDRESS", DEFAULT_ENGINE_ADDRESS),
        token_bank=InMemoryTokenBank(),
        lp_ledger=InMemoryLPLedger(),
        fee_config=FeeConfig.from_env(default_recipient=owner),
        registry=registry,
    )
    logger.info(
        "engine_created",
        owner=engine.owner[-8:],
        trading_fee_bps=engine.fees.config.trading_fee_bps,
        protocol_fee_bps=engine.fees.config.protocol_fee_bps,
        project_tokens=len(project_tokens),
    )
    return engine


@lru_cache(maxsize=1)
def get_default_engine() -> AMMCore:
    """Lazily created singleton engine."""
    return create_engine_from_env()
