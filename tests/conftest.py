"""Pytest configuration and fixtures."""

import pytest

from amm.core import AMMCore
from amm.events import EventLog
from tests.helpers import ALICE, make_engine, seed_pool


@pytest.fixture
def engine() -> AMMCore:
    """Engine with default fees (30 bps, 16.67% protocol share) and funded accounts."""
    return make_engine()


@pytest.fixture
def seeded_engine(engine: AMMCore) -> AMMCore:
    """Engine with a TOKEN_A/TOKEN_B pool seeded by ALICE at (1000, 2000) scale."""
    seed_pool(engine, ALICE, 1_000 * 10**18, 2_000 * 10**18)
    return engine


@pytest.fixture
def event_log() -> EventLog:
    return EventLog()
