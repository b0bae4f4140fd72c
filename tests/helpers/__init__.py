"""Test helpers module for shared test utilities.

- constants: Token and account addresses, reference times
- factories: Engine construction and common operations
"""

from tests.helpers.constants import (
    ALICE,
    BOB,
    ENGINE,
    FAR_DEADLINE,
    FEE_RECIPIENT,
    LAUNCHPAD,
    OWNER,
    PROJECT_TOKEN,
    T0,
    TOKEN_A,
    TOKEN_B,
    ZERO,
)
from tests.helpers.factories import DEFAULT_BALANCE, make_engine, seed_pool, swap

__all__ = [
    # Constants
    "TOKEN_A",
    "TOKEN_B",
    "PROJECT_TOKEN",
    "OWNER",
    "ENGINE",
    "LAUNCHPAD",
    "FEE_RECIPIENT",
    "ALICE",
    "BOB",
    "ZERO",
    "T0",
    "FAR_DEADLINE",
    # Factories
    "DEFAULT_BALANCE",
    "make_engine",
    "seed_pool",
    "swap",
]
