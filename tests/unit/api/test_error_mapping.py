"""Tests for engine error to HTTP status mapping."""

import pytest

from amm.api.main import status_for
from amm.errors import (
    AMMError,
    DeadlineExpired,
    LiquidityIsLocked,
    PoolDoesNotExist,
    ReentrantCall,
    Unauthorized,
    UnauthorizedPoolCreation,
)
from amm.safe_int import Uint256Overflow


class TestStatusFor:
    """Tests for status_for."""

    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (PoolDoesNotExist(), 404),
            (Unauthorized(), 403),
            (UnauthorizedPoolCreation(), 403),
            (LiquidityIsLocked(), 409),
            (ReentrantCall(), 409),
            (DeadlineExpired(), 400),
            (Uint256Overflow(), 400),
            (AMMError(), 400),
        ],
    )
    def test_status(self, error, status):
        assert status_for(error) == status

    def test_arithmetic_errors_carry_codes(self):
        assert Uint256Overflow.code == "uint256_overflow"
        assert isinstance(Uint256Overflow(), ArithmeticError)
