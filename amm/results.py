"""Result types returned by engine operations.

Token amounts are reported in the caller's token order, not the pool's
canonical order.
"""

from dataclasses import dataclass

from amm.fees.result import SwapFees


@dataclass(frozen=True)
class AddLiquidityResult:
    """Amounts deposited and LP shares minted."""

    amount_a: int
    amount_b: int
    liquidity: int
    pool_created: bool = False


@dataclass(frozen=True)
class RemoveLiquidityResult:
    """Amounts paid out for burned LP shares, with the earnings they realized."""

    amount_a: int
    amount_b: int
    liquidity: int
    earnings_a: int = 0
    earnings_b: int = 0


@dataclass(frozen=True)
class SwapResult:
    """Result of an exact-input swap."""

    token_in: str
    token_out: str
    amount_in: int
    amount_out: int
    fees: SwapFees


@dataclass(frozen=True)
class CollectedFees:
    """Protocol fees paid out for one pool."""

    token_a: str
    token_b: str
    amount_a: int
    amount_b: int
    recipient: str
