"""Constant product pair math.

Pure integer functions for a two-token x * y = k pool. All divisions
floor, matching on-chain uint256 arithmetic, and every intermediate
product is checked against uint256 (no 512-bit widening).

Formula for a swap:
    fee = amount_in * fee_bps / 10000
    amount_out = (amount_in - fee) * reserve_out / (reserve_in + amount_in - fee)
"""

from __future__ import annotations

from amm.constants import BPS_DENOMINATOR, ZERO_ADDRESS
from amm.errors import InsufficientLiquidity, InvalidPair, ZeroAmount
from amm.models.types import normalize_address
from amm.safe_int import DivisionByZero, S

__all__ = [
    "sort_tokens",
    "sqrt",
    "mul_div",
    "get_amount_out",
    "calculate_optimal_amounts",
    "calculate_liquidity",
    "calculate_remove_amounts",
    "calculate_protocol_fee",
]


def sort_tokens(token_a: str, token_b: str) -> tuple[str, str]:
    """Return the pair in canonical order (lower address first).

    Addresses are compared by numeric value after normalization, so
    sort_tokens(a, b) == sort_tokens(b, a).

    Raises:
        InvalidPair: If the tokens are equal or either is the null address
    """
    a = normalize_address(token_a)
    b = normalize_address(token_b)
    if a == b:
        raise InvalidPair(f"Identical tokens: {token_a}")
    if a == ZERO_ADDRESS or b == ZERO_ADDRESS:
        raise InvalidPair("Null address in pair")
    if int(a, 16) < int(b, 16):
        return a, b
    return b, a


def sqrt(x: int) -> int:
    """Integer square root via the Babylonian method, floor(sqrt(x))."""
    if x < 0:
        raise ValueError(f"sqrt of negative value: {x}")
    if x == 0:
        return 0
    if x <= 3:
        return 1
    z = x
    y = x // 2 + 1
    while y < z:
        z = y
        y = (x // y + y) // 2
    return z


def mul_div(x: int, y: int, z: int) -> int:
    """floor(x * y / z) through a single checked product.

    Raises:
        DivisionByZero: If z is zero
        Uint256Overflow: If x * y does not fit in uint256
    """
    if z == 0:
        raise DivisionByZero(f"mul_div by zero: {x} * {y} / 0")
    return (S(x).checked_mul(y) // z).value


def get_amount_out(amount_in: int, reserve_in: int, reserve_out: int, fee_bps: int) -> int:
    """Output amount for an exact-input swap.

    Args:
        amount_in: Input token amount (before fee)
        reserve_in: Reserve of input token in pool
        reserve_out: Reserve of output token in pool
        fee_bps: Trading fee in basis points (30 = 0.3%)

    Raises:
        ZeroAmount: If amount_in is zero
        InsufficientLiquidity: If either reserve is zero
    """
    if amount_in <= 0:
        raise ZeroAmount("amount_in must be positive")
    if reserve_in <= 0 or reserve_out <= 0:
        raise InsufficientLiquidity(f"Empty reserves: in={reserve_in}, out={reserve_out}")

    fee = mul_div(amount_in, fee_bps, BPS_DENOMINATOR)
    amount_in_after_fee = S(amount_in) - fee
    numerator = amount_in_after_fee.checked_mul(reserve_out)
    denominator = S(reserve_in) + amount_in_after_fee
    return (numerator // denominator).value


def calculate_optimal_amounts(
    amount_a_desired: int,
    amount_b_desired: int,
    reserve_a: int,
    reserve_b: int,
) -> tuple[int, int]:
    """Deposit amounts that match the pool ratio without exceeding either desire.

    A fresh pool (both reserves zero) accepts the desired amounts as-is.
    """
    if reserve_a == 0 and reserve_b == 0:
        return amount_a_desired, amount_b_desired

    amount_b_optimal = mul_div(reserve_b, amount_a_desired, reserve_a)
    if amount_b_optimal <= amount_b_desired:
        return amount_a_desired, amount_b_optimal

    amount_a_optimal = mul_div(reserve_a, amount_b_desired, reserve_b)
    return amount_a_optimal, amount_b_desired


def calculate_liquidity(
    amount_a: int,
    amount_b: int,
    reserve_a: int,
    reserve_b: int,
    total_supply: int,
) -> int:
    """LP shares minted for a deposit.

    First deposit: geometric mean of the amounts. Afterwards: the smaller
    of the two proportional shares, so imbalanced deposits donate the excess.
    """
    if total_supply == 0:
        return sqrt(S(amount_a).checked_mul(amount_b).value)

    liquidity_a = mul_div(amount_a, total_supply, reserve_a)
    liquidity_b = mul_div(amount_b, total_supply, reserve_b)
    return min(liquidity_a, liquidity_b)


def calculate_remove_amounts(
    lp_amount: int,
    reserve_a: int,
    reserve_b: int,
    total_supply: int,
) -> tuple[int, int]:
    """Pro-rata token amounts returned for burning lp_amount shares."""
    amount_a = mul_div(lp_amount, reserve_a, total_supply)
    amount_b = mul_div(lp_amount, reserve_b, total_supply)
    return amount_a, amount_b


def calculate_protocol_fee(trading_fee: int, protocol_fee_bps: int) -> int:
    """Protocol's cut of a trading fee, floor(trading_fee * bps / 10000)."""
    return mul_div(trading_fee, protocol_fee_bps, BPS_DENOMINATOR)
