"""Integer math for constant product pairs."""

from amm.math.pair_math import (
    calculate_liquidity,
    calculate_optimal_amounts,
    calculate_protocol_fee,
    calculate_remove_amounts,
    get_amount_out,
    mul_div,
    sort_tokens,
    sqrt,
)

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
