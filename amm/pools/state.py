"""Pool records for constant product pairs."""

from __future__ import annotations

from dataclasses import dataclass, field

from amm.math.pair_math import sort_tokens
from amm.models.types import normalize_address


@dataclass(frozen=True)
class PairKey:
    """Canonical (lower address first) key for a token pair."""

    token_a: str
    token_b: str

    @classmethod
    def of(cls, token_x: str, token_y: str) -> PairKey:
        """Build the canonical key for two tokens in any order.

        Raises:
            InvalidPair: If tokens are equal or either is the null address
        """
        token_a, token_b = sort_tokens(token_x, token_y)
        return cls(token_a, token_b)

    def is_token_a(self, token: str) -> bool:
        return normalize_address(token) == self.token_a

    def __str__(self) -> str:
        return f"{self.token_a[-8:]}/{self.token_b[-8:]}"


@dataclass
class TWAPData:
    """Uniswap-V2-style cumulative price oracle.

    Sampled externally: average price over [t1, t2] is
    (cumulative_t2 - cumulative_t1) / (t2 - t1).
    """

    price0_cumulative_last: int = 0
    price1_cumulative_last: int = 0
    block_timestamp_last: int = 0


@dataclass
class Pool:
    """A constant product pool.

    reserve_a/reserve_b follow the canonical order of ``key``.
    total_lp_supply caches the LP ledger's supply and is refreshed on every
    mint and burn.
    """

    key: PairKey
    reserve_a: int = 0
    reserve_b: int = 0
    total_lp_supply: int = 0
    # reserve_a * reserve_b at last update (informational)
    k_last: int = 0
    created_at: int = 0
    twap: TWAPData = field(default_factory=TWAPData)

    @property
    def token_a(self) -> str:
        return self.key.token_a

    @property
    def token_b(self) -> str:
        return self.key.token_b

    def get_reserves(self, token_in: str) -> tuple[int, int]:
        """Get reserves ordered as (reserve_in, reserve_out)."""
        token_in_norm = normalize_address(token_in)
        if token_in_norm == self.token_a:
            return self.reserve_a, self.reserve_b
        elif token_in_norm == self.token_b:
            return self.reserve_b, self.reserve_a
        else:
            raise ValueError(f"Token {token_in} not in pool")
