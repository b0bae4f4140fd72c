"""Fee accounting result types."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SwapFees:
    """Split of a swap's trading fee.

    The LP share is never moved out of the pool: it stays in reserves and
    raises the value of every LP share.

    Examples:
        # 0.3% trading fee, 16.67% protocol share, 10000 in
        fees = SwapFees(trading_fee=30, protocol_fee=5, lp_fee=25)
        assert fees.trading_fee == fees.protocol_fee + fees.lp_fee
    """

    trading_fee: int
    protocol_fee: int
    lp_fee: int

    @classmethod
    def zero(cls) -> "SwapFees":
        return cls(trading_fee=0, protocol_fee=0, lp_fee=0)

    @property
    def is_zero(self) -> bool:
        return self.trading_fee == 0


@dataclass
class ProtocolFees:
    """Protocol fees accumulated by a pool, per token side."""

    amount_a: int = 0
    amount_b: int = 0

    @property
    def is_empty(self) -> bool:
        return self.amount_a == 0 and self.amount_b == 0


@dataclass
class FeeStats:
    """Cumulative trading fees charged by a pool, per input token side."""

    total_trading_fees_a: int = 0
    total_trading_fees_b: int = 0
    last_updated: int = 0
