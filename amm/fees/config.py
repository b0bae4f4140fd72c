"""Fee configuration for the AMM engine."""

from __future__ import annotations

import os
from dataclasses import dataclass

from amm.constants import (
    DEFAULT_PROTOCOL_FEE_BPS,
    DEFAULT_TRADING_FEE_BPS,
    MAX_PROTOCOL_FEE_BPS,
    MAX_TRADING_FEE_BPS,
    ZERO_ADDRESS,
)
from amm.errors import InvalidFeeConfiguration
from amm.models.types import is_valid_address, is_zero_address, normalize_address


@dataclass(frozen=True)
class FeeConfig:
    """Swap fee parameters.

    Attributes:
        trading_fee_bps: Fee charged on every swap input (max 100 = 1%)
        protocol_fee_bps: Protocol share of the trading fee (max 3000 = 30%)
        fee_recipient: Address receiving collected protocol fees
        fees_enabled: When False, swaps are charged nothing
    """

    trading_fee_bps: int = DEFAULT_TRADING_FEE_BPS
    protocol_fee_bps: int = DEFAULT_PROTOCOL_FEE_BPS
    fee_recipient: str = ZERO_ADDRESS
    fees_enabled: bool = True

    def validate(self) -> FeeConfig:
        """Check fee bounds and recipient.

        Returns:
            self, with the recipient normalized

        Raises:
            InvalidFeeConfiguration: If any bound is violated
        """
        if not 0 <= self.trading_fee_bps <= MAX_TRADING_FEE_BPS:
            raise InvalidFeeConfiguration(
                f"trading_fee_bps {self.trading_fee_bps} outside [0, {MAX_TRADING_FEE_BPS}]"
            )
        if not 0 <= self.protocol_fee_bps <= MAX_PROTOCOL_FEE_BPS:
            raise InvalidFeeConfiguration(
                f"protocol_fee_bps {self.protocol_fee_bps} outside [0, {MAX_PROTOCOL_FEE_BPS}]"
            )
        if not is_valid_address(self.fee_recipient) or is_zero_address(self.fee_recipient):
            raise InvalidFeeConfiguration(f"Invalid fee recipient: {self.fee_recipient}")
        return FeeConfig(
            trading_fee_bps=self.trading_fee_bps,
            protocol_fee_bps=self.protocol_fee_bps,
            fee_recipient=normalize_address(self.fee_recipient),
            fees_enabled=self.fees_enabled,
        )

    @classmethod
    def from_env(cls, default_recipient: str = ZERO_ADDRESS) -> FeeConfig:
        """Build a config from AMM_* environment variables.

        - AMM_TRADING_FEE_BPS (default: 30)
        - AMM_PROTOCOL_FEE_BPS (default: 1667)
        - AMM_FEE_RECIPIENT (default: default_recipient)
        - AMM_FEES_ENABLED (default: true)
        """
        return cls(
            trading_fee_bps=int(os.environ.get("AMM_TRADING_FEE_BPS", DEFAULT_TRADING_FEE_BPS)),
            protocol_fee_bps=int(os.environ.get("AMM_PROTOCOL_FEE_BPS", DEFAULT_PROTOCOL_FEE_BPS)),
            fee_recipient=os.environ.get("AMM_FEE_RECIPIENT", default_recipient),
            fees_enabled=os.environ.get("AMM_FEES_ENABLED", "true").lower() in ("true", "1", "yes"),
        )
