"""Protocol constants for the AMM engine.

Centralizes fee bounds, defaults and well-known values.
"""

# Basis point denominator (10000 bps = 100%)
BPS_DENOMINATOR = 10_000

# Trading fee may not exceed 1% of the input amount
MAX_TRADING_FEE_BPS = 100

# Protocol share may not exceed 30% of the trading fee
MAX_PROTOCOL_FEE_BPS = 3_000

# Defaults: 0.3% trading fee, 16.67% of it to the protocol
DEFAULT_TRADING_FEE_BPS = 30
DEFAULT_PROTOCOL_FEE_BPS = 1_667

# The null address (never a valid token, recipient or fee recipient)
ZERO_ADDRESS = "0x" + "0" * 40

# Used to annualize earnings
SECONDS_PER_DAY = 86_400
SECONDS_PER_YEAR = 365 * SECONDS_PER_DAY
