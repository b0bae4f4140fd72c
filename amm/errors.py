"""AMM error classes.

Every failure aborts the whole operation; state is left untouched.
Each class carries a stable ``code`` used by the service surface.
Arithmetic errors (DivisionByZero, Underflow, Uint256Overflow) live in
amm.safe_int and share this base class.
"""


class AMMError(Exception):
    """Base error for AMM operations."""

    code = "amm_error"


# --- Caller-input errors ---


class InvalidPair(AMMError):
    """Tokens are identical or one of them is the null address."""

    code = "invalid_pair"


class InvalidTokenAddress(AMMError):
    """Token address is malformed, null, or input equals output."""

    code = "invalid_token_address"


class InvalidRecipient(AMMError):
    """Recipient is the null address."""

    code = "invalid_recipient"


class ZeroAmount(AMMError):
    """Amount must be positive."""

    code = "zero_amount"


class DeadlineExpired(AMMError):
    """Current time is at or past the caller's deadline."""

    code = "deadline_expired"


class SlippageTooHigh(AMMError):
    """Executed amount is below the caller's minimum."""

    code = "slippage_too_high"


class PoolDoesNotExist(AMMError):
    """No pool exists for the token pair."""

    code = "pool_does_not_exist"


class PoolAlreadyExists(AMMError):
    """A pool already exists for the token pair."""

    code = "pool_already_exists"


class InsufficientLPBalance(AMMError):
    """Owner holds fewer LP shares than requested."""

    code = "insufficient_lp_balance"


class InvalidFeeConfiguration(AMMError):
    """Fee bounds violated or fee recipient is null."""

    code = "invalid_fee_configuration"


class NoFeesToCollect(AMMError):
    """Both protocol fee counters are zero."""

    code = "no_fees_to_collect"


# --- Authorization errors ---


class Unauthorized(AMMError):
    """Caller is not permitted to invoke this operation."""

    code = "unauthorized"


class UnauthorizedPoolCreation(Unauthorized):
    """Only the launch collaborator may create pools for project tokens."""

    code = "unauthorized_pool_creation"


# --- Invariant guards ---


class InsufficientLiquidity(AMMError):
    """Reserves are empty or too small for the requested output."""

    code = "insufficient_liquidity"


class ZeroLiquidity(AMMError):
    """Deposit would mint zero LP shares."""

    code = "zero_liquidity"


# --- Locks ---


class InvalidLockData(AMMError):
    """Lock parameters are invalid or there is no active lock."""

    code = "invalid_lock_data"


class LiquidityIsLocked(AMMError):
    """Requested withdrawal touches time-locked LP shares."""

    code = "liquidity_is_locked"


# --- Collaborators and execution ---


class TransferFailed(AMMError):
    """Token transfer collaborator reported failure."""

    code = "transfer_failed"


class ReentrantCall(AMMError):
    """A mutating call re-entered a pool that is mid-operation."""

    code = "reentrant_call"
