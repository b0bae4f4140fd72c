"""Pydantic request/response models for the engine's HTTP surface."""

from pydantic import BaseModel, Field

from amm.models.types import Address, Uint256


class EngineRequest(BaseModel):
    """Common fields of mutating requests.

    ``now`` defaults to the server clock when omitted.
    """

    caller: Address
    now: int | None = Field(default=None, ge=0)


class AddLiquidityRequest(EngineRequest):
    token_a: Address = Field(alias="tokenA")
    token_b: Address = Field(alias="tokenB")
    amount_a_desired: Uint256 = Field(alias="amountADesired")
    amount_b_desired: Uint256 = Field(alias="amountBDesired")
    amount_a_min: Uint256 = Field(default=0, alias="amountAMin")
    amount_b_min: Uint256 = Field(default=0, alias="amountBMin")
    to: Address
    deadline: int = Field(ge=0)

    model_config = {"populate_by_name": True}


class RemoveLiquidityRequest(EngineRequest):
    token_a: Address = Field(alias="tokenA")
    token_b: Address = Field(alias="tokenB")
    lp_amount: Uint256 = Field(alias="lpAmount")
    amount_a_min: Uint256 = Field(default=0, alias="amountAMin")
    amount_b_min: Uint256 = Field(default=0, alias="amountBMin")
    to: Address
    deadline: int = Field(ge=0)

    model_config = {"populate_by_name": True}


class SwapRequest(EngineRequest):
    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    amount_in: Uint256 = Field(alias="amountIn")
    min_amount_out: Uint256 = Field(default=0, alias="minAmountOut")
    to: Address
    deadline: int = Field(ge=0)

    model_config = {"populate_by_name": True}


class UnlockRequest(EngineRequest):
    token_a: Address = Field(alias="tokenA")
    token_b: Address = Field(alias="tokenB")

    model_config = {"populate_by_name": True}


class PoolResponse(BaseModel):
    token_a: str
    token_b: str
    reserve_a: str
    reserve_b: str
    total_lp_supply: str
    k_last: str
    price0_cumulative_last: str
    price1_cumulative_last: str
    block_timestamp_last: int


class LiquidityResponse(BaseModel):
    amount_a: str
    amount_b: str
    liquidity: str
    earnings_a: str | None = None
    earnings_b: str | None = None


class SwapResponse(BaseModel):
    amount_in: str
    amount_out: str
    trading_fee: str
    protocol_fee: str
    lp_fee: str


class FeeConfigResponse(BaseModel):
    trading_fee_bps: int
    protocol_fee_bps: int
    fee_recipient: str
    fees_enabled: bool


class LockResponse(BaseModel):
    is_locked: bool
    withdrawable: str
    project_id: int | None = None
    unlock_time: int | None = None
    locked_lp_amount: str | None = None
    is_active: bool | None = None


class EarningsResponse(BaseModel):
    lp_balance: str
    deposited_a: str
    deposited_b: str
    current_a: str
    current_b: str
    earnings_a: str
    earnings_b: str
    apy_bps: int
    realized_a: str
    realized_b: str


class ErrorResponse(BaseModel):
    error: str
    detail: str


class HealthResponse(BaseModel):
    status: str
    pools: int
    fees_enabled: bool
