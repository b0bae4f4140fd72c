"""API endpoints for the AMM engine."""

import time

import structlog
from fastapi import APIRouter, Depends

from amm.core import AMMCore
from amm.engine import get_default_engine
from amm.models.api import (
    AddLiquidityRequest,
    EarningsResponse,
    FeeConfigResponse,
    LiquidityResponse,
    LockResponse,
    PoolResponse,
    RemoveLiquidityRequest,
    SwapRequest,
    SwapResponse,
    UnlockRequest,
)
from amm.pools.state import Pool

logger = structlog.get_logger()

router = APIRouter()


def get_engine() -> AMMCore:
    """Dependency provider for the engine instance.

    Override this in tests to inject a prepared engine:
        app.dependency_overrides[get_engine] = lambda: engine
    """
    return get_default_engine()


def _now(requested: int | None) -> int:
    return requested if requested is not None else int(time.time())


def _pool_response(pool: Pool) -> PoolResponse:
    return PoolResponse(
        token_a=pool.token_a,
        token_b=pool.token_b,
        reserve_a=str(pool.reserve_a),
        reserve_b=str(pool.reserve_b),
        total_lp_supply=str(pool.total_lp_supply),
        k_last=str(pool.k_last),
        price0_cumulative_last=str(pool.twap.price0_cumulative_last),
        price1_cumulative_last=str(pool.twap.price1_cumulative_last),
        block_timestamp_last=pool.twap.block_timestamp_last,
    )


@router.get("/pools")
async def list_pools(engine: AMMCore = Depends(get_engine)) -> list[PoolResponse]:
    """All pools in creation order."""
    return [_pool_response(pool) for pool in engine.get_all_pools()]


@router.get("/pools/{token_a}/{token_b}")
async def get_pool(token_a: str, token_b: str, engine: AMMCore = Depends(get_engine)) -> PoolResponse:
    return _pool_response(engine.get_pool(token_a, token_b))


@router.get("/quote/swap")
async def quote_swap(
    token_in: str,
    token_out: str,
    amount_in: int,
    engine: AMMCore = Depends(get_engine),
) -> SwapResponse:
    """Quote an exact-input swap without executing it."""
    amount_out = engine.get_amount_out(amount_in, token_in, token_out)
    fees = engine.calculate_expected_fees(amount_in)
    return SwapResponse(
        amount_in=str(amount_in),
        amount_out=str(amount_out),
        trading_fee=str(fees.trading_fee),
        protocol_fee=str(fees.protocol_fee),
        lp_fee=str(fees.lp_fee),
    )


@router.get("/quote/remove")
async def quote_remove(
    token_a: str,
    token_b: str,
    lp_amount: int,
    engine: AMMCore = Depends(get_engine),
) -> LiquidityResponse:
    amount_a, amount_b = engine.get_remove_liquidity_quote(token_a, token_b, lp_amount)
    return LiquidityResponse(amount_a=str(amount_a), amount_b=str(amount_b), liquidity=str(lp_amount))


@router.get("/fees/config")
async def fee_config(engine: AMMCore = Depends(get_engine)) -> FeeConfigResponse:
    config = engine.get_fee_config()
    return FeeConfigResponse(
        trading_fee_bps=config.trading_fee_bps,
        protocol_fee_bps=config.protocol_fee_bps,
        fee_recipient=config.fee_recipient,
        fees_enabled=config.fees_enabled,
    )


@router.get("/fees/expected")
async def expected_fees(amount_in: int, engine: AMMCore = Depends(get_engine)) -> dict[str, str]:
    fees = engine.calculate_expected_fees(amount_in)
    return {
        "trading_fee": str(fees.trading_fee),
        "protocol_fee": str(fees.protocol_fee),
        "lp_fee": str(fees.lp_fee),
    }


@router.get("/locks/{token_a}/{token_b}/{owner}")
async def get_lock(
    token_a: str,
    token_b: str,
    owner: str,
    now: int | None = None,
    engine: AMMCore = Depends(get_engine),
) -> LockResponse:
    at = _now(now)
    lock = engine.get_liquidity_lock(token_a, token_b, owner)
    response = LockResponse(
        is_locked=engine.is_liquidity_locked(token_a, token_b, owner, at),
        withdrawable=str(engine.get_withdrawable_lp_amount(token_a, token_b, owner, at)),
    )
    if lock is not None:
        response.project_id = lock.project_id
        response.unlock_time = lock.unlock_time
        response.locked_lp_amount = str(lock.locked_lp_amount)
        response.is_active = lock.is_active
    return response


@router.get("/earnings/{token_a}/{token_b}/{user}")
async def get_earnings(
    token_a: str,
    token_b: str,
    user: str,
    now: int | None = None,
    engine: AMMCore = Depends(get_engine),
) -> EarningsResponse:
    """Earnings of user's position, in the pool's canonical token order."""
    report = engine.get_unrealized_earnings(user, token_a, token_b, _now(now))
    pool = engine.get_pool(token_a, token_b)
    realized_a, realized_b = engine.get_realized_earnings(user, pool.token_a, pool.token_b)
    return EarningsResponse(
        lp_balance=str(report.lp_balance),
        deposited_a=str(report.deposited_a),
        deposited_b=str(report.deposited_b),
        current_a=str(report.current_a),
        current_b=str(report.current_b),
        earnings_a=str(report.earnings_a),
        earnings_b=str(report.earnings_b),
        apy_bps=report.apy_bps,
        realized_a=str(realized_a),
        realized_b=str(realized_b),
    )


@router.post("/liquidity/add")
def add_liquidity(request: AddLiquidityRequest, engine: AMMCore = Depends(get_engine)) -> LiquidityResponse:
    result = engine.add_liquidity(
        request.caller,
        request.token_a,
        request.token_b,
        request.amount_a_desired,
        request.amount_b_desired,
        request.amount_a_min,
        request.amount_b_min,
        request.to,
        request.deadline,
        _now(request.now),
    )
    return LiquidityResponse(
        amount_a=str(result.amount_a), amount_b=str(result.amount_b), liquidity=str(result.liquidity)
    )


@router.post("/liquidity/remove")
def remove_liquidity(request: RemoveLiquidityRequest, engine: AMMCore = Depends(get_engine)) -> LiquidityResponse:
    result = engine.remove_liquidity(
        request.caller,
        request.token_a,
        request.token_b,
        request.lp_amount,
        request.amount_a_min,
        request.amount_b_min,
        request.to,
        request.deadline,
        _now(request.now),
    )
    return LiquidityResponse(
        amount_a=str(result.amount_a),
        amount_b=str(result.amount_b),
        liquidity=str(result.liquidity),
        earnings_a=str(result.earnings_a),
        earnings_b=str(result.earnings_b),
    )


@router.post("/swap")
def swap(request: SwapRequest, engine: AMMCore = Depends(get_engine)) -> SwapResponse:
    result = engine.swap_token_for_token(
        request.caller,
        request.token_in,
        request.token_out,
        request.amount_in,
        request.min_amount_out,
        request.to,
        request.deadline,
        _now(request.now),
    )
    return SwapResponse(
        amount_in=str(result.amount_in),
        amount_out=str(result.amount_out),
        trading_fee=str(result.fees.trading_fee),
        protocol_fee=str(result.fees.protocol_fee),
        lp_fee=str(result.fees.lp_fee),
    )


@router.post("/locks/unlock")
def unlock(request: UnlockRequest, engine: AMMCore = Depends(get_engine)) -> LockResponse:
    at = _now(request.now)
    lock = engine.unlock_liquidity(request.caller, request.token_a, request.token_b, at)
    return LockResponse(
        is_locked=False,
        withdrawable=str(engine.get_withdrawable_lp_amount(request.token_a, request.token_b, request.caller, at)),
        project_id=lock.project_id,
        unlock_time=lock.unlock_time,
        locked_lp_amount=str(lock.locked_lp_amount),
        is_active=lock.is_active,
    )
