"""FastAPI application for the AMM engine.

Note: Authentication is intentionally not implemented; callers are
identified by the ``caller`` field of each request. Signature checks belong
in front of this service.
"""

import os

import structlog
import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from amm.api.endpoints import get_engine, router
from amm.core import AMMCore
from amm.errors import (
    AMMError,
    LiquidityIsLocked,
    PoolDoesNotExist,
    ReentrantCall,
    Unauthorized,
)
from amm.models.api import ErrorResponse, HealthResponse

logger = structlog.get_logger()

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("AMM_HOST", "0.0.0.0")
PORT = int(os.environ.get("AMM_PORT", "8000"))
DEBUG = os.environ.get("AMM_DEBUG", "false").lower() in ("true", "1", "yes")

# Maximum request body size (1 MB)
MAX_REQUEST_SIZE = 1024 * 1024

app = FastAPI(
    title="AMM Engine",
    description="Constant product AMM with fee accounting, liquidity locks and LP earnings",
    version="0.1.0",
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


def status_for(error: AMMError) -> int:
    """HTTP status for an engine error."""
    if isinstance(error, PoolDoesNotExist):
        return 404
    if isinstance(error, Unauthorized):
        return 403
    if isinstance(error, (LiquidityIsLocked, ReentrantCall)):
        return 409
    return 400


@app.exception_handler(AMMError)
async def amm_error_handler(request: Request, exc: AMMError) -> JSONResponse:
    status = status_for(exc)
    logger.info("request_rejected", path=request.url.path, error=exc.code, status=status)
    body = ErrorResponse(error=exc.code, detail=str(exc))
    return JSONResponse(status_code=status, content=body.model_dump())


app.include_router(
    router,
    responses={code: {"model": ErrorResponse} for code in (400, 403, 404, 409)},
)


@app.get("/health")
async def health(engine: AMMCore = Depends(get_engine)) -> HealthResponse:
    """Health check endpoint reporting the state of the engine being served."""
    return HealthResponse(
        status="ok",
        pools=len(engine.get_all_pairs()),
        fees_enabled=engine.get_fee_config().fees_enabled,
    )


def run() -> None:
    """Run the AMM API server.

    Configuration via environment variables:
    - AMM_HOST: Host to bind to (default: 0.0.0.0)
    - AMM_PORT: Port to bind to (default: 8000)
    - AMM_DEBUG: Enable debug/reload mode (default: false)
    """
    uvicorn.run(
        "amm.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
