"""FastAPI application serving read-only stable-swap quotes."""

import os

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from yieldswap import __version__
from yieldswap.amm import StableSwapError
from yieldswap.api.endpoints import router
from yieldswap.log_config import configure_logging

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("YIELDSWAP_HOST", "0.0.0.0")
PORT = int(os.environ.get("YIELDSWAP_PORT", "8000"))
DEBUG = os.environ.get("YIELDSWAP_DEBUG", "false").lower() in ("true", "1", "yes")

# Maximum request body size (1 MB)
MAX_REQUEST_SIZE = 1024 * 1024

logger = structlog.get_logger()

app = FastAPI(
    title="yieldswap",
    description="Quotes for rate-aware two-asset stable-swap pools",
    version=__version__,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


@app.exception_handler(StableSwapError)
async def stable_swap_error_handler(request: Request, exc: StableSwapError) -> JSONResponse:
    """Map engine errors to 400 with the error class name."""
    logger.info(
        "quote_rejected",
        path=request.url.path,
        error=type(exc).__name__,
        detail=str(exc),
    )
    return JSONResponse(
        status_code=400,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Run the quote API server.

    Configuration via environment variables:
    - YIELDSWAP_HOST: Host to bind to (default: 0.0.0.0)
    - YIELDSWAP_PORT: Port to bind to (default: 8000)
    - YIELDSWAP_DEBUG: Enable debug/reload mode (default: false)
    - YIELDSWAP_POOLS_FILE: JSON list of pool configs to serve
    - YIELDSWAP_LOG_LEVEL / YIELDSWAP_LOG_JSON: logging setup
    """
    configure_logging()
    uvicorn.run(
        "yieldswap.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
