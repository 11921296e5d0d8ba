"""FastAPI application exposing the pool engine over HTTP.

The engine behind the service uses an in-memory ledger, so the service is a
local simulation venue: balances are funded through the /ledger endpoints.
"""

import logging
import os

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cpamm import __version__
from cpamm.api.endpoints import router
from cpamm.errors import AMMError, PairNotFound
from cpamm.ledger import LedgerError

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("CPAMM_HOST", "127.0.0.1")
PORT = int(os.environ.get("CPAMM_PORT", "8000"))
DEBUG = os.environ.get("CPAMM_DEBUG", "false").lower() in ("true", "1", "yes")

# Maximum request body size (64 KB); every payload is a handful of fields
MAX_REQUEST_SIZE = 64 * 1024

logger = structlog.get_logger()

app = FastAPI(
    title="cpamm",
    description="Constant-product AMM pool engine",
    version=__version__,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


@app.exception_handler(AMMError)
async def amm_error_handler(_request: Request, exc: AMMError) -> JSONResponse:
    """Rejected operations are client errors: 404 for unknown pairs, 400 otherwise."""
    status_code = 404 if isinstance(exc, PairNotFound) else 400
    logger.info("operation_rejected", code=exc.code, detail=str(exc))
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "code": exc.code})


@app.exception_handler(LedgerError)
async def ledger_error_handler(_request: Request, exc: LedgerError) -> JSONResponse:
    logger.info("transfer_rejected", code=exc.code, detail=str(exc))
    return JSONResponse(status_code=400, content={"detail": str(exc), "code": exc.code})


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def configure_logging(verbose: bool = False) -> None:
    """Console logging for the service process."""
    log_level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
    )


def run() -> None:
    """Run the API server.

    Configuration via environment variables:
    - CPAMM_HOST: Host to bind to (default: 127.0.0.1)
    - CPAMM_PORT: Port to bind to (default: 8000)
    - CPAMM_DEBUG: Enable debug logging and reload mode (default: false)
    - CPAMM_CUSTODY_ADDRESS: Ledger identity holding pooled assets
    """
    configure_logging(verbose=DEBUG)
    uvicorn.run(
        "cpamm.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
