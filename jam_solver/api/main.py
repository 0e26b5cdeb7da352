"""FastAPI application for the JAM solver."""

import os

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from jam_solver.api.endpoints import get_signer, router
from jam_solver.signing import TypedDataSigner

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("SOLVER_HOST", "0.0.0.0")
PORT = int(os.environ.get("SOLVER_PORT", "8000"))
DEBUG = os.environ.get("SOLVER_DEBUG", "false").lower() in ("true", "1", "yes")

# Maximum request body size (1 MB); JAM orders are small
MAX_REQUEST_SIZE = 1024 * 1024

app = FastAPI(
    title="JAM Solver (Bebop)",
    description="Builds signed Bebop settlement calls for JAM orders",
    version="0.1.0",
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


app.include_router(router)


@app.get("/health")
async def health(signer: TypedDataSigner | None = Depends(get_signer)) -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "signer_configured": signer is not None}


def run() -> None:
    """Run the solver API server.

    Configuration via environment variables:
    - SOLVER_HOST: Host to bind to (default: 0.0.0.0)
    - SOLVER_PORT: Port to bind to (default: 8000)
    - SOLVER_DEBUG: Enable debug/reload mode (default: false)
    - BEBOP_SETTLEMENT_ADDRESS: Settlement contract the maker signs for
    - BEBOP_MAKER_PRIVATE_KEY: Maker key; without it solver-calls returns 503
    - JAM_SOLVER_EXCESS, JAM_EXPIRY_HORIZON, JAM_NONCE_SPACE: adapter settings
    """
    uvicorn.run(
        "jam_solver.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
