"""FastAPI application for the modgov governance engine.

Provides REST endpoints wrapping the modgov package:
- Reporting content and reading report counts
- Reading proposals and tallies
- Casting votes
- Settling expired proposals
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from modgov import __version__
from modgov.errors import GovernanceError
from web.backend.app.routers import governance

logger = logging.getLogger(__name__)

app = FastAPI(
    title="modgov API",
    description=(
        "REST API for report-driven moderation governance: reports, "
        "token-weighted removal votes and settlement."
    ),
    version=__version__,
)

# ---------------------------------------------------------------------------
# CORS middleware (allow all origins for development)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Routers and error mapping
# ---------------------------------------------------------------------------
app.include_router(governance.router)


@app.exception_handler(GovernanceError)
async def governance_error_handler(request: Request, exc: GovernanceError):
    code = governance.status_for(exc)
    logger.debug("%s %s -> %d %s", request.method, request.url.path, code, exc.code)
    return JSONResponse(status_code=code, content={"code": exc.code, "message": exc.message})


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "modgov API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
