"""FastAPI application for the ethpm-registry HTTP API.

Provides REST API endpoints wrapping the ethpm_registry package for:
- Publishing releases and transferring package ownership
- Looking up manifest URIs, versions and owners
- Validating EthPM v3 manifest documents
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ethpm_registry import __version__
from web.backend.app.routers import registry

app = FastAPI(
    title="ethpm-registry API",
    description=(
        "REST API for an append-only EthPM package registry. "
        "Provides endpoints for publishing releases, transferring ownership, "
        "resolving manifest URIs and validating manifests."
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

app.include_router(registry.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "ethpm-registry API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
