# src/chorus_governance/main.py
"""Main entry point for the Chorus Governance service."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from chorus_governance import __version__
from chorus_governance.api.v1 import (
    communities_router,
    events_router,
    proposals_router,
    system_router,
)
from chorus_governance.core.settings import settings
from chorus_governance.services.effects import KickExecutor
from chorus_governance.services.projection import GovernanceProjection
from chorus_governance.services.relay import get_relay_client, relay_gateway_enabled
from chorus_governance.services.relay_sync import RelaySyncWorker
from chorus_governance.services.subscriptions import CommunitySubscription

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Chorus Governance API",
    description="Community governance state projected from relay events",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(communities_router, prefix="/api/v1")
app.include_router(proposals_router, prefix="/api/v1")
app.include_router(events_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    projection = GovernanceProjection()
    executor = KickExecutor(projection, get_relay_client())
    app.state.projection = projection
    app.state.kick_executor = executor
    app.state.subscriptions = []
    app.state.relay_worker = None

    if relay_gateway_enabled():
        worker = RelaySyncWorker(get_relay_client(), executor)
        for community_id in settings.followed_communities:
            subscription = CommunitySubscription(worker, projection, community_id)
            subscription.open()
            app.state.subscriptions.append(subscription)
        await worker.start()
        app.state.relay_worker = worker
        logger.info(
            "Relay sync started for %d followed communities", len(app.state.subscriptions)
        )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    for subscription in getattr(app.state, "subscriptions", []):
        subscription.close()
    worker: RelaySyncWorker | None = getattr(app.state, "relay_worker", None)
    if worker:
        await worker.stop()
    executor: KickExecutor | None = getattr(app.state, "kick_executor", None)
    if executor:
        await executor.wait_idle()
    if relay_gateway_enabled():
        await get_relay_client().close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Chorus Governance API",
        "version": __version__,
        "description": "Community governance state projected from relay events",
        "docs": "/docs",
        "redoc": "/redoc"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("chorus_governance.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
