"""System and monitoring endpoints for Chorus Governance."""

from __future__ import annotations

import time

from fastapi import APIRouter

from chorus_governance.api.v1.dependencies import ProjectionDep
from chorus_governance.core.settings import settings
from chorus_governance.services.relay import get_relay_client, relay_gateway_enabled

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets; suitable for transparency UIs.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "debug": settings.debug,
        },
        "governance": {
            "kick_quorum_ratio": settings.kick_quorum_ratio,
            "proposal_default_duration_seconds": settings.proposal_default_duration_seconds,
            "pending_votes": {
                "max_buckets": settings.pending_votes_max_buckets,
                "max_per_bucket": settings.pending_votes_max_per_bucket,
                "ttl_seconds": settings.pending_votes_ttl_seconds,
            },
            "followed_communities": settings.followed_communities,
        },
        "relay_gateway": {
            "enabled": relay_gateway_enabled(),
            "base_url": settings.relay_gateway_base_url,
        },
    }


@router.get("/status")
async def get_system_status(projection: ProjectionDep) -> dict[str, object]:
    """Get projection counters for monitoring dashboards."""
    snapshot = projection.snapshot
    return {
        "service": "chorus-governance",
        "version": settings.app_version,
        "status": "operational",
        "timestamp": int(time.time()),
        "projection": {
            "communities": len(snapshot.communities),
            "proposals": len(snapshot.proposals),
            "kick_proposals": len(snapshot.kick_proposals),
            "invites": len(snapshot.invites),
            "pending_vote_buckets": len(snapshot.pending_votes),
            "pending_kick_vote_buckets": len(snapshot.pending_kick_votes),
            "queued_commands": projection.pending_command_count,
        },
        "environment": "production" if not settings.debug else "development",
    }


@router.get("/relay/health")
async def get_relay_health() -> dict[str, object]:
    """Get relay gateway health status and circuit breaker information."""
    if not relay_gateway_enabled():
        return {
            "status": "disabled",
            "enabled": False,
            "error": "Relay gateway integration is disabled"
        }
    return await get_relay_client().health_check()


@router.get("/relay/metrics")
async def get_relay_metrics() -> dict[str, object]:
    """Get relay gateway operation metrics."""
    if not relay_gateway_enabled():
        return {
            "enabled": False,
            "error": "Relay gateway integration is disabled"
        }
    return get_relay_client().get_metrics()
