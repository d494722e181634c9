# src/chorus_governance/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    communities_router,
    events_router,
    proposals_router,
    system_router,
)

__all__ = [
    "communities_router",
    "events_router",
    "proposals_router",
    "system_router",
]
