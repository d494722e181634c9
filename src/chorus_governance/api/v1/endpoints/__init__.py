# src/chorus_governance/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .communities import router as communities_router
from .events import router as events_router
from .proposals import router as proposals_router
from .system import router as system_router

__all__ = [
    "communities_router",
    "events_router",
    "proposals_router",
    "system_router",
]
