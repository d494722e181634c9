# src/chorus_governance/services/__init__.py
"""Projection, effect and relay services for Chorus Governance."""

from .effects import KickExecutor
from .projection import GovernanceProjection
from .reducer import reduce, reduce_all
from .relay import (
    RelayDisabledError,
    RelayError,
    RelayGatewayClient,
    RelayRejectedError,
    RelayUnavailableError,
)
from .relay_sync import RelaySyncWorker
from .subscriptions import CommunitySubscription

__all__ = [
    "GovernanceProjection",
    "KickExecutor",
    "reduce", "reduce_all",
    "RelayGatewayClient", "RelayError", "RelayDisabledError",
    "RelayRejectedError", "RelayUnavailableError",
    "RelaySyncWorker",
    "CommunitySubscription",
]
