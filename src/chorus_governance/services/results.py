# src/chorus_governance/services/results.py
"""Result and configuration types shared by every reducer."""

from __future__ import annotations

from dataclasses import dataclass

from chorus_governance.core.settings import settings
from chorus_governance.models.snapshot import GovernanceSnapshot, KickCommand


@dataclass(frozen=True)
class ProjectionConfig:
    """Immutable tunables for the reducers."""

    kick_quorum_ratio: float = 0.51
    proposal_default_duration_seconds: int = 7 * 24 * 60 * 60
    pending_max_buckets: int = 1_000
    pending_max_per_bucket: int = 500
    pending_ttl_seconds: int = 3_600


def load_projection_config() -> ProjectionConfig:
    """Build configuration object from global settings."""

    return ProjectionConfig(
        kick_quorum_ratio=settings.kick_quorum_ratio,
        proposal_default_duration_seconds=settings.proposal_default_duration_seconds,
        pending_max_buckets=settings.pending_votes_max_buckets,
        pending_max_per_bucket=settings.pending_votes_max_per_bucket,
        pending_ttl_seconds=settings.pending_votes_ttl_seconds,
    )


@dataclass(frozen=True)
class ReduceResult:
    """Result of applying one event to a snapshot.

    Reducers never raise; a rejected event comes back with the input snapshot
    and a reason. ``commands`` carries side effects for the effect runner.
    """

    snapshot: GovernanceSnapshot
    accepted: bool
    reason: str | None = None
    commands: tuple[KickCommand, ...] = ()


def accept(snapshot: GovernanceSnapshot, commands: tuple[KickCommand, ...] = ()) -> ReduceResult:
    return ReduceResult(snapshot=snapshot, accepted=True, commands=commands)


def reject(snapshot: GovernanceSnapshot, reason: str) -> ReduceResult:
    return ReduceResult(snapshot=snapshot, accepted=False, reason=reason)
