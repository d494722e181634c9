# src/chorus_governance/models/__init__.py
"""In-memory aggregates for the governance projection."""

from .community import Community, InviteLink
from .kinds import EventKind, EventRole
from .proposal import KickProposal, Proposal
from .snapshot import GovernanceSnapshot, KickCommand, PendingBucket

__all__ = [
    "Community", "InviteLink",
    "EventKind", "EventRole",
    "KickProposal", "Proposal",
    "GovernanceSnapshot", "KickCommand", "PendingBucket",
]
