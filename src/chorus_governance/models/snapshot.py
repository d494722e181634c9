# src/chorus_governance/models/snapshot.py
"""Immutable projection snapshot and the commands reducers emit."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from chorus_governance.models.community import Community, InviteLink
from chorus_governance.models.proposal import KickProposal, Proposal
from chorus_governance.schemas.event import RelayEvent


@dataclass(frozen=True)
class KickCommand:
    """Instruction to remove ``target_member`` from a community."""

    community_id: str
    target_member: str
    kick_proposal_id: str


@dataclass(frozen=True)
class PendingBucket:
    """Events waiting for the aggregate they reference, in receipt order."""

    first_received_at: float
    events: tuple[RelayEvent, ...] = ()


@dataclass(frozen=True)
class GovernanceSnapshot:
    """Everything the projector knows, as of the last applied event.

    Snapshots are never mutated; reducers build a new one with ``evolve``.
    Communities are keyed by ``unique_id``; ``community_aliases`` maps every
    definition event id seen to that key.
    """

    communities: Mapping[str, Community] = field(default_factory=dict)
    community_aliases: Mapping[str, str] = field(default_factory=dict)
    proposals: Mapping[str, Proposal] = field(default_factory=dict)
    kick_proposals: Mapping[str, KickProposal] = field(default_factory=dict)
    invites: Mapping[str, InviteLink] = field(default_factory=dict)
    pending_votes: Mapping[str, PendingBucket] = field(default_factory=dict)
    pending_kick_votes: Mapping[str, PendingBucket] = field(default_factory=dict)

    def evolve(self, **changes: Any) -> GovernanceSnapshot:
        return replace(self, **changes)

    def community_key(self, community_id: str) -> str | None:
        """Resolve a definition event id or unique id to the community key."""
        if community_id in self.community_aliases:
            return self.community_aliases[community_id]
        if community_id in self.communities:
            return community_id
        return None

    def community(self, community_id: str) -> Community | None:
        key = self.community_key(community_id)
        return self.communities.get(key) if key is not None else None

    def _same_community(self, reference: str, community_id: str) -> bool:
        key = self.community_key(community_id) or community_id
        return (self.community_key(reference) or reference) == key

    def proposals_for(self, community_id: str) -> list[Proposal]:
        """Proposals of one community, newest first."""
        matching = [p for p in self.proposals.values() if self._same_community(p.community_id, community_id)]
        return sorted(matching, key=lambda p: p.created_at, reverse=True)

    def kick_proposals_for(self, community_id: str) -> list[KickProposal]:
        return [
            p for p in self.kick_proposals.values() if self._same_community(p.community_id, community_id)
        ]

    def invites_for(self, community_id: str) -> list[InviteLink]:
        return [i for i in self.invites.values() if self._same_community(i.community_id, community_id)]
