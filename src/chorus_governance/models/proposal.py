# src/chorus_governance/models/proposal.py
"""Governance proposal and member-removal (kick) proposal aggregates."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class Proposal:
    """A multiple-choice proposal raised in a community.

    ``votes`` maps each voter's pubkey to the option index they chose; a later
    vote from the same pubkey replaces the earlier one.
    """

    id: str
    community_id: str
    title: str
    description: str
    options: tuple[str, ...]
    created_at: int
    ends_at: int
    creator: str
    votes: Mapping[str, int] = field(default_factory=dict)
    degraded: bool = False

    def is_active(self, now: float) -> bool:
        """Return True until ``ends_at`` has passed."""
        return self.ends_at > now

    def tally(self) -> list[int]:
        """Return the number of votes cast for each option, by option index."""
        counts = [0] * len(self.options)
        for option_index in self.votes.values():
            if 0 <= option_index < len(counts):
                counts[option_index] += 1
        return counts

    def with_vote(self, voter: str, option_index: int) -> Proposal:
        return replace(self, votes={**self.votes, voter: option_index})


@dataclass(frozen=True)
class KickProposal:
    """A proposal to remove ``target_member`` from a community.

    The creator's pubkey is the first entry of ``votes``. ``executed`` flips
    once quorum is reached and never flips back.
    """

    id: str
    community_id: str
    target_member: str
    votes: tuple[str, ...]
    created_at: int
    reason: str = ""
    executed: bool = False

    def with_vote(self, voter: str) -> KickProposal:
        if voter in self.votes:
            return self
        return replace(self, votes=(*self.votes, voter))
