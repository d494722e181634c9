# src/chorus_governance/schemas/proposal.py
"""Proposal-related Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from chorus_governance.models.proposal import KickProposal, Proposal


class ProposalResponse(BaseModel):
    """Schema for proposal information returned by the API.

    ``tally`` holds the vote count per option, in option order.
    """

    id: str
    community_id: str
    title: str
    description: str
    options: list[str]
    created_at: int
    ends_at: int
    creator: str
    votes: dict[str, int]
    tally: list[int]
    active: bool
    degraded: bool = False

    @classmethod
    def from_proposal(cls, proposal: Proposal, now: float) -> ProposalResponse:
        return cls(
            id=proposal.id,
            community_id=proposal.community_id,
            title=proposal.title,
            description=proposal.description,
            options=list(proposal.options),
            created_at=proposal.created_at,
            ends_at=proposal.ends_at,
            creator=proposal.creator,
            votes=dict(proposal.votes),
            tally=proposal.tally(),
            active=proposal.is_active(now),
            degraded=proposal.degraded,
        )


class KickProposalResponse(BaseModel):
    """Schema for kick proposals returned by the API."""

    id: str
    community_id: str
    target_member: str
    reason: str
    votes: list[str]
    created_at: int
    executed: bool

    @classmethod
    def from_kick_proposal(cls, kick: KickProposal) -> KickProposalResponse:
        return cls(
            id=kick.id,
            community_id=kick.community_id,
            target_member=kick.target_member,
            reason=kick.reason,
            votes=list(kick.votes),
            created_at=kick.created_at,
            executed=kick.executed,
        )


class IngestResponse(BaseModel):
    """Outcome of pushing one raw event through the projection."""

    accepted: bool
    reason: str | None = Field(None, description="Why the event was not applied")
