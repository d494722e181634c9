# src/chorus_governance/api/v1/endpoints/communities.py
"""Community-related endpoints for the Chorus Governance API."""

from __future__ import annotations

import time

from fastapi import APIRouter, HTTPException, status

from chorus_governance.api.v1.dependencies import ProjectionDep
from chorus_governance.models.community import Community
from chorus_governance.schemas.community import CommunityResponse, InviteResponse, MemberResponse
from chorus_governance.schemas.proposal import KickProposalResponse, ProposalResponse

router = APIRouter(prefix="/communities", tags=["communities"])


def _require_community(projection: ProjectionDep, community_id: str) -> Community:
    community = projection.snapshot.community(community_id)
    if community is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Community not found"
        )
    return community


@router.get("/", response_model=list[CommunityResponse])
async def list_communities(projection: ProjectionDep) -> list[CommunityResponse]:
    """List all known communities, oldest first."""
    communities = sorted(projection.snapshot.communities.values(), key=lambda c: c.created_at)
    return [CommunityResponse.from_community(c) for c in communities]


@router.get("/{community_id}", response_model=CommunityResponse)
async def get_community(community_id: str, projection: ProjectionDep) -> CommunityResponse:
    """Get a community by any of its definition event ids or its unique id."""
    return CommunityResponse.from_community(_require_community(projection, community_id))


@router.get("/{community_id}/members", response_model=list[MemberResponse])
async def list_members(community_id: str, projection: ProjectionDep) -> list[MemberResponse]:
    """List members with the strongest role each holds."""
    community = _require_community(projection, community_id)
    return [
        MemberResponse(pubkey=pubkey, role=community.role_of(pubkey) or "member")
        for pubkey in sorted(community.members)
    ]


@router.get("/{community_id}/proposals", response_model=list[ProposalResponse])
async def list_proposals(community_id: str, projection: ProjectionDep) -> list[ProposalResponse]:
    """List the community's proposals, newest first, with tallies."""
    _require_community(projection, community_id)
    now = time.time()
    return [
        ProposalResponse.from_proposal(p, now)
        for p in projection.snapshot.proposals_for(community_id)
    ]


@router.get("/{community_id}/kick-proposals", response_model=list[KickProposalResponse])
async def list_kick_proposals(
    community_id: str,
    projection: ProjectionDep,
) -> list[KickProposalResponse]:
    """List member-removal proposals raised in the community."""
    _require_community(projection, community_id)
    kicks = sorted(
        projection.snapshot.kick_proposals_for(community_id),
        key=lambda k: k.created_at,
        reverse=True,
    )
    return [KickProposalResponse.from_kick_proposal(k) for k in kicks]


@router.get("/{community_id}/invites", response_model=list[InviteResponse])
async def list_invites(community_id: str, projection: ProjectionDep) -> list[InviteResponse]:
    """List invite links published for the community."""
    _require_community(projection, community_id)
    now = time.time()
    return [InviteResponse.from_invite(i, now) for i in projection.snapshot.invites_for(community_id)]
