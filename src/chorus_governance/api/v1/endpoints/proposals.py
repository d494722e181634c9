# src/chorus_governance/api/v1/endpoints/proposals.py
"""Proposal lookup endpoints."""

from __future__ import annotations

import time

from fastapi import APIRouter, HTTPException, status

from chorus_governance.api.v1.dependencies import ProjectionDep
from chorus_governance.schemas.proposal import KickProposalResponse, ProposalResponse

router = APIRouter(tags=["proposals"])


@router.get("/proposals/{proposal_id}", response_model=ProposalResponse)
async def get_proposal(proposal_id: str, projection: ProjectionDep) -> ProposalResponse:
    """Get a proposal with its current tally and liveness."""
    proposal = projection.snapshot.proposals.get(proposal_id)
    if proposal is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Proposal not found"
        )
    return ProposalResponse.from_proposal(proposal, time.time())


@router.get("/kick-proposals/{kick_proposal_id}", response_model=KickProposalResponse)
async def get_kick_proposal(kick_proposal_id: str, projection: ProjectionDep) -> KickProposalResponse:
    """Get a kick proposal and whether it has been executed."""
    kick = projection.snapshot.kick_proposals.get(kick_proposal_id)
    if kick is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Kick proposal not found"
        )
    return KickProposalResponse.from_kick_proposal(kick)
