# src/chorus_governance/services/proposal_projector.py
"""Reducer for proposal creation events."""

from __future__ import annotations

import logging

from chorus_governance.models.kinds import DEFAULT_PROPOSAL_OPTIONS, UNNAMED_PROPOSAL
from chorus_governance.models.proposal import Proposal
from chorus_governance.models.snapshot import GovernanceSnapshot
from chorus_governance.schemas.content import ProposalContent, parse_content
from chorus_governance.services.classifier import ProposalCreated
from chorus_governance.services.results import ProjectionConfig, ReduceResult, accept, reject
from chorus_governance.services.vote_projector import replay_votes

logger = logging.getLogger(__name__)


def apply_proposal(
    snapshot: GovernanceSnapshot,
    message: ProposalCreated,
    *,
    config: ProjectionConfig,
) -> ReduceResult:
    """Materialize a proposal, then replay any votes that arrived before it.

    Missing fields take defaults. Content that cannot be parsed at all still
    yields a proposal built from defaults, flagged ``degraded``.
    """
    event = message.event
    if event.id in snapshot.proposals:
        return reject(snapshot, f"DUPLICATE: proposal {event.id}")

    content = parse_content(ProposalContent, event.content)
    degraded = content is None
    if content is None:
        logger.error("Error parsing proposal JSON for event %s; using defaults", event.id)
        content = ProposalContent()

    proposal = Proposal(
        id=event.id,
        community_id=message.community_id,
        title=content.title or UNNAMED_PROPOSAL,
        description=content.description or "",
        options=tuple(content.options) if content.options is not None else DEFAULT_PROPOSAL_OPTIONS,
        created_at=event.created_at,
        ends_at=content.ends_at or event.created_at + config.proposal_default_duration_seconds,
        creator=event.pubkey,
        degraded=degraded,
    )

    updated = snapshot.evolve(proposals={**snapshot.proposals, proposal.id: proposal})
    return accept(replay_votes(updated, proposal.id))
