# src/chorus_governance/services/vote_projector.py
"""Reducer for proposal votes, plus replay of votes buffered before their proposal."""

from __future__ import annotations

import logging

from chorus_governance.models.snapshot import GovernanceSnapshot
from chorus_governance.schemas.event import RelayEvent
from chorus_governance.services.classifier import VoteCast
from chorus_governance.services.pending_votes import buffer_event, take_bucket
from chorus_governance.services.results import ProjectionConfig, ReduceResult, accept, reject

logger = logging.getLogger(__name__)


def _option_index(event: RelayEvent) -> int | None:
    try:
        return int(event.content.strip())
    except ValueError:
        logger.error("Invalid vote option index %r in event %s", event.content, event.id)
        return None


def apply_vote(
    snapshot: GovernanceSnapshot,
    message: VoteCast,
    *,
    received_at: float,
    config: ProjectionConfig,
) -> ReduceResult:
    """Record a vote, or buffer it until its proposal materializes.

    A voter's latest processed vote wins, whatever the events' own timestamps.
    The index is stored as given; options past the end are left out of tallies.
    """
    event = message.event
    proposal = snapshot.proposals.get(message.proposal_id)
    if proposal is None:
        logger.info("Vote for unknown proposal %s, storing as pending", message.proposal_id)
        pending = buffer_event(
            snapshot.pending_votes,
            message.proposal_id,
            event,
            received_at=received_at,
            config=config,
        )
        return accept(snapshot.evolve(pending_votes=pending))

    option_index = _option_index(event)
    if option_index is None:
        return reject(snapshot, f"INVALID_OPTION: {event.content!r}")

    logger.debug("Vote from %s for proposal %s, option %d", event.pubkey, proposal.id, option_index)
    proposal = proposal.with_vote(event.pubkey, option_index)
    return accept(snapshot.evolve(proposals={**snapshot.proposals, proposal.id: proposal}))


def replay_votes(snapshot: GovernanceSnapshot, proposal_id: str) -> GovernanceSnapshot:
    """Apply and clear every vote buffered for ``proposal_id``, in receipt order."""
    events, remaining = take_bucket(snapshot.pending_votes, proposal_id)
    if not events:
        return snapshot

    logger.info("Applying %d pending votes for proposal %s", len(events), proposal_id)
    proposal = snapshot.proposals[proposal_id]
    for event in events:
        option_index = _option_index(event)
        if option_index is not None:
            proposal = proposal.with_vote(event.pubkey, option_index)

    return snapshot.evolve(
        proposals={**snapshot.proposals, proposal_id: proposal},
        pending_votes=remaining,
    )
