# src/chorus_governance/services/kick_projector.py
"""Reducers for member-removal proposals, their votes, and the quorum check.

A kick proposal passes once ``len(votes) / len(members)`` reaches the quorum
ratio, measured against the community's membership at the time of the vote.
Passing marks the proposal executed and emits exactly one ``KickCommand``.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from chorus_governance.models.proposal import KickProposal
from chorus_governance.models.snapshot import GovernanceSnapshot, KickCommand
from chorus_governance.schemas.content import KickProposalContent, parse_content
from chorus_governance.services.classifier import KickProposalCreated, KickVoteCast
from chorus_governance.services.pending_votes import buffer_event, take_bucket
from chorus_governance.services.results import ProjectionConfig, ReduceResult, accept, reject

logger = logging.getLogger(__name__)


def _reason(raw: str) -> str:
    content = parse_content(KickProposalContent, raw)
    if content is not None and content.reason is not None:
        return content.reason
    return raw


def _evaluate_quorum(
    snapshot: GovernanceSnapshot,
    kick: KickProposal,
    config: ProjectionConfig,
) -> ReduceResult:
    commands: tuple[KickCommand, ...] = ()
    community = snapshot.community(kick.community_id)
    if not kick.executed and community is not None and community.members:
        ratio = len(kick.votes) / len(community.members)
        if ratio >= config.kick_quorum_ratio:
            logger.info(
                "Kick proposal %s reached quorum (%d of %d members); removing %s",
                kick.id,
                len(kick.votes),
                len(community.members),
                kick.target_member,
            )
            kick = replace(kick, executed=True)
            commands = (KickCommand(kick.community_id, kick.target_member, kick.id),)

    updated = snapshot.evolve(kick_proposals={**snapshot.kick_proposals, kick.id: kick})
    return accept(updated, commands)


def apply_kick_proposal(
    snapshot: GovernanceSnapshot,
    message: KickProposalCreated,
    *,
    config: ProjectionConfig,
) -> ReduceResult:
    """Create a kick proposal with its creator's vote already counted.

    Kick votes buffered before the proposal arrived are applied straight away.
    """
    event = message.event
    if event.id in snapshot.kick_proposals:
        return reject(snapshot, f"DUPLICATE: kick proposal {event.id}")

    kick = KickProposal(
        id=event.id,
        community_id=message.community_id,
        target_member=message.target_member,
        votes=(event.pubkey,) if event.pubkey else (),
        created_at=event.created_at,
        reason=_reason(event.content),
    )

    buffered, remaining = take_bucket(snapshot.pending_kick_votes, kick.id)
    if buffered:
        logger.info("Applying %d pending kick votes for proposal %s", len(buffered), kick.id)
    for vote in buffered:
        kick = kick.with_vote(vote.pubkey)

    return _evaluate_quorum(snapshot.evolve(pending_kick_votes=remaining), kick, config)


def apply_kick_vote(
    snapshot: GovernanceSnapshot,
    message: KickVoteCast,
    *,
    received_at: float,
    config: ProjectionConfig,
) -> ReduceResult:
    """Count a kick vote once per voter and re-check quorum."""
    event = message.event
    kick = snapshot.kick_proposals.get(message.kick_proposal_id)
    if kick is None:
        logger.info("Kick vote for unknown proposal %s, storing as pending", message.kick_proposal_id)
        pending = buffer_event(
            snapshot.pending_kick_votes,
            message.kick_proposal_id,
            event,
            received_at=received_at,
            config=config,
        )
        return accept(snapshot.evolve(pending_kick_votes=pending))

    return _evaluate_quorum(snapshot, kick.with_vote(event.pubkey), config)


def reevaluate_community(
    snapshot: GovernanceSnapshot,
    community_id: str,
    config: ProjectionConfig,
) -> tuple[GovernanceSnapshot, tuple[KickCommand, ...]]:
    """Re-check quorum for every open kick proposal in ``community_id``.

    A membership change can carry a proposal over quorum without a new vote,
    for instance when the community definition arrives after the kick votes.
    """
    commands: list[KickCommand] = []
    for kick in snapshot.kick_proposals_for(community_id):
        if kick.executed:
            continue
        result = _evaluate_quorum(snapshot, kick, config)
        snapshot = result.snapshot
        commands.extend(result.commands)
    return snapshot, tuple(commands)
