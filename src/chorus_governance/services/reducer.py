# src/chorus_governance/services/reducer.py
"""Pure entry point: (snapshot, event) -> ReduceResult.

Every relay event goes through ``reduce``. It classifies the event, hands it
to the matching projector and guarantees that one malformed event cannot
abort processing of the rest of the stream.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from typing import Any

from chorus_governance.models.snapshot import GovernanceSnapshot, KickCommand
from chorus_governance.schemas.event import RelayEvent
from chorus_governance.services import community_projector, kick_projector
from chorus_governance.services.classifier import (
    CommunityDefinition,
    CommunityInvite,
    CommunityMetadata,
    KickProposalCreated,
    KickVoteCast,
    ProposalCreated,
    RoleChange,
    VoteCast,
    classify,
)
from chorus_governance.services.proposal_projector import apply_proposal
from chorus_governance.services.results import (
    ProjectionConfig,
    ReduceResult,
    load_projection_config,
    reject,
)
from chorus_governance.services.vote_projector import apply_vote

logger = logging.getLogger(__name__)

Handler = Callable[[GovernanceSnapshot, Any, float, ProjectionConfig], ReduceResult]

_HANDLERS: dict[type, Handler] = {
    CommunityDefinition: lambda snap, msg, _at, cfg: community_projector.apply_definition(
        snap, msg, config=cfg
    ),
    CommunityMetadata: lambda snap, msg, _at, _cfg: community_projector.apply_metadata(snap, msg),
    RoleChange: lambda snap, msg, _at, _cfg: community_projector.apply_role(snap, msg),
    CommunityInvite: lambda snap, msg, _at, _cfg: community_projector.apply_invite(snap, msg),
    ProposalCreated: lambda snap, msg, _at, cfg: apply_proposal(snap, msg, config=cfg),
    VoteCast: lambda snap, msg, at, cfg: apply_vote(snap, msg, received_at=at, config=cfg),
    KickProposalCreated: lambda snap, msg, _at, cfg: kick_projector.apply_kick_proposal(
        snap, msg, config=cfg
    ),
    KickVoteCast: lambda snap, msg, at, cfg: kick_projector.apply_kick_vote(
        snap, msg, received_at=at, config=cfg
    ),
}


def reduce(
    snapshot: GovernanceSnapshot,
    event: RelayEvent,
    *,
    received_at: float | None = None,
    config: ProjectionConfig | None = None,
) -> ReduceResult:
    """Apply one relay event to ``snapshot``.

    ``received_at`` is the local receipt time used to age buffered votes; it
    defaults to the wall clock. The input snapshot is never modified.
    """
    message = classify(event)
    if message is None:
        return reject(snapshot, f"UNCLASSIFIED: kind {event.kind}")

    handler = _HANDLERS[type(message)]
    try:
        return handler(
            snapshot,
            message,
            time.time() if received_at is None else received_at,
            config or load_projection_config(),
        )
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        logger.error("Error processing %s event %s: %s", message.role.value, event.id, e, exc_info=True)
        return reject(snapshot, f"PROCESSING_ERROR: {e}")


def reduce_all(
    snapshot: GovernanceSnapshot,
    events: Iterable[RelayEvent],
    *,
    received_at: float | None = None,
    config: ProjectionConfig | None = None,
) -> tuple[GovernanceSnapshot, list[KickCommand]]:
    """Fold a sequence of events in order. Rejections are skipped.

    Returns the final snapshot and every command emitted along the way.
    """
    config = config or load_projection_config()
    commands: list[KickCommand] = []
    for event in events:
        result = reduce(snapshot, event, received_at=received_at, config=config)
        snapshot = result.snapshot
        commands.extend(result.commands)
    return snapshot, commands
