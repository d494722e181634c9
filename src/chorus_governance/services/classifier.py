# src/chorus_governance/services/classifier.py
"""Event classification.

Decodes a raw relay event once into a variant that names its role and carries
the tag fields its projector needs. Content is left for the projector, which
owns the content-error policy.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar

from chorus_governance.models.kinds import KICK_MARKER, EventKind, EventRole
from chorus_governance.schemas.event import RelayEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommunityDefinition:
    role: ClassVar[EventRole] = EventRole.COMMUNITY_DEFINITION
    event: RelayEvent
    unique_id: str
    members: tuple[str, ...]


@dataclass(frozen=True)
class CommunityMetadata:
    role: ClassVar[EventRole] = EventRole.COMMUNITY_METADATA
    event: RelayEvent
    community_id: str


@dataclass(frozen=True)
class RoleChange:
    role: ClassVar[EventRole] = EventRole.COMMUNITY_ROLE
    event: RelayEvent
    community_id: str


@dataclass(frozen=True)
class CommunityInvite:
    role: ClassVar[EventRole] = EventRole.COMMUNITY_INVITE
    event: RelayEvent
    community_id: str


@dataclass(frozen=True)
class ProposalCreated:
    role: ClassVar[EventRole] = EventRole.PROPOSAL
    event: RelayEvent
    community_id: str


@dataclass(frozen=True)
class VoteCast:
    role: ClassVar[EventRole] = EventRole.VOTE
    event: RelayEvent
    proposal_id: str


@dataclass(frozen=True)
class KickProposalCreated:
    role: ClassVar[EventRole] = EventRole.KICK_PROPOSAL
    event: RelayEvent
    community_id: str
    target_member: str


@dataclass(frozen=True)
class KickVoteCast:
    role: ClassVar[EventRole] = EventRole.KICK_VOTE
    event: RelayEvent
    kick_proposal_id: str


ClassifiedEvent = (
    CommunityDefinition
    | CommunityMetadata
    | RoleChange
    | CommunityInvite
    | ProposalCreated
    | VoteCast
    | KickProposalCreated
    | KickVoteCast
)


def _definition(event: RelayEvent) -> ClassifiedEvent | None:
    unique_id = event.tag_value("d")
    if unique_id is None:
        return None
    return CommunityDefinition(event, unique_id, tuple(event.tag_values("p")))


def _metadata(event: RelayEvent) -> ClassifiedEvent | None:
    community_id = event.tag_value("e")
    return CommunityMetadata(event, community_id) if community_id else None


def _role(event: RelayEvent) -> ClassifiedEvent | None:
    # Falls back to the community unique id when no definition id is referenced.
    community_id = event.tag_value("e") or event.tag_value("d")
    if not community_id or event.first_tag("p") is None:
        return None
    return RoleChange(event, community_id)


def _invite(event: RelayEvent) -> ClassifiedEvent | None:
    community_id = event.tag_value("e")
    return CommunityInvite(event, community_id) if community_id else None


def _proposal(event: RelayEvent) -> ClassifiedEvent | None:
    community_id = event.tag_value("e")
    return ProposalCreated(event, community_id) if community_id else None


def _vote(event: RelayEvent) -> ClassifiedEvent | None:
    proposal_id = event.tag_value("e")
    if not proposal_id or not event.pubkey:
        return None
    return VoteCast(event, proposal_id)


def _kick_proposal(event: RelayEvent) -> ClassifiedEvent | None:
    community_id = event.tag_value("e")
    target_member = event.tag_value("p", marker=KICK_MARKER)
    if not community_id or not target_member:
        return None
    return KickProposalCreated(event, community_id, target_member)


def _kick_vote(event: RelayEvent) -> ClassifiedEvent | None:
    kick_proposal_id = event.tag_value("e")
    if not kick_proposal_id or not event.pubkey:
        return None
    return KickVoteCast(event, kick_proposal_id)


_DECODERS: dict[int, Callable[[RelayEvent], ClassifiedEvent | None]] = {
    EventKind.COMMUNITY_DEFINITION: _definition,
    EventKind.COMMUNITY_METADATA: _metadata,
    EventKind.COMMUNITY_ROLE: _role,
    EventKind.COMMUNITY_INVITE: _invite,
    EventKind.PROPOSAL: _proposal,
    EventKind.VOTE: _vote,
    EventKind.KICK_PROPOSAL: _kick_proposal,
    EventKind.KICK_VOTE: _kick_vote,
}


def classify(event: RelayEvent) -> ClassifiedEvent | None:
    """Return the role variant for ``event``, or None when it is not ours.

    Unknown kinds and events missing a required tag are dropped here.
    """
    decoder = _DECODERS.get(event.kind)
    if decoder is None:
        logger.debug("Ignoring event %s of unhandled kind %d", event.id, event.kind)
        return None

    classified = decoder(event)
    if classified is None:
        logger.debug("Dropping event %s: kind %d is missing a required tag", event.id, event.kind)
    return classified
