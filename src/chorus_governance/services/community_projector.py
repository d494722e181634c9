# src/chorus_governance/services/community_projector.py
"""Reducers for community definition, metadata, role and invite events."""

from __future__ import annotations

import logging
from dataclasses import replace

from chorus_governance.models.community import Community, InviteLink
from chorus_governance.models.kinds import (
    ACTION_ADD,
    ACTION_REMOVE,
    METADATA_GUIDELINES,
    METADATA_PRIVATE,
    METADATA_TAGS,
    ROLE_MODERATOR,
    UNNAMED_COMMUNITY,
)
from chorus_governance.models.snapshot import GovernanceSnapshot
from chorus_governance.schemas.content import (
    CommunityDefinitionContent,
    CommunityMetadataContent,
    InviteContent,
    RoleChangeContent,
    parse_content,
)
from chorus_governance.services import kick_projector
from chorus_governance.services.classifier import (
    CommunityDefinition,
    CommunityInvite,
    CommunityMetadata,
    RoleChange,
)
from chorus_governance.services.results import ProjectionConfig, ReduceResult, accept, reject

logger = logging.getLogger(__name__)


def _store(snapshot: GovernanceSnapshot, community: Community) -> GovernanceSnapshot:
    return snapshot.evolve(communities={**snapshot.communities, community.unique_id: community})


def apply_definition(
    snapshot: GovernanceSnapshot,
    message: CommunityDefinition,
    *,
    config: ProjectionConfig,
) -> ReduceResult:
    """Create or update the community named by the event's ``d`` tag.

    Unparsable content still materializes the community with fallback fields
    and ``degraded`` set. Members always come from the ``p`` tags. Open kick
    proposals are re-checked against the new membership.
    """
    event = message.event
    content = parse_content(CommunityDefinitionContent, event.content, empty_ok=True)
    degraded = content is None
    if content is None:
        logger.error("Error parsing community JSON for event %s; using fallback", event.id)
        content = CommunityDefinitionContent()

    fields = {
        "id": event.id,
        "name": content.name or UNNAMED_COMMUNITY,
        "description": content.description or "",
        "image": content.image or "",
        "members": frozenset(message.members),
        "degraded": degraded,
    }
    existing = snapshot.communities.get(message.unique_id)
    if existing is None:
        community = Community(
            unique_id=message.unique_id,
            creator=event.pubkey,
            created_at=event.created_at,
            **fields,
        )
    else:
        community = replace(existing, **fields)

    updated = _store(snapshot, community).evolve(
        community_aliases={**snapshot.community_aliases, event.id: message.unique_id},
    )
    updated, commands = kick_projector.reevaluate_community(updated, message.unique_id, config)
    return accept(updated, commands)


def apply_metadata(snapshot: GovernanceSnapshot, message: CommunityMetadata) -> ReduceResult:
    """Apply a guidelines, privacy or tags update to a known community.

    Updates for communities not yet seen are discarded, not buffered.
    """
    event = message.event
    community = snapshot.community(message.community_id)
    if community is None:
        logger.debug("Discarding metadata %s for unknown community %s", event.id, message.community_id)
        return reject(snapshot, f"UNKNOWN_COMMUNITY: {message.community_id}")

    content = parse_content(CommunityMetadataContent, event.content)
    if content is None:
        logger.error("Error handling community metadata event %s: invalid content", event.id)
        return reject(snapshot, "INVALID_CONTENT: metadata")

    value = content.content
    if content.type == METADATA_GUIDELINES and (value is None or isinstance(value, str)):
        community = replace(community, guidelines=value)
    elif content.type == METADATA_PRIVATE and isinstance(value, bool):
        community = replace(community, is_private=value)
    elif content.type == METADATA_TAGS and isinstance(value, list) and all(
        isinstance(tag, str) for tag in value
    ):
        community = replace(community, tags=frozenset(value))
    else:
        return reject(snapshot, f"UNSUPPORTED_METADATA: {content.type}")

    return accept(_store(snapshot, community))


def apply_role(snapshot: GovernanceSnapshot, message: RoleChange) -> ReduceResult:
    """Add or remove a moderator.

    The subject is the ``p`` tag whose third slot names the role. Adding an
    existing moderator leaves the community untouched; removal always succeeds.
    """
    event = message.event
    content = parse_content(RoleChangeContent, event.content)
    if content is None:
        logger.error("Error handling community role event %s: invalid content", event.id)
        return reject(snapshot, "INVALID_CONTENT: role")

    subject = event.tag_value("p", marker=content.role)
    if subject is None:
        return reject(snapshot, f"MISSING_SUBJECT: no p tag marked {content.role!r}")
    if content.role != ROLE_MODERATOR:
        return reject(snapshot, f"UNSUPPORTED_ROLE: {content.role}")

    community = snapshot.community(message.community_id)
    if community is None:
        logger.debug("Discarding role change %s for unknown community %s", event.id, message.community_id)
        return reject(snapshot, f"UNKNOWN_COMMUNITY: {message.community_id}")

    if content.action == ACTION_ADD:
        if subject in community.moderators:
            return accept(snapshot)
        community = replace(community, moderators=community.moderators | {subject})
    elif content.action == ACTION_REMOVE:
        community = replace(community, moderators=community.moderators - {subject})
    else:
        return reject(snapshot, f"UNSUPPORTED_ACTION: {content.action}")

    return accept(_store(snapshot, community))


def apply_invite(snapshot: GovernanceSnapshot, message: CommunityInvite) -> ReduceResult:
    """Insert or replace the invite link keyed by the event id."""
    event = message.event
    content = parse_content(InviteContent, event.content)
    if content is None:
        logger.error("Error handling community invite event %s: invalid content", event.id)
        return reject(snapshot, "INVALID_CONTENT: invite")

    invite = InviteLink(
        id=event.id,
        community_id=message.community_id,
        creator_pubkey=event.pubkey,
        created_at=content.created_at or event.created_at,
        expires_at=content.expires_at,
        max_uses=content.max_uses,
        used_count=content.used_count or 0,
    )
    return accept(snapshot.evolve(invites={**snapshot.invites, invite.id: invite}))


def remove_member(snapshot: GovernanceSnapshot, community_id: str, member: str) -> ReduceResult:
    """Drop ``member`` from members and moderators and record the ban."""
    community = snapshot.community(community_id)
    if community is None:
        return reject(snapshot, f"UNKNOWN_COMMUNITY: {community_id}")

    community = replace(
        community,
        members=community.members - {member},
        moderators=community.moderators - {member},
        banned_members=community.banned_members | {member},
    )
    return accept(_store(snapshot, community))
