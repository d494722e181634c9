# src/chorus_governance/schemas/community.py
"""Community-related Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel

from chorus_governance.models.community import Community, InviteLink


class CommunityResponse(BaseModel):
    """Schema for community information returned by the API."""

    id: str
    unique_id: str
    name: str
    description: str
    image: str
    creator: str
    created_at: int
    members: list[str]
    moderators: list[str]
    banned_members: list[str]
    guidelines: str | None = None
    is_private: bool = False
    tags: list[str] = []
    degraded: bool = False

    @classmethod
    def from_community(cls, community: Community) -> CommunityResponse:
        return cls(
            id=community.id,
            unique_id=community.unique_id,
            name=community.name,
            description=community.description,
            image=community.image,
            creator=community.creator,
            created_at=community.created_at,
            members=sorted(community.members),
            moderators=sorted(community.moderators),
            banned_members=sorted(community.banned_members),
            guidelines=community.guidelines,
            is_private=community.is_private,
            tags=sorted(community.tags),
            degraded=community.degraded,
        )


class MemberResponse(BaseModel):
    """A community member and the strongest role they hold."""

    pubkey: str
    role: str


class InviteResponse(BaseModel):
    """Schema for invite links returned by the API."""

    id: str
    community_id: str
    creator_pubkey: str
    created_at: int
    expires_at: int | None
    max_uses: int | None
    used_count: int
    usable: bool

    @classmethod
    def from_invite(cls, invite: InviteLink, now: float) -> InviteResponse:
        return cls(
            id=invite.id,
            community_id=invite.community_id,
            creator_pubkey=invite.creator_pubkey,
            created_at=invite.created_at,
            expires_at=invite.expires_at,
            max_uses=invite.max_uses,
            used_count=invite.used_count,
            usable=invite.is_usable(now),
        )
