# src/chorus_governance/models/community.py
"""Community aggregate and its invite links."""

from __future__ import annotations

from dataclasses import dataclass

ROLE_CREATOR = "creator"
ROLE_MODERATOR = "moderator"
ROLE_MEMBER = "member"


@dataclass(frozen=True)
class Community:
    """Canonical community state, one per ``unique_id``.

    ``id`` tracks the most recently applied definition event, while
    ``unique_id`` and ``creator`` are fixed by the first one.
    """

    id: str
    unique_id: str
    name: str
    description: str
    image: str
    creator: str
    created_at: int
    members: frozenset[str] = frozenset()
    moderators: frozenset[str] = frozenset()
    banned_members: frozenset[str] = frozenset()
    guidelines: str | None = None
    is_private: bool = False
    tags: frozenset[str] = frozenset()
    # Set when the last definition's content could not be parsed.
    degraded: bool = False

    def role_of(self, pubkey: str) -> str | None:
        """Return the strongest role ``pubkey`` holds in this community."""
        if not pubkey:
            return None
        if pubkey == self.creator:
            return ROLE_CREATOR
        if pubkey in self.moderators:
            return ROLE_MODERATOR
        if pubkey in self.members:
            return ROLE_MEMBER
        return None


@dataclass(frozen=True)
class InviteLink:
    """Invite link published for a community."""

    id: str
    community_id: str
    creator_pubkey: str
    created_at: int
    expires_at: int | None = None
    max_uses: int | None = None
    used_count: int = 0

    def is_usable(self, now: float) -> bool:
        """Return True while the link is unexpired and has uses left."""
        if self.expires_at is not None and self.expires_at <= now:
            return False
        if self.max_uses is not None and self.used_count >= self.max_uses:
            return False
        return True
