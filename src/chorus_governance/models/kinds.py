# src/chorus_governance/models/kinds.py
"""Event kinds and tag markers used by the community governance protocol."""

from enum import Enum, IntEnum


class EventKind(IntEnum):
    """Wire kinds of governance events."""

    COMMUNITY_DEFINITION = 34550
    PROPOSAL = 34551
    VOTE = 34552
    KICK_PROPOSAL = 34554
    KICK_VOTE = 34555
    COMMUNITY_METADATA = 34556
    COMMUNITY_INVITE = 34557
    COMMUNITY_ROLE = 34558


class EventRole(Enum):
    """What a classified event does to the projection."""

    COMMUNITY_DEFINITION = "community_definition"
    COMMUNITY_METADATA = "community_metadata"
    COMMUNITY_ROLE = "community_role"
    COMMUNITY_INVITE = "community_invite"
    PROPOSAL = "proposal"
    VOTE = "vote"
    KICK_PROPOSAL = "kick_proposal"
    KICK_VOTE = "kick_vote"


# Third-slot marker on the ``p`` tag naming the member a kick proposal targets.
KICK_MARKER = "kick"

ROLE_MODERATOR = "moderator"
ACTION_ADD = "add"
ACTION_REMOVE = "remove"

METADATA_GUIDELINES = "guidelines"
METADATA_PRIVATE = "private"
METADATA_TAGS = "tags"

UNNAMED_COMMUNITY = "Unnamed Community"
UNNAMED_PROPOSAL = "Unnamed Proposal"
DEFAULT_PROPOSAL_OPTIONS: tuple[str, ...] = ("Yes", "No")
