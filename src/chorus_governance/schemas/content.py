# src/chorus_governance/schemas/content.py
"""Pydantic schemas for the JSON content carried by governance events.

Field names follow the camelCase wire format shared with other clients.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class _Content(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CommunityDefinitionContent(_Content):
    """Content of a community definition event."""

    name: str | None = None
    description: str | None = None
    image: str | None = None


class CommunityMetadataContent(_Content):
    """Content of a community metadata event: ``{type, content}``."""

    type: str
    content: Any = None


class RoleChangeContent(_Content):
    """Content of a role change event."""

    role: str
    action: str


class InviteContent(_Content):
    """Content of an invite link event."""

    created_at: int | None = Field(default=None, alias="createdAt")
    expires_at: int | None = Field(default=None, alias="expiresAt")
    max_uses: int | None = Field(default=None, alias="maxUses")
    used_count: int | None = Field(default=None, alias="usedCount")


class ProposalContent(_Content):
    """Content of a proposal creation event."""

    title: str | None = None
    description: str | None = None
    options: list[str] | None = None
    ends_at: int | None = Field(default=None, alias="endsAt")


class KickProposalContent(_Content):
    """Structured content of a kick proposal; plain text is also accepted."""

    reason: str | None = None


ContentT = TypeVar("ContentT", bound=_Content)


def parse_content(model: type[ContentT], raw: str, *, empty_ok: bool = False) -> ContentT | None:
    """Parse ``raw`` JSON into ``model``.

    Returns None when the payload is not valid JSON or does not fit the schema.
    An empty payload yields an all-defaults instance when ``empty_ok`` is set.
    """
    if not raw and empty_ok:
        return model()
    try:
        return model.model_validate_json(raw)
    except ValidationError:
        return None
