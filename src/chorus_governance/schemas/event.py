# src/chorus_governance/schemas/event.py
"""Relay event envelopes as delivered by, and published to, the relay gateway."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RelayEvent(BaseModel):
    """A signed, content-addressed event received from a relay.

    Signatures are verified upstream; the projector only reads the fields.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    pubkey: str = ""
    created_at: int
    kind: int
    tags: list[list[str]] = Field(default_factory=list)
    content: str = ""
    sig: str | None = None

    def first_tag(self, name: str, *, marker: str | None = None) -> list[str] | None:
        """Return the first tag named ``name`` that carries a value.

        When ``marker`` is given, the tag's third slot must equal it.
        """
        for tag in self.tags:
            if len(tag) < 2 or tag[0] != name:
                continue
            if marker is not None and (len(tag) < 3 or tag[2] != marker):
                continue
            return tag
        return None

    def tag_value(self, name: str, *, marker: str | None = None) -> str | None:
        """Return the value slot of the first matching tag, if any."""
        tag = self.first_tag(name, marker=marker)
        return tag[1] if tag is not None else None

    def tag_values(self, name: str) -> list[str]:
        """Return the value slot of every tag named ``name`` in order."""
        return [tag[1] for tag in self.tags if len(tag) >= 2 and tag[0] == name]


class EventDraft(BaseModel):
    """An unsigned event handed to the relay gateway for signing and broadcast."""

    kind: int
    tags: list[list[str]] = Field(default_factory=list)
    content: str = ""
    created_at: int
