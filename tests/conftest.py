# tests/conftest.py
from __future__ import annotations

import json
from collections.abc import Iterator, Sequence
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from chorus_governance.main import app as fastapi_app
from chorus_governance.models.kinds import KICK_MARKER, EventKind
from chorus_governance.schemas.event import RelayEvent
from chorus_governance.services.projection import GovernanceProjection
from chorus_governance.services.results import ProjectionConfig

BASE_TIME = 1_700_000_000


class EventFactory:
    """Builds relay events with sequential ids for tests."""

    def __init__(self) -> None:
        self._ids = count(1)

    def event(
        self,
        kind: int,
        *,
        tags: list[list[str]] | None = None,
        content: str = "",
        pubkey: str = "alice",
        created_at: int = BASE_TIME,
        event_id: str | None = None,
    ) -> RelayEvent:
        return RelayEvent(
            id=event_id or f"evt{next(self._ids):04d}",
            pubkey=pubkey,
            created_at=created_at,
            kind=int(kind),
            tags=tags or [],
            content=content,
        )

    def community(
        self,
        unique_id: str = "club",
        members: Sequence[str] = ("alice", "bob", "carol"),
        *,
        name: str = "Club",
        content: str | None = None,
        **kwargs: Any,
    ) -> RelayEvent:
        if content is None:
            content = json.dumps({"name": name, "description": "A club", "image": "club.png"})
        tags = [["d", unique_id], *(["p", member] for member in members)]
        return self.event(EventKind.COMMUNITY_DEFINITION, tags=tags, content=content, **kwargs)

    def proposal(
        self,
        community_id: str,
        *,
        title: str = "Lunch?",
        options: list[str] | None = None,
        content: str | None = None,
        **kwargs: Any,
    ) -> RelayEvent:
        if content is None:
            body: dict[str, Any] = {"title": title, "description": "Where to eat"}
            if options is not None:
                body["options"] = options
            content = json.dumps(body)
        return self.event(EventKind.PROPOSAL, tags=[["e", community_id]], content=content, **kwargs)

    def vote(self, proposal_id: str, option: int | str, *, pubkey: str = "bob", **kwargs: Any) -> RelayEvent:
        return self.event(
            EventKind.VOTE, tags=[["e", proposal_id]], content=str(option), pubkey=pubkey, **kwargs
        )

    def kick_proposal(
        self,
        community_id: str,
        target_member: str,
        *,
        reason: str = "spam",
        **kwargs: Any,
    ) -> RelayEvent:
        tags = [["e", community_id], ["p", target_member, KICK_MARKER]]
        return self.event(EventKind.KICK_PROPOSAL, tags=tags, content=reason, **kwargs)

    def kick_vote(self, kick_proposal_id: str, *, pubkey: str, **kwargs: Any) -> RelayEvent:
        return self.event(EventKind.KICK_VOTE, tags=[["e", kick_proposal_id]], pubkey=pubkey, **kwargs)

    def metadata(self, community_id: str, type_: str, value: Any, **kwargs: Any) -> RelayEvent:
        content = json.dumps({"type": type_, "content": value})
        return self.event(
            EventKind.COMMUNITY_METADATA, tags=[["e", community_id]], content=content, **kwargs
        )

    def role(
        self,
        community_id: str,
        subject: str,
        *,
        action: str = "add",
        role: str = "moderator",
        **kwargs: Any,
    ) -> RelayEvent:
        tags = [["e", community_id], ["p", subject, role]]
        content = json.dumps({"role": role, "action": action})
        return self.event(EventKind.COMMUNITY_ROLE, tags=tags, content=content, **kwargs)

    def invite(self, community_id: str, **fields: Any) -> RelayEvent:
        kwargs = {key: fields.pop(key) for key in ("pubkey", "created_at", "event_id") if key in fields}
        return self.event(
            EventKind.COMMUNITY_INVITE, tags=[["e", community_id]], content=json.dumps(fields), **kwargs
        )


@pytest.fixture()
def events() -> EventFactory:
    return EventFactory()


@pytest.fixture()
def config() -> ProjectionConfig:
    """Projection tunables with the documented defaults."""
    return ProjectionConfig()


@pytest.fixture()
def projection(config: ProjectionConfig) -> GovernanceProjection:
    return GovernanceProjection(config=config)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def app_projection(client: TestClient, app: FastAPI) -> GovernanceProjection:
    """The projection created by application startup."""
    return app.state.projection
