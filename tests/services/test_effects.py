import asyncio
import json
import logging
from unittest.mock import AsyncMock

import pytest

from chorus_governance.models.kinds import EventKind
from chorus_governance.models.snapshot import KickCommand
from chorus_governance.services.effects import KickExecutor, build_membership_update
from chorus_governance.services.projection import GovernanceProjection
from chorus_governance.services.relay import RelayError, RelayGatewayClient, RelayRejectedError


@pytest.fixture
def mock_publisher():
    publisher = AsyncMock(spec=RelayGatewayClient)
    publisher.publish_event.return_value = "replacement-event"
    return publisher


@pytest.fixture
def kicked_projection(projection: GovernanceProjection, events) -> GovernanceProjection:
    definition = events.community("club", ["alice", "bob", "carol"], name="Chess", event_id="C1")
    kick = events.kick_proposal("C1", "carol", pubkey="alice", event_id="K1")
    for event in (definition, kick, events.kick_vote("K1", pubkey="bob")):
        projection.process(event)
    return projection


def test_membership_update_republishes_definition(kicked_projection: GovernanceProjection):
    community = kicked_projection.snapshot.community("C1")

    draft = build_membership_update(community, "carol")

    assert draft.kind == EventKind.COMMUNITY_DEFINITION
    assert draft.tags == [["d", "club"], ["p", "alice"], ["p", "bob"]]
    assert json.loads(draft.content) == {
        "name": "Chess",
        "description": "A club",
        "image": "club.png",
        "creator": "alice",
        "createdAt": community.created_at,
        "isPrivate": False,
        "guidelines": None,
        "tags": [],
    }


def test_membership_update_keeps_community_metadata(kicked_projection: GovernanceProjection, events):
    for event in (
        events.metadata("C1", "guidelines", "Be kind"),
        events.metadata("C1", "private", True),
        events.metadata("C1", "tags", ["games", "chess"]),
    ):
        kicked_projection.process(event)

    draft = build_membership_update(kicked_projection.snapshot.community("C1"), "carol")

    content = json.loads(draft.content)
    assert content["guidelines"] == "Be kind"
    assert content["isPrivate"] is True
    assert content["tags"] == ["chess", "games"]


@pytest.mark.asyncio
async def test_execute_publishes_then_removes(kicked_projection: GovernanceProjection, mock_publisher):
    executor = KickExecutor(kicked_projection, mock_publisher)

    outcomes = await executor.run_pending()

    assert outcomes == [True]
    mock_publisher.publish_event.assert_awaited_once()
    community = kicked_projection.snapshot.community("C1")
    assert community.members == {"alice", "bob"}
    assert community.banned_members == {"carol"}
    assert kicked_projection.pending_command_count == 0


@pytest.mark.asyncio
async def test_refused_publish_keeps_member(kicked_projection: GovernanceProjection, mock_publisher, caplog):
    mock_publisher.publish_event.return_value = None
    executor = KickExecutor(kicked_projection, mock_publisher)

    with caplog.at_level(logging.ERROR):
        outcomes = await executor.run_pending()

    assert outcomes == [False]
    assert "carol" in kicked_projection.snapshot.community("C1").members
    assert kicked_projection.snapshot.kick_proposals["K1"].executed
    assert "Failed to remove member carol" in caplog.text


@pytest.mark.asyncio
async def test_publish_error_is_logged_not_retried(kicked_projection: GovernanceProjection, mock_publisher, caplog):
    mock_publisher.publish_event.side_effect = RelayError("gateway down")
    executor = KickExecutor(kicked_projection, mock_publisher)

    with caplog.at_level(logging.ERROR):
        outcomes = await executor.run_pending()
    again = await executor.run_pending()

    assert outcomes == [False]
    assert again == []
    assert mock_publisher.publish_event.await_count == 1
    assert "gateway down" in caplog.text
    assert kicked_projection.snapshot.kick_proposals["K1"].executed


@pytest.mark.asyncio
async def test_unknown_community_is_not_published(projection: GovernanceProjection, mock_publisher):
    executor = KickExecutor(projection, mock_publisher)

    assert await executor.execute(KickCommand("nowhere", "carol", "K1")) is False
    mock_publisher.publish_event.assert_not_awaited()


@pytest.mark.asyncio
async def test_schedule_pending_runs_in_background(kicked_projection: GovernanceProjection, mock_publisher):
    executor = KickExecutor(kicked_projection, mock_publisher)

    tasks = executor.schedule_pending()
    assert len(tasks) == 1
    assert kicked_projection.pending_command_count == 0

    await executor.wait_idle()
    await asyncio.sleep(0)

    assert tasks[0].result() is True
    assert kicked_projection.snapshot.community("C1").members == {"alice", "bob"}


@pytest.mark.asyncio
async def test_rejected_publish_keeps_member(kicked_projection: GovernanceProjection, mock_publisher, caplog):
    mock_publisher.publish_event.side_effect = RelayRejectedError("/api/relay/publish", 422, "bad tags")
    executor = KickExecutor(kicked_projection, mock_publisher)

    with caplog.at_level(logging.ERROR):
        outcomes = await executor.run_pending()

    assert outcomes == [False]
    assert "carol" in kicked_projection.snapshot.community("C1").members
    assert kicked_projection.snapshot.kick_proposals["K1"].executed
    assert "Gateway refused membership update removing carol (status 422)" in caplog.text
