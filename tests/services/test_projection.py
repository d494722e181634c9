from chorus_governance.models.snapshot import KickCommand
from chorus_governance.services.projection import GovernanceProjection


def test_process_swaps_snapshot_and_queues_commands(projection: GovernanceProjection, events):
    definition = events.community("club", ["alice", "bob", "carol"])
    kick = events.kick_proposal(definition.id, "bob", pubkey="alice")

    projection.process(definition)
    projection.process(kick)
    result = projection.process(events.kick_vote(kick.id, pubkey="carol"))

    assert result.accepted
    assert projection.snapshot.kick_proposals[kick.id].executed
    assert projection.pending_command_count == 1
    assert projection.drain_commands() == [KickCommand(definition.id, "bob", kick.id)]
    assert projection.drain_commands() == []


def test_rejected_event_leaves_snapshot(projection: GovernanceProjection, events):
    before = projection.snapshot

    result = projection.process(events.vote("P1", 0, pubkey=""))

    assert not result.accepted
    assert projection.snapshot is before


def test_process_raw_validates_payload(projection: GovernanceProjection):
    assert projection.process_raw({"kind": 34550, "tags": []}) is None

    result = projection.process_raw(
        {
            "id": "abc",
            "pubkey": "alice",
            "created_at": 1,
            "kind": 34550,
            "tags": [["d", "club"], ["p", "alice"]],
            "content": '{"name": "Club"}',
            "sig": "00",
        }
    )

    assert result is not None and result.accepted
    assert projection.snapshot.community("abc").name == "Club"


def test_apply_member_removal(projection: GovernanceProjection, events):
    definition = events.community("club", ["alice", "bob"])
    projection.process(definition)

    assert projection.apply_member_removal(KickCommand(definition.id, "bob", "K1"))
    assert projection.snapshot.community("club").members == {"alice"}
    assert not projection.apply_member_removal(KickCommand("nowhere", "bob", "K1"))
