from chorus_governance.models.kinds import EventKind
from chorus_governance.models.snapshot import GovernanceSnapshot
from chorus_governance.services.reducer import reduce, reduce_all
from chorus_governance.services.results import ProjectionConfig

WEEK = 7 * 24 * 60 * 60


def test_proposal_defaults(events):
    event = events.proposal("club", content="{}", created_at=1_000)

    proposal = reduce(GovernanceSnapshot(), event).snapshot.proposals[event.id]

    assert proposal.title == "Unnamed Proposal"
    assert proposal.description == ""
    assert proposal.options == ("Yes", "No")
    assert proposal.ends_at == 1_000 + WEEK
    assert proposal.creator == "alice"
    assert not proposal.degraded


def test_proposal_fields_from_content(events):
    event = events.event(
        EventKind.PROPOSAL,
        tags=[["e", "club"]],
        content='{"title": "Venue", "options": ["Park", "Hall", "Roof"], "endsAt": 5000}',
        created_at=1_000,
    )

    proposal = reduce(GovernanceSnapshot(), event).snapshot.proposals[event.id]

    assert proposal.title == "Venue"
    assert proposal.options == ("Park", "Hall", "Roof")
    assert proposal.ends_at == 5_000
    assert proposal.tally() == [0, 0, 0]


def test_unparsable_proposal_is_degraded(events):
    event = events.proposal("club", content="definitely not json", created_at=1_000)

    result = reduce(GovernanceSnapshot(), event)

    assert result.accepted
    proposal = result.snapshot.proposals[event.id]
    assert proposal.degraded
    assert proposal.title == "Unnamed Proposal"
    assert proposal.options == ("Yes", "No")


def test_default_duration_is_configurable(events):
    event = events.proposal("club", created_at=1_000)
    config = ProjectionConfig(proposal_default_duration_seconds=60)

    proposal = reduce(GovernanceSnapshot(), event, config=config).snapshot.proposals[event.id]

    assert proposal.ends_at == 1_060


def test_proposals_are_listed_newest_first(events):
    middle = events.proposal("club", created_at=200)
    oldest = events.proposal("club", created_at=100)
    newest = events.proposal("club", created_at=300)

    snapshot, _ = reduce_all(GovernanceSnapshot(), [middle, oldest, newest])

    assert [p.id for p in snapshot.proposals_for("club")] == [newest.id, middle.id, oldest.id]


def test_duplicate_proposal_is_rejected(events):
    event = events.proposal("club")
    snapshot = reduce(GovernanceSnapshot(), event).snapshot

    again = reduce(snapshot, event)

    assert not again.accepted
    assert again.reason == f"DUPLICATE: proposal {event.id}"
    assert again.snapshot is snapshot


def test_proposal_liveness(events):
    event = events.proposal("club", created_at=1_000)
    proposal = reduce(GovernanceSnapshot(), event).snapshot.proposals[event.id]

    assert proposal.is_active(1_000 + WEEK - 1)
    assert not proposal.is_active(1_000 + WEEK)


def test_proposals_follow_community_aliases(events):
    original = events.community("club")
    edit = events.community("club", name="Renamed")
    proposal = events.proposal(original.id)

    snapshot, _ = reduce_all(GovernanceSnapshot(), [original, edit, proposal])

    assert [p.id for p in snapshot.proposals_for(edit.id)] == [proposal.id]
    assert [p.id for p in snapshot.proposals_for("club")] == [proposal.id]
