# src/chorus_governance/services/subscriptions.py
"""Relay subscription filters for following a community.

Filters use the relay filter shape: ``ids``, ``authors``, ``kinds``,
``since``, ``until``, ``limit`` and ``#<tag>`` keys.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

from chorus_governance.models.kinds import EventKind
from chorus_governance.schemas.event import RelayEvent
from chorus_governance.services.projection import GovernanceProjection

logger = logging.getLogger(__name__)

Filter = dict[str, Any]
EventCallback = Callable[[RelayEvent], Any]


class RelayTransport(Protocol):
    """Delivery side of the relay pool."""

    def subscribe(self, filters: list[Filter], callback: EventCallback) -> str: ...

    def unsubscribe(self, subscription_id: str) -> None: ...


def event_matches(relay_filter: Filter, event: RelayEvent) -> bool:
    """Return True if ``event`` satisfies every condition in ``relay_filter``."""
    if "ids" in relay_filter and event.id not in relay_filter["ids"]:
        return False
    if "authors" in relay_filter and event.pubkey not in relay_filter["authors"]:
        return False
    if "kinds" in relay_filter and event.kind not in relay_filter["kinds"]:
        return False
    if "since" in relay_filter and event.created_at < relay_filter["since"]:
        return False
    if "until" in relay_filter and event.created_at > relay_filter["until"]:
        return False
    for key, wanted in relay_filter.items():
        if key.startswith("#") and not set(event.tag_values(key[1:])) & set(wanted):
            return False
    return True


def community_filters(community_id: str) -> dict[str, Filter]:
    """Return the named filters that together cover one community's governance."""
    return {
        "community": {"kinds": [EventKind.COMMUNITY_DEFINITION], "ids": [community_id], "limit": 1},
        "proposals": {"kinds": [EventKind.PROPOSAL], "#e": [community_id], "limit": 50},
        # Votes reference proposals, not the community, so they cannot be narrowed here.
        "votes": {"kinds": [EventKind.VOTE], "limit": 200},
        "kick_proposals": {"kinds": [EventKind.KICK_PROPOSAL], "#e": [community_id], "limit": 50},
        "kick_votes": {"kinds": [EventKind.KICK_VOTE], "limit": 100},
        "metadata": {"kinds": [EventKind.COMMUNITY_METADATA], "#e": [community_id], "limit": 50},
        "invites": {"kinds": [EventKind.COMMUNITY_INVITE], "#e": [community_id], "limit": 50},
        "roles": {"kinds": [EventKind.COMMUNITY_ROLE], "#e": [community_id], "limit": 50},
    }


class CommunitySubscription:
    """Feeds one community's events from a transport into a projection.

    Once the community's definition arrives, later definitions sharing its
    ``d`` tag are followed too, since edits are published under new ids.
    """

    def __init__(
        self,
        transport: RelayTransport,
        projection: GovernanceProjection,
        community_id: str,
    ) -> None:
        self.transport = transport
        self.projection = projection
        self.community_id = community_id
        self._subscription_ids: dict[str, str] = {}

    @property
    def subscription_ids(self) -> dict[str, str]:
        return dict(self._subscription_ids)

    def open(self) -> None:
        """Subscribe every filter for the community. Calling twice is a no-op."""
        if self._subscription_ids:
            return
        for name, relay_filter in community_filters(self.community_id).items():
            callback = self._on_definition if name == "community" else self.projection.process
            self._subscription_ids[name] = self.transport.subscribe([relay_filter], callback)

    def close(self) -> None:
        """Unsubscribe everything opened by this subscription."""
        for subscription_id in self._subscription_ids.values():
            self.transport.unsubscribe(subscription_id)
        self._subscription_ids.clear()

    def _on_definition(self, event: RelayEvent) -> None:
        self.projection.process(event)
        community = self.projection.snapshot.community(self.community_id)
        if community is None or "edits" in self._subscription_ids:
            return
        logger.debug("Following edits of community %s via d=%s", self.community_id, community.unique_id)
        self._subscription_ids["edits"] = self.transport.subscribe(
            [{"kinds": [EventKind.COMMUNITY_DEFINITION], "#d": [community.unique_id]}],
            self.projection.process,
        )
