# src/chorus_governance/services/effects.py
"""Effect runner for commands emitted by the reducers.

A kick is carried out by republishing the community definition without the
removed member. Only when a relay accepts it is the local membership updated.
Failures are logged and never retried; the kick proposal stays executed.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Protocol

from chorus_governance.models.community import Community
from chorus_governance.models.kinds import EventKind
from chorus_governance.models.snapshot import KickCommand
from chorus_governance.schemas.event import EventDraft
from chorus_governance.services.projection import GovernanceProjection
from chorus_governance.services.relay import RelayError, RelayRejectedError

logger = logging.getLogger(__name__)


class EventPublisher(Protocol):
    """Anything able to sign and broadcast an event draft."""

    async def publish_event(self, draft: EventDraft) -> str | None: ...


def build_membership_update(community: Community, removed_member: str) -> EventDraft:
    """Build the definition event that republishes ``community`` without ``removed_member``."""
    members = sorted(community.members - {removed_member})
    content = {
        "name": community.name,
        "description": community.description,
        "image": community.image,
        "creator": community.creator,
        "createdAt": community.created_at,
        "isPrivate": community.is_private,
        "guidelines": community.guidelines,
        "tags": sorted(community.tags),
    }
    return EventDraft(
        kind=EventKind.COMMUNITY_DEFINITION,
        tags=[["d", community.unique_id], *(["p", member] for member in members)],
        content=json.dumps(content),
        created_at=int(time.time()),
    )


class KickExecutor:
    """Executes kick commands queued on a projection."""

    def __init__(self, projection: GovernanceProjection, publisher: EventPublisher) -> None:
        self.projection = projection
        self.publisher = publisher
        self._tasks: set[asyncio.Task[bool]] = set()

    async def execute(self, command: KickCommand) -> bool:
        """Publish the membership update for ``command`` and apply it locally.

        Returns True when the update was published and applied.
        """
        community = self.projection.snapshot.community(command.community_id)
        if community is None:
            logger.warning(
                "Cannot kick %s: community %s is unknown", command.target_member, command.community_id
            )
            return False

        draft = build_membership_update(community, command.target_member)
        try:
            event_id = await self.publisher.publish_event(draft)
        except RelayRejectedError as e:
            logger.error(
                "Gateway refused membership update removing %s (status %d)",
                command.target_member,
                e.status_code,
            )
            return False
        except (RelayError, OSError) as e:
            logger.error("Error kicking member %s: %s", command.target_member, e)
            return False

        if not event_id:
            logger.error(
                "Failed to remove member %s: event could not be published", command.target_member
            )
            return False

        self.projection.apply_member_removal(command)
        logger.info(
            "Member %s removed from community %s by kick proposal %s (event %s)",
            command.target_member,
            community.unique_id,
            command.kick_proposal_id,
            event_id,
        )
        return True

    async def run_pending(self) -> list[bool]:
        """Execute every queued command in order and wait for the outcomes."""
        return [await self.execute(command) for command in self.projection.drain_commands()]

    def schedule_pending(self) -> list[asyncio.Task[bool]]:
        """Start every queued command as a background task without waiting."""
        scheduled = []
        for command in self.projection.drain_commands():
            task = asyncio.create_task(self.execute(command))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            scheduled.append(task)
        return scheduled

    async def wait_idle(self) -> None:
        """Wait for background executions started by ``schedule_pending``."""
        if self._tasks:
            await asyncio.gather(*self._tasks)
