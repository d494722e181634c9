# src/chorus_governance/services/projection.py
"""Stateful owner of the current governance snapshot.

Reducers are pure; this class is the single place where the current snapshot
is replaced. Commands emitted by reducers queue here until the effect runner
drains them.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from chorus_governance.models.snapshot import GovernanceSnapshot, KickCommand
from chorus_governance.schemas.event import RelayEvent
from chorus_governance.services.community_projector import remove_member
from chorus_governance.services.reducer import reduce
from chorus_governance.services.results import ProjectionConfig, ReduceResult, load_projection_config

logger = logging.getLogger(__name__)


class GovernanceProjection:
    """In-memory materialized view rebuilt from the relay stream each session."""

    def __init__(
        self,
        config: ProjectionConfig | None = None,
        snapshot: GovernanceSnapshot | None = None,
    ) -> None:
        self.config = config or load_projection_config()
        self._snapshot = snapshot or GovernanceSnapshot()
        self._commands: list[KickCommand] = []

    @property
    def snapshot(self) -> GovernanceSnapshot:
        return self._snapshot

    @property
    def pending_command_count(self) -> int:
        return len(self._commands)

    def process(self, event: RelayEvent, *, received_at: float | None = None) -> ReduceResult:
        """Apply one event and queue any commands it produced."""
        result = reduce(
            self._snapshot,
            event,
            received_at=time.time() if received_at is None else received_at,
            config=self.config,
        )
        if not result.accepted:
            logger.debug("Event %s not applied: %s", event.id, result.reason)
        self._snapshot = result.snapshot
        self._commands.extend(result.commands)
        return result

    def process_raw(
        self, payload: Mapping[str, Any], *, received_at: float | None = None
    ) -> ReduceResult | None:
        """Validate a raw relay payload and apply it. Malformed payloads are dropped."""
        try:
            event = RelayEvent.model_validate(payload)
        except ValidationError as e:
            logger.debug("Dropping malformed relay event: %s", e)
            return None
        return self.process(event, received_at=received_at)

    def drain_commands(self) -> list[KickCommand]:
        """Hand over queued commands; each is returned exactly once."""
        commands, self._commands = self._commands, []
        return commands

    def apply_member_removal(self, command: KickCommand) -> bool:
        """Apply the local membership change for an executed kick."""
        result = remove_member(self._snapshot, command.community_id, command.target_member)
        if not result.accepted:
            logger.warning("Could not remove %s locally: %s", command.target_member, result.reason)
            return False
        self._snapshot = result.snapshot
        return True
