"""Background synchronization between the relay gateway and the projection.

This module provides the RelaySyncWorker class. It keeps the set of active
subscriptions, polls the gateway for events matching any of them, hands each
event to the subscribers whose filters it satisfies, and starts the effects
queued on the projection.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections import OrderedDict
from collections.abc import Iterable
from dataclasses import dataclass, field

from chorus_governance.core.settings import settings
from chorus_governance.schemas.event import RelayEvent
from chorus_governance.services.effects import KickExecutor
from chorus_governance.services.relay import (
    RelayDisabledError,
    RelayError,
    RelayEventBatch,
    RelayGatewayClient,
    get_relay_client,
)
from chorus_governance.services.subscriptions import EventCallback, Filter, event_matches

# Configure logger for this module
logger = logging.getLogger(__name__)


@dataclass
class RelaySyncState:
    """Mutable position in the gateway stream."""

    cursor: str | None = None


@dataclass
class _Subscription:
    filters: list[Filter]
    callback: EventCallback
    # Most recently delivered event ids, oldest first.
    delivered: OrderedDict[str, None] = field(default_factory=OrderedDict)

    def first_delivery(self, event_id: str, window: int) -> bool:
        """Record ``event_id`` and return False if it is still within the last ``window`` ids."""
        if event_id in self.delivered:
            self.delivered.move_to_end(event_id)
            return False
        self.delivered[event_id] = None
        while len(self.delivered) > window:
            self.delivered.popitem(last=False)
        return True


class RelaySyncWorker:
    """Periodically pulls relay events from the gateway and dispatches them.

    Also acts as the ``RelayTransport`` for community subscriptions.
    """

    def __init__(
        self,
        client: RelayGatewayClient | None = None,
        executor: KickExecutor | None = None,
        *,
        dedupe_window: int | None = None,
    ) -> None:
        self.client = client or get_relay_client()
        self.executor = executor
        self.dedupe_window = max(1, dedupe_window or settings.relay_gateway_dedupe_window)
        self.state = RelaySyncState()
        self._subscriptions: dict[str, _Subscription] = {}
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    def subscribe(self, filters: list[Filter], callback: EventCallback) -> str:
        subscription_id = secrets.token_hex(8)
        self._subscriptions[subscription_id] = _Subscription(list(filters), callback)
        return subscription_id

    def unsubscribe(self, subscription_id: str) -> None:
        self._subscriptions.pop(subscription_id, None)

    async def start(self) -> None:
        """Start the background synchronization loop."""

        if not self.client.enabled:
            return

        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background synchronization loop."""

        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        interval = max(0.1, float(settings.relay_gateway_pull_interval_seconds))

        while not self._stopping.is_set():
            try:
                batch = await self.pull_once()
            except RelayDisabledError:
                return
            except RelayError as e:
                logger.warning("RelaySyncWorker encountered RelayError: %s", e)
                await asyncio.sleep(min(interval * 4, 30.0))
                continue
            except (OSError, ConnectionError, TimeoutError) as e:
                logger.warning("RelaySyncWorker encountered network error: %s", e)
                await asyncio.sleep(min(interval * 4, 30.0))
                continue

            try:
                if batch.events:
                    self.dispatch(batch.events)
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                logger.error(
                    "RelaySyncWorker encountered data processing error: %s", e, exc_info=True
                )

            if batch.cursor:
                self.state.cursor = batch.cursor

            await asyncio.sleep(interval)

    async def pull_once(self) -> RelayEventBatch:
        if not self.client.enabled:
            raise RelayDisabledError("Relay gateway integration disabled")

        filters = [f for sub in self._subscriptions.values() for f in sub.filters]
        if not filters:
            return RelayEventBatch(cursor=self.state.cursor, events=[])
        return await self.client.pull_events(filters, self.state.cursor)

    def dispatch(self, events: Iterable[RelayEvent]) -> int:
        """Deliver events to matching subscribers, then start queued effects.

        An event is delivered at most once per subscription among its last
        ``dedupe_window`` deliveries. A failing callback is logged and does not
        stop delivery to the others. Returns the number of deliveries made.
        """
        deliveries = 0
        for event in events:
            # Callbacks may open or close subscriptions.
            for subscription in list(self._subscriptions.values()):
                if not any(event_matches(f, event) for f in subscription.filters):
                    continue
                if not subscription.first_delivery(event.id, self.dedupe_window):
                    continue
                try:
                    subscription.callback(event)
                except (ValueError, TypeError, KeyError, AttributeError) as e:
                    logger.error("Error delivering relay event %s: %s", event.id, e, exc_info=True)
                    continue
                deliveries += 1

        if self.executor is not None:
            self.executor.schedule_pending()
        return deliveries
