# src/chorus_governance/services/pending_votes.py
"""Bounded buffer for votes that arrive before the proposal they target.

Buckets are keyed by the target id and keep events in receipt order. The
buffer is bounded three ways: events per bucket (oldest dropped), number of
buckets (the bucket first filled longest ago is dropped) and age (buckets
older than the TTL are dropped whenever a new event is buffered). A bound of
zero or less disables it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace

from chorus_governance.models.snapshot import PendingBucket
from chorus_governance.schemas.event import RelayEvent
from chorus_governance.services.results import ProjectionConfig

logger = logging.getLogger(__name__)

Buckets = Mapping[str, PendingBucket]


def _expire(buckets: Buckets, now: float, ttl_seconds: int) -> dict[str, PendingBucket]:
    if ttl_seconds <= 0:
        return dict(buckets)
    live = {key: b for key, b in buckets.items() if now - b.first_received_at < ttl_seconds}
    if len(live) != len(buckets):
        logger.debug("Expired %d pending vote buckets", len(buckets) - len(live))
    return live


def buffer_event(
    buckets: Buckets,
    target_id: str,
    event: RelayEvent,
    *,
    received_at: float,
    config: ProjectionConfig,
) -> dict[str, PendingBucket]:
    """Return a copy of ``buckets`` with ``event`` queued under ``target_id``."""
    live = _expire(buckets, received_at, config.pending_ttl_seconds)

    bucket = live.get(target_id)
    if bucket is None:
        if 0 < config.pending_max_buckets <= len(live):
            oldest = min(live, key=lambda key: live[key].first_received_at)
            logger.warning("Pending vote buffer full; evicting votes for %s", oldest)
            del live[oldest]
        bucket = PendingBucket(first_received_at=received_at)
    elif any(queued.id == event.id for queued in bucket.events):
        return live

    events = (*bucket.events, event)
    if 0 < config.pending_max_per_bucket < len(events):
        events = events[-config.pending_max_per_bucket :]
    live[target_id] = replace(bucket, events=events)
    return live


def take_bucket(buckets: Buckets, target_id: str) -> tuple[tuple[RelayEvent, ...], dict[str, PendingBucket]]:
    """Remove the bucket for ``target_id`` and return its events in receipt order."""
    remaining = dict(buckets)
    bucket = remaining.pop(target_id, None)
    return (bucket.events if bucket is not None else ()), remaining
