# src/chorus_governance/api/v1/endpoints/events.py
"""Push-style ingestion of relay events."""

from __future__ import annotations

import logging

from fastapi import APIRouter, status

from chorus_governance.api.v1.dependencies import ExecutorDep, ProjectionDep
from chorus_governance.schemas.event import RelayEvent
from chorus_governance.schemas.proposal import IngestResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


@router.post("/", response_model=IngestResponse, status_code=status.HTTP_202_ACCEPTED)
async def ingest_event(
    event: RelayEvent,
    projection: ProjectionDep,
    executor: ExecutorDep,
) -> IngestResponse:
    """Apply one relay event to the projection.

    Any kick that reaches quorum is executed in the background; the response
    only reports whether the event changed the projection.
    """
    result = projection.process(event)
    if executor is not None and projection.pending_command_count:
        executor.schedule_pending()
    return IngestResponse(accepted=result.accepted, reason=result.reason)
