"""Shared API dependencies for reaching the live projection."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from chorus_governance.services.effects import KickExecutor
from chorus_governance.services.projection import GovernanceProjection


def get_projection(request: Request) -> GovernanceProjection:
    """Return the projection owned by the running application.

    Raises:
        HTTPException: If the application has not finished starting up
    """
    projection: GovernanceProjection | None = getattr(request.app.state, "projection", None)
    if projection is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Projection not initialized",
        )
    return projection


def get_executor(request: Request) -> KickExecutor | None:
    """Return the kick executor, or None when effects are not wired up."""
    return getattr(request.app.state, "kick_executor", None)


# Type aliases for dependency injection
ProjectionDep = Annotated[GovernanceProjection, Depends(get_projection)]
ExecutorDep = Annotated[KickExecutor | None, Depends(get_executor)]
