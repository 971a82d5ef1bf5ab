"""
Health check endpoints.

Provides liveness and readiness probes, plus a Warcraft Logs credential
check that reports its outcome instead of failing the HTTP call.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from playercard.api.dependencies import get_warcraft_logs_client
from playercard.db.database import get_session, ping
from playercard.models.failure import ApiResponse
from playercard.services.warcraft_logs import (
    ConfigMissingError,
    WarcraftLogsClient,
    WarcraftLogsError,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None


class UpstreamHealth(BaseModel):
    """Outcome of a Warcraft Logs token exchange."""

    ok: bool
    code: str | None = None
    message: str


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness probe.

    Returns healthy if the service is running.
    Does not check dependencies.
    """
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> HealthResponse:
    """
    Readiness probe.

    Checks the cache store. Returns 503 if it does not answer.
    """
    if await ping(session):
        return HealthResponse(status="ready", database="connected")
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(status="not ready", database="disconnected")


@router.get("/health/wcl", response_model=ApiResponse[UpstreamHealth])
async def warcraft_logs_health(
    client: Annotated[WarcraftLogsClient, Depends(get_warcraft_logs_client)],
) -> ApiResponse[UpstreamHealth]:
    """Try a token exchange against Warcraft Logs and report the result."""
    try:
        await client.get_token()
    except ConfigMissingError as e:
        return ApiResponse.ok(UpstreamHealth(ok=False, code=e.code, message=e.message))
    except WarcraftLogsError as e:
        logger.warning("Warcraft Logs health check failed: [%s] %s", e.code, e.message)
        return ApiResponse.ok(UpstreamHealth(ok=False, code=e.code, message=e.message))
    return ApiResponse.ok(UpstreamHealth(ok=True, message="Warcraft Logs API is accessible"))
