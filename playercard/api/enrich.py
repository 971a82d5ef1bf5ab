"""
Player card enrichment endpoints.

POST enriches a Warcraft Logs character URL into a player card, serving
the cache or degrading to stale data when upstream is unavailable.
GET reports whether enrichment can currently work at all.
"""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from playercard.api.dependencies import get_warcraft_logs_client
from playercard.config import DEFAULT_SEASON_KEY
from playercard.db.database import get_session, ping
from playercard.models.failure import ApiResponse
from playercard.models.player_card import CamelModel, EnrichedPlayerCard
from playercard.services.enrichment import PlayerCardEnricher
from playercard.services.warcraft_logs import WarcraftLogsClient

router = APIRouter(prefix="/enrich-player-card", tags=["enrichment"])


class EnrichRequest(CamelModel):
    """Request model for player card enrichment."""

    warcraft_logs_url: str = Field(
        default="",
        description="Warcraft Logs character URL (slug or numeric id form)",
        examples=["https://www.warcraftlogs.com/character/us/area-52/testchar"],
    )
    season_key: str = Field(
        default=DEFAULT_SEASON_KEY,
        description="Cache partition for the card",
    )
    force_refresh: bool = Field(
        default=False,
        description="Skip the cache lookup and always fetch fresh data",
    )


class EnrichmentDiagnostics(CamelModel):
    """Readiness of the enrichment dependencies."""

    ok: bool
    has_wcl_token: bool
    has_db: bool
    timestamp: datetime


@router.post("", response_model=ApiResponse[EnrichedPlayerCard])
async def enrich_player_card(
    request: EnrichRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    client: Annotated[WarcraftLogsClient, Depends(get_warcraft_logs_client)],
) -> ApiResponse[EnrichedPlayerCard]:
    """
    Enrich a player card.

    Degraded answers built from stale cache are still 200 with an advisory
    message. Failures: 400 invalid URL, 502 upstream failure with nothing
    cached, 503 upstream not configured with nothing cached.
    """
    enricher = PlayerCardEnricher(session, client)
    result = await enricher.enrich(
        request.warcraft_logs_url,
        season_key=request.season_key,
        force_refresh=request.force_refresh,
    )
    return ApiResponse.ok(result.card, message=result.message)


@router.get("", response_model=ApiResponse[EnrichmentDiagnostics])
async def enrichment_diagnostics(
    session: Annotated[AsyncSession, Depends(get_session)],
    client: Annotated[WarcraftLogsClient, Depends(get_warcraft_logs_client)],
) -> ApiResponse[EnrichmentDiagnostics]:
    """Report whether credentials are configured and the cache store answers."""
    has_wcl_token = client.is_configured
    has_db = await ping(session)
    return ApiResponse.ok(
        EnrichmentDiagnostics(
            ok=has_wcl_token and has_db,
            has_wcl_token=has_wcl_token,
            has_db=has_db,
            timestamp=datetime.now(UTC),
        )
    )
