"""
Season (raid tier) configuration endpoints.

An administrator imports a tier's boss list from a Warcraft Logs zone URL,
reviews it, then saves it. Saving activates the tier and deactivates the
previous one.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from playercard.api.dependencies import get_warcraft_logs_client
from playercard.db.database import get_session
from playercard.models.failure import (
    ApiResponse,
    BadGatewayError,
    FailureKind,
    InvalidInputError,
    KnownError,
    ServiceUnavailableError,
)
from playercard.models.player_card import CamelModel
from playercard.models.tier import TierConfig
from playercard.parsers.character_url import InvalidReferenceError
from playercard.services.tier_config import import_tier, load_active_tier, save_tier
from playercard.services.warcraft_logs import (
    AuthFailedError,
    RequestFailedError,
    UpstreamError,
    WarcraftLogsClient,
    WarcraftLogsError,
    ZoneNotFoundError,
)

router = APIRouter(prefix="/admin/season-config", tags=["season-config"])


class EncounterModel(CamelModel):
    """One boss in a tier."""

    id: int
    name: str


class SeasonConfigResponse(CamelModel):
    """Response model for a stored tier configuration."""

    id: int | None = None
    tier_name: str
    wcl_tier_url: str
    wcl_zone_id: int
    encounter_order: list[int]
    encounter_names: list[EncounterModel]
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ImportRequest(CamelModel):
    """Request model for importing a tier's boss list."""

    wcl_tier_url: str = Field(
        default="",
        description="Warcraft Logs zone URL",
        examples=["https://www.warcraftlogs.com/zone/rankings/44"],
    )


class ImportResponse(CamelModel):
    """Boss list of a zone, in upstream order."""

    wcl_zone_id: int
    zone_name: str
    encounter_order: list[int]
    encounter_names: list[EncounterModel]


class SaveRequest(CamelModel):
    """Request model for saving and activating a tier."""

    tier_name: str = Field(..., min_length=1)
    wcl_tier_url: str = Field(..., min_length=1)
    wcl_zone_id: int = Field(..., gt=0)
    encounter_order: list[int]
    encounter_names: list[EncounterModel] = Field(default_factory=list)


def _config_response(tier: TierConfig) -> SeasonConfigResponse:
    return SeasonConfigResponse(
        id=tier.id,
        tier_name=tier.tier_name,
        wcl_tier_url=tier.tier_url,
        wcl_zone_id=tier.zone_id,
        encounter_order=tier.encounter_order,
        encounter_names=[EncounterModel(id=e.id, name=e.name) for e in tier.encounters()],
        is_active=tier.is_active,
        created_at=tier.created_at,
        updated_at=tier.updated_at,
    )


def _import_failure(error: WarcraftLogsError) -> KnownError:
    if isinstance(error, ZoneNotFoundError):
        return KnownError(
            kind=FailureKind.NOT_FOUND,
            message=f"{error.message}.",
            suggestion="Please verify the URL is correct.",
            status_code=400,
        )
    if isinstance(error, AuthFailedError):
        return BadGatewayError(
            "Could not authenticate with Warcraft Logs.",
            detail=error.message,
            suggestion="Please check API credentials.",
        )
    if isinstance(error, RequestFailedError | UpstreamError):
        return BadGatewayError(
            "Warcraft Logs API request failed.",
            detail=error.message,
            suggestion="Please try again later.",
        )
    return BadGatewayError(f"Failed to fetch encounters from Warcraft Logs: {error.message}")


@router.get("", response_model=ApiResponse[SeasonConfigResponse])
async def get_season_config(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ApiResponse[SeasonConfigResponse]:
    """Get the active tier configuration. Data is null when none is active."""
    tier = await load_active_tier(session)
    if tier is None:
        return ApiResponse.ok(None, message="No active season configuration")
    return ApiResponse.ok(_config_response(tier))


@router.post("/import", response_model=ApiResponse[ImportResponse])
async def import_season_config(
    request: ImportRequest,
    client: Annotated[WarcraftLogsClient, Depends(get_warcraft_logs_client)],
) -> ApiResponse[ImportResponse]:
    """
    Import the boss list of a tier from its Warcraft Logs zone URL.

    Nothing is stored; the result feeds the save endpoint.
    """
    if not client.is_configured:
        raise ServiceUnavailableError("Warcraft Logs API is not configured")

    try:
        zone = await import_tier(client, request.wcl_tier_url)
    except InvalidReferenceError as e:
        raise InvalidInputError(str(e)) from e
    except WarcraftLogsError as e:
        raise _import_failure(e) from e

    return ApiResponse.ok(
        ImportResponse(
            wcl_zone_id=zone.zone_id,
            zone_name=zone.zone_name,
            encounter_order=[e.id for e in zone.encounters],
            encounter_names=[EncounterModel(id=e.id, name=e.name) for e in zone.encounters],
        ),
        message="Boss list imported successfully",
    )


@router.post("/save", response_model=ApiResponse[SeasonConfigResponse])
async def save_season_config(
    request: SaveRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ApiResponse[SeasonConfigResponse]:
    """Store a tier and make it the only active one."""
    tier = TierConfig(
        zone_id=request.wcl_zone_id,
        encounter_order=request.encounter_order,
        encounter_names={e.id: e.name for e in request.encounter_names},
        is_active=True,
        tier_name=request.tier_name,
        tier_url=request.wcl_tier_url,
    )
    saved = await save_tier(session, tier)
    return ApiResponse.ok(
        _config_response(saved),
        message="Season configuration saved and activated",
    )
