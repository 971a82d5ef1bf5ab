"""
Character cache administration endpoints.

Inspect, seed and evict enrichment cache entries. Keys are normalized the
same way the enrichment flow normalizes them, so "us/Area-52/TESTCHAR"
addresses the same entry as "US/area-52/Testchar".
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from playercard.config import DEFAULT_SEASON_KEY
from playercard.db.database import get_session
from playercard.models.cache import CacheEntry, CacheLookup, CacheWrite
from playercard.models.failure import (
    ApiResponse,
    FailureKind,
    InvalidInputError,
    KnownError,
)
from playercard.models.identity import ResolvedIdentity
from playercard.models.player_card import CamelModel, EnrichedPlayerCard, FetchStatus
from playercard.parsers.character_url import InvalidReferenceError, resolve_identity
from playercard.services.enrichment_cache import EnrichmentCache

router = APIRouter(prefix="/character-cache", tags=["character-cache"])


class CacheEntryResponse(CamelModel):
    """Response model for a cache entry."""

    region: str
    realm: str
    character_name: str
    season_key: str
    player_card: EnrichedPlayerCard | None = None
    wcl_last_fetched_at: datetime | None = None
    fetch_status: FetchStatus
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime


class CacheUpsertRequest(CamelModel):
    """Request model for inserting or partially updating a cache entry."""

    region: str
    realm: str
    character_name: str
    season_key: str = DEFAULT_SEASON_KEY
    player_card: EnrichedPlayerCard | None = None
    wcl_last_fetched_at: datetime | None = None
    fetch_status: FetchStatus | None = Field(
        default=None,
        description="One of: complete, partial, failed",
    )
    error_message: str | None = None


def _entry_response(entry: CacheEntry) -> CacheEntryResponse:
    return CacheEntryResponse(
        region=entry.region,
        realm=entry.realm,
        character_name=entry.character_name,
        season_key=entry.season_key,
        player_card=entry.player_card,
        wcl_last_fetched_at=entry.wcl_last_fetched_at,
        fetch_status=entry.fetch_status,
        error_message=entry.error_message,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
    )


def _identity(region: str, realm: str, character_name: str) -> ResolvedIdentity:
    try:
        return resolve_identity(region, realm, character_name)
    except InvalidReferenceError as e:
        raise InvalidInputError(str(e)) from e


def _not_found() -> KnownError:
    return KnownError(
        kind=FailureKind.NOT_FOUND,
        message="Cache entry not found",
        status_code=404,
    )


@router.get("", response_model=ApiResponse[CacheEntryResponse | list[CacheEntryResponse]])
async def get_character_cache(
    session: Annotated[AsyncSession, Depends(get_session)],
    region: str,
    realm: str,
    character_name: Annotated[str, Query(alias="characterName")],
    season_key: Annotated[str, Query(alias="seasonKey")] = DEFAULT_SEASON_KEY,
    all_seasons: Annotated[bool, Query(alias="allSeasons")] = False,
) -> ApiResponse[CacheEntryResponse | list[CacheEntryResponse]]:
    """
    Get a character's cache entry.

    With allSeasons, returns every season's entry (possibly empty).
    Otherwise returns the entry for seasonKey, or 404.
    """
    identity = _identity(region, realm, character_name)
    cache = EnrichmentCache(session)

    if all_seasons:
        entries = await cache.find_all_seasons(
            identity.region.value, identity.realm, identity.character_name
        )
        return ApiResponse.ok([_entry_response(e) for e in entries])

    entry = await cache.find(CacheLookup.for_identity(identity, season_key))
    if entry is None:
        raise _not_found()
    return ApiResponse.ok(_entry_response(entry))


@router.post("/upsert", response_model=ApiResponse[CacheEntryResponse])
async def upsert_character_cache(
    request: CacheUpsertRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ApiResponse[CacheEntryResponse]:
    """
    Create or partially update a cache entry.

    Only fields present in the body are written; new entries start as
    'partial' with no card.
    """
    identity = _identity(request.region, request.realm, request.character_name)
    lookup = CacheLookup.for_identity(identity, request.season_key)

    updates = {
        name: getattr(request, name)
        for name in request.model_fields_set - set(CacheLookup.model_fields)
    }
    entry = await EnrichmentCache(session).upsert(CacheWrite(**lookup.model_dump(), **updates))
    return ApiResponse.ok(_entry_response(entry), message="Character cache updated successfully")


@router.delete("", response_model=ApiResponse[None])
async def delete_character_cache(
    session: Annotated[AsyncSession, Depends(get_session)],
    region: str,
    realm: str,
    character_name: Annotated[str, Query(alias="characterName")],
    season_key: Annotated[str, Query(alias="seasonKey")] = DEFAULT_SEASON_KEY,
) -> ApiResponse[None]:
    """Delete a cache entry. Returns 404 if nothing matched."""
    identity = _identity(region, realm, character_name)
    deleted = await EnrichmentCache(session).delete(CacheLookup.for_identity(identity, season_key))
    if not deleted:
        raise _not_found()
    return ApiResponse.ok(None, message="Cache entry deleted successfully")
