"""
Enrichment cache service.

Wraps the cache CRUD operations with the staleness predicate and turns
storage failures into CacheReadError / CacheWriteError so callers can treat
them as non-fatal. Every write commits immediately.
"""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from playercard.db.operations import (
    as_utc,
    cache_entry_to_model,
    delete_cache_entry,
    get_cache_entries_for_character,
    get_cache_entry,
    upsert_cache_entry,
)
from playercard.models.cache import CacheEntry, CacheLookup, CacheWrite

logger = logging.getLogger(__name__)


class CacheError(Exception):
    """Base class for enrichment cache storage failures."""


class CacheReadError(CacheError):
    """The cache could not be read."""


class CacheWriteError(CacheError):
    """The cache could not be written."""


def is_stale(
    entry: CacheEntry | None,
    max_age_hours: float,
    now: datetime | None = None,
) -> bool:
    """
    Check whether a cache entry needs a refresh.

    A missing entry is always stale. Otherwise the entry is stale once
    `now - updated_at >= max_age_hours`.
    """
    if entry is None:
        return True
    current = as_utc(now) if now else datetime.now(UTC)
    return current - as_utc(entry.updated_at) >= timedelta(hours=max_age_hours)


def age_hours(entry: CacheEntry, now: datetime | None = None) -> float:
    """Age of an entry in hours."""
    current = as_utc(now) if now else datetime.now(UTC)
    return (current - as_utc(entry.updated_at)).total_seconds() / 3600


class EnrichmentCache:
    """Persistent, staleness-aware cache of enriched player cards."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def find(self, lookup: CacheLookup) -> CacheEntry | None:
        """Exact-match lookup on (region, realm, character_name, season_key)."""
        try:
            row = await get_cache_entry(self._session, lookup)
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise CacheReadError(f"Failed to read cache entry: {e}") from e
        return cache_entry_to_model(row) if row else None

    async def find_all_seasons(
        self, region: str, realm: str, character_name: str
    ) -> list[CacheEntry]:
        """Every season's entry for one character."""
        try:
            rows = await get_cache_entries_for_character(
                self._session, region, realm, character_name
            )
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise CacheReadError(f"Failed to read cache entries: {e}") from e
        return [cache_entry_to_model(row) for row in rows]

    async def upsert(self, data: CacheWrite) -> CacheEntry:
        """Insert, or partially update, an entry and commit."""
        try:
            row = await upsert_cache_entry(self._session, data)
            entry = cache_entry_to_model(row)
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise CacheWriteError(f"Failed to write cache entry: {e}") from e
        return entry

    async def delete(self, lookup: CacheLookup) -> bool:
        """Delete an entry and commit. Returns False if nothing matched."""
        try:
            deleted = await delete_cache_entry(self._session, lookup)
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise CacheWriteError(f"Failed to delete cache entry: {e}") from e
        if deleted:
            logger.info(
                "Deleted cache entry %s-%s-%s (%s)",
                lookup.character_name,
                lookup.realm,
                lookup.region,
                lookup.season_key,
            )
        return deleted
