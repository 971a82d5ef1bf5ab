"""
Database CRUD operations.

Provides async functions for reading and writing enrichment cache entries
and tier configurations. Cached cards are encoded/decoded here and nowhere
else.
"""

from datetime import UTC, datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from playercard.models.cache import CacheEntry, CacheLookup, CacheWrite
from playercard.models.db import CharacterEnrichmentCacheDB, TierConfigDB, utcnow
from playercard.models.player_card import FetchStatus, StoredPlayerCard
from playercard.models.tier import TierConfig


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps (SQLite drops tzinfo)."""
    return value if value.tzinfo else value.replace(tzinfo=UTC)


# --- Enrichment Cache Operations ---


async def get_cache_entry(
    session: AsyncSession, lookup: CacheLookup
) -> CharacterEnrichmentCacheDB | None:
    """
    Get a cache entry by its four-part key.

    Returns None if no entry exists for this key.
    """
    result = await session.execute(
        select(CharacterEnrichmentCacheDB).where(
            CharacterEnrichmentCacheDB.region == lookup.region,
            CharacterEnrichmentCacheDB.realm == lookup.realm,
            CharacterEnrichmentCacheDB.character_name == lookup.character_name,
            CharacterEnrichmentCacheDB.season_key == lookup.season_key,
        )
    )
    return result.scalar_one_or_none()


async def get_cache_entries_for_character(
    session: AsyncSession, region: str, realm: str, character_name: str
) -> list[CharacterEnrichmentCacheDB]:
    """Get every season's entry for a character, newest season key first."""
    result = await session.execute(
        select(CharacterEnrichmentCacheDB)
        .where(
            CharacterEnrichmentCacheDB.region == region,
            CharacterEnrichmentCacheDB.realm == realm,
            CharacterEnrichmentCacheDB.character_name == character_name,
        )
        .order_by(CharacterEnrichmentCacheDB.season_key.desc())
    )
    return list(result.scalars().all())


def _apply_updates(row: CharacterEnrichmentCacheDB, data: CacheWrite) -> None:
    supplied = data.supplied_updates()

    if "player_card" in supplied:
        row.player_card = (
            StoredPlayerCard(card=data.player_card).to_storage() if data.player_card else {}
        )
    if "wcl_last_fetched_at" in supplied:
        row.wcl_last_fetched_at = data.wcl_last_fetched_at
    if "fetch_status" in supplied and data.fetch_status is not None:
        row.fetch_status = data.fetch_status.value
    if "error_message" in supplied:
        row.error_message = data.error_message

    # Every write counts as a refresh, even when nothing else changed
    row.updated_at = utcnow()


async def upsert_cache_entry(session: AsyncSession, data: CacheWrite) -> CharacterEnrichmentCacheDB:
    """
    Insert or update a cache entry.

    If an entry with the same key exists, only the fields explicitly set on
    `data` are changed. Otherwise a new entry is created with status
    'partial' and an empty card unless given.

    If another session inserts the same key between the lookup and the
    insert, the session is rolled back and this write is applied on top of
    the row that won the race, so the later write still wins.
    """
    existing = await get_cache_entry(session, data.lookup())

    if existing:
        _apply_updates(existing, data)
        await session.flush()
        return existing

    row = CharacterEnrichmentCacheDB(
        region=data.region,
        realm=data.realm,
        character_name=data.character_name,
        season_key=data.season_key,
        player_card={},
        fetch_status=FetchStatus.PARTIAL.value,
    )
    _apply_updates(row, data)
    row.created_at = row.updated_at
    session.add(row)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        existing = await get_cache_entry(session, data.lookup())
        if existing is None:
            raise
        _apply_updates(existing, data)
        await session.flush()
        return existing
    return row


async def delete_cache_entry(session: AsyncSession, lookup: CacheLookup) -> bool:
    """
    Delete a cache entry.

    Returns True if deleted, False if not found.
    """
    result = await session.execute(
        delete(CharacterEnrichmentCacheDB).where(
            CharacterEnrichmentCacheDB.region == lookup.region,
            CharacterEnrichmentCacheDB.realm == lookup.realm,
            CharacterEnrichmentCacheDB.character_name == lookup.character_name,
            CharacterEnrichmentCacheDB.season_key == lookup.season_key,
        )
    )
    # rowcount is available on DELETE results; type stubs incomplete for async
    return int(result.rowcount) > 0  # type: ignore[attr-defined]


def cache_entry_to_model(row: CharacterEnrichmentCacheDB) -> CacheEntry:
    """Convert a database cache row to a domain model, decoding its card."""
    try:
        status = FetchStatus(row.fetch_status)
    except ValueError:
        status = FetchStatus.PARTIAL

    return CacheEntry(
        region=row.region,
        realm=row.realm,
        character_name=row.character_name,
        season_key=row.season_key,
        player_card=StoredPlayerCard.from_storage(row.player_card),
        wcl_last_fetched_at=as_utc(row.wcl_last_fetched_at) if row.wcl_last_fetched_at else None,
        fetch_status=status,
        error_message=row.error_message,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


# --- Tier Configuration Operations ---


async def get_active_tier_config(session: AsyncSession) -> TierConfigDB | None:
    """Get the active tier configuration, if any."""
    result = await session.execute(
        select(TierConfigDB).where(TierConfigDB.is_active.is_(True)).limit(1)
    )
    return result.scalar_one_or_none()


async def create_tier_config(
    session: AsyncSession, tier: TierConfig, activate: bool = True
) -> TierConfigDB:
    """
    Store a tier configuration.

    When activating, every currently active row is deactivated first in the
    same transaction, so at most one row is ever active once committed.
    """
    if activate:
        await session.execute(
            update(TierConfigDB)
            .where(TierConfigDB.is_active.is_(True))
            .values(is_active=False, updated_at=utcnow())
        )
        # Make the deactivation visible before the new active row is inserted
        await session.flush()

    row = TierConfigDB(
        tier_name=tier.tier_name,
        wcl_tier_url=tier.tier_url,
        wcl_zone_id=tier.zone_id,
        encounter_order=list(tier.encounter_order),
        encounter_names=[{"id": e.id, "name": e.name} for e in tier.encounters()],
        is_active=activate,
    )
    session.add(row)
    await session.flush()
    return row


def tier_config_to_model(row: TierConfigDB) -> TierConfig:
    """Convert a database tier configuration to a domain model."""
    names: dict[int, str] = {}
    for entry in row.encounter_names or []:
        if isinstance(entry, dict) and "id" in entry:
            names[int(entry["id"])] = str(entry.get("name") or f"Boss {entry['id']}")

    return TierConfig(
        id=row.id,
        zone_id=row.wcl_zone_id,
        encounter_order=[int(eid) for eid in row.encounter_order or []],
        encounter_names=names,
        is_active=row.is_active,
        tier_name=row.tier_name,
        tier_url=row.wcl_tier_url,
        created_at=as_utc(row.created_at) if row.created_at else None,
        updated_at=as_utc(row.updated_at) if row.updated_at else None,
    )
