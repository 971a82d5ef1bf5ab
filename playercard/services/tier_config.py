"""
Tier configuration service.

Loads the active tier for best-kill computation, imports a tier's encounter
list from a Warcraft Logs zone URL, and stores (activating) a new tier.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from playercard.db.operations import (
    create_tier_config,
    get_active_tier_config,
    tier_config_to_model,
)
from playercard.models.tier import TierConfig, ZoneEncounters
from playercard.parsers.zone_url import parse_zone_url
from playercard.services.warcraft_logs import WarcraftLogsClient

logger = logging.getLogger(__name__)


async def load_active_tier(session: AsyncSession) -> TierConfig | None:
    """
    Load the active tier, if any.

    Storage failures are logged and treated as "no active tier".
    """
    try:
        row = await get_active_tier_config(session)
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Failed to load active tier configuration: %s", e)
        return None
    return tier_config_to_model(row) if row else None


async def import_tier(client: WarcraftLogsClient, url: str) -> ZoneEncounters:
    """
    Resolve a tier URL to its zone's encounter list.

    Raises:
        InvalidReferenceError: If no zone id can be extracted from the URL
        WarcraftLogsError: On any upstream failure
    """
    zone_id = parse_zone_url(url)
    zone = await client.fetch_zone_encounters(zone_id)
    logger.info(
        "Imported zone %d (%s) with %d encounters",
        zone.zone_id,
        zone.zone_name,
        len(zone.encounters),
    )
    return zone


async def save_tier(session: AsyncSession, tier: TierConfig) -> TierConfig:
    """Store a tier and make it the only active one, in one transaction."""
    row = await create_tier_config(session, tier, activate=True)
    saved = tier_config_to_model(row)
    await session.commit()
    logger.info("Activated tier '%s' (zone %d)", saved.tier_name, saved.zone_id)
    return saved
