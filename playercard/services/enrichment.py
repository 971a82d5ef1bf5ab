"""
Player card enrichment.

Decides, per request, whether to serve the cache, fetch fresh data from
Warcraft Logs, or degrade to stale cached data:

    parse -> resolve numeric id -> cache lookup -> fresh? -> configured?
          -> fetch -> build card -> write cache -> respond

Only the absence of both a working upstream call and a cache entry produces
a user-visible failure. Storage failures are logged and never fail a
request.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from playercard.config import settings
from playercard.models.cache import CacheEntry, CacheLookup, CacheWrite
from playercard.models.character import NormalizedCharacter
from playercard.models.failure import (
    BadGatewayError,
    InvalidInputError,
    KnownError,
    ServiceUnavailableError,
)
from playercard.models.identity import NumericIdReference, ResolvedIdentity
from playercard.models.player_card import BestKill, EnrichedPlayerCard, FetchStatus
from playercard.models.tier import TierConfig
from playercard.parsers.character_url import InvalidReferenceError, parse_character_url
from playercard.services.best_kill import compute_best_kill
from playercard.services.enrichment_cache import (
    CacheError,
    EnrichmentCache,
    age_hours,
    is_stale,
)
from playercard.services.tier_config import load_active_tier
from playercard.services.warcraft_logs import (
    AuthFailedError,
    CharacterNotFoundError,
    ConfigMissingError,
    RequestFailedError,
    UpstreamError,
    WarcraftLogsClient,
    WarcraftLogsError,
)

logger = logging.getLogger(__name__)

MESSAGE_FROM_CACHE = "Player card returned from cache"
MESSAGE_ENRICHED = "Player card enriched successfully"
MESSAGE_FETCH_FAILED = "Returning cached data (fetch failed)"
MESSAGE_NOT_CONFIGURED_STALE = "WCL API not configured. Returning stale cached data."


@dataclass(frozen=True)
class EnrichmentResult:
    """A card plus the advisory message that goes into the response envelope."""

    card: EnrichedPlayerCard
    message: str | None = None


class PlayerCardEnricher:
    """
    Request-level enrichment orchestrator.

    One instance serves one request; it owns no state beyond its
    collaborators.
    """

    def __init__(
        self,
        session: AsyncSession,
        client: WarcraftLogsClient,
        cache_ttl_hours: float | None = None,
    ):
        self._session = session
        self._client = client
        self._cache = EnrichmentCache(session)
        self._ttl_hours = settings.cache_ttl_hours if cache_ttl_hours is None else cache_ttl_hours

    async def enrich(
        self,
        url: str,
        season_key: str | None = None,
        force_refresh: bool = False,
    ) -> EnrichmentResult:
        """
        Enrich a Warcraft Logs character URL into a player card.

        Raises:
            InvalidInputError: The URL does not parse (400)
            ServiceUnavailableError: Upstream not configured, nothing cached (503)
            BadGatewayError: Upstream failed, nothing cached (502)
        """
        try:
            reference = parse_character_url(url)
        except InvalidReferenceError as e:
            raise InvalidInputError(f"Invalid Warcraft Logs URL: {e}") from e

        tier = await load_active_tier(self._session)
        tier_updated_at = tier.updated_at if tier else None

        prefetched: NormalizedCharacter | None = None
        if isinstance(reference, NumericIdReference):
            prefetched = await self._resolve_numeric_id(reference.character_id)
            identity = prefetched.identity
        else:
            identity = reference.identity

        lookup = CacheLookup.for_identity(identity, season_key)

        cached: CacheEntry | None = None
        if force_refresh:
            logger.info("Force refresh for %s, skipping cache lookup", identity)
        else:
            cached = await self._find_cached(lookup)

        if cached is not None and not is_stale(cached, self._ttl_hours):
            logger.info("Cache hit for %s (age: %.1fh)", identity, age_hours(cached))
            return EnrichmentResult(
                card=card_from_cache(cached, reference.original_url, tier_updated_at),
                message=MESSAGE_FROM_CACHE,
            )

        if prefetched is None and not self._client.is_configured:
            if cached is not None:
                logger.warning("Warcraft Logs not configured, serving stale cache for %s", identity)
                return EnrichmentResult(
                    card=card_from_cache(cached, reference.original_url, tier_updated_at),
                    message=MESSAGE_NOT_CONFIGURED_STALE,
                )
            raise ServiceUnavailableError(
                "Warcraft Logs API is not configured and no cached data is available"
            )

        try:
            character = prefetched or await self._client.fetch_by_name(identity)
        except WarcraftLogsError as e:
            logger.error("[%s] Fetch failed for %s: %s", e.code, identity, e.message)
            if cached is None:
                raise upstream_failure(e) from e
            return await self._degrade(lookup, cached, e, reference.original_url, tier_updated_at)

        best_kill = await self._best_kill(identity, tier)
        card = build_card(
            character,
            identity,
            best_kill=best_kill,
            url=reference.original_url,
            season_config_updated_at=tier_updated_at,
        )
        await self._write(
            CacheWrite(
                **lookup.model_dump(),
                player_card=card,
                wcl_last_fetched_at=card.updated_at,
                fetch_status=FetchStatus.COMPLETE,
                error_message=None,
            )
        )
        logger.info("Enriched %s", identity)
        return EnrichmentResult(card=card, message=MESSAGE_ENRICHED)

    async def _resolve_numeric_id(self, character_id: str) -> NormalizedCharacter:
        # A numeric id has no cache key until upstream resolves it
        if not self._client.is_configured:
            raise ServiceUnavailableError(
                "Warcraft Logs API is not configured. Cannot resolve character ID."
            )
        try:
            character = await self._client.fetch_by_id(character_id)
        except WarcraftLogsError as e:
            logger.error("[%s] Failed to resolve character id %s: %s", e.code, character_id, e.message)
            raise upstream_failure(e, outdated_url=True) from e
        logger.info("Resolved character id %s to %s", character_id, character.identity)
        return character

    async def _find_cached(self, lookup: CacheLookup) -> CacheEntry | None:
        try:
            return await self._cache.find(lookup)
        except CacheError as e:
            logger.error("Cache read failed, continuing without cache: %s", e)
            return None

    async def _write(self, data: CacheWrite) -> None:
        try:
            await self._cache.upsert(data)
        except CacheError as e:
            logger.error("Cache write failed: %s", e)

    async def _best_kill(self, identity: ResolvedIdentity, tier: TierConfig | None) -> BestKill | None:
        """Best kill in the active tier; None when it cannot be determined."""
        if tier is None:
            logger.debug("No active tier, skipping best-kill computation")
            return None
        try:
            progression = await self._client.fetch_zone_progression(identity, tier.zone_id)
            return compute_best_kill(progression, tier.encounter_order, tier.encounter_names)
        except WarcraftLogsError as e:
            logger.warning(
                "Best-kill lookup failed for %s in zone %d: %s", identity, tier.zone_id, e.message
            )
        except Exception:
            logger.warning(
                "Best-kill computation failed for %s in zone %d",
                identity,
                tier.zone_id,
                exc_info=True,
            )
        return None

    async def _degrade(
        self,
        lookup: CacheLookup,
        cached: CacheEntry,
        error: WarcraftLogsError,
        url: str,
        season_config_updated_at: datetime | None,
    ) -> EnrichmentResult:
        """Record the failure on the cache entry and serve the stale card."""
        await self._write(
            CacheWrite(
                **lookup.model_dump(),
                fetch_status=FetchStatus.FAILED,
                error_message=error.message,
            )
        )
        logger.warning("Serving stale cache for %s after fetch failure", lookup.character_name)
        card = card_from_cache(cached, url, season_config_updated_at).model_copy(
            update={
                "fetch_status": FetchStatus.FAILED,
                "error_message": (
                    f"Failed to fetch fresh data: {error.message}. Returning cached data."
                ),
            }
        )
        return EnrichmentResult(card=card, message=MESSAGE_FETCH_FAILED)


# =============================================================================
# CARD CONSTRUCTION
# =============================================================================


def build_card(
    character: NormalizedCharacter,
    identity: ResolvedIdentity,
    best_kill: BestKill | None,
    url: str,
    season_config_updated_at: datetime | None = None,
) -> EnrichedPlayerCard:
    """Build a fresh, complete card from normalized upstream data."""
    return EnrichedPlayerCard(
        warcraft_logs_url=url,
        character_name=identity.character_name,
        realm=identity.realm,
        region=identity.region.value,
        class_name=character.class_name,
        spec=character.spec,
        class_spec=character.class_spec,
        best_kill=best_kill,
        avatar_url=character.avatar_url,
        fetch_status=FetchStatus.COMPLETE,
        updated_at=datetime.now(UTC),
        season_config_updated_at=season_config_updated_at,
    )


def card_from_cache(
    entry: CacheEntry,
    url: str,
    season_config_updated_at: datetime | None = None,
) -> EnrichedPlayerCard:
    """
    Rebuild a card from a cache entry.

    Identity, status, error and timestamp come from the entry itself; the
    stored card (absent for entries written without one) supplies the
    character details. The URL is re-stamped with the one requested.
    """
    stored = entry.player_card
    return EnrichedPlayerCard(
        warcraft_logs_url=url,
        character_name=entry.character_name,
        realm=entry.realm,
        region=entry.region,
        class_name=stored.class_name if stored else None,
        spec=stored.spec if stored else None,
        class_spec=stored.class_spec if stored else None,
        best_kill=stored.best_kill if stored else None,
        avatar_url=stored.avatar_url if stored else None,
        fetch_status=entry.fetch_status,
        error_message=entry.error_message,
        updated_at=entry.updated_at,
        season_config_updated_at=season_config_updated_at,
    )


def upstream_failure(error: WarcraftLogsError, outdated_url: bool = False) -> KnownError:
    """Map an upstream failure with no cache to fall back on to a user-visible error."""
    if isinstance(error, ConfigMissingError):
        return ServiceUnavailableError(
            "Warcraft Logs API credentials not configured. Please contact administrator."
        )
    if isinstance(error, AuthFailedError):
        return BadGatewayError("Could not authenticate with Warcraft Logs", detail=error.message)
    if isinstance(error, RequestFailedError | UpstreamError):
        return BadGatewayError("Warcraft Logs API request failed", detail=error.message)
    if isinstance(error, CharacterNotFoundError):
        if outdated_url:
            suggestion = (
                "The character may have been deleted, transferred, or the URL is outdated. "
                "Please provide an updated Warcraft Logs character URL."
            )
        else:
            suggestion = (
                "The character may have been deleted, transferred, or doesn't exist. "
                "Please verify the character name, realm, and region."
            )
        return BadGatewayError(
            "Character not found on Warcraft Logs.",
            detail=error.message,
            suggestion=suggestion,
        )
    return BadGatewayError(f"Warcraft Logs API error: {error.message}", detail=error.message)
