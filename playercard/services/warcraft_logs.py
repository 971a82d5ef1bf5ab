"""
Warcraft Logs API client.

Talks to the Warcraft Logs v2 GraphQL API:
- client-credentials token exchange (a fresh token per operation, no caching)
- character lookup by name+server+region or by numeric id
- zone encounter list (tier import)
- per-zone kill history for best-kill computation

Raw responses are normalized here so nothing upstream-shaped leaks out.

API docs: https://www.warcraftlogs.com/v2-api-docs/warcraft/
"""

import json
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import httpx

from playercard.config import Settings
from playercard.models.character import NormalizedCharacter, TopRanking
from playercard.models.identity import Region, ResolvedIdentity
from playercard.models.player_card import Difficulty
from playercard.models.tier import (
    Encounter,
    EncounterProgress,
    Kill,
    ZoneEncounters,
    ZoneProgression,
)
from playercard.parsers.character_url import realm_slug
from playercard.services.class_names import get_class_name

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://www.warcraftlogs.com/api/v2/client"
DEFAULT_TOKEN_URL = "https://www.warcraftlogs.com/oauth/token"
DEFAULT_TIMEOUT = 15.0

# Upstream error bodies are truncated before logging
_LOG_BODY_LIMIT = 500


# =============================================================================
# ERRORS
# =============================================================================


class WarcraftLogsError(Exception):
    """Base class for Warcraft Logs failures."""

    code = "WCL_ERROR"

    def __init__(self, message: str, *, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ConfigMissingError(WarcraftLogsError):
    """Client id or secret is not configured."""

    code = "WCL_CONFIG_MISSING"


class AuthFailedError(WarcraftLogsError):
    """Token endpoint rejected the credentials or answered unusably."""

    code = "WCL_OAUTH_FAILED"


class NetworkError(WarcraftLogsError):
    """Transport-level failure (DNS, connect, timeout)."""

    code = "WCL_NETWORK_ERROR"


class RequestFailedError(WarcraftLogsError):
    """Query endpoint answered with a non-success HTTP status."""

    code = "WCL_GRAPHQL_FAILED"


class UpstreamError(WarcraftLogsError):
    """Query endpoint answered with a structured GraphQL error list."""

    code = "WCL_GRAPHQL_ERROR"


class CharacterNotFoundError(WarcraftLogsError):
    """No character matched the query."""

    code = "WCL_CHARACTER_NOT_FOUND"


class ZoneNotFoundError(WarcraftLogsError):
    """No zone matched the query."""

    code = "WCL_ZONE_NOT_FOUND"


# =============================================================================
# QUERIES
# =============================================================================

_CHARACTER_FIELDS = """
          id
          name
          server {
            name
            slug
            region {
              slug
            }
          }
          classID
          zoneRankings
"""

CHARACTER_BY_NAME_QUERY = (
    """
    query ($name: String!, $serverSlug: String!, $serverRegion: String!) {
      characterData {
        character(name: $name, serverSlug: $serverSlug, serverRegion: $serverRegion) {"""
    + _CHARACTER_FIELDS
    + """
        }
      }
    }
"""
)

CHARACTER_BY_ID_QUERY = (
    """
    query ($characterId: Int!) {
      characterData {
        character(id: $characterId) {"""
    + _CHARACTER_FIELDS
    + """
        }
      }
    }
"""
)

ZONE_ENCOUNTERS_QUERY = """
    query ($zoneId: Int!) {
      worldData {
        zone(id: $zoneId) {
          id
          name
          encounters {
            id
            name
          }
        }
      }
    }
"""

# One aliased zoneRankings per difficulty so every tier of kills is visible
ZONE_PROGRESSION_QUERY = """
    query ($name: String!, $serverSlug: String!, $serverRegion: String!, $zoneID: Int!) {
      characterData {
        character(name: $name, serverSlug: $serverSlug, serverRegion: $serverRegion) {
          mythic: zoneRankings(zoneID: $zoneID, difficulty: 5)
          heroic: zoneRankings(zoneID: $zoneID, difficulty: 4)
          normal: zoneRankings(zoneID: $zoneID, difficulty: 3)
        }
      }
    }
"""

_PROGRESSION_ALIASES: dict[str, int] = {"mythic": 5, "heroic": 4, "normal": 3}


# =============================================================================
# CLIENT
# =============================================================================


@dataclass(frozen=True)
class WarcraftLogsConfig:
    """Credentials and endpoints for the Warcraft Logs API."""

    client_id: str = ""
    client_secret: str = ""
    api_url: str = DEFAULT_API_URL
    token_url: str = DEFAULT_TOKEN_URL
    timeout: float = DEFAULT_TIMEOUT

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @classmethod
    def from_settings(cls, settings: Settings) -> "WarcraftLogsConfig":
        return cls(
            client_id=settings.wcl_client_id,
            client_secret=settings.wcl_client_secret,
            api_url=settings.wcl_api_url,
            token_url=settings.wcl_token_url,
            timeout=settings.wcl_timeout_seconds,
        )


class WarcraftLogsClient:
    """
    Async Warcraft Logs client.

    Every public fetch opens one HTTP client, acquires a token, then issues
    its query. Tokens are never reused across calls.
    """

    def __init__(self, config: WarcraftLogsConfig):
        self._config = config

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    async def get_token(self, http: httpx.AsyncClient | None = None) -> str:
        """
        Exchange client credentials for a bearer token.

        Raises:
            ConfigMissingError: If credentials are absent
            AuthFailedError: On non-success status or unusable response
            NetworkError: On transport failure
        """
        if not self.is_configured:
            raise ConfigMissingError("Warcraft Logs API credentials not configured")

        if http is None:
            async with httpx.AsyncClient(timeout=self._config.timeout) as owned:
                return await self._request_token(owned)
        return await self._request_token(http)

    async def _request_token(self, http: httpx.AsyncClient) -> str:
        logger.debug("Requesting Warcraft Logs token from %s", self._config.token_url)
        try:
            response = await http.post(
                self._config.token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self._config.client_id,
                    "client_secret": self._config.client_secret,
                },
                timeout=self._config.timeout,
            )
        except httpx.RequestError as exc:
            logger.error("Warcraft Logs OAuth network error: %s", exc)
            raise NetworkError(
                f"Network error connecting to Warcraft Logs OAuth: {exc}"
            ) from exc

        if not response.is_success:
            logger.error(
                "Warcraft Logs OAuth failed: HTTP %d - %s",
                response.status_code,
                response.text[:_LOG_BODY_LIMIT],
            )
            raise AuthFailedError(
                f"WCL OAuth failed: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            token = response.json().get("access_token")
        except (json.JSONDecodeError, AttributeError) as exc:
            raise AuthFailedError("WCL OAuth returned an invalid response") from exc

        if not token or not isinstance(token, str):
            raise AuthFailedError("WCL OAuth response missing access token")
        return token

    async def _query(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Acquire a token, then run one GraphQL query and return the raw payload."""
        async with httpx.AsyncClient(timeout=self._config.timeout) as http:
            token = await self.get_token(http)
            try:
                response = await http.post(
                    self._config.api_url,
                    json={"query": query, "variables": variables},
                    headers={"Authorization": f"Bearer {token}"},
                    timeout=self._config.timeout,
                )
            except httpx.RequestError as exc:
                logger.error("Warcraft Logs API network error: %s", exc)
                raise NetworkError(f"Network error connecting to Warcraft Logs API: {exc}") from exc

        if not response.is_success:
            logger.error(
                "Warcraft Logs GraphQL HTTP error %d - %s",
                response.status_code,
                response.text[:_LOG_BODY_LIMIT],
            )
            raise RequestFailedError(
                f"WCL GraphQL request failed: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except json.JSONDecodeError as exc:
            raise RequestFailedError("WCL GraphQL returned invalid JSON") from exc

        if not isinstance(payload, dict):
            raise RequestFailedError("WCL GraphQL returned an unexpected payload")
        return payload

    # -----------------------------
    # Characters
    # -----------------------------

    async def fetch_by_name(self, identity: ResolvedIdentity) -> NormalizedCharacter:
        """
        Fetch a character by region/realm/name.

        The requested identity is kept as the cache key; upstream spelling
        of the realm only fills realm_name.
        """
        payload = await self._query(
            CHARACTER_BY_NAME_QUERY,
            {
                "name": identity.character_name,
                "serverSlug": identity.realm,
                "serverRegion": identity.region.value,
            },
        )
        character = _require_character(payload, f"{identity}")
        return normalize_character(character, identity=identity)

    async def fetch_by_id(self, character_id: str) -> NormalizedCharacter:
        """Fetch a character by numeric id and resolve its identity."""
        payload = await self._query(CHARACTER_BY_ID_QUERY, {"characterId": int(character_id)})
        character = _require_character(payload, f"id {character_id}")
        return normalize_character(character)

    # -----------------------------
    # Zones
    # -----------------------------

    async def fetch_zone_encounters(self, zone_id: int) -> ZoneEncounters:
        """
        Fetch the encounter list of a zone, in upstream order.

        Raises:
            ZoneNotFoundError: If the zone does not exist
        """
        payload = await self._query(ZONE_ENCOUNTERS_QUERY, {"zoneId": zone_id})
        _raise_for_errors(payload)

        zone = ((payload.get("data") or {}).get("worldData") or {}).get("zone")
        if not isinstance(zone, dict):
            raise ZoneNotFoundError(f"Zone {zone_id} not found on Warcraft Logs")

        encounters = [
            Encounter(id=int(e["id"]), name=str(e.get("name") or f"Boss {e['id']}"))
            for e in zone.get("encounters") or []
            if isinstance(e, dict) and isinstance(e.get("id"), int)
        ]
        return ZoneEncounters(
            zone_id=int(zone.get("id") or zone_id),
            zone_name=str(zone.get("name") or ""),
            encounters=encounters,
        )

    async def fetch_zone_progression(
        self, identity: ResolvedIdentity, zone_id: int
    ) -> ZoneProgression:
        """
        Fetch a character's kills in one zone across all difficulties.

        A character with no data for the zone yields an empty progression.
        """
        payload = await self._query(
            ZONE_PROGRESSION_QUERY,
            {
                "name": identity.character_name,
                "serverSlug": identity.realm,
                "serverRegion": identity.region.value,
                "zoneID": zone_id,
            },
        )
        _raise_for_errors(payload)

        character = ((payload.get("data") or {}).get("characterData") or {}).get("character")
        if not isinstance(character, dict):
            raise CharacterNotFoundError(f"Character {identity} not found on Warcraft Logs")

        return parse_zone_progression(character)


# =============================================================================
# NORMALIZATION
# =============================================================================


def _raise_for_errors(payload: dict[str, Any]) -> None:
    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        messages = ", ".join(
            str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors
        )
        logger.error("Warcraft Logs API returned errors: %s", messages)
        raise UpstreamError(f"WCL API error: {messages}")


def _require_character(payload: dict[str, Any], label: str) -> dict[str, Any]:
    character = ((payload.get("data") or {}).get("characterData") or {}).get("character")
    if isinstance(character, dict):
        return character
    _raise_for_errors(payload)
    raise CharacterNotFoundError(f"Character {label} not found on Warcraft Logs")


def _as_json_object(value: Any) -> Any:
    # zoneRankings is a JSON scalar; some proxies hand it back as a string
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return None
    return value


def _parse_timestamp(value: Any) -> datetime | None:
    """Parse an epoch-milliseconds or ISO-8601 timestamp."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float) and value > 0:
        try:
            return datetime.fromtimestamp(value / 1000, UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return None


def flatten_rankings(zone_rankings: Any) -> list[tuple[dict[str, Any], Any]]:
    """
    Flatten every ranking entry from a zoneRankings payload.

    Accepts both a single zone object ({difficulty, rankings: [...]}) and a
    map of zone objects ({zoneId: {rankings: [...]}}).

    Returns:
        List of (ranking entry, difficulty of the zone object it came from)
    """
    zone_rankings = _as_json_object(zone_rankings)
    if not isinstance(zone_rankings, dict):
        return []

    zones = [zone_rankings]
    zones.extend(v for v in zone_rankings.values() if isinstance(v, dict))

    flattened: list[tuple[dict[str, Any], Any]] = []
    for zone in zones:
        rankings = zone.get("rankings")
        if not isinstance(rankings, list):
            continue
        flattened.extend((r, zone.get("difficulty")) for r in rankings if isinstance(r, dict))
    return flattened


def most_played_spec(rankings: list[tuple[dict[str, Any], Any]]) -> str | None:
    """Spec seen on the most ranking entries; the first seen wins ties."""
    counts = Counter(
        entry["spec"] for entry, _ in rankings if isinstance(entry.get("spec"), str) and entry["spec"]
    )
    if not counts:
        return None
    return max(counts, key=lambda spec: counts[spec])


def top_ranking(rankings: list[tuple[dict[str, Any], Any]]) -> TopRanking | None:
    """Entry with the highest rank percentile; the first seen wins ties."""
    best: dict[str, Any] | None = None
    best_difficulty: Any = None
    for entry, zone_difficulty in rankings:
        percent = entry.get("rankPercent")
        if isinstance(percent, bool) or not isinstance(percent, int | float) or not percent:
            continue
        if best is None or percent > best["rankPercent"]:
            best = entry
            best_difficulty = entry.get("difficulty", zone_difficulty)

    if best is None:
        return None

    encounter = best.get("encounter") if isinstance(best.get("encounter"), dict) else {}
    difficulty = Difficulty.from_upstream(best_difficulty)
    return TopRanking(
        encounter_name=str(encounter.get("name") or best.get("encounterName") or "Unknown"),
        difficulty=difficulty.value if difficulty else "Unknown",
        rank_percent=round(float(best["rankPercent"]), 2),
        kill_date=_parse_timestamp(best.get("killDate")),
    )


def normalize_character(
    character: dict[str, Any],
    identity: ResolvedIdentity | None = None,
) -> NormalizedCharacter:
    """
    Normalize a raw character object.

    Args:
        character: The characterData.character object
        identity: Requested identity; resolved from the payload when None

    Raises:
        UpstreamError: If the payload carries no usable identity
    """
    server = character.get("server") if isinstance(character.get("server"), dict) else {}
    realm_name = str(server.get("name") or (identity.realm if identity else ""))

    if identity is None:
        identity = _identity_from_payload(character, server)

    rankings = flatten_rankings(character.get("zoneRankings"))
    class_id = character.get("classID")

    character_id = character.get("id")
    return NormalizedCharacter(
        identity=identity,
        character_id=str(character_id) if character_id is not None else None,
        realm_name=realm_name,
        class_name=get_class_name(class_id if isinstance(class_id, int) else None),
        spec=most_played_spec(rankings),
        top_ranking=top_ranking(rankings),
        # Warcraft Logs carries no character media
        avatar_url=None,
    )


def _identity_from_payload(character: dict[str, Any], server: dict[str, Any]) -> ResolvedIdentity:
    region_obj = server.get("region") if isinstance(server.get("region"), dict) else {}
    region_code = str(region_obj.get("slug") or "").upper()
    try:
        region = Region(region_code)
    except ValueError:
        raise UpstreamError(f"Unexpected region '{region_code}' in character payload") from None

    slug = str(server.get("slug") or "") or realm_slug(str(server.get("name") or ""))
    name = str(character.get("name") or "").strip()
    if not slug or not name:
        raise UpstreamError("Character payload is missing realm or name")

    return ResolvedIdentity(
        region=region,
        realm=slug.lower(),
        character_name=name[0].upper() + name[1:].lower(),
    )


def parse_zone_progression(character: dict[str, Any]) -> ZoneProgression:
    """
    Collect kills per encounter from aliased per-difficulty zoneRankings.

    Only encounters with at least one kill are kept. Difficulty comes from
    the ranking entry when present, else from its zone object, else from the
    alias the zone object was requested under.
    """
    by_encounter: dict[int, EncounterProgress] = {}

    for alias, alias_difficulty in _PROGRESSION_ALIASES.items():
        zone = _as_json_object(character.get(alias))
        if not isinstance(zone, dict):
            continue
        zone_difficulty = zone.get("difficulty", alias_difficulty)

        for ranking in zone.get("rankings") or []:
            if not isinstance(ranking, dict):
                continue
            encounter = ranking.get("encounter")
            if not isinstance(encounter, dict) or not isinstance(encounter.get("id"), int):
                continue
            total_kills = ranking.get("totalKills") or 0
            if not isinstance(total_kills, int | float) or total_kills <= 0:
                continue
            difficulty = Difficulty.from_upstream(ranking.get("difficulty", zone_difficulty))
            if difficulty is None:
                continue

            progress = by_encounter.setdefault(
                encounter["id"],
                EncounterProgress(
                    encounter_id=encounter["id"],
                    encounter_name=str(encounter.get("name") or f"Boss {encounter['id']}"),
                ),
            )
            progress.kills.append(
                Kill(difficulty=difficulty, kill_date=_parse_timestamp(ranking.get("killDate")))
            )

    return ZoneProgression(encounters=list(by_encounter.values()))
