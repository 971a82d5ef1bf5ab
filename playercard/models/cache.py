"""
Enrichment cache models.

Cache entries are keyed by (region, realm, character_name, season_key).
Writes are partial: only fields explicitly supplied on a CacheWrite are
applied to an existing entry.
"""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel

from playercard.config import DEFAULT_SEASON_KEY
from playercard.models.identity import ResolvedIdentity
from playercard.models.player_card import EnrichedPlayerCard, FetchStatus


class CacheLookup(BaseModel):
    """Four-part cache key."""

    region: str
    realm: str
    character_name: str
    season_key: str = DEFAULT_SEASON_KEY

    @classmethod
    def for_identity(
        cls, identity: ResolvedIdentity, season_key: str | None = None
    ) -> "CacheLookup":
        return cls(
            region=identity.region.value,
            realm=identity.realm,
            character_name=identity.character_name,
            season_key=season_key or DEFAULT_SEASON_KEY,
        )


class CacheWrite(CacheLookup):
    """
    Insert-or-update payload for a cache entry.

    Fields left unset keep their stored value on update.
    """

    player_card: EnrichedPlayerCard | None = None
    wcl_last_fetched_at: datetime | None = None
    fetch_status: FetchStatus | None = None
    error_message: str | None = None

    def lookup(self) -> CacheLookup:
        return CacheLookup(
            region=self.region,
            realm=self.realm,
            character_name=self.character_name,
            season_key=self.season_key,
        )

    def supplied_updates(self) -> set[str]:
        """Names of the non-key fields the caller explicitly set."""
        return self.model_fields_set - set(CacheLookup.model_fields)


@dataclass
class CacheEntry:
    """A stored cache entry with its card decoded."""

    region: str
    realm: str
    character_name: str
    season_key: str
    player_card: EnrichedPlayerCard | None
    wcl_last_fetched_at: datetime | None
    fetch_status: FetchStatus
    error_message: str | None
    created_at: datetime
    updated_at: datetime
