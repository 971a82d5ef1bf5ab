"""Normalized character data returned by the Warcraft Logs client."""

from dataclasses import dataclass
from datetime import datetime

from playercard.models.identity import ResolvedIdentity


@dataclass(frozen=True)
class TopRanking:
    """The single highest-percentile ranking across every zone."""

    encounter_name: str
    difficulty: str
    rank_percent: float
    kill_date: datetime | None = None


@dataclass(frozen=True)
class NormalizedCharacter:
    """
    Character data flattened from the upstream response.

    Attributes:
        identity: Normalized cache key for the character
        realm_name: Realm display name as reported upstream (e.g., "Area 52")
        class_name: Resolved from the upstream class index
        spec: Most-played spec across all rankings
        top_ranking: Highest rank-percentile entry (not tier-scoped)
    """

    identity: ResolvedIdentity
    character_id: str | None
    realm_name: str
    class_name: str | None
    spec: str | None
    top_ranking: TopRanking | None = None
    avatar_url: str | None = None

    @property
    def class_spec(self) -> str | None:
        if self.spec and self.class_name:
            return f"{self.class_name} {self.spec}"
        return self.class_name
