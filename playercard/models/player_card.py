"""
Player card models.

The enriched player card is the externally visible artifact. It is stored in
the enrichment cache wrapped in a versioned record so the stored shape can
evolve without leaking raw JSON into the request flow.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel


class Difficulty(str, Enum):
    """Raid difficulty, ranked Normal < Heroic < Mythic."""

    NORMAL = "Normal"
    HEROIC = "Heroic"
    MYTHIC = "Mythic"

    @property
    def rank(self) -> int:
        return _DIFFICULTY_RANK[self]

    @classmethod
    def from_upstream(cls, code: Any) -> "Difficulty | None":
        """Map a Warcraft Logs numeric difficulty (3/4/5) to a Difficulty."""
        if isinstance(code, bool) or not isinstance(code, int):
            return None
        return _UPSTREAM_DIFFICULTY.get(code)


_DIFFICULTY_RANK = {
    Difficulty.NORMAL: 1,
    Difficulty.HEROIC: 2,
    Difficulty.MYTHIC: 3,
}

# Warcraft Logs raid difficulty ids
_UPSTREAM_DIFFICULTY = {
    3: Difficulty.NORMAL,
    4: Difficulty.HEROIC,
    5: Difficulty.MYTHIC,
}


class FetchStatus(str, Enum):
    """Outcome of the last upstream fetch recorded for a cache entry."""

    COMPLETE = "complete"
    PARTIAL = "partial"
    FAILED = "failed"


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys for API consumers."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BestKill(CamelModel):
    """Deepest-progression, hardest-difficulty kill in the active tier."""

    boss_id: int
    boss_name: str
    difficulty: Difficulty
    encounter_order_index: int = Field(..., ge=0, description="Index in the tier's encounter order")


class EnrichedPlayerCard(CamelModel):
    """Normalized performance summary for one character."""

    model_config = ConfigDict(frozen=True)

    warcraft_logs_url: str | None = None
    character_name: str
    realm: str
    region: str
    class_name: str | None = Field(default=None, alias="class")
    spec: str | None = None
    class_spec: str | None = None
    best_kill: BestKill | None = None
    avatar_url: str | None = None
    fetch_status: FetchStatus = FetchStatus.COMPLETE
    error_message: str | None = None
    updated_at: datetime
    season_config_updated_at: datetime | None = None


# =============================================================================
# STORAGE RECORD
# =============================================================================

PLAYER_CARD_RECORD_VERSION = 1


class StoredPlayerCard(BaseModel):
    """Versioned wrapper persisted in the cache's player_card column."""

    version: Literal[1] = PLAYER_CARD_RECORD_VERSION
    card: EnrichedPlayerCard

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_storage(cls, payload: dict[str, Any] | None) -> EnrichedPlayerCard | None:
        """
        Decode a stored payload.

        Empty payloads and unknown versions decode to None so an old or
        hand-edited row never breaks a request.
        """
        if not payload or payload.get("version") != PLAYER_CARD_RECORD_VERSION:
            return None
        try:
            return cls.model_validate(payload).card
        except ValidationError:
            return None
