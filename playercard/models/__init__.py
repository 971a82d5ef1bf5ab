"""
PlayerCard domain models.
"""

from playercard.models.cache import CacheEntry, CacheLookup, CacheWrite
from playercard.models.character import NormalizedCharacter, TopRanking
from playercard.models.failure import (
    ApiResponse,
    BadGatewayError,
    FailureKind,
    InvalidInputError,
    KnownError,
    ServiceUnavailableError,
)
from playercard.models.identity import (
    CharacterReference,
    NumericIdReference,
    Region,
    ResolvedIdentity,
    SlugReference,
)
from playercard.models.player_card import (
    BestKill,
    Difficulty,
    EnrichedPlayerCard,
    FetchStatus,
    StoredPlayerCard,
)
from playercard.models.tier import (
    Encounter,
    EncounterProgress,
    Kill,
    TierConfig,
    ZoneEncounters,
    ZoneProgression,
)

__all__ = [
    # Identity
    "CharacterReference",
    "NumericIdReference",
    "Region",
    "ResolvedIdentity",
    "SlugReference",
    # Cards
    "BestKill",
    "Difficulty",
    "EnrichedPlayerCard",
    "FetchStatus",
    "StoredPlayerCard",
    # Upstream
    "NormalizedCharacter",
    "TopRanking",
    # Tiers
    "Encounter",
    "EncounterProgress",
    "Kill",
    "TierConfig",
    "ZoneEncounters",
    "ZoneProgression",
    # Cache
    "CacheEntry",
    "CacheLookup",
    "CacheWrite",
    # Failures
    "ApiResponse",
    "BadGatewayError",
    "FailureKind",
    "InvalidInputError",
    "KnownError",
    "ServiceUnavailableError",
]
