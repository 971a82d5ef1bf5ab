"""
PlayerCard services.

Upstream client, cache and enrichment logic.
"""

from playercard.services.best_kill import compute_best_kill
from playercard.services.class_names import WCL_CLASS_NAMES, get_class_name
from playercard.services.enrichment import (
    EnrichmentResult,
    PlayerCardEnricher,
    build_card,
    card_from_cache,
    upstream_failure,
)
from playercard.services.enrichment_cache import (
    CacheError,
    CacheReadError,
    CacheWriteError,
    EnrichmentCache,
    is_stale,
)
from playercard.services.tier_config import import_tier, load_active_tier, save_tier
from playercard.services.warcraft_logs import (
    AuthFailedError,
    CharacterNotFoundError,
    ConfigMissingError,
    NetworkError,
    RequestFailedError,
    UpstreamError,
    WarcraftLogsClient,
    WarcraftLogsConfig,
    WarcraftLogsError,
    ZoneNotFoundError,
)

__all__ = [
    # Upstream client
    "AuthFailedError",
    "CharacterNotFoundError",
    "ConfigMissingError",
    "NetworkError",
    "RequestFailedError",
    "UpstreamError",
    "WarcraftLogsClient",
    "WarcraftLogsConfig",
    "WarcraftLogsError",
    "ZoneNotFoundError",
    # Class names
    "WCL_CLASS_NAMES",
    "get_class_name",
    # Best kill
    "compute_best_kill",
    # Cache
    "CacheError",
    "CacheReadError",
    "CacheWriteError",
    "EnrichmentCache",
    "is_stale",
    # Tiers
    "import_tier",
    "load_active_tier",
    "save_tier",
    # Enrichment
    "EnrichmentResult",
    "PlayerCardEnricher",
    "build_card",
    "card_from_cache",
    "upstream_failure",
]
