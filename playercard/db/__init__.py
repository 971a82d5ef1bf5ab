from playercard.db.database import get_session, init_db, ping
from playercard.db.operations import (
    cache_entry_to_model,
    create_tier_config,
    delete_cache_entry,
    get_active_tier_config,
    get_cache_entries_for_character,
    get_cache_entry,
    tier_config_to_model,
    upsert_cache_entry,
)

__all__ = [
    "cache_entry_to_model",
    "create_tier_config",
    "delete_cache_entry",
    "get_active_tier_config",
    "get_cache_entries_for_character",
    "get_cache_entry",
    "get_session",
    "init_db",
    "ping",
    "tier_config_to_model",
    "upsert_cache_entry",
]
