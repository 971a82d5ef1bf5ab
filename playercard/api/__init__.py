from playercard.api.character_cache import router as character_cache_router
from playercard.api.enrich import router as enrich_router
from playercard.api.health import router as health_router
from playercard.api.season_config import router as season_config_router

__all__ = [
    "character_cache_router",
    "enrich_router",
    "health_router",
    "season_config_router",
]
