import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "PlayerCard"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "postgresql+asyncpg://localhost:5432/playercard"

    # Warcraft Logs API v2 credentials (client-credentials grant).
    # Both empty means upstream enrichment is disabled, not broken.
    wcl_client_id: str = ""
    wcl_client_secret: str = ""
    wcl_api_url: str = "https://www.warcraftlogs.com/api/v2/client"
    wcl_token_url: str = "https://www.warcraftlogs.com/oauth/token"
    wcl_timeout_seconds: float = 15.0

    # Single staleness threshold for cached player cards
    cache_ttl_hours: float = 6.0


settings = Settings()


# =============================================================================
# CACHE KEYS
# =============================================================================

# Season key used when the caller does not name one
DEFAULT_SEASON_KEY = "latest"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the service process."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
