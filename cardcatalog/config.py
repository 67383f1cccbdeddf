from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "CardCatalog"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/cardcatalog"

    # Outbound HTTP for remote imports
    user_agent: str = "CardCatalog/1.0"
    http_timeout: float = 300.0

    # Pause between scraped page fetches (seconds)
    scrape_delay_seconds: float = 0.15

    # Optional key sent as X-Api-Key to FABDB
    fabdb_api_key: str = ""

    preview_limit_default: int = 100
    preview_limit_max: int = 1000


settings = Settings()


# =============================================================================
# PREVIEW LIMITS
# =============================================================================

# Smallest record cap an import endpoint accepts
MIN_PREVIEW_LIMIT = 1
