from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    PORT: int = 8000
    APP_ENV: Literal["development", "production"] = "production"

    LASTFM_API_KEY: str | None = None
    LASTFM_BASE_URL: str = "https://ws.audioscrobbler.com/2.0/"
    LASTFM_TIMEOUT_SECONDS: float = 10.0
    # Attempts per request; values above 1 retry 5xx responses only
    LASTFM_MAX_RETRIES: int = 1

    REDIS_URL: str = "redis://redis:6379/0"
    # Maximum number of connections Redis client will open per process
    REDIS_MAX_CONNECTIONS: int = 20
    REDIS_KEY_PREFIX: str = "tunematch"

    # Matching
    ARTIST_FETCH_LIMIT: int = 50
    TRACK_FETCH_LIMIT: int = 100
    LISTENING_PERIOD: str = "overall"
    PROFILE_FRESHNESS_HOURS: float = 24.0
    ARTIST_SCORE_WEIGHT: float = 0.7
    TRACK_SCORE_WEIGHT: float = 0.3
    COMMON_ELEMENTS_LIMIT: int = 10
    PROFILE_CONCURRENCY: int = 4


settings = Settings()
