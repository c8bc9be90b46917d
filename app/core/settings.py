from datetime import timedelta

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.core.config import Settings, settings


class MatchingConfig(BaseModel):
    """Tunables for profile building, caching and scoring."""

    model_config = ConfigDict(frozen=True)

    artist_limit: int = Field(default=50, gt=0, description="Top artists fetched per profile")
    track_limit: int = Field(default=100, gt=0, description="Top tracks fetched per profile")
    period: str = Field(default="overall", description="Last.fm aggregation window")
    freshness_hours: float = Field(default=24.0, gt=0, description="Max age of a cached profile")
    artist_weight: float = Field(default=0.7, ge=0, le=1)
    track_weight: float = Field(default=0.3, ge=0, le=1)
    common_elements_limit: int = Field(default=10, ge=0)
    profile_concurrency: int = Field(default=4, gt=0, description="Parallel profile acquisitions per session")

    @model_validator(mode="after")
    def _check_weights(self) -> "MatchingConfig":
        # Keeps the blended overall score inside [0, 1]
        if self.artist_weight + self.track_weight > 1.0 + 1e-9:
            raise ValueError("artist_weight + track_weight must not exceed 1")
        return self

    @property
    def freshness_window(self) -> timedelta:
        return timedelta(hours=self.freshness_hours)


def get_default_matching_config(source: Settings | None = None) -> MatchingConfig:
    source = source or settings
    return MatchingConfig(
        artist_limit=source.ARTIST_FETCH_LIMIT,
        track_limit=source.TRACK_FETCH_LIMIT,
        period=source.LISTENING_PERIOD,
        freshness_hours=source.PROFILE_FRESHNESS_HOURS,
        artist_weight=source.ARTIST_SCORE_WEIGHT,
        track_weight=source.TRACK_SCORE_WEIGHT,
        common_elements_limit=source.COMMON_ELEMENTS_LIMIT,
        profile_concurrency=source.PROFILE_CONCURRENCY,
    )
