import math
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Stored documents use camelCase keys; attributes stay snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ProfileMetadata(CamelModel):
    total_artists: int = 0
    total_tracks: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data_source: str = "lastfm"

    @field_validator("created_at")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class TasteProfile(CamelModel):
    """
    Sparse weighted summary of one user's listening history.

    Vector keys are case-folded and trimmed. Weights are ln(playcount + 1)
    and strictly positive; a missing key means weight 0.
    """

    identity: str
    display_name: str = ""
    source_username: str
    artist_vector: dict[str, float] = Field(default_factory=dict, description="Artist key → weight")
    track_vector: dict[str, float] = Field(default_factory=dict, description='"artist - track" key → weight')
    metadata: ProfileMetadata = Field(default_factory=ProfileMetadata)

    @field_validator("artist_vector", "track_vector")
    @classmethod
    def _check_weights(cls, vector: dict[str, float]) -> dict[str, float]:
        for key, weight in vector.items():
            if not math.isfinite(weight) or weight < 0:
                raise ValueError(f"invalid weight {weight!r} for '{key}'")
        return vector

    def age(self, now: datetime | None = None) -> timedelta:
        now = now or datetime.now(timezone.utc)
        return now - self.metadata.created_at
