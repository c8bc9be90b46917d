from datetime import datetime, timezone
from typing import Literal

from pydantic import Field

from app.core.constants import MATCH_STATUS_MATCHED, MATCH_STATUS_NOT_COMPUTED
from app.models.taste_profile import CamelModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ParticipantRef(CamelModel):
    identity: str
    display_name: str = ""


class CompatibilityScores(CamelModel):
    artist: float = 0.0
    track: float = 0.0
    overall: float = 0.0
    artist_jaccard: float = 0.0
    track_jaccard: float = 0.0


class CommonElements(CamelModel):
    artists: list[str] = Field(default_factory=list)
    tracks: list[str] = Field(default_factory=list)
    artist_count: int = 0
    track_count: int = 0


class CompatibilityRecord(CamelModel):
    """Scored comparison of two taste profiles."""

    pair_identities: tuple[str, str]
    user_a: ParticipantRef
    user_b: ParticipantRef
    scores: CompatibilityScores
    common_elements: CommonElements
    data_sources: tuple[str, str] = ("lastfm", "lastfm")
    calculated_at: datetime = Field(default_factory=_utcnow)


class ProfileError(CamelModel):
    """A participant whose profile could not be acquired."""

    identity: str
    code: str
    error: str


class SessionMatchSet(CamelModel):
    session_id: str
    matches: list[CompatibilityRecord] = Field(default_factory=list)
    computed_at: datetime | None = None
    profile_errors: list[ProfileError] = Field(default_factory=list)
    status: Literal["matched"] = MATCH_STATUS_MATCHED
    participant_count: int = 0
    profiles_loaded: int = 0
    matches_generated: int = 0


class PendingMatchSet(CamelModel):
    """Returned when matching has not been run for a session yet."""

    session_id: str
    matches: list[CompatibilityRecord] = Field(default_factory=list)
    status: Literal["not computed"] = MATCH_STATUS_NOT_COMPUTED
    message: str = "No matches computed yet. Run matching first."
