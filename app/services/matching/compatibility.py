import math
from collections.abc import Mapping
from datetime import datetime, timezone
from numbers import Real

from app.core.exceptions import MalformedProfile
from app.core.settings import MatchingConfig
from app.models.matching import CommonElements, CompatibilityRecord, CompatibilityScores, ParticipantRef
from app.models.taste_profile import TasteProfile
from app.services.profile.similarity import cosine_similarity, jaccard_similarity


def _checked_vector(profile: TasteProfile, field: str) -> Mapping[str, float]:
    vector = getattr(profile, field, None)
    identity = getattr(profile, "identity", "?")
    if not isinstance(vector, Mapping):
        raise MalformedProfile(f"Profile {identity} has no {field}")
    for key, weight in vector.items():
        if not isinstance(key, str) or not isinstance(weight, Real) or isinstance(weight, bool):
            raise MalformedProfile(f"Profile {identity} has a malformed {field} entry: {key!r}")
        if not math.isfinite(weight) or weight < 0:
            raise MalformedProfile(f"Profile {identity} has an invalid weight for {key!r}")
    return vector


def _common_keys(vec_a: Mapping[str, float], vec_b: Mapping[str, float]) -> list[str]:
    """Keys weighted positively in both vectors, in vec_a's order."""
    return [key for key, weight in vec_a.items() if weight > 0 and vec_b.get(key, 0) > 0]


def calculate_compatibility(
    profile_a: TasteProfile, profile_b: TasteProfile, config: MatchingConfig | None = None
) -> CompatibilityRecord:
    """
    Score how compatible two taste profiles are.

    Artist and track cosine similarities are blended into ``overall``
    (artists weigh more: tracks are sparser). Jaccard scores are diagnostic
    and do not feed ``overall``.
    """
    config = config or MatchingConfig()

    artists_a = _checked_vector(profile_a, "artist_vector")
    artists_b = _checked_vector(profile_b, "artist_vector")
    tracks_a = _checked_vector(profile_a, "track_vector")
    tracks_b = _checked_vector(profile_b, "track_vector")

    artist_score = cosine_similarity(artists_a, artists_b)
    track_score = cosine_similarity(tracks_a, tracks_b)
    overall = artist_score * config.artist_weight + track_score * config.track_weight

    artist_jaccard = jaccard_similarity(set(artists_a), set(artists_b))
    track_jaccard = jaccard_similarity(set(tracks_a), set(tracks_b))

    common_artists = _common_keys(artists_a, artists_b)
    common_tracks = _common_keys(tracks_a, tracks_b)
    limit = config.common_elements_limit

    return CompatibilityRecord(
        pair_identities=(profile_a.identity, profile_b.identity),
        user_a=ParticipantRef(identity=profile_a.identity, display_name=profile_a.display_name),
        user_b=ParticipantRef(identity=profile_b.identity, display_name=profile_b.display_name),
        scores=CompatibilityScores(
            artist=round(artist_score, 2),
            track=round(track_score, 2),
            overall=round(overall, 2),
            artist_jaccard=round(artist_jaccard, 2),
            track_jaccard=round(track_jaccard, 2),
        ),
        common_elements=CommonElements(
            artists=common_artists[:limit],
            tracks=common_tracks[:limit],
            artist_count=len(common_artists),
            track_count=len(common_tracks),
        ),
        data_sources=(profile_a.metadata.data_source, profile_b.metadata.data_source),
        calculated_at=datetime.now(timezone.utc),
    )
