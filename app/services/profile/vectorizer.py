import math
from collections import defaultdict
from collections.abc import Iterable

from app.models.listening import ArtistPlay, TrackPlay


class ListeningVectorizer:
    """
    Turns top-artist / top-track lists into sparse weighted vectors.

    Pure extraction: keys are case-folded and trimmed, play counts for keys that
    collapse together are summed, and each key is weighted ln(playcount + 1).
    """

    @staticmethod
    def normalize_key(value: str) -> str:
        return value.strip().casefold()

    @classmethod
    def track_key(cls, artist_name: str, track_name: str) -> str:
        artist = cls.normalize_key(artist_name)
        track = cls.normalize_key(track_name)
        if not artist or not track:
            return ""
        return f"{artist} - {track}"

    @staticmethod
    def weight(playcount: int) -> float:
        return math.log(playcount + 1)

    @staticmethod
    def _effective_playcount(playcount: int | None) -> int:
        # Missing or unparsable counts still mean the entry was listened to
        if playcount is None:
            return 1
        return playcount

    @classmethod
    def _to_vector(cls, counts: Iterable[tuple[str, int | None]]) -> dict[str, float]:
        totals: dict[str, int] = defaultdict(int)
        for key, playcount in counts:
            count = cls._effective_playcount(playcount)
            if not key or count <= 0:
                continue
            totals[key] += count
        return {key: cls.weight(total) for key, total in totals.items()}

    @classmethod
    def vectorize_artists(cls, artists: Iterable[ArtistPlay]) -> dict[str, float]:
        """
        Build the artist vector.

        Args:
            artists: Top artists as returned by the listening-history source

        Returns:
            Mapping of normalized artist name → weight
        """
        return cls._to_vector((cls.normalize_key(a.name), a.playcount) for a in artists)

    @classmethod
    def vectorize_tracks(cls, tracks: Iterable[TrackPlay]) -> dict[str, float]:
        """
        Build the track vector keyed by ``"artist - track"``.

        Args:
            tracks: Top tracks as returned by the listening-history source

        Returns:
            Mapping of normalized track key → weight
        """
        return cls._to_vector((cls.track_key(t.artist_name, t.track_name), t.playcount) for t in tracks)
