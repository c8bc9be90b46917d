import asyncio
from datetime import datetime, timezone
from typing import Protocol

from loguru import logger

from app.core.constants import DATA_SOURCE_LASTFM
from app.core.exceptions import NoIdentitySource
from app.core.settings import MatchingConfig
from app.models.listening import TopArtists, TopTracks
from app.models.taste_profile import ProfileMetadata, TasteProfile
from app.services.profile.vectorizer import ListeningVectorizer


class ListeningHistorySource(Protocol):
    async def get_top_artists(self, username: str, period: str, limit: int) -> TopArtists: ...

    async def get_top_tracks(self, username: str, period: str, limit: int) -> TopTracks: ...


class ProfileBuilder:
    """
    Builds a taste profile from a user's top artists and top tracks.

    Design principles:
    - One artist vector and one track vector, log-weighted play counts
    - No persistence: storing the result is the caller's job
    - Upstream errors propagate unchanged
    """

    def __init__(
        self,
        source: ListeningHistorySource,
        config: MatchingConfig,
        data_source: str = DATA_SOURCE_LASTFM,
    ):
        """
        Initialize profile builder.

        Args:
            source: Listening-history source (e.g. LastFmService)
            config: Fetch sizes and aggregation period
            data_source: Tag recorded in the profile metadata
        """
        self.source = source
        self.config = config
        self.data_source = data_source
        self.vectorizer = ListeningVectorizer()

    async def build_profile(self, identity: str, display_name: str, source_username: str | None) -> TasteProfile:
        """
        Fetch listening history and vectorize it.

        Args:
            identity: User key the profile belongs to
            display_name: Human readable name for the user
            source_username: Linked Last.fm username

        Returns:
            Freshly built TasteProfile
        """
        username = (source_username or "").strip()
        if not username:
            raise NoIdentitySource(f"User {identity} has no linked Last.fm username")

        logger.info(f"Building taste profile for {identity} ({display_name}) with Last.fm user {username}")

        artists_task = asyncio.create_task(
            self.source.get_top_artists(username, self.config.period, self.config.artist_limit)
        )
        tracks_task = asyncio.create_task(
            self.source.get_top_tracks(username, self.config.period, self.config.track_limit)
        )
        try:
            top_artists, top_tracks = await asyncio.gather(artists_task, tracks_task)
        except BaseException:
            # First failure wins; the sibling fetch is no longer needed
            for task in (artists_task, tracks_task):
                task.cancel()
            raise

        profile = TasteProfile(
            identity=identity,
            display_name=display_name,
            source_username=username,
            artist_vector=self.vectorizer.vectorize_artists(top_artists.artists),
            track_vector=self.vectorizer.vectorize_tracks(top_tracks.tracks),
            metadata=ProfileMetadata(
                total_artists=len(top_artists.artists),
                total_tracks=len(top_tracks.tracks),
                created_at=datetime.now(timezone.utc),
                data_source=self.data_source,
            ),
        )

        logger.info(
            f"Profile built for {identity}: {profile.metadata.total_artists} artists, "
            f"{profile.metadata.total_tracks} tracks"
        )
        return profile
