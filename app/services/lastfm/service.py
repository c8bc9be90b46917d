from typing import Any

import httpx
from loguru import logger

from app.core.exceptions import (
    UpstreamCredentialsMissing,
    UpstreamError,
    UpstreamForbidden,
    UpstreamNoHistory,
    UpstreamNotFound,
    UpstreamTransient,
)
from app.models.listening import ArtistPlay, TopArtists, TopTracks, TrackPlay
from app.services.lastfm.client import LastFmClient

# Last.fm API error codes
# https://www.last.fm/api/errorcodes
LASTFM_ERROR_CLASSES: dict[int, type[UpstreamError]] = {
    6: UpstreamNotFound,  # Invalid parameters (user not found)
    8: UpstreamTransient,  # Operation failed
    10: UpstreamCredentialsMissing,  # Invalid API key
    11: UpstreamTransient,  # Service offline
    16: UpstreamTransient,  # Temporary error
    17: UpstreamForbidden,  # Login required (private profile)
    26: UpstreamForbidden,  # Suspended API key
    29: UpstreamTransient,  # Rate limit exceeded
}

HTTP_STATUS_CLASSES: dict[int, type[UpstreamError]] = {
    401: UpstreamCredentialsMissing,
    403: UpstreamForbidden,
    404: UpstreamNotFound,
    429: UpstreamTransient,
}


def _parse_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_list(value: Any) -> list[dict[str, Any]]:
    """Last.fm returns a bare object instead of a list when there is one result."""
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        return [v for v in value if isinstance(v, dict)]
    return []


class LastFmService:
    """
    Listening-history source backed by Last.fm.

    Converts transport and API failures into classified upstream errors.
    """

    def __init__(self, client: LastFmClient):
        self.client = client

    async def get_top_artists(self, username: str, period: str = "overall", limit: int = 50) -> TopArtists:
        data = await self._call("user.gettopartists", username, period=period, limit=limit)
        envelope = data.get("topartists")
        if not isinstance(envelope, dict):
            raise UpstreamNoHistory(f"No artist history returned for Last.fm user '{username}'")

        artists = []
        for entry in _as_list(envelope.get("artist")):
            name = entry.get("name")
            if not name:
                continue
            artists.append(ArtistPlay(name=name, playcount=_parse_int(entry.get("playcount"))))
        return TopArtists(artists=artists)

    async def get_top_tracks(self, username: str, period: str = "overall", limit: int = 100) -> TopTracks:
        data = await self._call("user.gettoptracks", username, period=period, limit=limit)
        envelope = data.get("toptracks")
        if not isinstance(envelope, dict):
            raise UpstreamNoHistory(f"No track history returned for Last.fm user '{username}'")

        tracks = []
        for entry in _as_list(envelope.get("track")):
            artist = entry.get("artist") or {}
            # Some endpoints use "#text" for the artist name
            artist_name = (artist.get("name") or artist.get("#text")) if isinstance(artist, dict) else artist
            track_name = entry.get("name")
            if not artist_name or not track_name:
                continue
            tracks.append(
                TrackPlay(
                    artist_name=artist_name,
                    track_name=track_name,
                    playcount=_parse_int(entry.get("playcount")),
                )
            )
        return TopTracks(tracks=tracks)

    async def close(self):
        await self.client.close()

    async def _call(self, method: str, username: str, **params: Any) -> dict[str, Any]:
        if not self.client.api_key:
            raise UpstreamCredentialsMissing("LASTFM_API_KEY is not configured")

        try:
            data = await self.client.call(method, user=username, **params)
        except httpx.TimeoutException as e:
            raise UpstreamTransient(f"Last.fm request timed out for '{username}'") from e
        except httpx.HTTPStatusError as e:
            raise self._classify_response(e.response, username) from e
        except httpx.RequestError as e:
            raise UpstreamTransient(f"Could not reach Last.fm: {e.__class__.__name__}") from e
        except ValueError as e:
            raise UpstreamError(f"Last.fm returned an invalid response for '{username}'") from e

        if not isinstance(data, dict):
            raise UpstreamError(f"Last.fm returned an unexpected payload for '{username}'")

        if "error" in data:
            raise self._classify_error(data, username)
        return data

    def _classify_response(self, response: httpx.Response, username: str) -> UpstreamError:
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and "error" in body:
            return self._classify_error(body, username)

        status = response.status_code
        error_class = HTTP_STATUS_CLASSES.get(status)
        if error_class is None:
            error_class = UpstreamTransient if status >= 500 else UpstreamError
        return error_class(f"Last.fm responded with HTTP {status} for '{username}'")

    @staticmethod
    def _classify_error(body: dict[str, Any], username: str) -> UpstreamError:
        code = _parse_int(body.get("error"))
        message = body.get("message") or "Unknown Last.fm error"
        error_class = LASTFM_ERROR_CLASSES.get(code, UpstreamError)
        logger.warning(f"Last.fm error {code} for '{username}': {message}")
        return error_class(f"Last.fm: {message}")
