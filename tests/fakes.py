"""In-memory collaborators for exercising the matching services without Redis or Last.fm."""

import copy
from datetime import datetime, timedelta, timezone
from typing import Any

from app.core.exceptions import DocumentNotFound
from app.models.listening import ArtistPlay, TopArtists, TopTracks, TrackPlay
from app.services.document_store import BaseDocumentStore, merge_fields


class MemoryDocumentStore(BaseDocumentStore):
    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.writes: list[tuple[str, str]] = []

    async def get_record(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        record = self.collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(record) if record is not None else None

    async def set_record(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self.collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)
        self.writes.append((collection, doc_id))

    async def update_fields(self, collection: str, doc_id: str, partial: dict[str, Any]) -> None:
        current = self.collections.get(collection, {}).get(doc_id)
        if current is None:
            raise DocumentNotFound(f"{collection}/{doc_id} does not exist")
        self.collections[collection][doc_id] = merge_fields(current, partial)
        self.writes.append((collection, doc_id))

    # Test helpers

    def add_user(self, identity: str, source_username: str | None = None, display_name: str | None = None, **extra):
        self.collections.setdefault("users", {})[identity] = {
            "identity": identity,
            "displayName": display_name or identity.title(),
            "sourceUsername": source_username,
            "profileData": {"listeningHistory": None},
            **extra,
        }

    def add_session(self, session_id: str, participants: list[Any], **extra):
        self.collections.setdefault("sessions", {})[session_id] = {
            "sessionId": session_id,
            "participants": participants,
            **extra,
        }

    def user(self, identity: str) -> dict[str, Any]:
        return self.collections["users"][identity]

    def session(self, session_id: str) -> dict[str, Any]:
        return self.collections["sessions"][session_id]


class FakeListeningSource:
    """
    Scripted listening-history source.

    ``histories`` maps username → (artists, tracks) where artists are
    (name, playcount) pairs and tracks (artist, title, playcount) triples.
    ``failures`` maps username → exception raised on any call.
    """

    def __init__(self, histories=None, failures=None):
        self.histories = histories or {}
        self.failures = failures or {}
        self.calls: list[tuple[str, str, str, int]] = []

    def _history(self, username: str):
        if username in self.failures:
            raise self.failures[username]
        return self.histories.get(username, ([], []))

    async def get_top_artists(self, username: str, period: str, limit: int) -> TopArtists:
        self.calls.append(("artists", username, period, limit))
        artists, _ = self._history(username)
        return TopArtists(artists=[ArtistPlay(name=n, playcount=c) for n, c in artists[:limit]])

    async def get_top_tracks(self, username: str, period: str, limit: int) -> TopTracks:
        self.calls.append(("tracks", username, period, limit))
        _, tracks = self._history(username)
        return TopTracks(tracks=[TrackPlay(artist_name=a, track_name=t, playcount=c) for a, t, c in tracks[:limit]])

    def fetched_usernames(self) -> list[str]:
        return [username for kind, username, _, _ in self.calls if kind == "artists"]


def hours_ago(hours: float) -> datetime:
    return datetime.now(timezone.utc) - timedelta(hours=hours)
