from app.services.lastfm.client import LastFmClient
from app.services.lastfm.service import LastFmService

__all__ = ["LastFmClient", "LastFmService"]
