from app.core.config import Settings, settings
from app.core.settings import MatchingConfig, get_default_matching_config
from app.services.document_store import BaseDocumentStore, RedisDocumentStore
from app.services.lastfm.client import LastFmClient
from app.services.lastfm.service import LastFmService
from app.services.matching.matcher import SessionMatcher
from app.services.profile.builder import ListeningHistorySource, ProfileBuilder
from app.services.profile.cache import ProfileCache
from app.services.profile.service import ProfileService


class MatchingBundle:
    """
    A unified bundle for all matching services.
    Wires collaborators and configuration once and owns their lifetime.
    """

    def __init__(
        self,
        store: BaseDocumentStore,
        source: ListeningHistorySource,
        config: MatchingConfig | None = None,
    ):
        self.config = config or MatchingConfig()
        self.store = store
        self.source = source

        self.cache = ProfileCache(store, self.config)
        self.builder = ProfileBuilder(source, self.config)
        self.profiles = ProfileService(store, self.cache, self.builder)
        self.matcher = SessionMatcher(store, self.profiles, self.config)

    @classmethod
    def from_settings(cls, source_settings: Settings | None = None) -> "MatchingBundle":
        source_settings = source_settings or settings
        store = RedisDocumentStore(
            source_settings.REDIS_URL,
            key_prefix=source_settings.REDIS_KEY_PREFIX,
            max_connections=source_settings.REDIS_MAX_CONNECTIONS,
        )
        lastfm = LastFmService(
            LastFmClient(
                api_key=source_settings.LASTFM_API_KEY,
                base_url=source_settings.LASTFM_BASE_URL,
                timeout=source_settings.LASTFM_TIMEOUT_SECONDS,
                max_retries=source_settings.LASTFM_MAX_RETRIES,
            )
        )
        return cls(store, lastfm, get_default_matching_config(source_settings))

    async def close(self):
        """Close all underlying network clients."""
        close_source = getattr(self.source, "close", None)
        if close_source is not None:
            await close_source()
        await self.store.close()
