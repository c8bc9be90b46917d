from typing import Any

from loguru import logger

from app.core.constants import USERS_COLLECTION
from app.core.exceptions import IdentityNotFound
from app.models.taste_profile import TasteProfile
from app.services.document_store import BaseDocumentStore
from app.services.profile.builder import ProfileBuilder
from app.services.profile.cache import ProfileCache


class ProfileService:
    """
    Service for fetching or building a user's taste profile.
    """

    def __init__(self, store: BaseDocumentStore, cache: ProfileCache, builder: ProfileBuilder):
        self.store = store
        self.cache = cache
        self.builder = builder

    async def get_user(self, identity: str) -> dict[str, Any]:
        record = await self.store.get_record(USERS_COLLECTION, identity)
        if not record:
            raise IdentityNotFound(f"User not found: {identity}")
        return record

    async def get_or_build_profile(self, identity: str, force_refresh: bool = False) -> TasteProfile:
        """
        Return the cached profile, rebuilding it when missing, stale or forced.
        """
        user = await self.get_user(identity)

        if not force_refresh:
            cached = self.cache.from_record(identity, user)
            if cached is not None:
                return cached
        else:
            logger.info(f"Forced profile refresh for {identity}")

        profile = await self.builder.build_profile(
            identity,
            display_name=user.get("displayName") or user.get("name") or "",
            source_username=user.get("sourceUsername") or user.get("lastfmUsername"),
        )
        await self.cache.put(identity, profile)
        return profile

    async def get_cached_profile(self, identity: str) -> TasteProfile | None:
        """Return the fresh cached profile without building one."""
        user = await self.get_user(identity)
        return self.cache.from_record(identity, user)
