from datetime import datetime, timezone

from loguru import logger
from pydantic import ValidationError

from app.core.constants import PROFILE_FIELD, USERS_COLLECTION
from app.core.settings import MatchingConfig
from app.models.taste_profile import TasteProfile
from app.services.document_store import BaseDocumentStore


class ProfileCache:
    """
    Taste profiles persisted on the user record, with a freshness window.

    A miss never triggers a rebuild; that is the caller's decision.
    """

    def __init__(self, store: BaseDocumentStore, config: MatchingConfig):
        self.store = store
        self.config = config

    async def get(self, identity: str, now: datetime | None = None) -> TasteProfile | None:
        """
        Get the cached profile for a user.

        Args:
            identity: User key
            now: Reference time for the freshness check (defaults to current UTC time)

        Returns:
            TasteProfile, or None if absent, stale or undecodable
        """
        record = await self.store.get_record(USERS_COLLECTION, identity)
        return self.from_record(identity, record, now=now)

    def from_record(self, identity: str, record: dict | None, now: datetime | None = None) -> TasteProfile | None:
        """Extract a fresh profile from an already loaded user record."""
        if not record:
            return None

        stored = (record.get("profileData") or {}).get("listeningHistory")
        if not stored:
            return None

        try:
            profile = TasteProfile.model_validate(stored)
        except ValidationError as e:
            logger.warning(f"Failed to decode cached profile for {identity}: {e}")
            return None

        age = profile.age(now or datetime.now(timezone.utc))
        if age > self.config.freshness_window:
            logger.info(f"Cached profile for {identity} is expired ({age.total_seconds() / 3600:.0f} hours old)")
            return None

        logger.debug(f"Using cached profile for {identity}")
        return profile

    async def put(self, identity: str, profile: TasteProfile) -> None:
        """
        Persist a profile, replacing any previous one for this user.

        Args:
            identity: User key
            profile: TasteProfile to store
        """
        await self.store.update_fields(
            USERS_COLLECTION,
            identity,
            {
                PROFILE_FIELD: profile.to_document(),
                "updatedAt": datetime.now(timezone.utc).isoformat(),
            },
        )
        logger.debug(f"Cached taste profile for {identity}")

    async def invalidate(self, identity: str) -> None:
        """Drop the cached profile so the next lookup misses."""
        await self.store.update_fields(USERS_COLLECTION, identity, {PROFILE_FIELD: None})
        logger.debug(f"Invalidated taste profile cache for {identity}")
