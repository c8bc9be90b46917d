import asyncio
import weakref
from datetime import datetime, timezone
from typing import Any

from loguru import logger
from pydantic import BaseModel, ValidationError

from app.core.constants import MATCH_STATUS_MATCHED, SESSIONS_COLLECTION
from app.core.exceptions import (
    InsufficientParticipants,
    InsufficientProfiles,
    MalformedProfile,
    SessionNotFound,
    TasteMatchError,
)
from app.core.settings import MatchingConfig
from app.models.matching import (
    CompatibilityRecord,
    PendingMatchSet,
    ProfileError,
    SessionMatchSet,
)
from app.models.taste_profile import TasteProfile
from app.services.document_store import BaseDocumentStore
from app.services.matching.compatibility import calculate_compatibility
from app.services.profile.service import ProfileService


class ProfileOutcome(BaseModel):
    """Result of acquiring one participant's profile: a profile or an error."""

    identity: str
    profile: TasteProfile | None = None
    error: ProfileError | None = None

    @property
    def ok(self) -> bool:
        return self.profile is not None


def participant_identities(participants: Any) -> list[str]:
    """
    Normalize the stored participant list to identity keys.

    Entries may be plain identity strings or objects carrying ``identity``
    (or the legacy ``userCode``). Duplicates keep their first position.
    """
    identities: list[str] = []
    for entry in participants or []:
        if isinstance(entry, dict):
            identity = entry.get("identity") or entry.get("userCode")
        else:
            identity = entry
        if not isinstance(identity, str) or not identity.strip():
            continue
        identity = identity.strip()
        if identity not in identities:
            identities.append(identity)
    return identities


class SessionMatcher:
    """
    Computes and stores pairwise compatibility for every session participant.

    Profile acquisition is best-effort: one participant failing only removes
    that participant. Only a missing session or fewer than two participants
    (or acquired profiles) fail the whole computation.
    """

    def __init__(self, store: BaseDocumentStore, profile_service: ProfileService, config: MatchingConfig):
        self.store = store
        self.profile_service = profile_service
        self.config = config
        # One lock per session currently being matched; dropped once unused
        self._session_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._session_locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._session_locks[session_id] = lock
        return lock

    async def _get_session(self, session_id: str) -> dict[str, Any]:
        session = await self.store.get_record(SESSIONS_COLLECTION, session_id)
        if not session:
            raise SessionNotFound(f"Session not found: {session_id}")
        return session

    async def compute_matches(self, session_id: str, force_refresh: bool = False) -> SessionMatchSet:
        """
        Recompute the full match set for a session and persist it.

        Args:
            session_id: Session key
            force_refresh: Rebuild every participant's profile even if cached

        Returns:
            SessionMatchSet with matches sorted best first
        """
        async with self._lock_for(session_id):
            return await self._compute_matches(session_id, force_refresh)

    async def _compute_matches(self, session_id: str, force_refresh: bool) -> SessionMatchSet:
        logger.info(f"Computing matches for session {session_id}")

        session = await self._get_session(session_id)
        identities = participant_identities(session.get("participants"))
        if len(identities) < 2:
            raise InsufficientParticipants(
                f"Need at least 2 users to compute matches, session {session_id} has {len(identities)}"
            )

        logger.info(f"Found {len(identities)} participants: {', '.join(identities)}")

        profiles, profile_errors = await self._acquire_profiles(identities, force_refresh)
        if len(profiles) < 2:
            raise InsufficientProfiles(f"Not enough profiles available. Got {len(profiles)}, need at least 2.")

        logger.info(f"Successfully loaded {len(profiles)} profiles")

        matches = self._score_pairs(profiles)
        # Stable: equal scores keep pair generation order
        matches.sort(key=lambda m: m.scores.overall, reverse=True)

        best = matches[0].scores.overall if matches else "N/A"
        logger.info(f"Calculated {len(matches)} matches for session {session_id}, best score: {best}")

        match_set = SessionMatchSet(
            session_id=session_id,
            matches=matches,
            computed_at=datetime.now(timezone.utc),
            profile_errors=profile_errors,
            participant_count=len(identities),
            profiles_loaded=len(profiles),
            matches_generated=len(matches),
        )
        await self._store_match_set(match_set)
        return match_set

    async def _acquire_profiles(
        self, identities: list[str], force_refresh: bool
    ) -> tuple[list[TasteProfile], list[ProfileError]]:
        semaphore = asyncio.Semaphore(self.config.profile_concurrency)
        outcomes = await asyncio.gather(
            *[self._acquire_profile(identity, force_refresh, semaphore) for identity in identities]
        )

        # gather keeps input order, so both lists follow participant order
        profiles = [outcome.profile for outcome in outcomes if outcome.ok]
        errors = [outcome.error for outcome in outcomes if not outcome.ok]
        return profiles, errors

    async def _acquire_profile(
        self, identity: str, force_refresh: bool, semaphore: asyncio.Semaphore
    ) -> ProfileOutcome:
        async with semaphore:
            try:
                profile = await self.profile_service.get_or_build_profile(identity, force_refresh=force_refresh)
                return ProfileOutcome(identity=identity, profile=profile)
            except TasteMatchError as e:
                logger.warning(f"Failed to get profile for user {identity}: [{e.code}] {e.message}")
                return ProfileOutcome(
                    identity=identity, error=ProfileError(identity=identity, code=e.code, error=e.message)
                )
            except Exception as e:
                logger.exception(f"Unexpected error getting profile for user {identity}: {e}")
                return ProfileOutcome(
                    identity=identity, error=ProfileError(identity=identity, code="internal_error", error=str(e))
                )

    def _score_pairs(self, profiles: list[TasteProfile]) -> list[CompatibilityRecord]:
        matches = []
        for i in range(len(profiles)):
            for j in range(i + 1, len(profiles)):
                try:
                    matches.append(calculate_compatibility(profiles[i], profiles[j], self.config))
                except MalformedProfile as e:
                    logger.error(
                        f"Failed to calculate compatibility between {profiles[i].identity} "
                        f"and {profiles[j].identity}: {e.message}"
                    )
        return matches

    async def _store_match_set(self, match_set: SessionMatchSet) -> None:
        await self.store.update_fields(
            SESSIONS_COLLECTION,
            match_set.session_id,
            {
                "matches": [m.to_document() for m in match_set.matches],
                "matchingCompletedAt": match_set.computed_at.isoformat(),
                "status": MATCH_STATUS_MATCHED,
                # Always written so errors from a previous run do not linger
                "profileErrors": [e.to_document() for e in match_set.profile_errors],
                "profilesLoaded": match_set.profiles_loaded,
                "matchesGenerated": match_set.matches_generated,
            },
        )
        logger.debug(f"Stored {len(match_set.matches)} matches on session {match_set.session_id}")

    async def get_session_matches(self, session_id: str) -> SessionMatchSet | PendingMatchSet:
        """
        Read the stored match set without computing anything.
        """
        session = await self._get_session(session_id)
        stored = session.get("matches")
        if stored is None:
            return PendingMatchSet(session_id=session_id)

        try:
            matches = [CompatibilityRecord.model_validate(m) for m in stored]
            errors = [ProfileError.model_validate(e) for e in session.get("profileErrors") or []]
        except ValidationError as e:
            logger.warning(f"Stored matches for session {session_id} could not be decoded: {e}")
            return PendingMatchSet(
                session_id=session_id, message="Stored matches are unreadable. Run matching again."
            )

        return SessionMatchSet(
            session_id=session_id,
            matches=matches,
            computed_at=session.get("matchingCompletedAt"),
            profile_errors=errors,
            participant_count=len(participant_identities(session.get("participants"))),
            profiles_loaded=session.get("profilesLoaded", 0),
            matches_generated=session.get("matchesGenerated", len(matches)),
        )

    async def compare_identities(self, identity_a: str, identity_b: str) -> CompatibilityRecord:
        """
        Compatibility of two users' cached profiles; nothing is built.
        """
        profiles = []
        for identity in (identity_a, identity_b):
            profile = await self.profile_service.get_cached_profile(identity)
            if profile is None:
                raise InsufficientProfiles(f"No fresh taste profile cached for {identity}. Build it first.")
            profiles.append(profile)
        return calculate_compatibility(profiles[0], profiles[1], self.config)
