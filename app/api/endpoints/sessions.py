from fastapi import APIRouter, Depends, Query
from loguru import logger

from app.api.deps import get_bundle
from app.models.matching import PendingMatchSet, SessionMatchSet
from app.services.bundle import MatchingBundle

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("/{session_id}/match", response_model=SessionMatchSet)
async def compute_session_matches(
    session_id: str,
    force_refresh: bool = Query(default=False, description="Rebuild every participant's profile"),
    bundle: MatchingBundle = Depends(get_bundle),
):
    match_set = await bundle.matcher.compute_matches(session_id, force_refresh=force_refresh)
    if match_set.profile_errors:
        logger.warning(f"Session {session_id} matched with {len(match_set.profile_errors)} profile error(s)")
    return match_set


@router.get("/{session_id}/matches", response_model=SessionMatchSet | PendingMatchSet)
async def get_session_matches(session_id: str, bundle: MatchingBundle = Depends(get_bundle)):
    return await bundle.matcher.get_session_matches(session_id)
