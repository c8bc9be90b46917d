from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_bundle
from app.models.matching import CompatibilityRecord
from app.models.taste_profile import TasteProfile
from app.services.bundle import MatchingBundle

router = APIRouter(tags=["profiles"])


@router.get("/users/{identity}/profile", response_model=TasteProfile)
async def get_or_build_profile(
    identity: str,
    force_refresh: bool = Query(default=False, description="Rebuild even if a fresh profile is cached"),
    bundle: MatchingBundle = Depends(get_bundle),
):
    return await bundle.profiles.get_or_build_profile(identity, force_refresh=force_refresh)


@router.get("/users/{identity}/profile/cached", response_model=TasteProfile)
async def get_cached_profile(identity: str, bundle: MatchingBundle = Depends(get_bundle)):
    profile = await bundle.profiles.get_cached_profile(identity)
    if profile is None:
        raise HTTPException(status_code=404, detail="No fresh taste profile cached for this user.")
    return profile


@router.get("/compatibility", response_model=CompatibilityRecord)
async def get_compatibility(
    a: str = Query(..., description="First user identity"),
    b: str = Query(..., description="Second user identity"),
    bundle: MatchingBundle = Depends(get_bundle),
):
    """Compatibility between two users' cached profiles."""
    return await bundle.matcher.compare_identities(a, b)
