from fastapi import Request

from app.services.bundle import MatchingBundle


def get_bundle(request: Request) -> MatchingBundle:
    """The bundle wired at startup (see app.core.app lifespan)."""
    return request.app.state.bundle
