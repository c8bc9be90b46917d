"""
Session matching: pairwise compatibility over a session's participants.
"""

from app.services.matching.compatibility import calculate_compatibility
from app.services.matching.matcher import ProfileOutcome, SessionMatcher

__all__ = ["calculate_compatibility", "ProfileOutcome", "SessionMatcher"]
