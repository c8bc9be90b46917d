"""
Error taxonomy for the matching engine.

Every error carries a stable ``code`` tag and the HTTP status the API layer
answers with. Callers branch on the exception type, never on the message.
"""


class TasteMatchError(Exception):
    """Base class for all classified matching errors."""

    code: str = "error"
    status_code: int = 500

    def __init__(self, message: str | None = None):
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class IdentityNotFound(TasteMatchError):
    """User record not found."""

    code = "identity_not_found"
    status_code = 404


class SessionNotFound(TasteMatchError):
    """Session not found."""

    code = "session_not_found"
    status_code = 404


class NoIdentitySource(TasteMatchError):
    """User has no linked Last.fm username."""

    code = "no_identity_source"
    status_code = 422


class UpstreamError(TasteMatchError):
    """Listening-history service request failed."""

    code = "upstream_error"
    status_code = 502


class UpstreamNotFound(UpstreamError):
    """Last.fm user not found."""

    code = "upstream_not_found"
    status_code = 404


class UpstreamNoHistory(UpstreamError):
    """No listening history available for this user."""

    code = "upstream_no_history"
    status_code = 404


class UpstreamCredentialsMissing(UpstreamError):
    """Last.fm API credentials are missing or invalid."""

    code = "upstream_credentials_missing"
    status_code = 503


class UpstreamForbidden(UpstreamError):
    """Access to this user's listening history is forbidden."""

    code = "upstream_forbidden"
    status_code = 403


class UpstreamTransient(UpstreamError):
    """Listening-history service timed out or is temporarily unavailable."""

    code = "upstream_transient"
    status_code = 504


class InsufficientParticipants(TasteMatchError):
    """Need at least 2 participants to compute matches."""

    code = "insufficient_participants"
    status_code = 409


class InsufficientProfiles(TasteMatchError):
    """Need at least 2 taste profiles to compute matches."""

    code = "insufficient_profiles"
    status_code = 409


class MalformedProfile(TasteMatchError):
    """Taste profile vectors are missing or malformed."""

    code = "malformed_profile"
    status_code = 422


class DocumentNotFound(TasteMatchError):
    """Document not found."""

    code = "document_not_found"
    status_code = 404


class DocumentStoreError(TasteMatchError):
    """Document store is unavailable."""

    code = "document_store_error"
    status_code = 503
