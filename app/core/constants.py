"""
Core constants used across the application. Keep these simple and documented.
"""

# Document store collections
USERS_COLLECTION: str = "users"
SESSIONS_COLLECTION: str = "sessions"

# Redis key for one JSON document: {prefix}:{collection}:{id}
DOCUMENT_KEY: str = "{prefix}:{collection}:{id}"

# Where the listening-history profile lives inside a user record
PROFILE_FIELD: str = "profileData.listeningHistory"

DATA_SOURCE_LASTFM: str = "lastfm"

MATCH_STATUS_MATCHED: str = "matched"
MATCH_STATUS_NOT_COMPUTED: str = "not computed"
