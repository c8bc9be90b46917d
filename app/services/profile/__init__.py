"""
Taste profiles: vectorization, similarity, building and caching.
"""

from app.services.profile.builder import ProfileBuilder
from app.services.profile.cache import ProfileCache
from app.services.profile.service import ProfileService
from app.services.profile.similarity import cosine_similarity, jaccard_similarity
from app.services.profile.vectorizer import ListeningVectorizer

__all__ = [
    "ProfileBuilder",
    "ProfileCache",
    "ProfileService",
    "ListeningVectorizer",
    "cosine_similarity",
    "jaccard_similarity",
]
