import math
from collections.abc import Mapping
from typing import Any


def cosine_similarity(vec_a: Mapping[str, float], vec_b: Mapping[str, float]) -> float:
    """
    Cosine similarity between two sparse weighted vectors.

    Missing keys weigh 0. Returns 0.0 when either vector has zero norm.
    With non-negative weights the result lies in [0, 1].
    """
    norm_a_sq = sum(w * w for w in vec_a.values())
    norm_b_sq = sum(w * w for w in vec_b.values())
    if norm_a_sq == 0 or norm_b_sq == 0:
        return 0.0

    # Only shared keys contribute to the dot product
    dot = sum(weight * vec_b.get(key, 0.0) for key, weight in vec_a.items())

    return max(0.0, min(1.0, dot / math.sqrt(norm_a_sq * norm_b_sq)))


def jaccard_similarity(set_a: set[Any], set_b: set[Any]) -> float:
    """Calculate Jaccard similarity between two sets."""
    union = len(set_a | set_b)
    if union == 0:
        return 0.0
    return len(set_a & set_b) / union
