import math

import pytest

from app.services.profile.similarity import cosine_similarity, jaccard_similarity


class TestCosineSimilarity:
    @pytest.mark.parametrize(
        "vector",
        [
            {"radiohead": math.log(51)},
            {"radiohead": math.log(51), "muse": math.log(21), "coldplay": 0.3},
            {"a": 1e-6, "b": 1234.5},
        ],
    )
    def test_self_similarity_is_one(self, vector):
        assert cosine_similarity(vector, vector) == 1.0

    def test_empty_vector_scores_zero(self):
        assert cosine_similarity({"radiohead": 3.9}, {}) == 0.0
        assert cosine_similarity({}, {"radiohead": 3.9}) == 0.0
        assert cosine_similarity({}, {}) == 0.0

    def test_all_zero_weights_score_zero(self):
        assert cosine_similarity({"a": 0.0}, {"a": 1.0}) == 0.0

    def test_disjoint_vectors_score_zero(self):
        assert cosine_similarity({"a": 1.0}, {"b": 1.0}) == 0.0

    def test_commutative(self):
        a = {"radiohead": 3.93, "muse": 3.04}
        b = {"radiohead": 3.43, "coldplay": 2.40}
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    def test_known_value(self):
        a = {"radiohead": math.log(51), "muse": math.log(21)}
        b = {"radiohead": math.log(31), "coldplay": math.log(11)}
        assert cosine_similarity(a, b) == pytest.approx(0.648, abs=0.005)

    def test_scale_invariant(self):
        a = {"x": 1.0, "y": 2.0}
        b = {"x": 10.0, "y": 20.0}
        assert cosine_similarity(a, b) == pytest.approx(1.0)


class TestJaccardSimilarity:
    def test_identical_sets(self):
        assert jaccard_similarity({"a", "b"}, {"a", "b"}) == 1.0

    def test_both_empty(self):
        assert jaccard_similarity(set(), set()) == 0.0

    def test_one_empty(self):
        assert jaccard_similarity({"a"}, set()) == 0.0

    def test_partial_overlap(self):
        assert jaccard_similarity({"a", "b", "c"}, {"b", "c", "d"}) == pytest.approx(0.5)
