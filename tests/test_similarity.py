"""
Tests for the cosine similarity primitives and aggregates.
"""

import math

import numpy as np
import pytest

from preference_service.recommendations.similarity import (
    NO_MATCH,
    DimensionMismatchError,
    average_similarity_many,
    combined_similarity,
    cosine_similarity,
    max_similarity,
    max_similarity_many,
    sigmoid,
    similarity_list,
)


def _unit(angle_deg: float):
    """2-d unit vector at the given angle from the x axis."""
    rad = math.radians(angle_deg)
    return [math.cos(rad), math.sin(rad)]


class TestCosineSimilarity:
    """Cosine similarity of two vectors."""

    @pytest.mark.parametrize("vector", [[1.0, 2.0, 3.0], [-0.3, 0.7], [5.0]])
    def test_self_similarity_is_one(self, vector):
        assert cosine_similarity(vector, vector) == pytest.approx(1.0)

    def test_symmetric(self):
        a, b = [0.2, -1.5, 3.0], [1.0, 0.4, -0.2]
        assert cosine_similarity(a, b) == cosine_similarity(b, a)

    def test_orthogonal_and_opposite(self):
        assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
        assert cosine_similarity([1, 0], [-1, 0]) == pytest.approx(-1.0)

    def test_scale_invariant(self):
        assert cosine_similarity([1, 1], [10, 10]) == pytest.approx(1.0)

    def test_accepts_numpy_arrays(self):
        assert cosine_similarity(np.array([1.0, 0.0]), [1.0, 0.0]) == pytest.approx(1.0)

    def test_zero_vector_has_zero_similarity(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0

    def test_dimension_mismatch_raises(self):
        with pytest.raises(DimensionMismatchError) as exc:
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])
        assert exc.value.left == 2
        assert exc.value.right == 3
        # Callers that only know about ValueError still catch it
        assert isinstance(exc.value, ValueError)


class TestMaxSimilarity:
    """Best single match against a candidate set."""

    def test_empty_candidates_return_sentinel(self):
        result = max_similarity([1.0, 0.0], [])
        assert result == NO_MATCH
        assert result != 0.0
        assert result < -1.0

    def test_returns_best_candidate(self):
        result = max_similarity(_unit(0), [_unit(80), _unit(30), _unit(60)])
        assert result == pytest.approx(math.cos(math.radians(30)))

    def test_threshold_filters_candidates(self):
        assert max_similarity(_unit(0), [_unit(80)], threshold=0.5) == NO_MATCH

    def test_negative_similarities_need_negative_threshold(self):
        assert max_similarity([1, 0], [[-1, 0]]) == NO_MATCH
        assert max_similarity([1, 0], [[-1, 0]], threshold=-2) == pytest.approx(-1.0)

    def test_similarity_list_preserves_candidate_order(self):
        hits = similarity_list([1, 0], [[0, 1], [1, 0], [-1, 0]])
        assert [h.index for h in hits] == [0, 1, 2]
        assert [round(h.similarity, 6) for h in hits] == [0.0, 1.0, -1.0]


class TestManyAggregates:
    """Max and average of best matches over a target set."""

    def test_max_many(self):
        sources = [_unit(0)]
        targets = [_unit(60), _unit(10)]
        assert max_similarity_many(sources, targets) == pytest.approx(math.cos(math.radians(10)))

    def test_max_many_empty(self):
        assert max_similarity_many([_unit(0)], []) == NO_MATCH

    def test_average_many_counts_all_targets(self):
        sources = [[1, 0]]
        targets = [[1, 0], [0, 1]]
        assert average_similarity_many(sources, targets) == pytest.approx(0.5)

    def test_average_many_empty_targets(self):
        assert average_similarity_many([[1, 0]], []) == 0.0


class TestCombinedSimilarity:
    """Alpha blend of strongest weighted match and weighted mean."""

    def test_empty_targets_return_zero(self):
        assert combined_similarity([[1.0, 0.0]], []) == 0.0

    def test_empty_sources_return_zero(self):
        assert combined_similarity([], [[1.0, 0.0]]) == 0.0

    def test_no_target_above_threshold_returns_zero(self):
        assert combined_similarity([_unit(0)], [_unit(80)], threshold=0.5) == 0.0

    def test_blend_of_max_and_average(self):
        sources = [[1.0, 0.0]]
        targets = [[1.0, 0.0], _unit(60)]
        # best matches: 1.0 and 0.5
        expected = 0.6 * 1.0 + 0.4 * 0.75
        assert combined_similarity(sources, targets) == pytest.approx(expected)

    def test_weights_scale_contributions(self):
        sources = [[1.0, 0.0]]
        targets = [[1.0, 0.0], _unit(60)]
        weights = [0.5, 1.0]
        # weighted: 0.5 and 0.5, total weight 1.5
        expected = 0.6 * 0.5 + 0.4 * (1.0 / 1.5)
        assert combined_similarity(sources, targets, weights) == pytest.approx(expected)

    def test_non_positive_weight_targets_are_ignored(self):
        sources = [[1.0, 0.0]]
        targets = [[1.0, 0.0], _unit(60)]
        result = combined_similarity(sources, targets, [0.0, 1.0])
        assert result == pytest.approx(0.5)

    def test_all_weights_zero_returns_zero(self):
        assert combined_similarity([[1.0, 0.0]], [[1.0, 0.0]], [0.0]) == 0.0

    def test_alpha_one_is_pure_max(self):
        sources = [[1.0, 0.0]]
        targets = [[1.0, 0.0], _unit(60)]
        assert combined_similarity(sources, targets, alpha=1.0) == pytest.approx(1.0)

    def test_invariant_to_reordering_targets_with_weights(self):
        sources = [_unit(5), _unit(40)]
        targets = [_unit(0), _unit(30), _unit(70), _unit(20)]
        weights = [1.0, 0.3, 0.8, 0.6]
        forward = combined_similarity(sources, targets, weights)
        order = [2, 0, 3, 1]
        shuffled = combined_similarity(
            sources, [targets[i] for i in order], [weights[i] for i in order]
        )
        assert forward == pytest.approx(shuffled)

    def test_weights_length_must_match_targets(self):
        with pytest.raises(ValueError):
            combined_similarity([[1.0, 0.0]], [[1.0, 0.0]], [1.0, 2.0])

    def test_dimension_mismatch_propagates(self):
        with pytest.raises(DimensionMismatchError):
            combined_similarity([[1.0, 0.0]], [[1.0, 0.0, 0.0]])


def test_sigmoid_is_bounded_and_centered():
    assert sigmoid(0.0, 0.5) == pytest.approx(0.5)
    assert 0.0 <= sigmoid(-1e6, 1.0) < 0.5
    assert 0.5 < sigmoid(1e6, 1.0) <= 1.0
    assert sigmoid(2.0, 0.5) == pytest.approx(1 / (1 + math.exp(-1.0)))
