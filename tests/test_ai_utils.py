"""Tests for numeric helpers."""

import pytest

from ai_service.core import ai_utils


class TestScoring:
    def test_calculate_confidence_is_bounded(self):
        assert 0 <= ai_utils.calculate_confidence(10, 90) <= 100
        assert ai_utils.calculate_confidence(1000, 100) > ai_utils.calculate_confidence(1, 100)

    def test_normalize_score(self):
        assert ai_utils.normalize_score(5, 0, 10) == 50
        assert ai_utils.normalize_score(20, 0, 10) == 100
        assert ai_utils.normalize_score(3, 3, 3) == 50

    def test_weighted_average(self):
        assert ai_utils.weighted_average([(10, 1), (20, 3)]) == pytest.approx(17.5)
        assert ai_utils.weighted_average([]) == 0
        assert ai_utils.weighted_average([(10, 0)]) == 0

    def test_sigmoid(self):
        assert ai_utils.sigmoid(0) == 0.5


class TestVectors:
    def test_cosine_similarity(self):
        assert ai_utils.cosine_similarity([1, 0], [1, 0]) == pytest.approx(1.0)
        assert ai_utils.cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
        assert ai_utils.cosine_similarity([0, 0], [1, 1]) == 0.0

    def test_cosine_similarity_length_mismatch(self):
        with pytest.raises(ValueError):
            ai_utils.cosine_similarity([1], [1, 2])

    def test_pearson_correlation(self):
        assert ai_utils.pearson_correlation([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)
        assert ai_utils.pearson_correlation([1, 2, 3], [3, 2, 1]) == pytest.approx(-1.0)
        assert ai_utils.pearson_correlation([1, 1, 1], [1, 2, 3]) == 0.0


class TestSeries:
    def test_standard_deviation(self):
        assert ai_utils.standard_deviation([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)
        assert ai_utils.standard_deviation([]) == 0.0

    def test_detect_outliers(self):
        result = ai_utils.detect_outliers([10, 11, 12, 11, 10, 12, 100])
        assert result["outliers"] == [100]

    def test_moving_average(self):
        assert ai_utils.moving_average([1, 2, 3, 4], 2) == [1.0, 1.5, 2.5, 3.5]

    def test_exponential_smoothing(self):
        assert ai_utils.exponential_smoothing([10, 20], alpha=0.5) == [10.0, 15.0]
        assert ai_utils.exponential_smoothing([]) == []

    def test_calculate_trend(self):
        assert ai_utils.calculate_trend([1, 2, 3, 4]) == "increasing"
        assert ai_utils.calculate_trend([4, 3, 2, 1]) == "decreasing"
        assert ai_utils.calculate_trend([5, 5, 5]) == "stable"

    def test_scaling(self):
        assert ai_utils.min_max_scale([0, 5, 10]) == [0.0, 0.5, 1.0]
        assert ai_utils.min_max_scale([3, 3]) == [0.5, 0.5]
        assert ai_utils.z_score_normalize([1, 1]) == [0.0, 0.0]
        assert sum(ai_utils.z_score_normalize([1, 2, 3])) == pytest.approx(0.0)

    def test_k_means_clustering(self):
        clusters = ai_utils.k_means_clustering([1, 2, 3, 100, 101, 102], k=2)
        groups = sorted(sorted(c["values"]) for c in clusters)
        assert groups == [[1.0, 2.0, 3.0], [100.0, 101.0, 102.0]]
