"""Tests for heuristic prediction explanations."""

import math

import pytest

from ai_service.explainability.explainability_service import (
    ExplainabilityService,
    format_feature_name,
    format_feature_value,
)


@pytest.fixture
def explainer():
    return ExplainabilityService()


class TestExplainPrediction:
    def test_lead_scoring_attributions(self, explainer):
        features = {
            "company_size": 500,
            "industry": "Technology",
            "engagement_score": 85,
            "job_title": "CTO",
            "budget": 100000,
        }

        result = explainer.explain_prediction("lead-scoring-v1", features, 0.87, 92.0)

        assert result.prediction == 0.87
        assert result.confidence == 92.0
        assert result.base_value == 50.0
        assert len(result.feature_contributions) == 5
        assert result.top_features[0].feature == "company_size"
        assert result.top_features[1].feature == "engagement_score"

    def test_contribution_formula(self, explainer):
        result = explainer.explain_prediction("test-model", {"x": 100}, 1, 80)

        contribution = result.feature_contributions[0]
        assert contribution.contribution == pytest.approx(0.1 * math.tanh(1))
        assert contribution.importance == pytest.approx(abs(contribution.contribution) * 100)

    def test_top_features_are_capped_at_five(self, explainer):
        features = {f"f{i}": i * 10 for i in range(8)}
        result = explainer.explain_prediction("test-model", features, 1, 80)

        assert len(result.top_features) == 5
        importances = [f.importance for f in result.top_features]
        assert importances == sorted(importances, reverse=True)

    def test_positive_and_negative_factors(self, explainer):
        result = explainer.explain_prediction(
            "test-model", {"active": True, "churned": False}, 0.5, 70
        )

        assert "Positive factors:" in result.explanation
        assert "Negative factors:" in result.explanation
        assert "Active: Yes" in result.explanation

    def test_value_normalization(self, explainer):
        assert explainer.normalize_value(True) == 1.0
        assert explainer.normalize_value(False) == -1.0
        assert explainer.normalize_value("") == -0.5
        assert explainer.normalize_value("x") == 0.5
        assert explainer.normalize_value(None) == 0.0
        assert -1 < explainer.normalize_value(-50) < 0

    def test_default_base_value(self, explainer):
        assert explainer.base_value("unknown") == 0.5
        assert explainer.base_value("churn-prediction-v1") == 0.2


class TestComparePredictions:
    def test_differences_sorted_by_impact(self, explainer):
        comparison = explainer.compare_predictions(
            "churn-prediction-v1",
            {"support_tickets": 1, "nps_score": 50, "region": "EU"},
            {"support_tickets": 90, "nps_score": 55, "region": "EU"},
        )

        assert [d.feature for d in comparison.differences] == ["support_tickets", "nps_score"]
        assert comparison.differences[0].impact_difference > 0
        assert "Support Tickets changed from 1 to 90" in comparison.explanation

    def test_identical_features(self, explainer):
        comparison = explainer.compare_predictions("m", {"a": 1}, {"a": 1})
        assert comparison.differences == []
        assert comparison.explanation == "No significant differences found."

    def test_features_missing_on_one_side(self, explainer):
        comparison = explainer.compare_predictions("m", {"a": 1}, {"b": 2})
        assert {d.feature for d in comparison.differences} == {"a", "b"}


def test_formatting_helpers():
    assert format_feature_name("engagement_score") == "Engagement Score"
    assert format_feature_value(100000) == "100,000"
    assert format_feature_value(False) == "No"
    assert format_feature_value("CTO") == "CTO"
