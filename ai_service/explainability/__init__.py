"""Prediction explainability components."""

from .explainability_service import (
    ExplainabilityConfig,
    ExplainabilityResult,
    ExplainabilityService,
    FeatureContribution,
    PredictionComparison,
)

__all__ = [
    "ExplainabilityService",
    "ExplainabilityConfig",
    "ExplainabilityResult",
    "FeatureContribution",
    "PredictionComparison",
]
