"""
SHAP-like feature attributions for served predictions.

Contributions are heuristic: a per-model feature weight multiplied by a
normalized feature value. Backends that expose real attributions should
replace ``feature_weights`` and ``estimate_feature_impact``.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from ..core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ExplainabilityConfig:
    """Configuration for heuristic explanations."""

    default_weight: float = 0.1
    top_k: int = 5
    numeric_scale: float = 100.0

    # Per-model feature weights, matched on model id substring
    model_weights: Dict[str, Dict[str, float]] = field(
        default_factory=lambda: {
            "lead-scoring": {
                "company_size": 0.25,
                "industry": 0.15,
                "engagement_score": 0.35,
                "job_title": 0.15,
                "budget": 0.10,
            },
            "churn": {
                "account_age": 0.20,
                "support_tickets": 0.30,
                "usage_frequency": 0.25,
                "nps_score": 0.15,
                "payment_delays": 0.10,
            },
        }
    )
    base_values: Dict[str, float] = field(
        default_factory=lambda: {"lead-scoring": 50.0, "churn": 0.2}
    )


@dataclass
class FeatureContribution:
    feature: str
    value: Any
    contribution: float  # signed impact, -1 to 1
    importance: float  # absolute impact, 0-100


@dataclass
class ExplainabilityResult:
    prediction: Any
    confidence: float
    base_value: float
    feature_contributions: List[FeatureContribution]
    top_features: List[FeatureContribution]
    explanation: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FeatureDifference:
    feature: str
    value1: Any
    value2: Any
    impact_difference: float


@dataclass
class PredictionComparison:
    differences: List[FeatureDifference]
    explanation: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def format_feature_name(name: Any) -> str:
    return str(name).replace("_", " ").title()


def format_feature_value(value: Any) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (int, float)):
        return f"{value:,}"
    return str(value)


class ExplainabilityService:
    """Generates feature attributions and prediction comparisons."""

    def __init__(self, config: Optional[ExplainabilityConfig] = None):
        self.config = config or ExplainabilityConfig()

    def feature_weights(self, model_id: str) -> Dict[str, float]:
        for marker, weights in self.config.model_weights.items():
            if marker in model_id:
                return weights
        return {}

    def base_value(self, model_id: str) -> float:
        for marker, value in self.config.base_values.items():
            if marker in model_id:
                return value
        return 0.5

    def normalize_value(self, value: Any) -> float:
        """Map a raw feature value onto [-1, 1]."""
        # bool before numbers: bool is an int subclass
        if isinstance(value, bool):
            return 1.0 if value else -1.0
        if isinstance(value, (int, float)):
            return float(np.tanh(value / self.config.numeric_scale))
        if isinstance(value, str):
            return 0.5 if value else -0.5
        return 0.0

    def estimate_feature_impact(self, model_id: str, feature: str, value: Any) -> float:
        weight = self.feature_weights(model_id).get(feature, self.config.default_weight)
        return weight * self.normalize_value(value)

    def explain_prediction(
        self,
        model_id: str,
        features: Dict[str, Any],
        prediction: Any,
        confidence: float,
    ) -> ExplainabilityResult:
        """Explain a prediction with per-feature contributions.

        Args:
            model_id: Model that produced the prediction; selects weights.
            features: Input features of the prediction.
            prediction: The prediction being explained.
            confidence: Confidence reported with the prediction.

        Returns:
            ExplainabilityResult with all contributions, the ``top_k`` most
            important ones and a human-readable explanation.
        """
        contributions = []
        for feature, value in features.items():
            contribution = self.estimate_feature_impact(model_id, feature, value)
            contributions.append(
                FeatureContribution(
                    feature=feature,
                    value=value,
                    contribution=contribution,
                    importance=abs(contribution) * 100,
                )
            )

        top_features = sorted(contributions, key=lambda c: c.importance, reverse=True)[
            : self.config.top_k
        ]

        logger.debug(f"Explained {model_id} prediction over {len(features)} features")

        return ExplainabilityResult(
            prediction=prediction,
            confidence=confidence,
            base_value=self.base_value(model_id),
            feature_contributions=contributions,
            top_features=top_features,
            explanation=self._generate_explanation(top_features),
        )

    def _generate_explanation(self, top_features: List[FeatureContribution]) -> str:
        positive = [f for f in top_features if f.contribution > 0]
        negative = [f for f in top_features if f.contribution < 0]

        lines = ["The prediction was influenced by:", ""]
        if positive:
            lines.append("Positive factors:")
            for f in positive:
                lines.append(
                    f"• {format_feature_name(f.feature)}: "
                    f"{format_feature_value(f.value)} (impact: +{f.importance:.0f}%)"
                )
        if negative:
            if positive:
                lines.append("")
            lines.append("Negative factors:")
            for f in negative:
                lines.append(
                    f"• {format_feature_name(f.feature)}: "
                    f"{format_feature_value(f.value)} (impact: -{f.importance:.0f}%)"
                )
        return "\n".join(lines) + "\n"

    def compare_predictions(
        self,
        model_id: str,
        features1: Dict[str, Any],
        features2: Dict[str, Any],
    ) -> PredictionComparison:
        """Attribute the difference between two feature sets."""
        differences = []
        all_features = list(features1) + [f for f in features2 if f not in features1]

        for feature in all_features:
            value1 = features1.get(feature)
            value2 = features2.get(feature)
            if value1 == value2:
                continue

            impact1 = self.estimate_feature_impact(model_id, feature, value1)
            impact2 = self.estimate_feature_impact(model_id, feature, value2)
            differences.append(
                FeatureDifference(
                    feature=feature,
                    value1=value1,
                    value2=value2,
                    impact_difference=impact2 - impact1,
                )
            )

        differences.sort(key=lambda d: abs(d.impact_difference), reverse=True)

        return PredictionComparison(
            differences=differences,
            explanation=self._generate_comparison_explanation(
                differences[: self.config.top_k]
            ),
        )

    def _generate_comparison_explanation(
        self, differences: List[FeatureDifference]
    ) -> str:
        if not differences:
            return "No significant differences found."

        lines = ["Key differences:", ""]
        for diff in differences:
            direction = "increased" if diff.impact_difference > 0 else "decreased"
            lines.append(
                f"• {format_feature_name(diff.feature)} changed from "
                f"{format_feature_value(diff.value1)} to "
                f"{format_feature_value(diff.value2)}, which {direction} the prediction"
            )
        return "\n".join(lines) + "\n"
