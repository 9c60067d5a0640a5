"""
Model Registry for the prediction service.

Central in-memory catalog of model configurations with versioning, status
lifecycle, provider configuration and A/B test settings.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from ..core.interfaces import MLProviderConfig
from ..core.logging import get_logger

logger = get_logger(__name__)


class ModelType(Enum):
    """Model types."""

    CLASSIFICATION = "classification"
    REGRESSION = "regression"
    CLUSTERING = "clustering"
    NLP = "nlp"
    RECOMMENDATION = "recommendation"
    FORECASTING = "forecasting"


class ModelStatus(Enum):
    """Model lifecycle status."""

    ACTIVE = "active"
    DEPRECATED = "deprecated"
    TRAINING = "training"
    TESTING = "testing"


@dataclass
class ABTestConfig:
    """Champion/challenger traffic split owned by the challenger model."""

    enabled: bool = False
    traffic_percentage: float = 0.0  # 0-100, share served by the challenger
    champion_model_id: Optional[str] = None

    def __post_init__(self):
        if not 0 <= self.traffic_percentage <= 100:
            raise ValueError(
                f"traffic_percentage must be within 0-100, got {self.traffic_percentage}"
            )


@dataclass
class ModelConfig:
    """Model configuration container."""

    id: str
    name: str
    version: str
    type: ModelType
    status: ModelStatus = ModelStatus.ACTIVE
    provider: str = "custom"
    description: str = ""
    endpoint: Optional[str] = None
    provider_config: Optional[MLProviderConfig] = None
    parameters: Dict[str, Any] = field(default_factory=dict)

    # Offline evaluation metrics (accuracy, precision, recall, f1_score, mse, mae)
    metrics: Dict[str, float] = field(default_factory=dict)
    last_trained: Optional[str] = None

    # A/B testing
    ab_test: Optional[ABTestConfig] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("Model id is required")
        if not isinstance(self.type, ModelType):
            self.type = ModelType(self.type)
        if not isinstance(self.status, ModelStatus):
            self.status = ModelStatus(self.status)
        if isinstance(self.provider_config, dict):
            self.provider_config = MLProviderConfig.from_dict(self.provider_config)
        if isinstance(self.ab_test, dict):
            self.ab_test = ABTestConfig(**self.ab_test)

    @property
    def is_active(self) -> bool:
        return self.status == ModelStatus.ACTIVE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelConfig":
        """Build a configuration from a plain dictionary."""
        known = cls.__dataclass_fields__
        return cls(**{key: value for key, value in data.items() if key in known})

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "type": self.type.value,
            "status": self.status.value,
            "provider": self.provider,
            "description": self.description,
            "endpoint": self.endpoint,
            "provider_config": (
                self.provider_config.to_dict() if self.provider_config else None
            ),
            "parameters": self.parameters,
            "metrics": self.metrics,
            "last_trained": self.last_trained,
            "ab_test": (
                {
                    "enabled": self.ab_test.enabled,
                    "traffic_percentage": self.ab_test.traffic_percentage,
                    "champion_model_id": self.ab_test.champion_model_id,
                }
                if self.ab_test
                else None
            ),
        }


class ModelRegistry:
    """Thread-safe model catalog keyed by model id."""

    def __init__(self):
        self._models: Dict[str, ModelConfig] = {}
        self.lock = threading.RLock()

    def register(self, config: Union[ModelConfig, Dict[str, Any]]) -> ModelConfig:
        """Register a model, replacing any existing entry with the same id."""
        if isinstance(config, dict):
            config = ModelConfig.from_dict(config)

        with self.lock:
            replaced = config.id in self._models
            self._models[config.id] = config

        logger.info(
            f"Model {config.id} v{config.version} "
            f"{'updated' if replaced else 'registered'} ({config.status.value})"
        )
        return config

    def get_model(self, model_id: str) -> Optional[ModelConfig]:
        with self.lock:
            return self._models.get(model_id)

    def list_models(
        self,
        model_type: Optional[Union[ModelType, str]] = None,
        status: Optional[Union[ModelStatus, str]] = None,
    ) -> List[ModelConfig]:
        """List models, optionally filtered by type and/or status."""
        if model_type is not None and not isinstance(model_type, ModelType):
            model_type = ModelType(model_type)
        if status is not None and not isinstance(status, ModelStatus):
            status = ModelStatus(status)

        with self.lock:
            models = list(self._models.values())

        if model_type is not None:
            models = [m for m in models if m.type == model_type]
        if status is not None:
            models = [m for m in models if m.status == status]

        return models

    def update_status(self, model_id: str, status: Union[ModelStatus, str]) -> None:
        """Update model status; unknown ids are ignored."""
        if not isinstance(status, ModelStatus):
            status = ModelStatus(status)

        with self.lock:
            model = self._models.get(model_id)
            if model is None:
                return
            model.status = status

        logger.info(f"Model {model_id} status changed to {status.value}")

    def unregister(self, model_id: str) -> None:
        with self.lock:
            removed = self._models.pop(model_id, None)

        if removed is not None:
            logger.info(f"Model {model_id} unregistered")

    def clear(self) -> None:
        with self.lock:
            self._models.clear()

    def __len__(self) -> int:
        with self.lock:
            return len(self._models)

    def __contains__(self, model_id: object) -> bool:
        with self.lock:
            return model_id in self._models


DEFAULT_MODELS: List[Dict[str, Any]] = [
    {
        "id": "lead-scoring-v1",
        "name": "Lead Scoring Model",
        "version": "1.0.0",
        "type": "classification",
        "description": "ML-based lead quality prediction",
        "metrics": {
            "accuracy": 87.5,
            "precision": 85.2,
            "recall": 89.1,
            "f1_score": 87.1,
        },
    },
    {
        "id": "churn-prediction-v1",
        "name": "Churn Prediction Model",
        "version": "1.0.0",
        "type": "classification",
        "description": "Customer churn risk prediction",
        "metrics": {
            "accuracy": 82.3,
            "precision": 80.5,
            "recall": 84.2,
            "f1_score": 82.3,
        },
    },
    {
        "id": "sentiment-analysis-v1",
        "name": "Sentiment Analysis",
        "version": "1.0.0",
        "type": "nlp",
        "description": "Email and text sentiment analysis",
        "metrics": {
            "accuracy": 88.7,
            "precision": 87.3,
            "recall": 89.9,
            "f1_score": 88.6,
        },
    },
    {
        "id": "revenue-forecast-v1",
        "name": "Revenue Forecasting",
        "version": "1.0.0",
        "type": "forecasting",
        "description": "Revenue and pipeline forecasting",
        "metrics": {"mse": 12500, "mae": 8200},
    },
    {
        "id": "product-recommendation-v1",
        "name": "Product Recommendation",
        "version": "1.0.0",
        "type": "recommendation",
        "description": "Product and cross-sell recommendations",
        "metrics": {"precision": 75.8, "recall": 78.3},
    },
]


def register_default_models(registry: ModelRegistry) -> None:
    """Seed the registry with the built-in model catalog."""
    for model in DEFAULT_MODELS:
        registry.register(dict(model, metrics=dict(model["metrics"])))
