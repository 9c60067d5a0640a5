"""Prediction orchestration components and the HTTP API."""

from .model_registry import ModelConfig, ModelRegistry, ModelStatus, ModelType
from .performance_monitor import PerformanceMonitor, PredictionMetric
from .prediction_cache import PredictionCache
from .prediction_service import (
    PredictionRequest,
    PredictionResponse,
    PredictionService,
    create_prediction_service,
)

__all__ = [
    "ModelConfig",
    "ModelRegistry",
    "ModelStatus",
    "ModelType",
    "PerformanceMonitor",
    "PredictionMetric",
    "PredictionCache",
    "PredictionRequest",
    "PredictionResponse",
    "PredictionService",
    "create_prediction_service",
]
