"""
Prediction Service

Unified entry point for model inference. Resolves the requested model,
applies champion/challenger routing, consults the prediction cache, invokes
the configured provider (or the deterministic mock generator when no
provider is configured or the provider fails) and records every outcome with
the performance monitor.
"""

import asyncio
import copy
import random
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..core.config import Config, get_config
from ..core.errors import (
    ModelInactiveError,
    ModelNotFoundError,
    UnsupportedModelTypeError,
)
from ..core.interfaces import (
    MLProviderConfig,
    PredictionInput,
    PredictionOutput,
    ProviderHealth,
)
from ..core.logging import get_audit_logger, get_logger
from ..explainability.explainability_service import (
    ExplainabilityResult,
    ExplainabilityService,
)
from ..providers.provider_factory import ProviderFactory, provider_key
from .circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from .model_registry import (
    ModelConfig,
    ModelRegistry,
    ModelType,
    register_default_models,
)
from .performance_monitor import (
    ModelHealth,
    ModelPerformanceStats,
    PerformanceMonitor,
    PredictionMetric,
)
from .prediction_cache import PredictionCache, feature_digest

logger = get_logger(__name__)
audit_logger = get_audit_logger()

POSITIVE_WORDS = ("good", "great", "excellent", "happy", "love", "thanks", "interested")
NEGATIVE_WORDS = ("bad", "poor", "terrible", "unhappy", "hate", "cancel", "problem")


@dataclass
class PredictionRequest:
    """A single prediction request."""

    model_id: str
    features: Dict[str, Any]
    context: Optional[Dict[str, Any]] = None
    use_cache: bool = True
    force_provider: Optional[MLProviderConfig] = None


@dataclass
class PredictionResponse:
    """Prediction result returned to callers."""

    prediction: Any
    confidence: float  # 0-100
    model_id: str  # model that actually served the request
    model_version: str
    processing_time_ms: float
    cached: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PredictionResponse":
        known = cls.__dataclass_fields__
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass
class ProviderCallResult:
    """Outcome of a provider call: either an output or the error it raised."""

    provider: str
    output: Optional[PredictionOutput] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.output is not None

    @classmethod
    def success(cls, provider: str, output: PredictionOutput) -> "ProviderCallResult":
        return cls(provider=provider, output=output)

    @classmethod
    def failure(cls, provider: str, error: Exception) -> "ProviderCallResult":
        return cls(provider=provider, error=error)


class PredictionService:
    """Prediction orchestrator over injected registry, cache, monitor and providers."""

    def __init__(
        self,
        registry: ModelRegistry,
        cache: PredictionCache,
        monitor: PerformanceMonitor,
        provider_factory: ProviderFactory,
        config: Optional[Config] = None,
        explainability: Optional[ExplainabilityService] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.cache = cache
        self.monitor = monitor
        self.provider_factory = provider_factory
        self.config = config or get_config()
        self.explainability = explainability or ExplainabilityService()
        self._random = rng or random.Random()
        self.clock = clock

        serving = self.config.serving
        self.cache_ttl = serving.prediction_cache_ttl
        self.breaker_config = CircuitBreakerConfig(
            failure_threshold=serving.failure_threshold,
            recovery_timeout=serving.recovery_timeout,
            half_open_max_calls=serving.half_open_max_calls,
        )
        self.circuit_breakers: Dict[str, CircuitBreaker] = {}

        # Request tracking
        self.request_semaphore = asyncio.Semaphore(serving.max_concurrent_requests)

        logger.info("Prediction service initialized")

    async def predict(self, request: PredictionRequest) -> PredictionResponse:
        """Serve a prediction request.

        Raises:
            ModelNotFoundError: the model id is not registered.
            ModelInactiveError: the model is registered but not active.
            UnsupportedModelTypeError: the mock generator has no rule for the
                model type and no provider produced a prediction.
            UnsupportedProviderError: the provider configuration names a kind
                that cannot be instantiated.

        Provider failures are not raised; they degrade to a mock prediction.
        """
        async with self.request_semaphore:
            start_time = time.time()

            try:
                model = self._resolve_model(request.model_id)
                effective_model = self._select_effective_model(model)

                cache_key = None
                if request.use_cache:
                    cache_key = self.cache.generate_key(
                        request.model_id, request.features
                    )
                if cache_key is not None:
                    cached_result = self.cache.get(cache_key)

                    if cached_result is not None:
                        response = PredictionResponse.from_dict(
                            copy.deepcopy(cached_result)
                        )
                        response.cached = True
                        response.processing_time_ms = (time.time() - start_time) * 1000
                        self._record_metric(
                            response.model_id,
                            response.processing_time_ms,
                            response.confidence,
                            cached=True,
                            success=True,
                            provider=response.metadata.get("provider"),
                        )
                        return response

                output, provider_name = await self._invoke_prediction(
                    effective_model, request
                )

                response = PredictionResponse(
                    prediction=output.prediction,
                    confidence=output.confidence,
                    model_id=effective_model.id,
                    model_version=effective_model.version,
                    processing_time_ms=(time.time() - start_time) * 1000,
                    cached=False,
                    metadata=output.metadata,
                )

                if cache_key is not None:
                    self.cache.set(cache_key, response.to_dict(), self.cache_ttl)

                self._record_metric(
                    response.model_id,
                    response.processing_time_ms,
                    response.confidence,
                    cached=False,
                    success=True,
                    provider=provider_name,
                )

                audit_logger.log_model_operation(
                    user_id=self._user_id(request),
                    model_id=effective_model.id,
                    operation="predict",
                    success=True,
                    details={
                        "requested_model_id": request.model_id,
                        "processing_time_ms": response.processing_time_ms,
                        "provider": provider_name,
                    },
                )

                return response

            except Exception as e:
                logger.error(f"Prediction error for {request.model_id}: {e}")

                self._record_metric(
                    request.model_id,
                    (time.time() - start_time) * 1000,
                    0,
                    cached=False,
                    success=False,
                    error=str(e),
                )
                audit_logger.log_model_operation(
                    user_id=self._user_id(request),
                    model_id=request.model_id,
                    operation="predict",
                    success=False,
                    details={"error": str(e)},
                )

                raise

    async def batch_predict(
        self,
        model_id: str,
        features_list: List[Dict[str, Any]],
        use_cache: bool = True,
    ) -> List[PredictionResponse]:
        """Predict for several feature sets; one response per input, in order.

        Models with a provider get one attempt at the provider's batch API.
        On any failure, or without a provider, each item is served by
        ``predict`` independently.
        """
        if not features_list:
            return []

        model = self.registry.get_model(model_id)
        if model is not None and model.is_active and model.provider_config:
            responses = await self._native_batch(model, features_list, use_cache)
            if responses is not None:
                return responses

        return list(
            await asyncio.gather(
                *(
                    self.predict(
                        PredictionRequest(
                            model_id=model_id, features=features, use_cache=use_cache
                        )
                    )
                    for features in features_list
                )
            )
        )

    async def _native_batch(
        self,
        model: ModelConfig,
        features_list: List[Dict[str, Any]],
        use_cache: bool,
    ) -> Optional[List[PredictionResponse]]:
        start_time = time.time()
        inputs = [PredictionInput(features=features) for features in features_list]

        try:
            provider = self.provider_factory.get_provider(model.provider_config)
            outputs = await self._guarded_call(
                model.provider_config, provider.batch_predict, model.id, inputs
            )
            if len(outputs) != len(inputs):
                raise ValueError(
                    f"batch returned {len(outputs)} results for {len(inputs)} inputs"
                )
        except Exception as e:
            logger.warning(
                f"Batch prediction via provider failed for {model.id}, "
                f"falling back to per-item predictions: {e}"
            )
            return None

        elapsed_ms = (time.time() - start_time) * 1000
        responses = []
        for features, output in zip(features_list, outputs):
            response = PredictionResponse(
                prediction=output.prediction,
                confidence=output.confidence,
                model_id=model.id,
                model_version=model.version,
                processing_time_ms=elapsed_ms,
                cached=False,
                metadata=dict(output.metadata, batch=True),
            )
            cache_key = self.cache.generate_key(model.id, features) if use_cache else None
            if cache_key is not None:
                self.cache.set(cache_key, response.to_dict(), self.cache_ttl)
            self._record_metric(
                model.id,
                elapsed_ms / len(features_list),
                output.confidence,
                cached=False,
                success=True,
                provider=provider.name,
            )
            responses.append(response)

        return responses

    async def explain(
        self,
        model_id: str,
        features: Dict[str, Any],
        context: Optional[Dict[str, Any]] = None,
    ) -> Tuple[PredictionResponse, ExplainabilityResult]:
        """Predict and attach feature attributions for the served model."""
        response = await self.predict(
            PredictionRequest(model_id=model_id, features=features, context=context)
        )
        explanation = self.explainability.explain_prediction(
            response.model_id, features, response.prediction, response.confidence
        )
        return response, explanation

    async def check_provider_health(self, model_id: str) -> Optional[ProviderHealth]:
        """Health of the model's provider; None when the model is mock-served."""
        model = self.registry.get_model(model_id)
        if model is None:
            raise ModelNotFoundError(model_id)
        if model.provider_config is None:
            return None

        provider = self.provider_factory.get_provider(model.provider_config)
        return await provider.health_check()

    def _resolve_model(self, model_id: str) -> ModelConfig:
        model = self.registry.get_model(model_id)
        if model is None:
            raise ModelNotFoundError(model_id)
        if not model.is_active:
            raise ModelInactiveError(model_id, model.status.value)
        return model

    def _select_effective_model(self, model: ModelConfig) -> ModelConfig:
        """Pick champion or challenger for this request."""
        ab_test = model.ab_test
        if not ab_test or not ab_test.enabled or not ab_test.champion_model_id:
            return model

        draw = self._random.random() * 100
        if draw < ab_test.traffic_percentage:
            return model

        champion = self.registry.get_model(ab_test.champion_model_id)
        if champion is None or not champion.is_active:
            logger.warning(
                f"Champion {ab_test.champion_model_id} for {model.id} is unavailable, "
                f"serving challenger"
            )
            return model

        return champion

    async def _invoke_prediction(
        self, model: ModelConfig, request: PredictionRequest
    ) -> Tuple[PredictionOutput, Optional[str]]:
        """Provider prediction, or a mock one when no provider result is available."""
        provider_config = request.force_provider or model.provider_config

        if provider_config is not None:
            result = await self._call_provider(
                provider_config,
                model.id,
                PredictionInput(features=request.features, context=request.context),
            )
            if result.ok:
                return result.output, result.provider

            logger.warning(
                f"Provider {result.provider} failed for {model.id}, "
                f"using mock prediction: {result.error}"
            )
            audit_logger.log_provider_event(
                result.provider, model.id, "fallback", {"error": str(result.error)}
            )

        return self.generate_mock_prediction(model, request.features), None

    async def _call_provider(
        self,
        provider_config: MLProviderConfig,
        model_id: str,
        input_data: PredictionInput,
    ) -> ProviderCallResult:
        # Unsupported provider kinds are configuration errors and propagate
        provider = self.provider_factory.get_provider(provider_config)

        try:
            output = await self._guarded_call(
                provider_config, provider.predict, model_id, input_data
            )
        except Exception as e:
            return ProviderCallResult.failure(provider.name, e)

        return ProviderCallResult.success(provider.name, output)

    async def _guarded_call(self, provider_config: MLProviderConfig, func, *args):
        breaker = self._get_circuit_breaker(provider_config)
        if breaker is None:
            return await func(*args)
        return await breaker.call(func, *args)

    def _get_circuit_breaker(
        self, provider_config: MLProviderConfig
    ) -> Optional[CircuitBreaker]:
        if not self.config.serving.circuit_breaker_enabled:
            return None

        key = provider_key(provider_config)
        breaker = self.circuit_breakers.get(key)
        if breaker is None:
            breaker = self.circuit_breakers.setdefault(
                key, CircuitBreaker(self.breaker_config)
            )
        return breaker

    def generate_mock_prediction(
        self, model: ModelConfig, features: Dict[str, Any]
    ) -> PredictionOutput:
        """Deterministic stand-in prediction for a model type and feature set."""
        try:
            digest = feature_digest(features)
        except ValueError:
            # Unserializable (e.g. self-referencing) features
            digest = repr(sorted(features.items(), key=lambda item: str(item[0])))
        rng = random.Random(f"{model.type.value}:{digest}")
        metadata = {"mock": True, "model_type": model.type.value}

        if model.type == ModelType.CLASSIFICATION:
            score = rng.random() * 100
            return PredictionOutput(
                prediction={
                    "class": "positive" if score > 50 else "negative",
                    "score": score,
                },
                confidence=75 + rng.random() * 20,
                metadata=metadata,
            )

        if model.type == ModelType.REGRESSION:
            return PredictionOutput(
                prediction={"value": rng.random() * 1000},
                confidence=70 + rng.random() * 25,
                metadata=metadata,
            )

        if model.type == ModelType.RECOMMENDATION:
            return PredictionOutput(
                prediction={
                    "items": [
                        {"id": "item1", "score": 0.92},
                        {"id": "item2", "score": 0.85},
                        {"id": "item3", "score": 0.78},
                    ]
                },
                confidence=80,
                metadata=metadata,
            )

        if model.type == ModelType.FORECASTING:
            return PredictionOutput(
                prediction={
                    "forecast": [
                        {"period": period, "value": 100000 + rng.random() * 50000}
                        for period in range(1, 13)
                    ]
                },
                confidence=72,
                metadata=metadata,
            )

        if model.type == ModelType.NLP:
            return PredictionOutput(
                prediction=self._keyword_sentiment(str(features.get("text", ""))),
                confidence=85,
                metadata=metadata,
            )

        raise UnsupportedModelTypeError(model.type.value)

    @staticmethod
    def _keyword_sentiment(text: str) -> Dict[str, Any]:
        words = text.lower().split()
        positive = sum(1 for word in words if word.strip(".,!?") in POSITIVE_WORDS)
        negative = sum(1 for word in words if word.strip(".,!?") in NEGATIVE_WORDS)

        if positive > negative:
            sentiment, score = "positive", 0.85
        elif negative > positive:
            sentiment, score = "negative", 0.15
        else:
            sentiment, score = "neutral", 0.5

        return {"sentiment": sentiment, "score": score, "entities": []}

    def _record_metric(
        self,
        model_id: str,
        latency: float,
        confidence: float,
        cached: bool,
        success: bool,
        error: Optional[str] = None,
        provider: Optional[str] = None,
    ) -> None:
        try:
            self.monitor.record_prediction(
                PredictionMetric(
                    model_id=model_id,
                    timestamp=self.clock() * 1000,
                    latency=latency,
                    confidence=confidence,
                    cached=cached,
                    success=success,
                    error=error,
                    provider=provider,
                )
            )
        except Exception as e:
            logger.warning(f"Failed to record metric for {model_id}: {e}")

    @staticmethod
    def _user_id(request: PredictionRequest) -> str:
        return (request.context or {}).get("user_id") or "anonymous"

    def clear_cache(self) -> None:
        self.cache.clear()

    def get_performance_stats(
        self, model_id: Optional[str] = None
    ) -> Dict[str, ModelPerformanceStats]:
        """Stats keyed by model id; a single entry (or none) when model_id is given."""
        if model_id is None:
            return self.monitor.get_all_stats()

        stats = self.monitor.get_model_stats(model_id)
        return {model_id: stats} if stats else {}

    def get_cache_stats(self) -> Dict[str, Any]:
        return self.cache.get_stats()

    def get_model_health(self, model_id: str) -> ModelHealth:
        return self.monitor.get_health_status(model_id)

    def get_circuit_breaker_states(self) -> Dict[str, Dict[str, Any]]:
        return {
            key: breaker.get_state() for key, breaker in self.circuit_breakers.items()
        }


def create_prediction_service(config: Optional[Config] = None) -> PredictionService:
    """Build a prediction service and its collaborators from configuration."""
    config = config or get_config()

    registry = ModelRegistry()
    if config.serving.seed_default_models:
        register_default_models(registry)

    return PredictionService(
        registry=registry,
        cache=PredictionCache(config.cache),
        monitor=PerformanceMonitor(config.metrics),
        provider_factory=ProviderFactory(config.providers),
        config=config,
    )
