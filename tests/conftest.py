"""
Pytest configuration and shared fixtures for the prediction service tests.
"""

from typing import List

import pytest

from ai_service.api.model_registry import ModelRegistry, register_default_models
from ai_service.api.performance_monitor import PerformanceMonitor
from ai_service.api.prediction_cache import PredictionCache
from ai_service.api.prediction_service import PredictionService
from ai_service.core.config import CacheConfig, Config, MetricsConfig
from ai_service.core.errors import ProviderInvocationError
from ai_service.core.interfaces import (
    MLProvider,
    MLProviderConfig,
    PredictionInput,
    PredictionOutput,
    ProviderHealth,
    ProviderKind,
)
from ai_service.providers.provider_factory import ProviderFactory

STUB_PROVIDER_CONFIG = {"provider": "custom", "endpoint": "stub"}


class FakeClock:
    """Manually advanced time source (seconds)."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubProvider(MLProvider):
    """In-process provider with switchable failures and call counters."""

    kind = ProviderKind.CUSTOM

    def __init__(self):
        super().__init__(MLProviderConfig.from_dict(STUB_PROVIDER_CONFIG))
        self.fail = False
        self.fail_batch = False
        self.predict_calls = 0
        self.batch_calls = 0

    async def validate(self) -> bool:
        return True

    async def predict(
        self, model_id: str, input_data: PredictionInput
    ) -> PredictionOutput:
        self.predict_calls += 1
        if self.fail:
            raise ProviderInvocationError(self.name, "endpoint unavailable")
        return PredictionOutput(
            prediction={"echo": input_data.features},
            confidence=91.0,
            metadata={"provider": self.name, "model_id": model_id},
        )

    async def batch_predict(
        self, model_id: str, inputs: List[PredictionInput]
    ) -> List[PredictionOutput]:
        self.batch_calls += 1
        if self.fail_batch:
            raise ProviderInvocationError(self.name, "batch endpoint unavailable")
        return [
            PredictionOutput(
                prediction={"echo": item.features, "index": index},
                confidence=88.0,
                metadata={"provider": self.name},
            )
            for index, item in enumerate(inputs)
        ]

    async def health_check(self) -> ProviderHealth:
        if self.fail:
            return ProviderHealth(healthy=False, error="endpoint unavailable")
        return ProviderHealth(healthy=True, latency=1.0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    """Default configuration, independent of config files and environment."""
    return Config()


@pytest.fixture
def registry():
    """Registry seeded with the default model catalog."""
    registry = ModelRegistry()
    register_default_models(registry)
    return registry


@pytest.fixture
def cache(clock):
    return PredictionCache(CacheConfig(cleanup_probability=0.0), clock=clock)


@pytest.fixture
def monitor(clock):
    return PerformanceMonitor(MetricsConfig(), clock=clock)


@pytest.fixture
def factory():
    return ProviderFactory()


@pytest.fixture
def stub_provider(factory):
    """StubProvider registered under the identity ``custom:stub``."""
    provider = StubProvider()
    factory.register_provider("custom:stub", provider)
    return provider


@pytest.fixture
def service(registry, cache, monitor, factory, config, clock):
    return PredictionService(
        registry=registry,
        cache=cache,
        monitor=monitor,
        provider_factory=factory,
        config=config,
        clock=clock,
    )
