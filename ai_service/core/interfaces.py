"""
Core interfaces and abstract base classes for the prediction providers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import UnsupportedProviderError


class ProviderKind(Enum):
    """Supported external prediction backends."""

    AWS_SAGEMAKER = "aws-sagemaker"
    AZURE_ML = "azure-ml"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    CUSTOM = "custom"


@dataclass
class MLProviderConfig:
    """Provider configuration attached to a model or forced on a request."""

    provider: ProviderKind
    endpoint: Optional[str] = None
    credentials: Dict[str, Any] = field(default_factory=dict)
    config: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.provider, ProviderKind):
            try:
                self.provider = ProviderKind(self.provider)
            except ValueError:
                raise UnsupportedProviderError(str(self.provider)) from None

    @property
    def identity(self) -> str:
        """Cache identity used by the provider factory."""
        return f"{self.provider.value}:{self.endpoint or 'default'}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MLProviderConfig":
        return cls(
            provider=data["provider"],
            endpoint=data.get("endpoint"),
            credentials=dict(data.get("credentials") or {}),
            config=dict(data.get("config") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, masking credential values."""
        return {
            "provider": self.provider.value,
            "endpoint": self.endpoint,
            "credentials": {key: "***" for key in self.credentials},
            "config": self.config,
        }


@dataclass
class PredictionInput:
    """Input passed to a provider."""

    features: Dict[str, Any]
    context: Optional[Dict[str, Any]] = None


@dataclass
class PredictionOutput:
    """Result returned by a provider."""

    prediction: Any
    confidence: float  # 0-100
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ProviderHealth:
    """Provider health check result."""

    healthy: bool
    latency: Optional[float] = None  # ms
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"healthy": self.healthy, "latency": self.latency, "error": self.error}


class MLProvider(ABC):
    """Abstract base class for all prediction providers."""

    kind: ProviderKind = ProviderKind.CUSTOM

    def __init__(self, config: MLProviderConfig):
        self.config = config

    @property
    def name(self) -> str:
        return self.kind.value

    @abstractmethod
    async def validate(self) -> bool:
        """Validate provider credentials and configuration."""
        pass

    @abstractmethod
    async def predict(
        self, model_id: str, input_data: PredictionInput
    ) -> PredictionOutput:
        """Make a prediction using the provider."""
        pass

    @abstractmethod
    async def batch_predict(
        self, model_id: str, inputs: List[PredictionInput]
    ) -> List[PredictionOutput]:
        """Make predictions for several inputs, preserving order."""
        pass

    @abstractmethod
    async def health_check(self) -> ProviderHealth:
        """Check that the backend is reachable."""
        pass
