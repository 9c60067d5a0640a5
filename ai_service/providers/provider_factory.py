"""
Provider Factory

Creates provider instances from their configuration and keeps one instance
per provider identity.
"""

import threading
from typing import Dict, Optional

from ..core.config import ProviderDefaults
from ..core.errors import UnsupportedProviderError
from ..core.interfaces import MLProvider, MLProviderConfig, ProviderKind
from ..core.logging import get_audit_logger, get_logger
from .aws_sagemaker_provider import AWSSageMakerProvider
from .azure_ml_provider import AzureMLProvider
from .openai_provider import OpenAIProvider

logger = get_logger(__name__)
audit_logger = get_audit_logger()


def provider_key(config: MLProviderConfig) -> str:
    return config.identity


class ProviderFactory:
    """Creates and caches provider instances."""

    def __init__(self, defaults: Optional[ProviderDefaults] = None):
        self.defaults = defaults or ProviderDefaults()
        self._providers: Dict[str, MLProvider] = {}
        self.lock = threading.Lock()

    def get_provider(self, config: MLProviderConfig) -> MLProvider:
        """Return the cached provider for this identity, creating it if needed.

        Raises:
            UnsupportedProviderError: the kind has no built-in implementation
                and no instance was registered under the identity.
        """
        key = provider_key(config)

        with self.lock:
            provider = self._providers.get(key)
            if provider is not None:
                return provider

            provider = self._create(config)
            self._providers[key] = provider

        logger.info(f"Created provider {key}")
        audit_logger.log_provider_event(
            config.provider.value, None, "created", {"key": key}
        )
        return provider

    def _create(self, config: MLProviderConfig) -> MLProvider:
        kind = config.provider

        if kind == ProviderKind.AWS_SAGEMAKER:
            return AWSSageMakerProvider(config, self.defaults)
        elif kind == ProviderKind.AZURE_ML:
            return AzureMLProvider(config, self.defaults)
        elif kind == ProviderKind.OPENAI:
            return OpenAIProvider(config, self.defaults)
        elif kind == ProviderKind.CUSTOM:
            raise UnsupportedProviderError(
                kind.value, "custom providers must be registered explicitly"
            )
        else:
            raise UnsupportedProviderError(kind.value)

    def register_provider(self, key: str, provider: MLProvider) -> None:
        """Register a provider instance under an explicit key."""
        with self.lock:
            self._providers[key] = provider
        logger.info(f"Registered provider {key}")

    def remove_provider(self, key: str) -> None:
        with self.lock:
            self._providers.pop(key, None)

    def clear_cache(self) -> None:
        with self.lock:
            self._providers.clear()

    def get_all_providers(self) -> Dict[str, MLProvider]:
        with self.lock:
            return dict(self._providers)
