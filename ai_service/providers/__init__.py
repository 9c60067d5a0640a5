"""Prediction provider implementations."""

from .aws_sagemaker_provider import AWSSageMakerProvider
from .azure_ml_provider import AzureMLProvider
from .openai_provider import OpenAIProvider
from .provider_factory import ProviderFactory, provider_key

__all__ = [
    "AWSSageMakerProvider",
    "AzureMLProvider",
    "OpenAIProvider",
    "ProviderFactory",
    "provider_key",
]
