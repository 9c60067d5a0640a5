"""Error types surfaced by the prediction orchestration core."""


class PredictionServiceError(Exception):
    """Base class for prediction service failures."""


class ModelNotFoundError(PredictionServiceError):
    """Raised when a requested model id is not in the registry."""

    def __init__(self, model_id: str):
        super().__init__(f"Model not found: {model_id}")
        self.model_id = model_id


class ModelInactiveError(PredictionServiceError):
    """Raised when a model exists but is not in the active state."""

    def __init__(self, model_id: str, status: str):
        super().__init__(f"Model is not active: {model_id} (status: {status})")
        self.model_id = model_id
        self.status = status


class UnsupportedModelTypeError(PredictionServiceError):
    """Raised when no mock generation rule exists for a model type."""

    def __init__(self, model_type: str):
        super().__init__(f"Unsupported model type: {model_type}")
        self.model_type = model_type


class UnsupportedProviderError(PredictionServiceError):
    """Raised when a provider kind cannot be instantiated by the factory."""

    def __init__(self, provider: str, reason: str = ""):
        message = f"Unsupported provider: {provider}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.provider = provider


class ProviderInvocationError(PredictionServiceError):
    """Raised by providers when an outbound prediction call fails.

    The orchestrator absorbs this error and serves a mock prediction instead.
    """

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider} prediction failed: {message}")
        self.provider = provider
