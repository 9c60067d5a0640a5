"""
OpenAI Provider

Chat-completions backed predictions for NLP tasks such as sentiment
analysis and lead evaluation.
"""

import json
import time
from typing import Any, Dict

from ..core.errors import ProviderInvocationError
from ..core.interfaces import (
    PredictionInput,
    PredictionOutput,
    ProviderHealth,
    ProviderKind,
)
from ..core.logging import get_logger
from .http_provider import HTTPMLProvider

logger = get_logger(__name__)


class OpenAIProvider(HTTPMLProvider):
    """OpenAI provider implementation."""

    kind = ProviderKind.OPENAI

    def __init__(self, config, defaults=None):
        super().__init__(config, defaults)
        self.timeout = float(
            config.config.get("timeout", self.defaults.llm_timeout_seconds)
        )
        self.model = config.config.get("model", self.defaults.openai_model)
        self.temperature = config.config.get("temperature", 0.3)
        self.max_tokens = config.config.get("max_tokens", 500)
        # Configured credentials win over the service-wide key
        self.api_key = config.credentials.get("api_key") or self.defaults.openai_api_key

    @property
    def base_url(self) -> str:
        return self.config.endpoint or self.defaults.openai_base_url

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key or ''}",
            "Content-Type": "application/json",
        }

    async def validate(self) -> bool:
        if not self.api_key:
            logger.error("[OpenAI] Validation failed: missing API key")
            return False
        return True

    def build_prompt(self, model_id: str, features: Dict[str, Any]) -> str:
        """Build the task prompt for a model."""
        answer_format = (
            'Respond with a JSON object {"prediction": ..., "confidence": 0-100}.'
        )
        if "sentiment" in model_id:
            return (
                "Analyze the sentiment of the following text. The prediction must be "
                'an object with "sentiment" (positive/negative/neutral) and "score" '
                f"(0-1). {answer_format}\n\n{features.get('text', '')}"
            )

        if "lead-scoring" in model_id:
            return (
                'Evaluate this lead. The prediction must be an object with "score" '
                f"(0-100). {answer_format}\n\n{json.dumps(features, indent=2)}"
            )

        return (
            "Analyze the following data and provide a prediction. "
            f"{answer_format}\n\n{json.dumps(features, indent=2, default=str)}"
        )

    async def predict(
        self, model_id: str, input_data: PredictionInput
    ) -> PredictionOutput:
        start_time = time.time()

        data = await self._request_json(
            "POST",
            "chat/completions",
            {
                "model": self.model,
                "messages": [
                    {
                        "role": "user",
                        "content": self.build_prompt(model_id, input_data.features),
                    }
                ],
                "temperature": self.temperature,
                "max_tokens": self.max_tokens,
                "response_format": {"type": "json_object"},
            },
        )

        try:
            content = data["choices"][0]["message"]["content"]
            result = json.loads(content)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ProviderInvocationError(
                self.name, f"malformed completion: {e}"
            ) from e

        if isinstance(result, dict) and "prediction" in result:
            prediction = result["prediction"]
            confidence = float(result.get("confidence", 80))
        else:
            prediction = result
            confidence = 80.0

        return PredictionOutput(
            prediction=prediction,
            confidence=max(0.0, min(100.0, confidence)),
            metadata={
                "provider": self.name,
                "model_id": model_id,
                "latency": (time.time() - start_time) * 1000,
                "model": self.model,
            },
        )

    async def health_check(self) -> ProviderHealth:
        start_time = time.time()
        try:
            await self._request_json("GET", "models")
            return ProviderHealth(
                healthy=True, latency=(time.time() - start_time) * 1000
            )
        except ProviderInvocationError as e:
            return ProviderHealth(healthy=False, error=str(e))
