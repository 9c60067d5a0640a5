"""
Azure ML Provider

Real-time inference against an Azure Machine Learning online endpoint.
"""

import time
from typing import Any, Dict, List, Optional

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


class AzureMLProvider(HTTPMLProvider):
    """Azure ML provider; scores through ``{endpoint}/score``."""

    kind = ProviderKind.AZURE_ML

    @property
    def endpoint(self) -> Optional[str]:
        return self.config.credentials.get("endpoint") or self.config.endpoint

    @property
    def base_url(self) -> str:
        if not self.endpoint:
            raise ProviderInvocationError(self.name, "no scoring endpoint configured")
        return self.endpoint

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.config.credentials.get('api_key', '')}",
            "Content-Type": "application/json",
        }
        deployment = self.config.credentials.get("deployment_name")
        if deployment:
            headers["azureml-model-deployment"] = deployment
        return headers

    async def validate(self) -> bool:
        if not self.config.credentials.get("api_key") or not self.endpoint:
            logger.error("[Azure ML] Validation failed: missing api_key or endpoint")
            return False
        return True

    @staticmethod
    def _split_results(data: Any) -> List[Any]:
        if isinstance(data, dict):
            results = data.get("result", data.get("predictions"))
        else:
            results = data
        if not isinstance(results, list):
            raise ProviderInvocationError("azure-ml", "unexpected scoring response")
        return results

    @staticmethod
    def _confidence(data: Any, index: int) -> float:
        if isinstance(data, dict):
            confidences = data.get("confidences")
            if isinstance(confidences, list) and index < len(confidences):
                return float(confidences[index])
            if "confidence" in data:
                return float(data["confidence"])
        return 85.0

    async def predict(
        self, model_id: str, input_data: PredictionInput
    ) -> PredictionOutput:
        start_time = time.time()

        data = await self._request_json(
            "POST", "score", {"data": [input_data.features], "method": "predict"}
        )
        results = self._split_results(data)
        if not results:
            raise ProviderInvocationError(self.name, "empty scoring response")

        return PredictionOutput(
            prediction=results[0],
            confidence=self._confidence(data, 0),
            metadata={
                "provider": self.name,
                "model_id": model_id,
                "latency": (time.time() - start_time) * 1000,
                "endpoint": self.endpoint,
            },
        )

    async def batch_predict(
        self, model_id: str, inputs: List[PredictionInput]
    ) -> List[PredictionOutput]:
        """Score all inputs in a single request."""
        if not inputs:
            return []

        start_time = time.time()
        data = await self._request_json(
            "POST",
            "score",
            {"data": [item.features for item in inputs], "method": "predict"},
        )
        results = self._split_results(data)
        if len(results) != len(inputs):
            raise ProviderInvocationError(
                self.name,
                f"batch returned {len(results)} results for {len(inputs)} inputs",
            )

        latency = (time.time() - start_time) * 1000
        return [
            PredictionOutput(
                prediction=prediction,
                confidence=self._confidence(data, index),
                metadata={
                    "provider": self.name,
                    "model_id": model_id,
                    "latency": latency / len(inputs),
                    "batch_index": index,
                },
            )
            for index, prediction in enumerate(results)
        ]

    async def health_check(self) -> ProviderHealth:
        start_time = time.time()
        try:
            await self._request_json("GET", "")
            return ProviderHealth(
                healthy=True, latency=(time.time() - start_time) * 1000
            )
        except ProviderInvocationError as e:
            return ProviderHealth(healthy=False, error=str(e))
