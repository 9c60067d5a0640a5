"""
AWS SageMaker Provider

Real-time inference through the SageMaker runtime ``invoke_endpoint`` API.
boto3 is synchronous, so each call runs in a worker thread.
"""

import asyncio
import json
import time
from typing import List, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..core.config import ProviderDefaults
from ..core.errors import ProviderInvocationError
from ..core.interfaces import (
    MLProvider,
    MLProviderConfig,
    PredictionInput,
    PredictionOutput,
    ProviderHealth,
    ProviderKind,
)
from ..core.logging import get_logger

logger = get_logger(__name__)

REQUIRED_CREDENTIALS = ("access_key_id", "secret_access_key", "region")


class AWSSageMakerProvider(MLProvider):
    """AWS SageMaker provider implementation."""

    kind = ProviderKind.AWS_SAGEMAKER

    def __init__(
        self,
        config: MLProviderConfig,
        defaults: Optional[ProviderDefaults] = None,
    ):
        super().__init__(config)
        self.defaults = defaults or ProviderDefaults()
        self.timeout = float(
            config.config.get("timeout", self.defaults.request_timeout_seconds)
        )
        self._client = None

    @property
    def region(self) -> Optional[str]:
        return self.config.credentials.get("region")

    def _get_client(self):
        """Create the runtime client on first use."""
        if self._client is None:
            credentials = self.config.credentials
            self._client = boto3.client(
                "sagemaker-runtime",
                aws_access_key_id=credentials.get("access_key_id"),
                aws_secret_access_key=credentials.get("secret_access_key"),
                region_name=self.region,
                endpoint_url=self.config.endpoint,
                config=BotoConfig(
                    connect_timeout=self.timeout,
                    read_timeout=self.timeout,
                    retries={"max_attempts": 2},
                ),
            )
        return self._client

    async def validate(self) -> bool:
        credentials = self.config.credentials
        missing = [key for key in REQUIRED_CREDENTIALS if not credentials.get(key)]
        if missing:
            logger.error(
                "[SageMaker] Validation failed: missing credentials "
                f"{', '.join(missing)}"
            )
            return False
        return True

    def _invoke(self, endpoint_name: str, payload: str) -> dict:
        response = self._get_client().invoke_endpoint(
            EndpointName=endpoint_name,
            Body=payload,
            ContentType="application/json",
            Accept="application/json",
        )
        return json.loads(response["Body"].read())

    async def predict(
        self, model_id: str, input_data: PredictionInput
    ) -> PredictionOutput:
        start_time = time.time()
        endpoint_name = self.config.config.get("endpoint_name", model_id)

        try:
            result = await asyncio.to_thread(
                self._invoke, endpoint_name, json.dumps(input_data.features)
            )
        except (BotoCoreError, ClientError, KeyError, ValueError) as e:
            logger.error(f"[SageMaker] Prediction error: {e}")
            raise ProviderInvocationError(self.name, str(e)) from e

        prediction = result
        confidence = 85.0
        if isinstance(result, dict):
            predictions = result.get("predictions")
            if isinstance(predictions, list) and predictions:
                prediction = predictions[0]
            confidence = max(0.0, min(100.0, float(result.get("confidence", confidence))))

        return PredictionOutput(
            prediction=prediction,
            confidence=confidence,
            metadata={
                "provider": self.name,
                "model_id": model_id,
                "latency": (time.time() - start_time) * 1000,
                "region": self.region,
            },
        )

    async def batch_predict(
        self, model_id: str, inputs: List[PredictionInput]
    ) -> List[PredictionOutput]:
        # Parallel real-time invocations; Batch Transform is for offline jobs
        return list(
            await asyncio.gather(*(self.predict(model_id, item) for item in inputs))
        )

    async def health_check(self) -> ProviderHealth:
        start_time = time.time()
        if not await self.validate():
            return ProviderHealth(
                healthy=False, error="Missing required AWS credentials"
            )

        try:
            await asyncio.to_thread(self._get_client)
        except (BotoCoreError, ClientError) as e:
            return ProviderHealth(healthy=False, error=str(e))

        return ProviderHealth(healthy=True, latency=(time.time() - start_time) * 1000)
