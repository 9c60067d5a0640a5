"""
Shared aiohttp transport for providers that speak JSON over HTTPS.
"""

import asyncio
from typing import Any, Dict, List, Optional

import aiohttp

from ..core.config import ProviderDefaults
from ..core.errors import ProviderInvocationError
from ..core.interfaces import (
    MLProvider,
    MLProviderConfig,
    PredictionInput,
    PredictionOutput,
)


class HTTPMLProvider(MLProvider):
    """Base class for HTTP providers; subclasses supply headers and base URL."""

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

    @property
    def base_url(self) -> str:
        raise NotImplementedError

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    async def _request_json(
        self, method: str, path: str, payload: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Send a request and decode the JSON body.

        Transport, status and decoding failures are raised as
        ProviderInvocationError.
        """
        url = f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        try:
            async with aiohttp.ClientSession(
                headers=self._headers(), timeout=timeout
            ) as session:
                async with session.request(method, url, json=payload) as response:
                    if response.status >= 400:
                        text = await response.text()
                        raise ProviderInvocationError(
                            self.name, f"{response.status} - {text[:200]}"
                        )
                    return await response.json(content_type=None)
        except ProviderInvocationError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ProviderInvocationError(self.name, str(e) or type(e).__name__) from e

    async def batch_predict(
        self, model_id: str, inputs: List[PredictionInput]
    ) -> List[PredictionOutput]:
        """Fan out to ``predict`` concurrently when no native batch API exists."""
        return list(
            await asyncio.gather(*(self.predict(model_id, item) for item in inputs))
        )
