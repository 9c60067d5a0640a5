"""
FastAPI application exposing the prediction service over HTTP.
"""

from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..core.config import Config, load_config
from ..core.errors import (
    ModelInactiveError,
    ModelNotFoundError,
    UnsupportedModelTypeError,
    UnsupportedProviderError,
)
from ..core.interfaces import MLProviderConfig
from ..core.logging import get_logger
from .prediction_service import (
    PredictionRequest,
    PredictionService,
    create_prediction_service,
)

logger = get_logger(__name__)

app = FastAPI(
    title="AI Prediction Service",
    description="Model routing, caching and provider orchestration for predictions",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_service: Optional[PredictionService] = None


def get_prediction_service() -> PredictionService:
    """Process-wide service instance, built on first use."""
    global _service
    if _service is None:
        _service = create_prediction_service()
    return _service


class ProviderConfigBody(BaseModel):
    provider: str
    endpoint: Optional[str] = None
    credentials: Dict[str, Any] = Field(default_factory=dict)
    config: Dict[str, Any] = Field(default_factory=dict)


class PredictBody(BaseModel):
    model_id: str = Field(..., min_length=1)
    features: Dict[str, Any]
    context: Optional[Dict[str, Any]] = None
    use_cache: bool = True
    force_provider: Optional[ProviderConfigBody] = None


class BatchPredictBody(BaseModel):
    model_id: str = Field(..., min_length=1)
    features_list: List[Dict[str, Any]]
    use_cache: bool = True


class ExplainBody(BaseModel):
    model_id: str = Field(..., min_length=1)
    features: Dict[str, Any]
    context: Optional[Dict[str, Any]] = None


@app.exception_handler(ModelNotFoundError)
async def model_not_found_handler(request: Request, exc: ModelNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ModelInactiveError)
async def model_inactive_handler(request: Request, exc: ModelInactiveError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(UnsupportedModelTypeError)
@app.exception_handler(UnsupportedProviderError)
async def configuration_error_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "ai-prediction-service"}


@app.post("/predict")
async def predict(
    body: PredictBody, service: PredictionService = Depends(get_prediction_service)
):
    force_provider = (
        MLProviderConfig.from_dict(body.force_provider.model_dump())
        if body.force_provider
        else None
    )
    response = await service.predict(
        PredictionRequest(
            model_id=body.model_id,
            features=body.features,
            context=body.context,
            use_cache=body.use_cache,
            force_provider=force_provider,
        )
    )
    return response.to_dict()


@app.post("/predict/batch")
async def batch_predict(
    body: BatchPredictBody,
    service: PredictionService = Depends(get_prediction_service),
):
    responses = await service.batch_predict(
        body.model_id, body.features_list, use_cache=body.use_cache
    )
    return {"predictions": [r.to_dict() for r in responses], "count": len(responses)}


@app.post("/explain")
async def explain(
    body: ExplainBody, service: PredictionService = Depends(get_prediction_service)
):
    response, explanation = await service.explain(
        body.model_id, body.features, body.context
    )
    return {"prediction": response.to_dict(), "explanation": explanation.to_dict()}


@app.get("/models")
async def list_models(
    model_type: Optional[str] = None,
    status: Optional[str] = None,
    service: PredictionService = Depends(get_prediction_service),
):
    try:
        models = service.registry.list_models(model_type=model_type, status=status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"models": [m.to_dict() for m in models]}


@app.get("/models/{model_id}/health")
async def model_health(
    model_id: str, service: PredictionService = Depends(get_prediction_service)
):
    if model_id not in service.registry:
        raise ModelNotFoundError(model_id)

    health = service.get_model_health(model_id)
    provider_health = await service.check_provider_health(model_id)
    return {
        "model_id": model_id,
        **health.to_dict(),
        "provider": provider_health.to_dict() if provider_health else None,
        "recent_errors": [
            {"timestamp": m.timestamp, "error": m.error}
            for m in service.monitor.get_recent_errors(model_id, limit=5)
        ],
    }


@app.get("/stats/performance")
async def performance_stats(
    model_id: Optional[str] = None,
    service: PredictionService = Depends(get_prediction_service),
):
    stats = service.get_performance_stats(model_id)
    return {key: value.to_dict() for key, value in stats.items()}


@app.get("/stats/cache")
async def cache_stats(service: PredictionService = Depends(get_prediction_service)):
    return service.get_cache_stats()


@app.delete("/cache")
async def clear_cache(service: PredictionService = Depends(get_prediction_service)):
    service.clear_cache()
    logger.info("Prediction cache cleared via API")
    return {"status": "cleared"}


def server_options(config: Config) -> Dict[str, Any]:
    """uvicorn settings for a configuration.

    Debug mode runs a single reloading worker; uvicorn ignores ``workers``
    when reloading.
    """
    reload = config.debug
    return {
        "host": config.api.host,
        "port": config.api.port,
        "reload": reload,
        "workers": 1 if reload else config.api.workers,
        "timeout_keep_alive": config.api.timeout_seconds,
        "log_level": config.log_level.lower(),
    }


def run():
    """Run the API server."""
    config = load_config()
    uvicorn.run("ai_service.api.main:app", **server_options(config))


if __name__ == "__main__":
    run()
