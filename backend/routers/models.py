"""
Model diagnostics endpoints.

- GET /api/list-models: what the configured key can see (REST listing)
- GET /api/test-models: which of those actually answer right now
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from config import runtime_config
from errors import handle_async_route_errors
from services.model_diagnostics import list_models, run_model_smoke_tests
from utils.llm import get_model_factory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

MISSING_KEY_BODY = {"error": "GEMINI_API_KEY not set"}


@router.get("/list-models")
@handle_async_route_errors("list_models", logger)
async def get_models():
    """List models visible to the API key, v1beta first then v1."""
    if not runtime_config.has_api_key:
        return JSONResponse(status_code=500, content=MISSING_KEY_BODY)

    return await list_models(
        runtime_config.gemini_api_key,
        runtime_config.gemini_api_base,
        timeout=runtime_config.list_models_timeout,
    )


@router.get("/test-models")
@handle_async_route_errors("test_models", logger)
async def check_models():
    """Smoke-test a handful of models with a one-word prompt."""
    if not runtime_config.has_api_key:
        return JSONResponse(status_code=500, content=MISSING_KEY_BODY)

    return await run_model_smoke_tests(
        get_model_factory(),
        runtime_config.gemini_api_key,
        runtime_config.gemini_api_base,
        fallback_candidates=runtime_config.model_candidates,
        limit=runtime_config.test_models_limit,
        timeout=runtime_config.list_models_timeout,
    )
