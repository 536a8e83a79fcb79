"""
Model Diagnostics - what models can this API key see, and which answer?

Backs the ``/api/list-models`` and ``/api/test-models`` endpoints. Listing
goes straight to the REST API (``v1beta`` first, then ``v1``); testing
sends a tiny "Hi" completion to each model without retries, so the result
reflects the model's state right now.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from errors import ExternalServiceError
from services.gemini_client import ModelFactory

logger = logging.getLogger(__name__)

API_VERSIONS = ("v1beta", "v1")
TEST_PROMPT = "Hi"
RESPONSE_PREVIEW_CHARS = 100


def strip_model_prefix(name: str) -> str:
    """``models/gemini-2.5-flash`` -> ``gemini-2.5-flash``."""
    return (name or "").replace("models/", "")


async def fetch_model_listing(
    api_key: str,
    base_url: str,
    timeout: float = 15.0,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """Fetch the raw model list, falling back from v1beta to v1.

    Returns:
        {"apiVersion": str, "models": [raw model dicts]}

    Raises:
        ExternalServiceError: both API versions returned an error
    """
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=timeout)
    try:
        response = None
        api_version = API_VERSIONS[0]
        for api_version in API_VERSIONS:
            response = await client.get(f"{base_url}/{api_version}/models", params={"key": api_key})
            if response.is_success:
                break
            logger.warning(f"Model listing via {api_version} failed with {response.status_code}")

        if response is None or not response.is_success:
            raise ExternalServiceError(
                "Failed to fetch models",
                details=response.text if response is not None else None,
                service="model_list",
                status_code=response.status_code if response is not None else None,
                suggestion="Please verify your API key is correct and has proper permissions",
            )

        data = response.json()
        return {"apiVersion": api_version, "models": data.get("models") or []}
    finally:
        if owns_client:
            await client.aclose()


async def list_models(api_key: str, base_url: str, timeout: float = 15.0, client: Optional[httpx.AsyncClient] = None) -> Dict[str, Any]:
    """Model listing plus the short names and a suggestion for the UI."""
    listing = await fetch_model_listing(api_key, base_url, timeout=timeout, client=client)
    models = listing["models"]
    names = [strip_model_prefix(m.get("name", "")) for m in models]

    if names:
        suggestion = f"Try using one of these models: {', '.join(names[:3])}"
    else:
        suggestion = "No models found. Check your API key."

    return {
        "apiVersion": listing["apiVersion"],
        "totalModels": len(names),
        "models": models,
        "modelNames": names,
        "suggestion": suggestion,
    }


async def discover_gemini_models(
    api_key: str, base_url: str, timeout: float = 15.0, client: Optional[httpx.AsyncClient] = None
) -> List[str]:
    """Names of listed models containing "gemini"; empty when listing fails."""
    try:
        listing = await fetch_model_listing(api_key, base_url, timeout=timeout, client=client)
    except (ExternalServiceError, httpx.HTTPError) as e:
        logger.warning(f"Could not fetch model list: {e}")
        return []
    names = [strip_model_prefix(m.get("name", "")) for m in listing["models"]]
    return [n for n in names if n and "gemini" in n]


async def smoke_test_model(factory: ModelFactory, name: str) -> Dict[str, Any]:
    """One un-retried completion against ``name``."""
    try:
        handle = factory.get_model(name)
        text = await handle.generate(TEST_PROMPT)
    except Exception as e:
        logger.info(f"Model {name} failed smoke test: {e}")
        return {
            "model": name,
            "status": "failed",
            "error": str(e),
            "message": "This model is not available",
        }
    return {
        "model": name,
        "status": "success",
        "response": text[:RESPONSE_PREVIEW_CHARS],
        "message": "This model works! ✓",
    }


def _recommendation(working: Sequence[str], available: Sequence[str]) -> str:
    if working:
        return f"Use model: {working[0]}"
    if available:
        return (
            f"Found {len(available)} models from API but none worked. "
            "Try visiting /api/list-models to see details."
        )
    return "No working models found. Please check your API key. Visit /api/list-models to see available models."


async def run_model_smoke_tests(
    factory: ModelFactory,
    api_key: str,
    base_url: str,
    fallback_candidates: Sequence[str],
    limit: int = 5,
    timeout: float = 15.0,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """Smoke-test up to ``limit`` models and summarize which ones work.

    Models come from the API listing when it yields any Gemini models,
    otherwise from ``fallback_candidates``.
    """
    available = await discover_gemini_models(api_key, base_url, timeout=timeout, client=client)
    to_test = list(available[:limit]) if available else list(fallback_candidates[:limit])

    results = []
    for name in to_test:
        results.append(await smoke_test_model(factory, name))

    working = [r["model"] for r in results if r["status"] == "success"]
    return {
        "availableModelsFromAPI": available,
        "results": results,
        "summary": {
            "total": len(results),
            "working": len(working),
            "workingModels": working,
            "recommendation": _recommendation(working, available),
        },
    }
