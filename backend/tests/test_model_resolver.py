"""
Tests for model resolution: cached model first, then ranked candidates.
"""

import asyncio

import pytest

from errors import ModelUnavailableError
from services.model_resolver import ModelCache, ModelResolver
from conftest import FakeFactory, FakeModel


def _resolver(factory, candidates, cache, sleep):
    return ModelResolver(factory=factory, candidates=candidates, cache=cache, sleep=sleep)


class TestModelCache:
    """Single shared cell."""

    def test_lifecycle(self):
        cache = ModelCache()
        assert cache.get() is None
        cache.set("gemini-2.5-flash")
        assert cache.get() == "gemini-2.5-flash"
        cache.set("gemini-2.5-pro")
        assert cache.get() == "gemini-2.5-pro"
        cache.clear()
        assert cache.get() is None


class TestResolve:
    """Resolution order and cache updates."""

    def test_first_candidate_wins_and_is_cached(self, candidates, cache, sleep):
        factory = FakeFactory(*(FakeModel(n) for n in candidates))

        resolved = asyncio.run(_resolver(factory, candidates, cache, sleep).resolve())

        assert resolved.name == "gemini-2.5-flash"
        assert resolved.from_cache is False
        assert cache.get() == "gemini-2.5-flash"
        assert factory.requested == ["gemini-2.5-flash"]
        assert factory.models["gemini-2.5-flash"].probe_prompts == ["test"]
        assert factory.models["gemini-2.5-flash"].prompts == []

    def test_skips_unavailable_candidate(self, candidates, cache, sleep):
        factory = FakeFactory(
            FakeModel("gemini-2.5-flash", probe_default=Exception("404 models/gemini-2.5-flash is not found")),
            FakeModel("gemini-2.5-pro"),
        )

        resolved = asyncio.run(_resolver(factory, candidates, cache, sleep).resolve())

        assert resolved.name == "gemini-2.5-pro"
        assert cache.get() == "gemini-2.5-pro"
        assert sleep.delays == []

    def test_overloaded_candidate_retried_with_probe_policy(self, candidates, cache, sleep):
        flash = FakeModel("gemini-2.5-flash", probe=[Exception("503 overloaded")])
        factory = FakeFactory(flash)

        resolved = asyncio.run(_resolver(factory, candidates, cache, sleep).resolve())

        assert resolved.name == "gemini-2.5-flash"
        assert flash.probes == 2
        assert sleep.delays == [0.5]

    def test_repeat_resolution_uses_cache(self, candidates, cache, sleep):
        factory = FakeFactory(*(FakeModel(n) for n in candidates))
        resolver = _resolver(factory, candidates, cache, sleep)

        first = asyncio.run(resolver.resolve())
        second = asyncio.run(resolver.resolve())

        assert first.name == second.name == "gemini-2.5-flash"
        assert second.from_cache is True
        assert factory.requested == ["gemini-2.5-flash", "gemini-2.5-flash"]

    def test_cached_model_overloaded_is_demoted(self, candidates, sleep):
        cache = ModelCache("gemini-2.5-flash")
        factory = FakeFactory(
            FakeModel("gemini-2.5-flash", probe_default=Exception("503 The model is overloaded")),
            FakeModel("gemini-2.5-pro"),
        )

        resolved = asyncio.run(_resolver(factory, candidates, cache, sleep).resolve())

        assert resolved.name == "gemini-2.5-pro"
        assert resolved.from_cache is False
        assert cache.get() == "gemini-2.5-pro"
        # cached probe and the ranked probe of the same model each back off once
        assert sleep.delays == [0.5, 0.5]

    def test_cached_model_outside_candidates(self, candidates, sleep):
        cache = ModelCache("gemini-exp")
        factory = FakeFactory(FakeModel("gemini-exp"))

        resolved = asyncio.run(_resolver(factory, candidates, cache, sleep).resolve())

        assert resolved.name == "gemini-exp"
        assert resolved.from_cache is True

    def test_probe_count_bounded_by_candidates(self, candidates, cache, sleep):
        factory = FakeFactory()

        with pytest.raises(ModelUnavailableError):
            asyncio.run(_resolver(factory, candidates, cache, sleep).resolve())

        assert factory.total_probes() == len(candidates)
        assert factory.requested == candidates


class TestResolveExhausted:
    """Every candidate failing."""

    def test_composite_error_keeps_last_failure(self, candidates, cache, sleep):
        last = Exception("401 API key not valid")
        factory = FakeFactory(
            FakeModel("gemini-2.5-flash", probe_default=Exception("404 not found")),
            FakeModel("gemini-2.5-pro", probe_default=Exception("404 not found")),
            FakeModel("gemini-flash-latest", probe_default=last),
        )

        with pytest.raises(ModelUnavailableError) as exc_info:
            asyncio.run(_resolver(factory, candidates, cache, sleep).resolve())

        err = exc_info.value
        assert err.last_error is last
        assert err.context["tried"] == candidates
        assert "No available Gemini model found" in err.message
        assert "Last error: 401 API key not valid" in err.message
        assert cache.get() is None

    def test_empty_candidate_list(self, cache, sleep):
        with pytest.raises(ModelUnavailableError) as exc_info:
            asyncio.run(_resolver(FakeFactory(), [], cache, sleep).resolve())

        assert exc_info.value.last_error is None
        assert "Last error: Unknown" in exc_info.value.message
