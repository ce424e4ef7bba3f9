"""Tests for the provider factory."""

import logging
import threading
import time
from unittest.mock import AsyncMock, patch

import pytest

from smix.llm import factory as factory_module
from smix.llm.errors import ProviderNotAvailableError, UnknownProviderError
from smix.llm.factory import (
    BUILTIN_PROVIDERS,
    ProviderFactory,
    get_default_factory,
    get_provider,
)


class TestProviderFactory:
    """Tests for ProviderFactory."""

    def test_returns_same_instance(self, make_provider):
        """Test repeated lookups return the cached instance."""
        calls = []

        def make():
            calls.append(1)
            return make_provider()

        factory = ProviderFactory({"fake": make})

        first = factory.get_provider("fake")
        second = factory.get_provider("fake")

        assert first is second
        assert len(calls) == 1
        assert factory.is_cached("fake")

    def test_names_are_case_insensitive(self, make_provider):
        factory = ProviderFactory({"Fake": make_provider})

        assert factory.get_provider("FAKE") is factory.get_provider("fake")

    def test_unknown_provider(self, make_provider):
        """Test unknown names fail and are never cached."""
        factory = ProviderFactory({"fake": make_provider})

        with pytest.raises(UnknownProviderError) as exc_info:
            factory.get_provider("openai")

        assert "unknown provider: openai" in str(exc_info.value)
        assert "fake" in str(exc_info.value)
        assert not factory.is_cached("openai")

        factory.register("openai", make_provider)

        assert factory.get_provider("openai").name == "fake"
        assert factory.is_cached("openai")

    def test_construction_failure_not_cached(self, make_provider):
        """Test a failed construction is retried on the next call."""
        attempts = []

        def make():
            attempts.append(1)
            if len(attempts) == 1:
                raise ProviderNotAvailableError("fake", FileNotFoundError("fake"))
            return make_provider()

        factory = ProviderFactory({"fake": make})

        with pytest.raises(ProviderNotAvailableError):
            factory.get_provider("fake")
        assert not factory.is_cached("fake")

        provider = factory.get_provider("fake")

        assert isinstance(provider, make_provider)
        assert len(attempts) == 2

    def test_concurrent_first_access_constructs_once(self, make_provider):
        """Test simultaneous first lookups share one instance."""
        calls = []

        def slow_make():
            calls.append(1)
            time.sleep(0.05)
            return make_provider()

        factory = ProviderFactory({"fake": slow_make})
        barrier = threading.Barrier(10)
        results = []
        results_lock = threading.Lock()

        def worker():
            barrier.wait()
            provider = factory.get_provider("fake")
            with results_lock:
                results.append(provider)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(calls) == 1
        assert len(results) == 10
        assert all(p is results[0] for p in results)

    def test_register_in_use_name_rejected(self, make_provider):
        """Test a constructed provider cannot be swapped out from under its users."""
        calls = []

        def make():
            calls.append(1)
            return make_provider(response="old")

        factory = ProviderFactory({"fake": make})
        old = factory.get_provider("fake")

        with pytest.raises(ValueError) as exc_info:
            factory.register("fake", lambda: make_provider(response="new"))

        assert "already in use" in str(exc_info.value)
        assert factory.get_provider("fake") is old
        assert old.response == "old"
        assert len(calls) == 1

    def test_register_before_first_use(self, make_provider):
        factory = ProviderFactory({"fake": lambda: make_provider(response="old")})

        factory.register("fake", lambda: make_provider(response="new"))

        assert factory.get_provider("fake").response == "new"

    def test_cache_hit_is_logged(self, make_provider, caplog):
        factory = ProviderFactory({"fake": make_provider})
        factory.get_provider("fake")

        with caplog.at_level(logging.DEBUG, logger="smix.llm.factory"):
            factory.get_provider("fake")

        assert "Provider 'fake' served from cache" in caplog.text
        assert "Constructing" not in caplog.text

    @pytest.mark.asyncio
    async def test_aclose_releases_cached_providers(self, make_provider):
        """Test aclose reaches every constructed provider and keeps it cached."""
        first = make_provider(name="a")
        second = make_provider(name="b")
        first.aclose = AsyncMock()
        second.aclose = AsyncMock()
        factory = ProviderFactory({"a": lambda: first, "b": lambda: second, "c": make_provider})
        factory.get_provider("a")
        factory.get_provider("b")

        await factory.aclose()

        first.aclose.assert_awaited_once()
        second.aclose.assert_awaited_once()
        assert factory.get_provider("a") is first
        assert not factory.is_cached("c")

    def test_supported_providers(self, make_provider):
        factory = ProviderFactory({"b": make_provider, "a": make_provider})

        assert factory.get_supported_providers() == ["a", "b"]

    def test_builtin_providers(self):
        assert ProviderFactory().get_supported_providers() == ["claude", "gemini"]
        assert set(BUILTIN_PROVIDERS) == {"claude", "gemini"}


class TestDefaultFactory:
    """Tests for the process-wide factory."""

    def test_default_factory_is_singleton(self):
        assert get_default_factory() is get_default_factory()

    def test_get_provider_uses_default_factory(self, make_provider):
        fake = make_provider()
        factory = ProviderFactory({"fake": lambda: fake})

        with patch.object(factory_module, "_default_factory", factory):
            assert get_provider("fake") is fake

    def test_gemini_constructor_resolves_key(self, monkeypatch):
        """Test the gemini constructor reads the key from the environment."""
        monkeypatch.setenv("SMIX_GEMINI_API_KEY", "test-key")

        provider = ProviderFactory().get_provider("gemini")

        assert provider.name == "gemini"
        assert provider.api_key == "test-key"
