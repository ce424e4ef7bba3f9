"""
Provider Factory

Maps provider names to live Provider instances, constructing each backend
lazily and caching it for the lifetime of the factory.

Construction happens at most once per name per factory, even when several
threads ask for the same provider at the same time: cache hits are served
without locking, misses take the factory lock and re-check the cache before
constructing. Construction failures are not cached, so a later call can
succeed once the missing CLI is installed or the API key is set.
"""

import logging
import threading
from collections.abc import Callable, Mapping

from .base import Provider
from .errors import UnknownProviderError

logger = logging.getLogger(__name__)

# Zero-argument callable that builds a ready-to-use provider
ProviderConstructor = Callable[[], Provider]


def _create_claude() -> Provider:
    from .providers.claude import ClaudeProvider
    return ClaudeProvider()


def _create_gemini() -> Provider:
    from ..config.secrets import SecretStore
    from .providers.gemini import API_KEY_ENV_VAR, PROVIDER_GEMINI, GeminiProvider

    api_key = SecretStore().resolve_api_key(PROVIDER_GEMINI, API_KEY_ENV_VAR)
    return GeminiProvider(api_key=api_key)


BUILTIN_PROVIDERS: dict[str, ProviderConstructor] = {
    "claude": _create_claude,
    "gemini": _create_gemini,
}


class ProviderFactory:
    """
    Creates, caches and hands out Provider instances by name.

    Example:
        factory = ProviderFactory()
        provider = factory.get_provider("claude")

        # Tests and extensions can supply their own constructors
        factory = ProviderFactory({"fake": FakeProvider})
    """

    def __init__(self, constructors: Mapping[str, ProviderConstructor] | None = None):
        """
        Initialize the factory.

        Args:
            constructors: Name to constructor mapping (defaults to the built-in backends)
        """
        source = BUILTIN_PROVIDERS if constructors is None else constructors
        self._constructors: dict[str, ProviderConstructor] = {
            name.lower(): ctor for name, ctor in source.items()
        }
        self._cache: dict[str, Provider] = {}
        self._lock = threading.Lock()

    def register(self, name: str, constructor: ProviderConstructor) -> None:
        """
        Register a provider constructor, replacing any earlier one.

        Args:
            name: Provider name
            constructor: Zero-argument callable returning a Provider

        Raises:
            ValueError: If an instance has already been constructed under name
        """
        key = name.lower()
        with self._lock:
            # Handed-out instances stay valid for the factory's lifetime
            if key in self._cache:
                raise ValueError(f"provider '{key}' is already in use and cannot be re-registered")
            self._constructors[key] = constructor

    def get_supported_providers(self) -> list[str]:
        """Return the names this factory can construct."""
        return sorted(self._constructors)

    def is_cached(self, name: str) -> bool:
        """Return True if an instance for name has been constructed."""
        return name.lower() in self._cache

    def get_provider(self, name: str) -> Provider:
        """
        Return the provider for name, constructing it on first use.

        Args:
            name: Provider name ("claude", "gemini")

        Returns:
            The cached Provider instance

        Raises:
            UnknownProviderError: If no backend is registered under name
            ProviderError: If the backend cannot be constructed
        """
        key = name.lower()

        provider = self._cache.get(key)
        if provider is not None:
            logger.debug(f"Provider '{key}' served from cache")
            return provider

        with self._lock:
            # Another thread may have constructed it while we waited
            provider = self._cache.get(key)
            if provider is not None:
                logger.debug(f"Provider '{key}' served from cache")
                return provider

            constructor = self._constructors.get(key)
            if constructor is None:
                raise UnknownProviderError(name, list(self._constructors))

            logger.debug(f"Constructing provider '{key}'")
            provider = constructor()
            self._cache[key] = provider
            return provider

    async def aclose(self) -> None:
        """Release resources held by every constructed provider.

        Instances stay cached; providers reopen what they need on next use.
        """
        for key, provider in list(self._cache.items()):
            logger.debug(f"Closing provider '{key}'")
            await provider.aclose()


_default_factory: ProviderFactory | None = None
_default_factory_lock = threading.Lock()


def get_default_factory() -> ProviderFactory:
    """Return the process-wide factory, creating it on first use."""
    global _default_factory
    if _default_factory is None:
        with _default_factory_lock:
            if _default_factory is None:
                _default_factory = ProviderFactory()
    return _default_factory


def get_provider(name: str) -> Provider:
    """Get a provider from the process-wide factory."""
    return get_default_factory().get_provider(name)
