"""
smix LLM Module

Provider abstraction layer: a uniform contract over interchangeable LLM
backends, the optional interactive capability, a caching factory, retry with
backoff, and injectable I/O streams.

Key Components:
- Provider: Abstract base class for backends
- InteractiveProvider: Optional capability detected at runtime
- ProviderFactory / get_provider: Cached provider instantiation
- retry_with_backoff: Bounded exponential-backoff retry
- IOStreams: Injectable stdin/stdout/stderr with TTY detection
"""

from .base import InteractiveProvider, Provider, as_interactive
from .errors import (
    AuthenticationError,
    ModelNotFoundError,
    ProviderError,
    ProviderNotAvailableError,
    RateLimitError,
    UnknownProviderError,
)
from .factory import ProviderFactory, get_default_factory, get_provider
from .iostreams import IOStreams
from .options import GenerateOptions, Option, build_options, with_model
from .retry import RetryError, RetryPolicy, retry_with_backoff

__all__ = [
    "Provider",
    "InteractiveProvider",
    "as_interactive",
    "ProviderError",
    "ProviderNotAvailableError",
    "AuthenticationError",
    "RateLimitError",
    "ModelNotFoundError",
    "UnknownProviderError",
    "ProviderFactory",
    "get_default_factory",
    "get_provider",
    "IOStreams",
    "GenerateOptions",
    "Option",
    "build_options",
    "with_model",
    "RetryError",
    "RetryPolicy",
    "retry_with_backoff",
]
