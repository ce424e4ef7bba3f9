"""
Provider Errors

Typed exceptions describing why a provider could not serve a request.
Every kind shares the ProviderError base so callers can catch them together
and still inspect the provider name and the underlying cause.
"""


class ProviderError(Exception):
    """
    Base exception for provider failures.

    Attributes:
        provider: Name of the provider that failed (e.g. "claude")
        message: Human readable description
        err: Underlying exception, if any
    """

    def __init__(
        self,
        message: str,
        provider: str = "",
        err: BaseException | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.message = message
        self.err = err
        if err is not None:
            self.__cause__ = err

    def __str__(self) -> str:
        if self.err is not None:
            return f"{self.message}: {self.err}"
        return self.message

    def unwrap(self) -> BaseException | None:
        """Return the wrapped exception."""
        return self.err


class ProviderNotAvailableError(ProviderError):
    """Raised when a backend cannot be reached (CLI missing, client init failed)."""

    def __init__(self, provider: str, err: BaseException | None = None):
        super().__init__(f"provider '{provider}' not available", provider=provider, err=err)


class AuthenticationError(ProviderError):
    """Raised when a credential is missing or rejected."""

    def __init__(self, provider: str, err: BaseException | None = None):
        super().__init__(
            f"authentication failed for provider '{provider}'",
            provider=provider,
            err=err,
        )


class RateLimitError(ProviderError):
    """Raised when the backend reports throttling."""

    def __init__(self, provider: str, err: BaseException | None = None):
        super().__init__(
            f"rate limit exceeded for provider '{provider}'",
            provider=provider,
            err=err,
        )


class ModelNotFoundError(ProviderError):
    """Raised when the backend rejects the requested model name."""

    def __init__(self, model: str, provider: str, err: BaseException | None = None):
        super().__init__(
            f"model '{model}' not found for provider '{provider}'",
            provider=provider,
            err=err,
        )
        self.model = model


class UnknownProviderError(ValueError):
    """Raised when a provider name does not match any known backend."""

    def __init__(self, name: str, supported: list[str] | None = None):
        message = f"unknown provider: {name}"
        if supported:
            message += f" (supported: {', '.join(sorted(supported))})"
        super().__init__(message)
        self.name = name
