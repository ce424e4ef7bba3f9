"""
LLM Provider Base Classes

Defines the contract every backend adapter implements, plus the optional
interactive capability.

Provider is the uniform request/response contract. InteractiveProvider is a
separate structural protocol: a backend that can hand a live terminal session
to the user simply implements run_interactive(), and callers check for it at
runtime with isinstance() (or as_interactive()).

Callers own the interactivity decision. Before calling run_interactive() the
caller must check streams.is_interactive(); implementations do not re-check,
and their behaviour with non-interactive streams is undefined.
"""

from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

from .iostreams import IOStreams
from .options import Option


class Provider(ABC):
    """
    Abstract base class for LLM providers.

    Subclasses must implement:
    - name: Provider name ("claude", "gemini")
    - default_model: Model used when no override is given
    - generate(): Send a prompt and return the trimmed response text
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g. "claude", "gemini")."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Default model for this provider."""

    @abstractmethod
    async def generate(self, prompt: str, *opts: Option) -> str:
        """
        Send a prompt and return the response.

        Args:
            prompt: Prompt text
            *opts: Generation options (e.g. with_model())

        Returns:
            Non-empty response text with surrounding whitespace stripped

        Raises:
            ProviderError: If the backend fails
        """

    def validate_model(self, model: str) -> None:
        """
        Check a model name before use.

        The default performs no validation and leaves rejection of unknown
        models to the backend, which reports it as ModelNotFoundError.

        Raises:
            ModelNotFoundError: If the model is known to be invalid
        """

    async def aclose(self) -> None:
        """Release network clients or other resources; the provider stays usable."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


@runtime_checkable
class InteractiveProvider(Protocol):
    """
    Optional capability: hand full terminal control to the backend.

    Implementations connect streams.stdin/stdout/stderr to whatever session
    they drive and return once the session ends.
    """

    async def run_interactive(
        self, streams: IOStreams, prompt: str, *opts: Option
    ) -> None:
        ...


def as_interactive(provider: Provider) -> InteractiveProvider | None:
    """Return the provider if it supports interactive sessions, else None."""
    if isinstance(provider, InteractiveProvider):
        return provider
    return None
