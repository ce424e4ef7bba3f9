"""
Generation Options

Functional options for a single generate call. Providers build a
GenerateOptions value from the option callables they receive.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass


@dataclass
class GenerateOptions:
    """
    Per-call generation settings.

    Attributes:
        model: Model override; empty means "use the provider default"
    """
    model: str = ""

    def resolve_model(self, default: str) -> str:
        """Return the model override, or the given default when unset."""
        return self.model or default


Option = Callable[[GenerateOptions], None]


def with_model(model: str) -> Option:
    """Override the model for this generation."""
    def apply(opts: GenerateOptions) -> None:
        opts.model = model
    return apply


def build_options(opts: Iterable[Option]) -> GenerateOptions:
    """
    Apply option callables to a fresh GenerateOptions.

    Args:
        opts: Option callables, applied in order

    Returns:
        The built GenerateOptions
    """
    options = GenerateOptions()
    for opt in opts:
        opt(options)
    return options
