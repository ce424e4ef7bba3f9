"""Provider selection shared by the command workflows."""

import logging

from ..config.resolver import ProviderConfig
from ..llm.base import Provider
from ..llm.factory import ProviderFactory, get_default_factory
from ..llm.options import Option, with_model

logger = logging.getLogger(__name__)

# Used when neither the command nor the global config names a provider
DEFAULT_PROVIDER = "claude"


def select_provider(cfg: ProviderConfig, factory: ProviderFactory | None = None) -> Provider:
    """
    Get the provider named by cfg, falling back to DEFAULT_PROVIDER.

    Raises:
        UnknownProviderError: If the name is not a known backend
        ProviderError: If the backend cannot be constructed
    """
    name = cfg.provider or DEFAULT_PROVIDER
    factory = factory or get_default_factory()
    provider = factory.get_provider(name)
    logger.debug(f"Using provider {provider.name} (model={cfg.model or provider.default_model})")
    return provider


def model_options(cfg: ProviderConfig) -> list[Option]:
    """Options carrying the configured model override, if any."""
    return [with_model(cfg.model)] if cfg.model else []
