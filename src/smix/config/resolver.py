"""
Provider configuration resolution.

The effective provider and model for a command come from three layers,
highest precedence first:

1. CLI flags (--provider / --model), applied by ProviderConfig.apply_flags()
2. Per-command settings: commands.<name>.provider / commands.<name>.model
3. Global settings: provider / model

resolve_provider_config() handles layers 2 and 3 only, so it depends on
configuration state alone. Provider and model fall back independently.
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class ConfigSource(Protocol):
    """Read-only view of layered configuration (ConfigStore satisfies this)."""

    def is_set(self, key: str) -> bool:
        ...

    def get(self, key: str, default: Any = None) -> Any:
        ...


@dataclass
class ProviderConfig:
    """
    Resolved provider settings for one command invocation.

    Attributes:
        provider: Provider name; empty if nothing is configured
        model: Model name; empty means "provider default"
    """
    provider: str = ""
    model: str = ""

    def apply_flags(self, provider_flag: str | None, model_flag: str | None) -> None:
        """
        Apply CLI flag overrides in place.

        A non-empty flag always wins; an empty or missing flag keeps the
        resolved value.
        """
        if provider_flag:
            self.provider = provider_flag
        if model_flag:
            self.model = model_flag


def _resolve_field(config: ConfigSource, command_name: str, field_name: str) -> str:
    command_key = f"commands.{command_name}.{field_name}"
    if config.is_set(command_key):
        value = config.get(command_key)
    else:
        value = config.get(field_name)
    return "" if value is None else str(value)


def resolve_provider_config(command_name: str, config: ConfigSource) -> ProviderConfig:
    """
    Resolve provider and model for a command from configuration.

    Args:
        command_name: Command name ("ask", "do", "pr")
        config: Configuration source

    Returns:
        A fresh ProviderConfig
    """
    resolved = ProviderConfig(
        provider=_resolve_field(config, command_name, "provider"),
        model=_resolve_field(config, command_name, "model"),
    )
    logger.debug(
        f"Resolved config for '{command_name}': "
        f"provider={resolved.provider or '-'}, model={resolved.model or '-'}"
    )
    return resolved
