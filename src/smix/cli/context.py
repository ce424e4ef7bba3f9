"""
CLI Context for smix

Holds the global options shared by every command (--config, --debug,
--provider, --model) and lazily loads the configuration. Passed to all
commands via ctx.obj.
"""

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

from ..config.resolver import ProviderConfig, resolve_provider_config
from ..config.storage import ConfigStore
from ..llm.factory import ProviderFactory, get_default_factory

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CLIContext:
    """
    Context object for the smix CLI.

    Attributes:
        config_path: Explicit configuration file (None means discover it)
        debug: Enable debug logging
        provider_flag: --provider override ("" when not given)
        model_flag: --model override ("" when not given)
        factory: Provider factory (the process-wide one when None)
        _config: Cached ConfigStore (lazily loaded)
    """

    config_path: Path | None = None
    debug: bool = False
    provider_flag: str = ""
    model_flag: str = ""
    factory: ProviderFactory | None = None
    _config: ConfigStore | None = field(default=None, repr=False)

    def get_config(self) -> ConfigStore:
        """Load the configuration on first use, creating the file if needed."""
        if self._config is None:
            self._config = ConfigStore.open(self.config_path)
        return self._config

    def get_factory(self) -> ProviderFactory:
        return self.factory or get_default_factory()

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """
        Run a command coroutine on a fresh event loop.

        Provider resources tied to the loop are released before it closes.
        """
        factory = self.get_factory()

        async def _run() -> T:
            try:
                return await coro
            finally:
                await factory.aclose()

        return asyncio.run(_run())

    def resolve(self, command_name: str) -> ProviderConfig:
        """
        Resolve provider settings for a command, flags included.

        Args:
            command_name: Command name ("ask", "do", "pr")

        Returns:
            ProviderConfig with flag overrides applied
        """
        cfg = resolve_provider_config(command_name, self.get_config())
        cfg.apply_flags(self.provider_flag, self.model_flag)
        logger.debug(
            f"Effective config for '{command_name}': provider={cfg.provider or '-'}, "
            f"model={cfg.model or '-'}"
        )
        return cfg


def get_cli_context(ctx) -> CLIContext:
    """
    Extract CLIContext from a Typer context.

    Args:
        ctx: Typer Context object (typer.Context).

    Returns:
        CLIContext from ctx.obj, or a new default CLIContext if not set.
    """
    if ctx.obj is not None and isinstance(ctx.obj, CLIContext):
        return ctx.obj
    return CLIContext()
