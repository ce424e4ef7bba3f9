"""
Configuration management for smix.

This module provides:
- YAML-based configuration storage with environment overrides
- Provider/model resolution per command
- Secure API key storage using keyring
"""

from .resolver import ConfigSource, ProviderConfig, resolve_provider_config
from .secrets import SecretStore
from .storage import ConfigKeyError, ConfigStore, default_config_path, ensure_config_exists

__all__ = [
    "ConfigKeyError",
    "ConfigSource",
    "ConfigStore",
    "ProviderConfig",
    "SecretStore",
    "default_config_path",
    "ensure_config_exists",
    "resolve_provider_config",
]
