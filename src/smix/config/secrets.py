"""
API key storage for smix.

Keys live in the system keyring (Keychain on macOS, Credential Manager on
Windows, Secret Service on Linux) under the "smix" service, one entry per
provider. Environment variables still take precedence; the keyring is the
fallback used when no variable is set.
"""

import logging
import os

import keyring
import keyring.errors

logger = logging.getLogger(__name__)


class SecretStore:
    """Keyring-backed API key storage."""

    KEYRING_SERVICE = "smix"

    def __init__(self, service: str | None = None) -> None:
        self.service = service or self.KEYRING_SERVICE

    def get_api_key(self, provider: str) -> str | None:
        """
        Get the API key for a provider from the system keyring.

        Args:
            provider: The provider name (e.g., "gemini").

        Returns:
            The API key if found, or None if not stored or keyring unavailable.
        """
        try:
            return keyring.get_password(self.service, provider)
        except keyring.errors.KeyringError as e:
            logger.warning(f"Keyring unavailable, cannot retrieve API key: {e}")
            return None

    def set_api_key(self, provider: str, api_key: str) -> None:
        """
        Store an API key for a provider in the system keyring.

        Raises:
            keyring.errors.KeyringError: If keyring is not available.
        """
        try:
            keyring.set_password(self.service, provider, api_key)
            logger.debug(f"API key for {provider} stored successfully")
        except keyring.errors.KeyringError as e:
            logger.error(f"Failed to store API key in keyring: {e}")
            raise

    def delete_api_key(self, provider: str) -> None:
        """Delete the API key for a provider; a missing entry is not an error."""
        try:
            keyring.delete_password(self.service, provider)
            logger.debug(f"API key for {provider} deleted successfully")
        except keyring.errors.PasswordDeleteError:
            logger.debug(f"No API key found for {provider} to delete")
        except keyring.errors.KeyringError as e:
            logger.warning(f"Keyring error while deleting API key: {e}")

    def resolve_api_key(self, provider: str, env_var: str) -> str | None:
        """
        Resolve an API key from the environment, then the keyring.

        Args:
            provider: The provider name used as the keyring entry
            env_var: Environment variable checked first

        Returns:
            The API key, or None if neither source has one.
        """
        value = os.environ.get(env_var)
        if value:
            return value
        return self.get_api_key(provider) or None
