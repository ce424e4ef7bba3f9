"""
Gemini LLM Provider

Implementation of Provider for Google's Gemini models.
Uses the openai SDK against Gemini's OpenAI-compatible endpoint for
one-shot generation, and the gemini CLI (when installed) for interactive
sessions or as a fallback when no API key is configured.
"""

import asyncio
import logging
import shutil
from typing import Any

import openai

from ..base import Provider
from ..errors import (
    AuthenticationError,
    ModelNotFoundError,
    ProviderError,
    ProviderNotAvailableError,
    RateLimitError,
)
from ..iostreams import IOStreams
from ..options import Option, build_options
from ..retry import RetryPolicy, retry_with_backoff
from .cli import run_attached, run_captured

logger = logging.getLogger(__name__)

PROVIDER_GEMINI = "gemini"

# Environment variable holding the Gemini API key
API_KEY_ENV_VAR = "SMIX_GEMINI_API_KEY"

MODEL_FLASH = "gemini-3-flash-preview"
MODEL_PRO = "gemini-3-pro-preview"

CLI_INSTALL_HINT = "install with: npm install -g @google/gemini-cli"


class GeminiProvider(Provider):
    """
    LLM provider for Gemini.

    Needs either an API key or the gemini CLI. With a key, generate() goes
    through the API with retry; without one it runs the CLI non-interactively.
    Interactive sessions always require the CLI.

    Example:
        provider = GeminiProvider(api_key="AIza...")
        answer = await provider.generate("what is FastAPI")
    """

    # Gemini's OpenAI-compatible API base URL
    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"

    DEFAULT_MODEL = MODEL_FLASH

    def __init__(
        self,
        api_key: str | None = None,
        cli_path: str | None = None,
        base_url: str | None = None,
        client: Any | None = None,
        retry_policy: RetryPolicy | None = None,
        timeout: float = 120.0,
    ):
        """
        Initialize the Gemini provider.

        Args:
            api_key: Gemini API key
            cli_path: Path to the gemini CLI (looked up on PATH if omitted)
            base_url: Custom API base URL (default: Gemini's OpenAI-compatible endpoint)
            client: Pre-built AsyncOpenAI-compatible client (never closed by the provider)
            retry_policy: Backoff policy for API calls
            timeout: Request timeout in seconds

        Raises:
            AuthenticationError: If neither an API key nor the CLI is available
            ProviderNotAvailableError: If the API client cannot be created
        """
        self.api_key = api_key or None
        self.cli_path = shutil.which(cli_path or PROVIDER_GEMINI)
        self.base_url = base_url or self.BASE_URL
        self.retry_policy = retry_policy
        self.timeout = timeout

        if client is None and not self.api_key and not self.cli_path:
            raise AuthenticationError(
                PROVIDER_GEMINI,
                ValueError(
                    f"API key is required (set {API_KEY_ENV_VAR} environment variable) "
                    "or Gemini CLI must be installed"
                ),
            )

        self._owns_client = client is None
        self._use_api = client is not None or self.api_key is not None
        # Event loop the owned client's connection pool belongs to
        self._client_loop: asyncio.AbstractEventLoop | None = None

        if client is None and self.api_key:
            client = self._new_client()

        self._client = client

    def _new_client(self) -> Any:
        try:
            return openai.AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        except Exception as e:
            raise ProviderNotAvailableError(PROVIDER_GEMINI, e) from e

    def _get_client(self) -> Any:
        """Return the API client, rebuilding an owned one for a new event loop."""
        if not self._owns_client:
            return self._client

        loop = asyncio.get_running_loop()
        if self._client is None or self._client_loop not in (None, loop):
            logger.debug("Creating gemini API client for the running event loop")
            self._client = self._new_client()
        self._client_loop = loop
        return self._client

    async def aclose(self) -> None:
        """Close the owned API client; the next request opens a fresh one."""
        if not self._owns_client or self._client is None:
            return
        client, self._client, self._client_loop = self._client, None, None
        await client.close()

    @property
    def name(self) -> str:
        return PROVIDER_GEMINI

    @property
    def default_model(self) -> str:
        return self.DEFAULT_MODEL

    def has_interactive_support(self) -> bool:
        """Return True if the gemini CLI is available for interactive sessions."""
        return self.cli_path is not None

    async def generate(self, prompt: str, *opts: Option) -> str:
        """
        Send a prompt to Gemini.

        Args:
            prompt: Prompt text
            *opts: Generation options

        Returns:
            Response text

        Raises:
            ProviderError: On backend failure (typed where recognisable)
            RetryError: If every API attempt failed with a retryable error
        """
        model = build_options(opts).resolve_model(self.default_model)

        if not self._use_api:
            return await self._generate_via_cli(model, prompt)

        client = self._get_client()

        async def attempt() -> str:
            try:
                response = await client.chat.completions.create(
                    model=model,
                    messages=[{"role": "user", "content": prompt}],
                )
            except openai.OpenAIError as e:
                raise self._wrap_error(e, model) from e
            return self._parse_response(response)

        return await retry_with_backoff(attempt, policy=self.retry_policy)

    async def _generate_via_cli(self, model: str, prompt: str) -> str:
        """Run `gemini --model <model> <prompt>` and return its trimmed stdout."""
        if self.cli_path is None:
            raise ProviderError("gemini CLI not available", provider=PROVIDER_GEMINI)

        result = await run_captured([self.cli_path, "--model", model, prompt])
        if result.returncode != 0:
            raise ProviderError(
                f"gemini CLI failed: {result.stderr.strip()}",
                provider=PROVIDER_GEMINI,
            )

        output = result.stdout.strip()
        if not output:
            raise ProviderError("gemini CLI returned empty response", provider=PROVIDER_GEMINI)
        return output

    def _parse_response(self, response: Any) -> str:
        """Extract trimmed text from a chat completion response."""
        if not response.choices:
            raise ProviderError("gemini API returned no candidates", provider=PROVIDER_GEMINI)

        message = response.choices[0].message
        if message is None:
            raise ProviderError("gemini API returned nil content", provider=PROVIDER_GEMINI)

        output = (message.content or "").strip()
        if not output:
            raise ProviderError("gemini API returned empty response", provider=PROVIDER_GEMINI)
        return output

    def _wrap_error(self, error: openai.OpenAIError, model: str) -> ProviderError:
        """Map SDK errors onto typed provider errors."""
        error_msg = str(error).lower()

        if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
            return AuthenticationError(PROVIDER_GEMINI, error)

        if isinstance(error, openai.BadRequestError) and "api key" in error_msg:
            return AuthenticationError(PROVIDER_GEMINI, error)

        if isinstance(error, openai.RateLimitError):
            return RateLimitError(PROVIDER_GEMINI, error)

        if isinstance(error, openai.NotFoundError) and "model" in error_msg:
            return ModelNotFoundError(model, PROVIDER_GEMINI, error)

        if isinstance(error, openai.APIStatusError):
            return ProviderError(
                f"gemini API error: status {error.status_code}",
                provider=PROVIDER_GEMINI,
                err=error,
            )

        return ProviderError("gemini API error", provider=PROVIDER_GEMINI, err=error)

    async def run_interactive(self, streams: IOStreams, prompt: str, *opts: Option) -> None:
        """
        Start an interactive gemini CLI session seeded with the prompt.

        The caller must have verified streams.is_interactive().

        Raises:
            ProviderError: If the CLI is missing or the session fails
        """
        if self.cli_path is None:
            raise ProviderError(
                f"gemini CLI not available for interactive mode; {CLI_INSTALL_HINT}",
                provider=PROVIDER_GEMINI,
            )

        model = build_options(opts).resolve_model(self.default_model)
        logger.debug(f"Starting interactive gemini session (model={model})")

        returncode = await run_attached([self.cli_path, "-m", model, prompt], streams)
        if returncode != 0:
            raise ProviderError(
                f"gemini CLI interactive mode failed with exit code {returncode}",
                provider=PROVIDER_GEMINI,
            )
