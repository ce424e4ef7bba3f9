"""
Claude LLM Provider

Implementation of Provider backed by the Claude Code CLI.
No API key is needed; the CLI handles its own authentication.
"""

import logging
import shutil

from ..base import Provider
from ..errors import ProviderError, ProviderNotAvailableError
from ..iostreams import IOStreams
from ..options import Option, build_options
from ..retry import RetryPolicy, retry_with_backoff
from .cli import run_attached, run_captured

logger = logging.getLogger(__name__)

PROVIDER_CLAUDE = "claude"

# The CLI accepts short model aliases
MODEL_HAIKU = "haiku"
MODEL_SONNET = "sonnet"
MODEL_OPUS = "opus"


class ClaudeProvider(Provider):
    """
    Provider that shells out to the claude CLI.

    Supports both one-shot generation (print mode) and interactive sessions,
    where the CLI takes over the terminal until the user exits.

    Example:
        provider = ClaudeProvider()
        answer = await provider.generate("what is FastAPI", with_model("sonnet"))
    """

    DEFAULT_MODEL = MODEL_HAIKU

    def __init__(
        self,
        cli_path: str | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        """
        Initialize the Claude provider.

        Args:
            cli_path: Path to the claude executable (looked up on PATH if omitted)
            retry_policy: Backoff policy for generate()

        Raises:
            ProviderNotAvailableError: If the claude CLI cannot be found
        """
        resolved = shutil.which(cli_path or PROVIDER_CLAUDE)
        if resolved is None:
            raise ProviderNotAvailableError(
                PROVIDER_CLAUDE,
                FileNotFoundError(
                    f"'{cli_path or PROVIDER_CLAUDE}' executable not found in PATH. "
                    "Install Claude Code from https://claude.ai/code"
                ),
            )
        self.cli_path = resolved
        self.retry_policy = retry_policy

    @property
    def name(self) -> str:
        return PROVIDER_CLAUDE

    @property
    def default_model(self) -> str:
        return self.DEFAULT_MODEL

    async def generate(self, prompt: str, *opts: Option) -> str:
        """
        Run the CLI in print mode and return its trimmed output.

        Args:
            prompt: Prompt text
            *opts: Generation options

        Returns:
            Response text

        Raises:
            RetryError: If every attempt failed
        """
        model = build_options(opts).resolve_model(self.default_model)
        args = [self.cli_path, "--model", model, "-p", prompt]

        async def attempt() -> str:
            result = await run_captured(args, combine_stderr=True)
            output = result.stdout.strip()
            if result.returncode != 0:
                raise ProviderError(
                    f"claude CLI failed with exit code {result.returncode} (output: {output})",
                    provider=PROVIDER_CLAUDE,
                )
            if not output:
                raise ProviderError("claude CLI returned empty response", provider=PROVIDER_CLAUDE)
            return output

        return await retry_with_backoff(attempt, policy=self.retry_policy)

    async def run_interactive(self, streams: IOStreams, prompt: str, *opts: Option) -> None:
        """
        Start an interactive claude session seeded with the prompt.

        The caller must have verified streams.is_interactive().

        Raises:
            ProviderError: If the session exits with a non-zero status
        """
        model = build_options(opts).resolve_model(self.default_model)
        logger.debug(f"Starting interactive claude session (model={model})")

        returncode = await run_attached([self.cli_path, "--model", model, prompt], streams)
        if returncode != 0:
            raise ProviderError(
                f"claude CLI interactive mode failed with exit code {returncode}",
                provider=PROVIDER_CLAUDE,
            )
