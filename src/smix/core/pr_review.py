"""
PR Review: interactive processing of code review feedback files.

Each feedback item in a review directory is a markdown file describing one
reviewer suggestion. For every file an interactive provider session is
launched so an agent can evaluate the suggestion and apply or reject it
while the user watches and steers.

Requires a provider with the interactive capability and a real terminal.
Both are checked once, before any session starts.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from ..config.resolver import ProviderConfig
from ..llm.base import InteractiveProvider, Provider, as_interactive
from ..llm.factory import ProviderFactory
from ..llm.iostreams import IOStreams
from .selection import model_options, select_provider

logger = logging.getLogger(__name__)

INDEX_FILE = "INDEX.md"

_TARGET_FILE_RE = re.compile(r"^- \*\*Target File:\*\* `([^`]+)`$", re.MULTILINE)

PROMPT_TEMPLATE = """You are an autonomous code review agent. Your task is to process feedback from an automated reviewer and decide whether to apply it.

**Read the feedback file:** {feedback_file}{target_file_info}{batch_info}

## Execution Protocol

1. **Read** the feedback file to understand the suggestion and context.
2. **Read** the actual target file from disk (not just the snapshot in the feedback file).
3. **Evaluate** the feedback:
   - Is it technically correct?
   - Does it align with the patterns already in this codebase?
   - Is it high-value (bugs, security, correctness) or low-value (style nits, micro-optimizations)?
4. **Make your decision:**
   - If APPLY: Edit the target file directly. Run any relevant linter/formatter if available (e.g., gofmt, eslint).
   - If REJECT: Do not modify any files.
5. **Output** your reasoning using the format specified in the feedback file.

## Constraints

- **DO NOT** run tests unless explicitly asked
- **DO NOT** commit changes
- **DO NOT** modify files other than the target file
- **DO NOT** add features beyond what the feedback requests
- If the target file does not exist, output "SKIP: File not found" and explain

## Decision Format

Follow the format specified in the feedback file for consistency.
"""


class ReviewError(Exception):
    """Raised when a review run cannot start."""


@dataclass
class ReviewSummary:
    """Outcome of a review run."""
    total: int = 0
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> int:
        return self.total - len(self.failures)


def extract_target_file(feedback_file: Path) -> str:
    """
    Extract the target file from a "- **Target File:** `path`" line.

    Returns:
        The path, or "" if the file is unreadable or has no such line
    """
    try:
        content = Path(feedback_file).read_text(encoding="utf-8")
    except OSError:
        return ""

    match = _TARGET_FILE_RE.search(content)
    return match.group(1) if match else ""


def find_feedback_files(feedback_dir: Path) -> list[Path]:
    """Return the feedback markdown files in feedback_dir, excluding the index."""
    return sorted(
        path for path in Path(feedback_dir).glob("*.md")
        if path.name != INDEX_FILE
    )


def build_prompt(feedback_file: Path, target_file: str, index: int, total: int) -> str:
    batch_info = ""
    if total > 1:
        batch_info = (
            f"\n\n**Note:** This is feedback item {index} of {total} in this PR. "
            "Focus only on this item."
        )

    target_file_info = ""
    if target_file:
        target_file_info = f"\n**Target file to modify (if applying):** `{target_file}`"

    return PROMPT_TEMPLATE.format(
        feedback_file=feedback_file,
        target_file_info=target_file_info,
        batch_info=batch_info,
    )


async def launch_session(
    provider: Provider,
    streams: IOStreams,
    feedback_file: Path,
    target_file: str,
    index: int,
    total: int,
    cfg: ProviderConfig | None = None,
) -> None:
    """
    Open an interactive session for one feedback item.

    The terminal and capability checks happen here, at the call site, never
    inside the provider.

    Raises:
        ReviewError: If streams are not interactive or the provider lacks the capability
        ProviderError: If the session itself fails
    """
    if not streams.is_interactive():
        raise ReviewError(
            "interactive mode requires a terminal (TTY), but stdin is not a terminal. "
            "This can happen when running in CI/CD pipelines or when stdin is redirected"
        )

    interactive = as_interactive(provider)
    if interactive is None:
        raise ReviewError(f"provider '{provider.name}' does not support interactive mode")

    prompt = build_prompt(feedback_file, target_file, index, total)
    opts = model_options(cfg) if cfg else []
    await interactive.run_interactive(streams, prompt, *opts)


def _say(streams: IOStreams, message: str = "") -> None:
    print(message, file=streams.stdout, flush=True)


async def process_reviews(
    feedback_dir: Path,
    streams: IOStreams,
    cfg: ProviderConfig,
    factory: ProviderFactory | None = None,
) -> ReviewSummary:
    """
    Launch an interactive session for every feedback file in a directory.

    Items are processed sequentially. A failed session is reported and the
    run continues with the next item.

    Args:
        feedback_dir: Directory of feedback markdown files
        streams: Terminal streams for the sessions
        cfg: Resolved provider configuration for the "pr" command
        factory: Provider factory (defaults to the process-wide one)

    Returns:
        ReviewSummary with per-file failures

    Raises:
        ReviewError: If the run cannot start
    """
    feedback_dir = Path(feedback_dir)
    if not feedback_dir.is_dir():
        raise ReviewError(f"directory '{feedback_dir}' does not exist")

    if not streams.is_interactive():
        raise ReviewError(
            "pr review command requires an interactive terminal (TTY). "
            "This command cannot run in CI/CD pipelines or with redirected stdin"
        )

    provider = select_provider(cfg, factory)
    if not isinstance(provider, InteractiveProvider):
        raise ReviewError(
            f"provider '{provider.name}' does not support interactive mode "
            "(required for pr command). Interactive mode requires a provider that can "
            "yield control of stdin/stdout/stderr"
        )

    # Some backends can only run sessions when an optional tool is installed
    has_support = getattr(provider, "has_interactive_support", None)
    if has_support is not None and not has_support():
        raise ReviewError(
            f"provider '{provider.name}' cannot start interactive sessions on this machine"
        )

    feedback_files = find_feedback_files(feedback_dir)
    if not feedback_files:
        raise ReviewError(f"no feedback files found in {feedback_dir}")

    summary = ReviewSummary(total=len(feedback_files))
    _say(streams, f"Found {summary.total} feedback files to process")
    _say(streams, f"Using provider: {provider.name} (interactive mode)")
    _say(streams, "Launching interactive sessions for each feedback item...")
    _say(streams)

    for index, feedback_file in enumerate(feedback_files, start=1):
        _say(streams, "--------")
        _say(streams, f"Processing [{index}/{summary.total}]: {feedback_file.name}")
        _say(streams, "--------")
        _say(streams)

        target_file = extract_target_file(feedback_file)
        try:
            await launch_session(
                provider, streams, feedback_file, target_file, index, summary.total, cfg
            )
        except Exception as e:
            logger.debug(f"Session for {feedback_file.name} failed: {e!r}")
            summary.failures[feedback_file.name] = str(e)
            _say(streams, f"Failed to launch interactive session: {e}")

        _say(streams)

    _say(streams, "--------")
    _say(streams, "All feedback items processed!")
    _say(streams, "--------")
    return summary
