"""
PR Fetch: download automated review feedback from a GitHub pull request.

Collects the comments left by the gemini-code-assist bot on a pull request
and writes one self-contained markdown prompt per comment, plus an
INDEX.md, into a review directory that process_reviews() can consume.

Talks to the GitHub REST API over aiohttp. A GITHUB_TOKEN in the
environment is sent as a bearer token; without one, anonymous (rate
limited) access is used.
"""

import asyncio
import base64
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Any
from urllib.parse import quote

import aiohttp

from .pr_review import INDEX_FILE

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_WEB_URL = "https://github.com"

# Environment variable holding an optional GitHub token
TOKEN_ENV_VAR = "GITHUB_TOKEN"

# Substring of the reviewer bot's login
BOT_LOGIN = "gemini-code-assist"
BOT_NAME = "gemini-code-assist[bot]"

# Issue comments starting with these are review summaries, not feedback
SUMMARY_PREFIXES = ("## Code Review", "## Summary")

# Lines shown before the commented line, and snippet length
SNIPPET_CONTEXT = 10
SNIPPET_LINES = 40

_PAGE_SIZE = 100

_SPECIAL_FILENAMES = {
    "Dockerfile": "dockerfile",
    "Makefile": "makefile",
    "Jenkinsfile": "jenkinsfile",
    "go.mod": "go",
    "go.sum": "go",
    ".editorconfig": "editorconfig",
}

TASK_SECTION = """
## Your Task

1. **Evaluate** the feedback above against:
   - **Correctness:** Is the suggestion technically accurate?
   - **Relevance:** Does it apply to this codebase's patterns and conventions?
   - **Priority:** Is this a bug fix, security issue, style nit, or premature optimization?

2. **Decide** one of:
   - **APPLY:** Implement the suggestion (verbatim or with modifications)
   - **REJECT:** The feedback is incorrect, inapplicable, or low-value
   - **SKIP:** The target file doesn't exist or the feedback is no longer applicable

3. **Act** on your decision:
   - If APPLY: Edit the file at `{file}` and run relevant formatters (e.g., gofmt, prettier)
   - If REJECT or SKIP: Do not modify any files

4. **Document** your decision in this format:

---
## Decision: [APPLY | REJECT | SKIP]

### Reasoning
[Your explanation of why you made this decision]

### Changes Made
[Summary of edits, or "None" if rejected]
---

**Project Conventions:** If a CONVENTIONS.md, .editorconfig, or style guide exists in the repo root, consult it before deciding.
"""

INDEX_USAGE = """
## Usage

Each file contains a complete, self-contained prompt that you can feed to an AI coding agent (Claude, GPT-4, etc.) for analysis and recommendations.

Process these files individually to get thoughtful, context-aware feedback on each suggestion.
"""


class FetchError(Exception):
    """Raised when review feedback cannot be fetched from GitHub."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


@dataclass
class FeedbackItem:
    """
    One reviewer comment.

    Attributes:
        kind: "review_comment" (inline) or "issue_comment" (general)
        body: Comment text
        file: Commented file path ("" for general comments)
        line: Diff position of the comment (0 when unknown)
        diff_hunk: Patch of the commented file in this PR
        comment_id: GitHub comment id (0 for general comments)
    """
    kind: str
    body: str
    file: str = ""
    line: int = 0
    diff_hunk: str = ""
    comment_id: int = 0


def parse_repo(repo: str) -> tuple[str, str]:
    """
    Split "owner/name" into its parts.

    Raises:
        ValueError: If repo is not exactly two non-empty parts
    """
    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"invalid repo format. Expected 'owner/name', got '{repo}'")
    return parts[0], parts[1]


class GitHubClient:
    """
    Minimal async client for the GitHub REST endpoints used by pr review.

    Example:
        async with GitHubClient.from_env() as client:
            pull = await client.get_pull("octocat", "Hello-World", 42)
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str = GITHUB_API_URL,
        timeout: float = 30.0,
    ):
        """
        Initialize the client.

        Args:
            token: GitHub token (anonymous access when None)
            base_url: REST API root
            timeout: Per-request timeout in seconds
        """
        self.token = token or None
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    @classmethod
    def from_env(cls) -> "GitHubClient":
        """Create a client authenticated with $GITHUB_TOKEN when it is set."""
        return cls(token=os.environ.get(TOKEN_ENV_VAR))

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None:
            headers = {
                "Accept": "application/vnd.github+json",
                "User-Agent": "smix",
            }
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._session = aiohttp.ClientSession(headers=headers)
        return self._session

    async def close(self) -> None:
        """Close the session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        session = await self._get_session()
        url = f"{self.base_url}{path}"

        try:
            async with session.get(
                url,
                params=params,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise FetchError(
                        f"GitHub API error ({response.status}) for {path}: {error_text.strip()}",
                        status=response.status,
                    )
                return await response.json(content_type=None)

        except aiohttp.ClientConnectorError as e:
            raise FetchError(f"Cannot connect to GitHub at {self.base_url}") from e
        except asyncio.TimeoutError as e:
            raise FetchError(f"Request timed out after {self.timeout}s: {path}") from e
        except aiohttp.ClientError as e:
            raise FetchError(f"GitHub request failed for {path}: {e}") from e

    async def _get_all(self, path: str) -> list[dict[str, Any]]:
        """Follow page numbers until a short page comes back."""
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            batch = await self._get(path, params={"per_page": _PAGE_SIZE, "page": page})
            items.extend(batch)
            if len(batch) < _PAGE_SIZE:
                return items
            page += 1

    async def get_pull(self, owner: str, name: str, number: int) -> dict[str, Any]:
        return await self._get(f"/repos/{owner}/{name}/pulls/{number}")

    async def list_files(self, owner: str, name: str, number: int) -> list[dict[str, Any]]:
        return await self._get_all(f"/repos/{owner}/{name}/pulls/{number}/files")

    async def list_review_comments(self, owner: str, name: str, number: int) -> list[dict[str, Any]]:
        return await self._get_all(f"/repos/{owner}/{name}/pulls/{number}/comments")

    async def list_issue_comments(self, owner: str, name: str, number: int) -> list[dict[str, Any]]:
        return await self._get_all(f"/repos/{owner}/{name}/issues/{number}/comments")

    async def get_file_content(self, owner: str, name: str, path: str, ref: str) -> str:
        """
        Return a file's text at the given ref.

        Raises:
            FetchError: If the request fails or the path is not a regular file
        """
        data = await self._get(
            f"/repos/{owner}/{name}/contents/{quote(path)}", params={"ref": ref}
        )
        if not isinstance(data, dict) or data.get("encoding") != "base64":
            raise FetchError(f"{path} is not a regular file at {ref}")
        try:
            return base64.b64decode(data.get("content") or "").decode("utf-8", errors="replace")
        except ValueError as e:
            raise FetchError(f"failed to decode content of {path}") from e


def _from_bot(comment: dict[str, Any]) -> bool:
    login = (comment.get("user") or {}).get("login") or ""
    return BOT_LOGIN in login


def collect_feedback(
    files: list[dict[str, Any]],
    review_comments: list[dict[str, Any]],
    issue_comments: list[dict[str, Any]],
) -> list[FeedbackItem]:
    """
    Pick the bot's comments out of a pull request's comment lists.

    Inline comments come first, in API order, followed by general comments.
    General comments that are review summaries are skipped.
    """
    patches = {f["filename"]: f["patch"] for f in files if f.get("filename") and f.get("patch")}
    items: list[FeedbackItem] = []

    for comment in review_comments:
        if not _from_bot(comment):
            continue
        line = comment.get("position")
        if line is None:
            line = comment.get("original_position")
        path = comment.get("path") or ""
        items.append(FeedbackItem(
            kind="review_comment",
            body=comment.get("body") or "",
            file=path,
            line=line or 0,
            diff_hunk=patches.get(path, ""),
            comment_id=comment.get("id") or 0,
        ))

    for comment in issue_comments:
        if not _from_bot(comment):
            continue
        body = comment.get("body") or ""
        if body.startswith(SUMMARY_PREFIXES):
            continue
        items.append(FeedbackItem(kind="issue_comment", body=body))

    return items


def feedback_filename(index: int, item: FeedbackItem) -> str:
    """File name for the index-th (1-based) feedback item."""
    if item.file:
        sanitized = item.file.replace("/", "_").replace(".", "_")
        return f"{index}_{sanitized}_line{item.line}.md"
    return f"{index}_general_comment.md"


def infer_language(file: str) -> str:
    """Code fence language for a file name."""
    base = PurePosixPath(file).name
    if base in _SPECIAL_FILENAMES:
        return _SPECIAL_FILENAMES[base]

    dot = base.rfind(".")
    if dot != -1 and len(base) - dot > 1:
        return base[dot + 1:]
    return "text"


def snippet_start(line: int) -> int:
    """First line of the snippet shown around a commented line."""
    if line > SNIPPET_CONTEXT:
        return line - SNIPPET_CONTEXT
    return 1


def extract_snippet(content: str, start_line: int) -> str:
    if not content:
        return ""
    lines = content.split("\n")
    start = max(start_line - 1, 0)
    return "\n".join(lines[start:start + SNIPPET_LINES])


def add_line_numbers(code: str, start_line: int) -> str:
    """Prefix each line with its number, e.g. "12: return nil"."""
    if not code:
        return ""
    lines = code.rstrip("\n").split("\n")
    return "\n".join(f"{start_line + i}: {line}" for i, line in enumerate(lines))


def build_feedback_prompt(
    owner: str,
    name: str,
    pr_number: int,
    item: FeedbackItem,
    snippet: str = "",
    start_line: int = 1,
    comment_url: str = "",
) -> str:
    """
    Render the self-contained prompt for one feedback item.

    The "- **Target File:**" line is what process_reviews() reads back.
    """
    parts = [
        "# PR Feedback Review Task\n\n"
        "## Metadata\n"
        f"- **Repository:** {owner}/{name}\n"
        f"- **Pull Request:** #{pr_number}\n"
        f"- **Target File:** `{item.file}`\n"
        f"- **Reviewer:** {BOT_NAME}"
    ]
    if comment_url:
        parts.append(f"\n- **Feedback Link:** {comment_url}")

    parts.append(f"\n\n## Reviewer Feedback\n\n{item.body}\n")

    if item.diff_hunk:
        parts.append(
            "\n## PR Diff (relevant changes)\n\n"
            "> This shows what changed in the PR. Use this to understand the context of the feedback.\n\n"
            f"```diff\n{item.diff_hunk}\n```\n"
        )

    numbered = add_line_numbers(snippet, start_line)
    if numbered:
        parts.append(
            f"\n## Current File Snapshot (starting at line {start_line})\n\n"
            "> ⚠️ **WARNING:** This is a READ-ONLY snapshot for context.\n"
            f"> You MUST edit the actual file at: `{item.file}`\n\n"
            f"```{infer_language(item.file)}\n{numbered}\n```\n"
        )

    parts.append(TASK_SECTION.format(file=item.file))
    return "".join(parts)


def build_index(
    owner: str,
    name: str,
    pr_number: int,
    items: list[FeedbackItem],
    generated: datetime | None = None,
) -> str:
    """Render INDEX.md linking every feedback file."""
    generated = generated or datetime.now()
    lines = [
        f"# Gemini Code Assist Feedback - PR #{pr_number}",
        "",
        f"**Repository:** {owner}/{name}  ",
        f"**Total Feedback Items:** {len(items)}  ",
        f"**Generated:** {generated.strftime('%Y-%m-%d %H:%M:%S')}",
        "",
        "## Feedback Files",
        "",
    ]
    for index, item in enumerate(items, start=1):
        filename = feedback_filename(index, item)
        if item.file:
            lines.append(f"{index}. [`{item.file}:{item.line}`](./{filename})")
        else:
            lines.append(f"{index}. [General PR Comment](./{filename})")

    return "\n".join(lines) + "\n" + INDEX_USAGE


async def fetch_reviews(
    client: GitHubClient,
    owner: str,
    name: str,
    pr_number: int,
    output_dir: Path,
) -> list[Path]:
    """
    Fetch the bot's feedback on a pull request into output_dir.

    Args:
        client: GitHub API client
        owner: Repository owner
        name: Repository name
        pr_number: Pull request number
        output_dir: Review directory (created if needed)

    Returns:
        The feedback files written, in order (empty when the bot left none)

    Raises:
        FetchError: If the pull request or its comments cannot be fetched
        OSError: If the review directory cannot be written
    """
    output_dir = Path(output_dir)

    pull = await client.get_pull(owner, name, pr_number)
    logger.info(f"Fetched PR #{pr_number}: {pull.get('title', '')}")

    files = await client.list_files(owner, name, pr_number)
    logger.info(f"Fetched {len(files)} changed files")

    review_comments = await client.list_review_comments(owner, name, pr_number)
    logger.info(f"Fetched {len(review_comments)} review comments")

    issue_comments = await client.list_issue_comments(owner, name, pr_number)
    logger.info(f"Fetched {len(issue_comments)} issue comments")

    items = collect_feedback(files, review_comments, issue_comments)
    if not items:
        logger.info(f"No {BOT_LOGIN} feedback found for PR #{pr_number}")
        return []

    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Writing {len(items)} feedback items to {output_dir}")

    head_sha = (pull.get("head") or {}).get("sha") or ""
    written: list[Path] = []

    for index, item in enumerate(items, start=1):
        content = ""
        if item.file:
            try:
                content = await client.get_file_content(owner, name, item.file, head_sha)
            except FetchError as e:
                logger.warning(f"Failed to fetch content of {item.file}: {e}")

        start_line = snippet_start(item.line)
        comment_url = ""
        if item.comment_id:
            comment_url = (
                f"{GITHUB_WEB_URL}/{owner}/{name}/pull/{pr_number}#discussion_r{item.comment_id}"
            )

        prompt = build_feedback_prompt(
            owner, name, pr_number, item,
            snippet=extract_snippet(content, start_line),
            start_line=start_line,
            comment_url=comment_url,
        )
        path = output_dir / feedback_filename(index, item)
        path.write_text(prompt, encoding="utf-8")
        logger.debug(f"Created {path}")
        written.append(path)

    index_path = output_dir / INDEX_FILE
    index_path.write_text(build_index(owner, name, pr_number, items), encoding="utf-8")
    logger.info(f"Created {len(written)} prompt files and {index_path}")

    return written
