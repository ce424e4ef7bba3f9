"""
Pull Request Commands for the smix CLI

Commands:
- pr review <owner/name> <pr_number>: Fetch gemini-code-assist feedback from
  GitHub into ./gca_review_pr<N>, then launch an interactive provider session
  for each feedback item
- pr review --dir <dir>: Process an existing review directory without fetching
"""

from pathlib import Path

import typer

from ..core.pr_fetch import FetchError, GitHubClient, fetch_reviews, parse_repo
from ..core.pr_review import ReviewError, ReviewSummary, process_reviews
from ..llm.errors import ProviderError, UnknownProviderError
from ..llm.iostreams import IOStreams
from .context import get_cli_context
from .output import OutputManager

pr_app = typer.Typer(
    name="pr",
    help="Work with pull request review feedback",
    no_args_is_help=True,
)
output = OutputManager()


async def _fetch_and_process(
    owner: str, name: str, pr_number: int, output_dir: Path, cfg, factory
) -> ReviewSummary | None:
    async with GitHubClient.from_env() as client:
        written = await fetch_reviews(client, owner, name, pr_number, output_dir)
    if not written:
        return None
    return await process_reviews(output_dir, IOStreams.system(), cfg, factory)


@pr_app.command("review")
def review(
    ctx: typer.Context,
    repo: str | None = typer.Argument(None, help="Repository as owner/name, e.g. octocat/Hello-World"),
    pr_number: str | None = typer.Argument(None, help="Pull request number, e.g. 123"),
    feedback_dir: Path | None = typer.Option(
        None, "--dir", help="Use an existing review directory instead of fetching from GitHub"
    ),
):
    """
    Fetch gemini-code-assist feedback from a GitHub PR and process each item
    in an interactive provider session.

    Requires an interactive terminal and a provider that supports
    interactive mode (claude, or gemini with its CLI installed).
    Set GITHUB_TOKEN for private repositories or higher rate limits.

    Examples:
        smix pr review octocat/Hello-World 123
        smix pr review --dir ./gca_review_pr123
        smix --provider gemini pr review --dir ./gca_review_pr123
    """
    if feedback_dir is not None:
        if repo is not None or pr_number is not None:
            output.print_error("--dir cannot be combined with <repo> <pr_number>")
            raise typer.Exit(2)
    elif repo is None or pr_number is None:
        output.print_error("expected <repo> <pr_number>, or --dir <dir>")
        raise typer.Exit(2)

    cli_ctx = get_cli_context(ctx)
    try:
        cfg = cli_ctx.resolve("pr")
        factory = cli_ctx.get_factory()

        if feedback_dir is not None:
            output.print_info(f"Using existing directory: {feedback_dir}")
            summary = cli_ctx.run(
                process_reviews(feedback_dir, IOStreams.system(), cfg, factory)
            )
        else:
            owner, name = parse_repo(repo)
            try:
                number = int(pr_number)
            except ValueError:
                raise ValueError(f"invalid PR number: {pr_number}") from None
            if number <= 0:
                raise ValueError(f"invalid PR number: {pr_number}")

            summary = cli_ctx.run(
                _fetch_and_process(owner, name, number, Path(f"gca_review_pr{number}"), cfg, factory)
            )
    except (ReviewError, FetchError, ProviderError, UnknownProviderError, ValueError, OSError) as e:
        output.print_error(str(e))
        raise typer.Exit(1)

    if summary is None:
        output.print_info("No feedback to review")
    elif summary.failures:
        output.print_warning(
            f"{len(summary.failures)} of {summary.total} feedback items failed"
        )
    else:
        output.print_info(f"{summary.total} feedback items processed")
