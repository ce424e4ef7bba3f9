#!/usr/bin/env python3
"""
smix CLI

Command-line interface dispatching requests to interchangeable LLM providers.

Commands:
- smix ask <question>: Concise answers to short technical questions
- smix do <task>: Translate natural language into a shell command
- smix pr review <owner/name> <pr_number>: Fetch PR review feedback and
  process each item in an interactive session (or --dir for an existing folder)
- smix config: Configuration management
"""

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from .. import __version__
from ..config.storage import ConfigKeyError
from ..core.ask import answer
from ..core.do import translate
from ..llm.errors import ProviderError, UnknownProviderError
from ..llm.retry import RetryError
from .config import config_app
from .context import CLIContext, get_cli_context
from .output import OutputManager
from .pr import pr_app

logger = logging.getLogger(__name__)

# Failures reported to the user as a one-line error and exit code 1
USER_ERRORS = (ProviderError, UnknownProviderError, RetryError, ConfigKeyError, OSError, ValueError)

app = typer.Typer(
    name="smix",
    help="smix - quick LLM helpers for the terminal",
    add_completion=False,
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")
app.add_typer(pr_app, name="pr")

output = OutputManager()


def setup_logging(debug: bool = False, level_name: str | None = None) -> None:
    """
    Route logging to stderr through rich.

    Args:
        debug: Force DEBUG level
        level_name: Configured level ("debug", "info", "warn", "error")
    """
    level = logging.INFO
    if debug or (level_name or "").lower() == "debug":
        level = logging.DEBUG
    elif (level_name or "").lower() in ("warn", "warning"):
        level = logging.WARNING
    elif (level_name or "").lower() == "error":
        level = logging.ERROR

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )

    # SDK request logs are noise unless debugging
    for name in ("httpx", "httpcore", "openai"):
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"smix {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: $XDG_CONFIG_HOME/smix/config.yaml, ~/.config/smix/config.yaml, or ~/.smix.yaml)",
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug output"),
    provider: str = typer.Option("", "--provider", help="Override LLM provider (claude, gemini)"),
    model: str = typer.Option("", "--model", help="Override model name"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
):
    """smix - quick LLM helpers for the terminal."""
    cli_ctx = ctx.obj if isinstance(ctx.obj, CLIContext) else CLIContext()
    cli_ctx.config_path = config
    cli_ctx.debug = debug
    cli_ctx.provider_flag = provider
    cli_ctx.model_flag = model
    ctx.obj = cli_ctx

    try:
        store = cli_ctx.get_config()
    except (OSError, ValueError) as e:
        output.print_error(f"failed to initialize config: {e}")
        raise typer.Exit(1)

    setup_logging(debug, store.get_str("log_level"))
    logger.debug(f"Config loaded from {store.config_file}")


@app.command()
def ask(
    ctx: typer.Context,
    question: str = typer.Argument(..., help="Your question"),
):
    """
    Ask short technical questions and get concise answers.

    Examples:
        smix ask "what is FastAPI"
        smix ask "does the mv command overwrite duplicate files"
    """
    cli_ctx = get_cli_context(ctx)
    try:
        cfg = cli_ctx.resolve("ask")
        result = cli_ctx.run(answer(question, cfg, cli_ctx.get_factory()))
    except USER_ERRORS as e:
        output.print_error(str(e))
        raise typer.Exit(1)

    typer.echo(result)


@app.command(name="do")
def do_command(
    ctx: typer.Context,
    task: str = typer.Argument(..., help="Natural language task description"),
):
    """
    Translate a natural language task into a shell command.

    Examples:
        smix do "find all files larger than 50MB in my home directory"
        smix do "kill the process listening on port 3000"
    """
    cli_ctx = get_cli_context(ctx)
    try:
        cfg = cli_ctx.resolve("do")
        result = cli_ctx.run(translate(task, cfg, cli_ctx.get_factory()))
    except USER_ERRORS as e:
        output.print_error(str(e))
        raise typer.Exit(1)

    typer.echo(result)


def main():
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
