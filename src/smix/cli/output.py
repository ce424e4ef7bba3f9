"""
Rich Terminal Output for the smix CLI

Styled status messages. Command results (answers, shell commands, config
values) are written plainly with typer.echo so they stay pipeable; this
module is for everything around them.
"""

from rich.console import Console
from rich.markup import escape


class OutputManager:
    """
    Manages rich terminal output for the smix CLI.

    Informational and error messages go to stderr so stdout carries only
    command results.
    """

    def __init__(self, console: Console | None = None):
        """
        Initialize the output manager.

        Args:
            console: Rich Console instance (creates a non-wrapping stderr console if not provided)
        """
        self.console = console or Console(stderr=True, soft_wrap=True)

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]v[/green] {escape(message)}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]x[/red] {escape(message)}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]![/yellow] {escape(message)}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[blue]i[/blue] {escape(message)}")
