"""
I/O Streams

Injectable bundle of stdin/stdout/stderr plus terminal detection.

Commands build one IOStreams per invocation and decide interactivity once,
up front, by calling is_interactive(). Providers receive the bundle and use
the streams as given; they never look at sys.stdin or query the terminal
themselves. Tests swap in in-memory buffers and a fixed TTY answer.
"""

import io
import os
import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import IO


@dataclass(frozen=True)
class IOStreams:
    """
    Standard I/O handles for a single command invocation.

    Attributes:
        stdin: Readable input stream
        stdout: Writable output stream
        stderr: Writable error stream
        isatty: Terminal check applied to stdin_fd (None means "never a TTY")
        stdin_fd: File descriptor number recorded for stdin
    """
    stdin: IO[str]
    stdout: IO[str]
    stderr: IO[str]
    isatty: Callable[[int], bool] | None = None
    stdin_fd: int = 0

    @classmethod
    def system(cls) -> "IOStreams":
        """Bind to the process streams with real terminal detection."""
        try:
            stdin_fd = sys.stdin.fileno()
        except (AttributeError, OSError, ValueError):
            # stdin replaced by an object without a descriptor
            return cls(stdin=sys.stdin, stdout=sys.stdout, stderr=sys.stderr)

        return cls(
            stdin=sys.stdin,
            stdout=sys.stdout,
            stderr=sys.stderr,
            isatty=os.isatty,
            stdin_fd=stdin_fd,
        )

    @classmethod
    def for_tests(
        cls, interactive: bool = True
    ) -> tuple["IOStreams", io.StringIO, io.StringIO]:
        """
        Build streams over in-memory buffers.

        stderr shares the stdout buffer so a single buffer captures
        everything the code under test writes.

        Args:
            interactive: Value the terminal check always reports

        Returns:
            Tuple of (streams, stdin_buffer, stdout_buffer)
        """
        stdin = io.StringIO()
        stdout = io.StringIO()
        streams = cls(
            stdin=stdin,
            stdout=stdout,
            stderr=stdout,
            isatty=lambda fd: interactive,
            stdin_fd=0,
        )
        return streams, stdin, stdout

    def is_interactive(self) -> bool:
        """Return True if stdin is attached to a terminal."""
        if self.isatty is None:
            return False
        return bool(self.isatty(self.stdin_fd))
