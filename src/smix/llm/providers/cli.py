"""
Subprocess helpers for CLI-backed providers.

run_captured() collects output for request/response generation.
run_attached() wires an IOStreams bundle to a child process for interactive
sessions; real file descriptors are handed to the child directly, in-memory
streams are pumped through pipes.
"""

import asyncio
import codecs
import logging
from dataclasses import dataclass
from typing import IO

from ..iostreams import IOStreams

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 4096


@dataclass
class CompletedProcess:
    """Result of a captured subprocess run."""
    returncode: int
    stdout: str
    stderr: str


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
        await process.wait()


async def run_captured(args: list[str], combine_stderr: bool = False) -> CompletedProcess:
    """
    Run a command and capture its output.

    The child is killed if the awaiting task is cancelled or reading fails.

    Args:
        args: Executable and arguments
        combine_stderr: Merge stderr into stdout

    Returns:
        CompletedProcess with decoded output
    """
    logger.debug(f"Running {args[0]} with {len(args) - 1} argument(s)")
    process = await asyncio.create_subprocess_exec(
        *args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT if combine_stderr else asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await process.communicate()
    except BaseException:
        await _kill(process)
        raise

    return CompletedProcess(
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode(errors="replace") if stdout else "",
        stderr=stderr.decode(errors="replace") if stderr else "",
    )


def _fileno(stream: IO[str]) -> int | None:
    try:
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        # io.UnsupportedOperation for StringIO and friends
        return None


async def _pump_out(reader: asyncio.StreamReader, target: IO[str]) -> None:
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        chunk = await reader.read(_CHUNK_SIZE)
        if not chunk:
            break
        target.write(decoder.decode(chunk))
        target.flush()
    tail = decoder.decode(b"", final=True)
    if tail:
        target.write(tail)
        target.flush()


async def _pump_in(source: IO[str], writer: asyncio.StreamWriter) -> None:
    data = source.read()
    try:
        if data:
            writer.write(data.encode())
            await writer.drain()
    except (BrokenPipeError, ConnectionResetError):
        # child exited without reading its input
        pass
    finally:
        writer.close()


async def run_attached(args: list[str], streams: IOStreams) -> int:
    """
    Run a command connected to the given streams.

    Returns once the child exits. The child is killed if the awaiting task is
    cancelled or pumping one of the in-memory streams fails.

    Args:
        args: Executable and arguments
        streams: Streams to connect to the child's stdin/stdout/stderr

    Returns:
        The child's exit code
    """
    stdin_fd = _fileno(streams.stdin)
    stdout_fd = _fileno(streams.stdout)
    stderr_fd = _fileno(streams.stderr)

    # Flush buffered text so it is not interleaved with the child's output
    for stream, fd in ((streams.stdout, stdout_fd), (streams.stderr, stderr_fd)):
        if fd is not None:
            stream.flush()

    process = await asyncio.create_subprocess_exec(
        *args,
        stdin=streams.stdin if stdin_fd is not None else asyncio.subprocess.PIPE,
        stdout=streams.stdout if stdout_fd is not None else asyncio.subprocess.PIPE,
        stderr=streams.stderr if stderr_fd is not None else asyncio.subprocess.PIPE,
    )

    pumps = []
    if stdin_fd is None and process.stdin is not None:
        pumps.append(_pump_in(streams.stdin, process.stdin))
    if stdout_fd is None and process.stdout is not None:
        pumps.append(_pump_out(process.stdout, streams.stdout))
    if stderr_fd is None and process.stderr is not None:
        pumps.append(_pump_out(process.stderr, streams.stderr))

    tasks = [asyncio.ensure_future(pump) for pump in pumps]
    try:
        await asyncio.gather(*tasks)
        return await process.wait()
    except BaseException:
        for task in tasks:
            task.cancel()
        await _kill(process)
        raise

