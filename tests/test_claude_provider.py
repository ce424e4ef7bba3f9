"""Tests for the CLI-backed Claude provider."""

import asyncio
import io
import os

import pytest

from smix.llm.base import InteractiveProvider
from smix.llm.errors import ProviderError, ProviderNotAvailableError
from smix.llm.iostreams import IOStreams
from smix.llm.options import with_model
from smix.llm.providers.claude import MODEL_HAIKU, ClaudeProvider
from smix.llm.providers.cli import run_attached
from smix.llm.retry import RetryError, RetryPolicy

FAST_POLICY = RetryPolicy(initial_delay=0.001, max_delay=0.01)


class TestClaudeProviderInit:
    """Tests for ClaudeProvider construction."""

    def test_missing_cli(self, tmp_path):
        with pytest.raises(ProviderNotAvailableError) as exc_info:
            ClaudeProvider(cli_path=str(tmp_path / "no-such-claude"))

        assert exc_info.value.provider == "claude"
        assert isinstance(exc_info.value.unwrap(), FileNotFoundError)

    def test_metadata(self, make_script):
        provider = ClaudeProvider(cli_path=str(make_script("claude", 'echo "$@"')))

        assert provider.name == "claude"
        assert provider.default_model == MODEL_HAIKU
        assert isinstance(provider, InteractiveProvider)


class TestClaudeGenerate:
    """Tests for ClaudeProvider.generate."""

    @pytest.mark.asyncio
    async def test_passes_model_and_prompt(self, make_script):
        """Test print mode arguments with the default model."""
        provider = ClaudeProvider(cli_path=str(make_script("claude", 'echo "$@"')))

        result = await provider.generate("what is FastAPI")

        assert result == "--model haiku -p what is FastAPI"

    @pytest.mark.asyncio
    async def test_model_override(self, make_script):
        provider = ClaudeProvider(cli_path=str(make_script("claude", 'echo "$@"')))

        result = await provider.generate("hi", with_model("opus"))

        assert result == "--model opus -p hi"

    @pytest.mark.asyncio
    async def test_output_trimmed(self, make_script):
        provider = ClaudeProvider(cli_path=str(make_script("claude", 'printf "\\n  answer  \\n\\n"')))

        assert await provider.generate("q") == "answer"

    @pytest.mark.asyncio
    async def test_non_zero_exit_retried_then_wrapped(self, make_script, tmp_path):
        """Test a failing CLI is attempted three times before giving up."""
        counter = tmp_path / "count"
        script = make_script(
            "claude",
            f'echo x >> "{counter}"\necho "bad things" >&2\nexit 3',
        )
        provider = ClaudeProvider(cli_path=str(script), retry_policy=FAST_POLICY)

        with pytest.raises(RetryError) as exc_info:
            await provider.generate("q")

        assert len(counter.read_text().splitlines()) == 3
        last = exc_info.value.last_error
        assert isinstance(last, ProviderError)
        assert "exit code 3" in str(last)
        assert "bad things" in str(last)

    @pytest.mark.asyncio
    async def test_empty_output(self, make_script):
        provider = ClaudeProvider(
            cli_path=str(make_script("claude", "exit 0")),
            retry_policy=RetryPolicy(max_attempts=1),
        )

        with pytest.raises(RetryError) as exc_info:
            await provider.generate("q")

        assert "claude CLI returned empty response" in str(exc_info.value)


class TestClaudeInteractive:
    """Tests for ClaudeProvider.run_interactive."""

    @pytest.mark.asyncio
    async def test_session_uses_given_streams(self, make_script):
        """Test the session writes to the injected streams."""
        provider = ClaudeProvider(cli_path=str(make_script("claude", 'echo "$@"\ncat')))
        streams, stdin, stdout = IOStreams.for_tests()
        stdin.write("typed by user\n")
        stdin.seek(0)

        await provider.run_interactive(streams, "review item", with_model("sonnet"))

        assert stdout.getvalue() == "--model sonnet review item\ntyped by user\n"

    @pytest.mark.asyncio
    async def test_session_failure(self, make_script):
        provider = ClaudeProvider(cli_path=str(make_script("claude", "exit 2")))
        streams, _, _ = IOStreams.for_tests()

        with pytest.raises(ProviderError) as exc_info:
            await provider.run_interactive(streams, "review item")

        assert "exit code 2" in str(exc_info.value)


class TestRunAttached:
    """Tests for wiring a child process to in-memory streams."""

    @pytest.mark.asyncio
    async def test_output_failure_kills_child(self, make_script, tmp_path):
        """Test a failing stream pump does not leave the child running."""
        pidfile = tmp_path / "child.pid"
        script = make_script("session", f'echo $$ > "{pidfile}"\necho hi\nexec sleep 30')
        closed_stdout = io.StringIO()
        closed_stdout.close()
        streams = IOStreams(stdin=io.StringIO(), stdout=closed_stdout, stderr=io.StringIO())

        with pytest.raises(ValueError):
            await asyncio.wait_for(run_attached([str(script)], streams), timeout=10)

        pid = int(pidfile.read_text().strip())
        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)

    @pytest.mark.asyncio
    async def test_cancel_kills_child(self, make_script, tmp_path):
        pidfile = tmp_path / "child.pid"
        script = make_script("session", f'echo $$ > "{pidfile}"\nexec sleep 30')
        streams, _, _ = IOStreams.for_tests()

        task = asyncio.create_task(run_attached([str(script)], streams))
        for _ in range(200):
            if pidfile.exists() and pidfile.read_text().strip():
                break
            await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        pid = int(pidfile.read_text().strip())
        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)
