"""Pytest configuration and fixtures for smix tests."""

import os
import stat
from pathlib import Path

import pytest

from smix.llm.base import Provider
from smix.llm.factory import ProviderFactory
from smix.llm.options import build_options


class FakeProvider(Provider):
    """Scriptable provider recording every generate call."""

    def __init__(self, name: str = "fake", response: str = "fake response", error: Exception | None = None):
        self._name = name
        self.response = response
        self.error = error
        self.calls: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def default_model(self) -> str:
        return "fake-model"

    async def generate(self, prompt: str, *opts) -> str:
        model = build_options(opts).resolve_model(self.default_model)
        self.calls.append((prompt, model))
        if self.error is not None:
            raise self.error
        return self.response


class FakeInteractiveProvider(FakeProvider):
    """FakeProvider that also supports interactive sessions."""

    def __init__(self, *args, session_errors: dict[int, Exception] | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.sessions: list[dict] = []
        self.session_errors = session_errors or {}

    async def run_interactive(self, streams, prompt: str, *opts) -> None:
        self.sessions.append({
            "streams": streams,
            "prompt": prompt,
            "model": build_options(opts).resolve_model(self.default_model),
        })
        error = self.session_errors.get(len(self.sessions))
        if error is not None:
            raise error


@pytest.fixture(autouse=True)
def clean_smix_env(monkeypatch):
    """Keep SMIX_* variables from the developer's shell out of tests."""
    for name in list(os.environ):
        if name.startswith("SMIX_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_provider():
    """Constructor for scriptable fake providers."""
    return FakeProvider


@pytest.fixture
def make_interactive_provider():
    """Constructor for fake providers with interactive support."""
    return FakeInteractiveProvider


@pytest.fixture
def fake_provider():
    """A non-interactive fake provider."""
    return FakeProvider()


@pytest.fixture
def fake_interactive_provider():
    """A fake provider with interactive support."""
    return FakeInteractiveProvider(name="fake-interactive")


@pytest.fixture
def fake_factory(fake_provider, fake_interactive_provider):
    """Factory serving the fake providers under claude/gemini names."""
    return ProviderFactory({
        "claude": lambda: fake_interactive_provider,
        "gemini": lambda: fake_provider,
    })


@pytest.fixture
def config_file(tmp_path) -> Path:
    """Path for a configuration file that does not exist yet."""
    return tmp_path / "smix" / "config.yaml"


@pytest.fixture
def make_script(tmp_path):
    """Create executable shell scripts standing in for provider CLIs."""

    def _make(name: str, body: str) -> Path:
        script = tmp_path / "bin" / name
        script.parent.mkdir(parents=True, exist_ok=True)
        script.write_text(f"#!/bin/sh\n{body}\n")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make
