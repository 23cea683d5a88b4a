"""Shared fixtures and a recording invoker for testing."""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from gitkit.core.config import GitKitConfig
from gitkit.exceptions import ExternalCommandError
from gitkit.git.invoker import split_lines
from gitkit.git.models import CommandResult
from gitkit.git.repository import Repository


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Prevent .env file and shell env from leaking into tests."""
    monkeypatch.setitem(GitKitConfig.model_config, "env_file", None)
    for key in list(os.environ):
        if key.startswith("GITKIT_"):
            monkeypatch.delenv(key, raising=False)


Responder = Callable[[tuple[str, ...]], str]


class FakeInvoker:
    """In-memory invoker: records every argv and replies with canned stdout.

    ``outputs`` maps a git subcommand (``argv[0]``) to its stdout text or to a
    callable receiving the argv. Subcommands listed in ``failing`` raise
    ExternalCommandError after being recorded.
    """

    def __init__(
        self,
        outputs: dict[str, str | Responder] | None = None,
        failing: set[str] | None = None,
    ) -> None:
        self.outputs = outputs or {}
        self.failing = failing or set()
        self.calls: list[tuple[str, ...]] = []
        self.cwds: list[Path] = []

    async def execute(self, argv: Sequence[str], cwd: Path) -> CommandResult:
        argv = tuple(argv)
        self.calls.append(argv)
        self.cwds.append(cwd)
        if argv[0] in self.failing:
            raise ExternalCommandError(argv, 1, f"error: {argv[0]} failed")
        output = self.outputs.get(argv[0], "")
        if callable(output):
            output = output(argv)
        return CommandResult(argv=argv, exit_code=0, stdout_lines=split_lines(output))

    def subcommands(self) -> list[str]:
        return [argv[0] for argv in self.calls]


@pytest.fixture
def invoker():
    return FakeInvoker()


@pytest.fixture
def repo(tmp_path, invoker):
    return Repository(tmp_path, invoker=invoker)
