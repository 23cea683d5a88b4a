"""Async process boundary for the git executable."""

import asyncio
import contextlib
import shutil
from collections.abc import Sequence
from pathlib import Path

import structlog

from gitkit.exceptions import ExternalCommandError
from gitkit.git.models import CommandResult

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 30.0


def resolve_binary(name: str = "git") -> str:
    """Return the absolute path of ``name`` on PATH, or ``name`` unchanged."""
    if "/" in name:
        return name
    return shutil.which(name) or name


def split_lines(text: str) -> tuple[str, ...]:
    """Split on git's line terminator without producing a trailing empty line."""
    if not text:
        return ()
    return tuple(text.removesuffix("\n").split("\n"))


class GitInvoker:
    """Runs git with an argument vector and a working directory.

    Arguments are handed to the OS as discrete tokens; no shell is involved.
    Awaiting :meth:`execute` blocks the calling operation until git exits.
    """

    def __init__(self, binary: str = "git", timeout: float = DEFAULT_TIMEOUT) -> None:
        self.binary = resolve_binary(binary)
        self.timeout = timeout

    async def execute(self, argv: Sequence[str], cwd: Path) -> CommandResult:
        argv = tuple(argv)
        cmd = (self.binary, *argv)
        logger.debug("git_exec", command=cmd, cwd=str(cwd))

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ExternalCommandError(
                argv,
                None,
                f"{self.binary} is not installed or not in PATH",
                kind="not_found",
            ) from e
        except OSError as e:
            logger.error("git_exec_error", command=cmd, error=str(e))
            raise ExternalCommandError(argv, None, str(e), kind="os_error") from e

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(), timeout=self.timeout
            )
        except TimeoutError as e:
            logger.warning("git_exec_timeout", command=cmd, timeout=self.timeout)
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            raise ExternalCommandError(
                argv,
                None,
                f"Command timed out after {self.timeout}s",
                kind="timeout",
            ) from e

        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")
        exit_code = proc.returncode or 0
        if exit_code != 0:
            logger.warning(
                "git_exec_failed",
                command=cmd,
                exit_code=exit_code,
                stderr=stderr.strip(),
            )
            raise ExternalCommandError(argv, exit_code, stderr)

        return CommandResult(
            argv=argv,
            exit_code=exit_code,
            stdout_lines=split_lines(stdout),
            stderr=stderr,
        )
