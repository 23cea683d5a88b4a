"""Shared exception types for gitkit."""

from collections.abc import Sequence


class GitKitError(Exception):
    """Base exception for all gitkit errors."""


class ConfigError(GitKitError):
    """Configuration is invalid or missing."""


class InvalidRepositoryPathError(GitKitError):
    """The repository path does not exist or is not a directory."""


class CommandArgumentError(GitKitError, ValueError):
    """An argument was rejected before invoking git."""


class ExternalCommandError(GitKitError):
    """git exited non-zero, timed out, or could not be started."""

    def __init__(
        self,
        argv: Sequence[str],
        exit_code: int | None,
        stderr: str = "",
        *,
        kind: str = "exit",
    ) -> None:
        self.argv = tuple(argv)
        self.exit_code = exit_code
        self.stderr = stderr
        self.kind = kind
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else ""
        message = f"{' '.join(self.argv)} failed ({kind}, exit code {exit_code})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class ParseError(GitKitError):
    """git output did not have the expected shape."""

    def __init__(self, message: str, line: str | None = None) -> None:
        self.line = line
        if line is not None:
            message = f"{message}: {line!r}"
        super().__init__(message)


class InvariantViolationError(ParseError):
    """git reported a state that contradicts an expected invariant."""


class EntityNotFoundError(GitKitError):
    """A single-entity lookup produced no output."""
