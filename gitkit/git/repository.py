"""Repository facade: builder -> invoker -> parser for each operation."""

from __future__ import annotations

import asyncio
import contextlib
import weakref
from collections.abc import AsyncIterator, Sequence
from pathlib import Path
from typing import Protocol

import structlog

from gitkit.core.config import GitKitConfig
from gitkit.exceptions import ExternalCommandError, InvalidRepositoryPathError
from gitkit.git import commands, parsers
from gitkit.git.invoker import GitInvoker
from gitkit.git.models import (
    Branch,
    CommandResult,
    Commit,
    Diff,
    GitStatus,
    Log,
    Tag,
    Tree,
    TreeEntry,
)

logger = structlog.get_logger()

# One lock per working directory, shared by every Repository pointing at it.
_path_locks: weakref.WeakValueDictionary[Path, asyncio.Lock] = (
    weakref.WeakValueDictionary()
)


def _lock_for(path: Path) -> asyncio.Lock:
    lock = _path_locks.get(path)
    if lock is None:
        lock = asyncio.Lock()
        _path_locks[path] = lock
    return lock


class Invoker(Protocol):
    async def execute(self, argv: Sequence[str], cwd: Path) -> CommandResult: ...


def _ref_name(ref: str | Branch | Tag) -> str:
    return ref if isinstance(ref, str) else ref.name


class Repository:
    """Typed operations over the git working directory at ``path``.

    Public operations are serialized per directory: git mutates the index,
    HEAD and refs on disk, and nothing in git itself locks them for us.
    """

    def __init__(
        self,
        path: Path | str,
        invoker: Invoker | None = None,
        config: GitKitConfig | None = None,
    ) -> None:
        path = Path(path).expanduser()
        if not path.is_dir():
            raise InvalidRepositoryPathError(
                f'the path "{path}" is not a repository folder'
            )
        if config is None:
            config = GitKitConfig()
        if invoker is None:
            invoker = GitInvoker(
                binary=config.git_binary, timeout=config.command_timeout_seconds
            )
        self._path = path
        self._invoker = invoker
        self._primary_branch = config.primary_branch
        self._lock = _lock_for(path.resolve())

    @property
    def path(self) -> Path:
        return self._path

    def get_path(self) -> Path:
        return self._path

    async def _run(self, argv: list[str]) -> tuple[str, ...]:
        result = await self._invoker.execute(argv, self._path)
        return result.stdout_lines

    # -- lifecycle -----------------------------------------------------------

    async def init(self, *, bare: bool = False) -> None:
        async with self._lock:
            await self._run(commands.init(bare=bare))

    async def stage(self, path: str = ".") -> None:
        async with self._lock:
            await self._run(commands.add(path))

    async def commit(
        self,
        message: str,
        stage_all: bool = False,
        ref: str | Branch | None = None,
        *,
        amend: bool = False,
    ) -> None:
        """Commit staged content, optionally on a ref other than the current one.

        With ``ref`` the repository is switched to it for the duration of the
        commit and switched back afterwards, whether or not the commit worked.
        """
        argv = commands.commit(message, amend=amend)
        async with self._lock:
            if ref is None:
                await self._commit(argv, stage_all)
                return
            async with self._checked_out(_ref_name(ref)):
                await self._commit(argv, stage_all)

    async def _commit(self, argv: list[str], stage_all: bool) -> None:
        if stage_all:
            await self._run(commands.add("."))
        await self._run(argv)

    async def checkout(self, ref: str | Branch | Tag) -> None:
        argv = commands.checkout(_ref_name(ref))
        async with self._lock:
            await self._run(argv)

    @contextlib.asynccontextmanager
    async def _checked_out(self, ref: str) -> AsyncIterator[Branch]:
        """Check out ``ref`` and restore the original branch on exit.

        Caller must hold the repository lock.
        """
        original = parsers.select_current_branch(await self._branches())
        await self._run(commands.checkout(ref))
        logger.debug("repository_checkout_switched", ref=ref, original=original.name)
        try:
            yield original
        except Exception as e:
            # Recorded here so a failing restore below cannot hide it.
            logger.warning(
                "repository_checked_out_operation_failed", ref=ref, error=str(e)
            )
            raise
        finally:
            await self._run(commands.checkout(original.name))
            logger.debug("repository_checkout_restored", branch=original.name)

    async def get_status(self) -> list[str]:
        async with self._lock:
            return parsers.parse_status(await self._run(commands.status()))

    async def get_status_summary(self) -> GitStatus:
        async with self._lock:
            lines = await self._run(commands.status(porcelain=True))
        return parsers.parse_status_porcelain(lines)

    # -- branches ------------------------------------------------------------

    async def create_branch(self, name: str, start_point: str | None = None) -> None:
        argv = commands.branch_create(name, start_point)
        async with self._lock:
            await self._run(argv)

    async def delete_branch(self, name: str | Branch, *, force: bool = False) -> None:
        argv = commands.branch_delete(_ref_name(name), force=force)
        async with self._lock:
            await self._run(argv)

    async def _branches(self) -> list[Branch]:
        branches = parsers.parse_branches(await self._run(commands.branch_list()))
        return parsers.sort_branches(branches, self._primary_branch)

    async def get_branches(self) -> list[Branch]:
        async with self._lock:
            return await self._branches()

    async def get_main_branch(self) -> Branch:
        """Return the checked-out branch."""
        return parsers.select_current_branch(await self.get_branches())

    async def get_branch(self, name: str) -> Branch | None:
        for branch in await self.get_branches():
            if branch.name == name:
                return branch
        return None

    # -- tags ----------------------------------------------------------------

    async def create_tag(
        self, name: str, start_point: str | None = None, message: str | None = None
    ) -> None:
        argv = commands.tag_create(name, start_point, message)
        async with self._lock:
            await self._run(argv)

    async def delete_tag(self, tag: str | Tag) -> None:
        argv = commands.tag_delete(_ref_name(tag))
        async with self._lock:
            await self._run(argv)

    async def get_tags(self) -> list[Tag]:
        async with self._lock:
            return parsers.parse_tags(await self._run(commands.tag_list()))

    async def get_tag(self, name: str) -> Tag | None:
        for tag in await self.get_tags():
            if tag.name == name:
                return tag
        return None

    # -- history -------------------------------------------------------------

    async def get_commit(self, ref: str = "HEAD") -> Commit:
        argv = commands.show_commit(ref)
        async with self._lock:
            lines = await self._run(argv)
        return parsers.parse_commit(lines)

    async def get_log(
        self,
        ref: str = "HEAD",
        branch: str | None = None,
        *,
        max_count: int | None = None,
        path: str | None = None,
    ) -> Log:
        """Return the history of ``ref``, newest first.

        With ``branch`` only commits reachable from both ``ref`` and ``branch``
        are listed; unrelated histories give an empty log.
        """
        argv = commands.log(ref, max_count=max_count, path=path)
        base_argv = None if branch is None else commands.merge_base(ref, branch)
        async with self._lock:
            if base_argv is not None:
                bases = await self._merge_bases(base_argv)
                if not bases:
                    return Log(ref=ref, branch=branch)
                argv = commands.log(*bases, max_count=max_count, path=path)
            lines = await self._run(argv)
        commits = tuple(parsers.parse_commits(lines))
        return Log(ref=ref, branch=branch, commits=commits)

    async def _merge_bases(self, argv: list[str]) -> list[str]:
        try:
            lines = await self._run(argv)
        except ExternalCommandError as e:
            # merge-base exits 1 without a message when nothing is shared
            if e.kind == "exit" and e.exit_code == 1 and not e.stderr.strip():
                return []
            raise
        return [line.strip() for line in lines if line.strip()]

    async def get_commit_diff(
        self, commit: Commit | str, path: str | None = None
    ) -> Diff:
        """Diff a commit against its first parent (the empty tree for a root)."""
        if isinstance(commit, str):
            commit = await self.get_commit(commit)
        parent = commit.parents[0] if commit.parents else None
        argv = commands.diff(commit.hash, parent, path)
        async with self._lock:
            lines = await self._run(argv)
        files = tuple(parsers.parse_diff(lines))
        return Diff(commit=commit.hash, path=path, files=files)

    # -- trees ---------------------------------------------------------------

    async def get_tree(self, ref: str = "HEAD", path: str = "") -> Tree:
        argv = commands.ls_tree(ref, path)
        async with self._lock:
            lines = await self._run(argv)
        return Tree(
            ref=ref, path=path.strip("/"), entries=tuple(parsers.parse_tree(lines))
        )

    async def get_tree_entry(self, path: str, ref: str = "HEAD") -> TreeEntry:
        argv = commands.ls_tree_entry(ref, path)
        async with self._lock:
            lines = await self._run(argv)
        return parsers.parse_tree_entry(lines)
