"""Data models for git command results."""

from collections.abc import Iterator
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict

FileStatus = Literal[
    "modified", "added", "deleted", "renamed", "copied", "conflicted", "untracked"
]
ObjectType = Literal["blob", "tree", "commit"]
ChangeKind = Literal["added", "deleted", "modified", "renamed", "copied", "mode"]


class CommandResult(BaseModel):
    """Outcome of a single git invocation."""

    model_config = ConfigDict(frozen=True)

    argv: tuple[str, ...]
    exit_code: int
    stdout_lines: tuple[str, ...] = ()
    stderr: str = ""


class Branch(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    is_current: bool = False
    commit: str | None = None
    subject: str | None = None


class Tag(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    target: str | None = None
    message: str | None = None

    @property
    def is_annotated(self) -> bool:
        return self.message is not None


class Person(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    date: datetime


class Commit(BaseModel):
    """A commit as printed by ``git show --pretty=raw``."""

    model_config = ConfigDict(frozen=True)

    hash: str
    tree: str
    parents: tuple[str, ...] = ()
    author: Person
    committer: Person
    message: str = ""

    @property
    def short_hash(self) -> str:
        return self.hash[:7]

    @property
    def subject(self) -> str:
        return self.message.split("\n", 1)[0]

    @property
    def date(self) -> datetime:
        return self.author.date

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1


class TreeEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: str
    type: ObjectType
    hash: str
    path: str

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def is_dir(self) -> bool:
        return self.type == "tree"


class Tree(BaseModel):
    """Snapshot of a tree listing at ``ref``, scoped to ``path``.

    Entries keep the order git printed them in. Lookup accepts an integer
    index, the entry's full path, or its path relative to the tree's path.
    """

    model_config = ConfigDict(frozen=True)

    ref: str
    path: str = ""
    entries: tuple[TreeEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[TreeEntry]:  # type: ignore[override]
        return iter(self.entries)

    def __getitem__(self, key: int | str) -> TreeEntry:
        if isinstance(key, int):
            return self.entries[key]
        found = self.get(key)
        if found is None:
            raise KeyError(key)
        return found

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def get(self, path: str) -> TreeEntry | None:
        prefix = self.path.strip("/")
        candidates = {path.strip("/")}
        if prefix:
            candidates.add(f"{prefix}/{path.strip('/')}")
        for entry in self.entries:
            if entry.path in candidates:
                return entry
        return None


class Log(BaseModel):
    """Commits reachable from ``ref``, in the order git emitted them."""

    model_config = ConfigDict(frozen=True)

    ref: str
    branch: str | None = None
    commits: tuple[Commit, ...] = ()

    def __len__(self) -> int:
        return len(self.commits)

    def __iter__(self) -> Iterator[Commit]:  # type: ignore[override]
        return iter(self.commits)

    def __getitem__(self, index: int) -> Commit:
        return self.commits[index]


class DiffChunk(BaseModel):
    """One ``@@`` hunk of a file diff."""

    model_config = ConfigDict(frozen=True)

    header: str
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: tuple[str, ...] = ()

    @property
    def text(self) -> str:
        return "\n".join((self.header, *self.lines))


class FileDiff(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    old_path: str | None = None
    change: ChangeKind = "modified"
    is_binary: bool = False
    chunks: tuple[DiffChunk, ...] = ()

    @property
    def hunk_text(self) -> str:
        return "\n".join(chunk.text for chunk in self.chunks)


class Diff(BaseModel):
    model_config = ConfigDict(frozen=True)

    commit: str
    path: str | None = None
    files: tuple[FileDiff, ...] = ()

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self) -> Iterator[FileDiff]:  # type: ignore[override]
        return iter(self.files)

    def __getitem__(self, index: int) -> FileDiff:
        return self.files[index]


class FileChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    status: FileStatus


class GitStatus(BaseModel):
    """Parsed output of git status --porcelain=v2 --branch."""

    model_config = ConfigDict(frozen=True)

    branch: str
    tracking: str | None = None
    ahead: int = 0
    behind: int = 0
    staged: tuple[FileChange, ...] = ()
    unstaged: tuple[FileChange, ...] = ()
    untracked: tuple[str, ...] = ()

    @property
    def is_clean(self) -> bool:
        return not (self.staged or self.unstaged or self.untracked)
