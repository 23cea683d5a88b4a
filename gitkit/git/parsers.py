"""Pure parsers turning git output lines into models.

Each parser takes the raw stdout lines of one command family. Collection
parsers return an empty list for empty input; single-entity parsers raise
EntityNotFoundError instead.
"""

import re
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from gitkit.exceptions import EntityNotFoundError, InvariantViolationError, ParseError
from gitkit.git.commands import TAG_FIELD_DELIMITER
from gitkit.git.models import (
    Branch,
    ChangeKind,
    Commit,
    DiffChunk,
    FileChange,
    FileDiff,
    GitStatus,
    Person,
    Tag,
    TreeEntry,
)

CURRENT_MARKER = "* "
WORKTREE_MARKER = "+ "

_HASH_RE = re.compile(r"^[0-9a-f]{40}(?:[0-9a-f]{24})?$")
_TREE_LINE_RE = re.compile(
    r"^(?P<mode>\d{6}) (?P<type>blob|tree|commit) "
    r"(?P<hash>[0-9a-f]{40}(?:[0-9a-f]{24})?)\t(?P<path>.+)$"
)
_PERSON_RE = re.compile(
    r"^(?P<name>.*?) <(?P<email>[^>]*)> (?P<ts>-?\d+) (?P<tz>[+-]\d{4})$"
)
_HUNK_RE = re.compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? "
    r"\+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@"
)
_MESSAGE_INDENT = "    "
_QUOTED_PATH_RE = re.compile(r'"(?:[^"\\]|\\.)*"')
_C_ESCAPE_RE = re.compile(rb"\\([0-3][0-7]{2}|.)", re.DOTALL)
_C_ESCAPES = {
    b"a": b"\a",
    b"b": b"\b",
    b"t": b"\t",
    b"n": b"\n",
    b"v": b"\v",
    b"f": b"\f",
    b"r": b"\r",
}


def _unescape_c(match: re.Match[bytes]) -> bytes:
    token = match.group(1)
    if len(token) == 3:
        return bytes([int(token, 8)])
    return _C_ESCAPES.get(token, token)


def _unquote(path: str) -> str:
    """Undo git's C-style quoting of unusual paths.

    Escapes are resolved on the UTF-8 bytes so octal sequences and literal
    non-ASCII characters (left as-is under ``core.quotepath=false``) combine
    into the original file name.
    """
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path
    raw = _C_ESCAPE_RE.sub(_unescape_c, path[1:-1].encode("utf-8"))
    return raw.decode("utf-8", errors="replace")


# -- status ------------------------------------------------------------------


def parse_status(lines: Sequence[str]) -> list[str]:
    return [line.strip() for line in lines]


def parse_status_porcelain(lines: Sequence[str]) -> GitStatus:
    """Parse ``git status --porcelain=v2 --branch`` into a GitStatus."""
    fields: dict = {"branch": "HEAD"}
    staged: list[FileChange] = []
    unstaged: list[FileChange] = []
    untracked: list[str] = []

    for line in lines:
        if line.startswith("# "):
            _apply_branch_header(line, fields)
        elif line.startswith(("1 ", "2 ")):
            # 1 XY sub mH mI mW hH hI path
            # 2 XY sub mH mI mW hH hI Xscore path\torigPath
            max_split = 9 if line.startswith("2 ") else 8
            parts = line.split(" ", max_split)
            if len(parts) < max_split + 1:
                raise ParseError("malformed status entry", line)
            path = _unquote(parts[max_split].split("\t", 1)[0])
            x, y = parts[1][0], parts[1][1]
            if x != ".":
                staged.append(FileChange(path=path, status=_porcelain_status(x)))
            if y != ".":
                unstaged.append(FileChange(path=path, status=_porcelain_status(y)))
        elif line.startswith("u "):
            parts = line.split(" ", 10)
            if len(parts) < 11:
                raise ParseError("malformed unmerged entry", line)
            staged.append(FileChange(path=_unquote(parts[10]), status="conflicted"))
        elif line.startswith("? "):
            untracked.append(_unquote(line[2:]))
        elif line.startswith("! ") or not line:
            continue
        else:
            raise ParseError("unrecognized status line", line)

    return GitStatus(
        **fields,
        staged=tuple(staged),
        unstaged=tuple(unstaged),
        untracked=tuple(untracked),
    )


def _apply_branch_header(line: str, fields: dict) -> None:
    key, _, value = line[2:].partition(" ")
    if key == "branch.head":
        fields["branch"] = value
    elif key == "branch.upstream":
        fields["tracking"] = value
    elif key == "branch.ab":
        for part in value.split():
            if part.startswith("+"):
                fields["ahead"] = int(part[1:])
            elif part.startswith("-"):
                fields["behind"] = int(part[1:])


def _porcelain_status(code: str) -> str:
    return {
        "M": "modified",
        "T": "modified",
        "A": "added",
        "D": "deleted",
        "R": "renamed",
        "C": "copied",
        "U": "conflicted",
    }.get(code, "modified")


# -- branches ----------------------------------------------------------------


def parse_branch_line(line: str) -> Branch:
    """Parse one line of ``git branch -v --no-abbrev`` (or a bare name)."""
    is_current = line.startswith(CURRENT_MARKER)
    if is_current or line.startswith(WORKTREE_MARKER):
        rest = line[len(CURRENT_MARKER) :]
    else:
        rest = line
    parts = rest.strip().split(None, 2)
    if not parts:
        raise ParseError("empty branch line", line)

    commit = None
    subject = None
    if len(parts) > 1:
        if not _HASH_RE.match(parts[1]):
            raise ParseError("expected a commit hash after the branch name", line)
        commit = parts[1]
        subject = parts[2] if len(parts) > 2 else ""
    return Branch(name=parts[0], is_current=is_current, commit=commit, subject=subject)


def _is_detached_head(line: str) -> bool:
    return line.startswith(CURRENT_MARKER) and line[2:].startswith("(")


def parse_branches(lines: Sequence[str]) -> list[Branch]:
    branches: list[Branch] = []
    for line in lines:
        if not line.strip() or _is_detached_head(line):
            continue
        branches.append(parse_branch_line(line))

    current = [b.name for b in branches if b.is_current]
    if len(current) > 1:
        raise InvariantViolationError(
            f"git reported {len(current)} current branches: {', '.join(current)}"
        )
    return branches


def sort_branches(branches: Sequence[Branch], primary: str = "master") -> list[Branch]:
    """Put ``primary`` first and keep every other branch in input order."""
    return sorted(branches, key=lambda b: b.name != primary)


def select_current_branch(branches: Sequence[Branch]) -> Branch:
    current = [b for b in branches if b.is_current]
    if len(current) != 1:
        raise InvariantViolationError(
            f"expected exactly one checked-out branch, found {len(current)}"
        )
    return current[0]


# -- tags --------------------------------------------------------------------


def parse_tag_line(line: str) -> Tag:
    fields = line.split(TAG_FIELD_DELIMITER, 2)
    if not fields[0]:
        raise ParseError("tag line has no name", line)
    if len(fields) == 1:
        return Tag(name=fields[0])
    target = fields[1] or None
    if target is not None and not _HASH_RE.match(target):
        raise ParseError("tag target is not a commit hash", line)
    if len(fields) == 2:
        return Tag(name=fields[0], target=target)
    return Tag(name=fields[0], target=target, message=fields[2])


def parse_tags(lines: Sequence[str]) -> list[Tag]:
    return [parse_tag_line(line) for line in lines if line.strip()]


# -- trees -------------------------------------------------------------------


def parse_tree_line(line: str) -> TreeEntry:
    match = _TREE_LINE_RE.match(line)
    if match is None:
        raise ParseError("malformed ls-tree line", line)
    return TreeEntry(
        mode=match["mode"],
        type=match["type"],  # type: ignore[arg-type]
        hash=match["hash"],
        path=_unquote(match["path"]),
    )


def parse_tree(lines: Sequence[str]) -> list[TreeEntry]:
    return [parse_tree_line(line) for line in lines if line]


def parse_tree_entry(lines: Sequence[str]) -> TreeEntry:
    entries = parse_tree(lines)
    if not entries:
        raise EntityNotFoundError("no tree entry at the requested path")
    if len(entries) > 1:
        raise ParseError(f"expected one tree entry, got {len(entries)}")
    return entries[0]


# -- commits -----------------------------------------------------------------


def parse_person(value: str) -> Person:
    match = _PERSON_RE.match(value)
    if match is None:
        raise ParseError("malformed identity", value)
    tz = match["tz"]
    offset = timedelta(hours=int(tz[1:3]), minutes=int(tz[3:5]))
    if tz[0] == "-":
        offset = -offset
    return Person(
        name=match["name"],
        email=match["email"],
        date=datetime.fromtimestamp(int(match["ts"]), tz=timezone(offset)),
    )


def _build_commit(headers: dict, parents: list[str], message: list[str]) -> Commit:
    for key in ("tree", "author", "committer"):
        if key not in headers:
            raise ParseError(f"commit {headers['commit']} has no {key} header")
    while message and not message[-1]:
        message.pop()
    return Commit(
        hash=headers["commit"],
        tree=headers["tree"],
        parents=tuple(parents),
        author=parse_person(headers["author"]),
        committer=parse_person(headers["committer"]),
        message="\n".join(message),
    )


def parse_commits(lines: Sequence[str]) -> list[Commit]:
    """Parse a stream of ``--pretty=raw`` commit blocks.

    Anything before the first ``commit`` header (such as the tag object
    ``git show`` prints for an annotated tag) is skipped. Unknown headers
    like ``gpgsig`` and their continuation lines are ignored.
    """
    commits: list[Commit] = []
    headers: dict | None = None
    parents: list[str] = []
    message: list[str] = []
    in_message = False

    for line in lines:
        if line.startswith("commit "):
            if headers is not None:
                commits.append(_build_commit(headers, parents, message))
            sha = line[len("commit ") :].split()[0]
            if not _HASH_RE.match(sha):
                raise ParseError("malformed commit header", line)
            headers, parents, message, in_message = {"commit": sha}, [], [], False
        elif headers is None:
            continue
        elif in_message:
            if line.startswith(_MESSAGE_INDENT):
                message.append(line[len(_MESSAGE_INDENT) :])
            elif not line.strip():
                message.append("")
            else:
                raise ParseError("unexpected line in commit message", line)
        elif not line:
            in_message = True
        elif line.startswith(" "):
            # continuation of a multi-line header (gpgsig, mergetag)
            continue
        else:
            key, _, value = line.partition(" ")
            if key == "parent":
                parents.append(value)
            elif key in ("tree", "author", "committer"):
                headers[key] = value

    if headers is not None:
        commits.append(_build_commit(headers, parents, message))
    return commits


def parse_commit(lines: Sequence[str]) -> Commit:
    commits = parse_commits(lines)
    if not commits:
        raise EntityNotFoundError("git show produced no commit")
    if len(commits) > 1:
        raise ParseError(f"expected one commit, got {len(commits)}")
    return commits[0]


# -- diffs -------------------------------------------------------------------


def _paths_from_diff_header(line: str) -> tuple[str, str]:
    rest = line[len("diff --git ") :]
    quoted = _QUOTED_PATH_RE.match(rest)
    if quoted:
        old, new = quoted.group(), rest[quoted.end() + 1 :]
        return _unquote(old)[2:], _unquote(new)[2:]
    # "a/X b/X": both halves are equal unless the file was renamed
    half = (len(rest) - 5) // 2
    if rest.startswith("a/") and rest[2 + half : 5 + half] == " b/":
        old, new = rest[2 : 2 + half], rest[5 + half :]
        if old == new:
            return old, new
    old, sep, new = rest.partition(" b/")
    if not sep:
        raise ParseError("malformed diff header", line)
    return old.removeprefix("a/"), new


class _FileDiffBuilder:
    def __init__(self, header: str) -> None:
        self.old_path, self.path = _paths_from_diff_header(header)
        self.change: ChangeKind = "modified"
        self.is_binary = False
        self.chunks: list[DiffChunk] = []
        self.hunk: dict | None = None
        self.old_left = 0
        self.new_left = 0

    @property
    def in_hunk_body(self) -> bool:
        return self.hunk is not None and (self.old_left > 0 or self.new_left > 0)

    def header_line(self, line: str) -> None:
        if line.startswith("new file mode"):
            self.change = "added"
        elif line.startswith("deleted file mode"):
            self.change = "deleted"
        elif line.startswith("rename from "):
            self.change, self.old_path = "renamed", _unquote(line[12:])
        elif line.startswith("rename to "):
            self.path = _unquote(line[10:])
        elif line.startswith("copy from "):
            self.change, self.old_path = "copied", _unquote(line[10:])
        elif line.startswith("copy to "):
            self.path = _unquote(line[8:])
        elif line.startswith("new mode") and self.change == "modified":
            self.change = "mode"
        elif line.startswith("Binary files ") or line == "GIT binary patch":
            self.is_binary = True
        elif line.startswith("--- ") and line != "--- /dev/null":
            self.old_path = _unquote(line[4:].rstrip("\t"))[2:]
        elif line.startswith("+++ ") and line != "+++ /dev/null":
            self.path = _unquote(line[4:].rstrip("\t"))[2:]

    def start_hunk(self, line: str) -> None:
        self.close_hunk()
        match = _HUNK_RE.match(line)
        if match is None:
            raise ParseError("malformed hunk header", line)
        old_count = int(match["old_count"] or 1)
        new_count = int(match["new_count"] or 1)
        self.hunk = {
            "header": line,
            "old_start": int(match["old_start"]),
            "old_count": old_count,
            "new_start": int(match["new_start"]),
            "new_count": new_count,
            "lines": [],
        }
        self.old_left, self.new_left = old_count, new_count

    def hunk_line(self, line: str) -> None:
        assert self.hunk is not None
        marker = line[:1]
        if marker == "-":
            self.old_left -= 1
        elif marker == "+":
            self.new_left -= 1
        elif marker in (" ", ""):
            self.old_left -= 1
            self.new_left -= 1
        elif marker != "\\":
            raise ParseError("unexpected line in hunk", line)
        self.hunk["lines"].append(line)

    def close_hunk(self) -> None:
        if self.hunk is not None:
            self.hunk["lines"] = tuple(self.hunk["lines"])
            self.chunks.append(DiffChunk(**self.hunk))
            self.hunk = None

    def build(self) -> FileDiff:
        self.close_hunk()
        return FileDiff(
            path=self.old_path if self.change == "deleted" else self.path,
            old_path=self.old_path if self.change in ("renamed", "copied") else None,
            change=self.change,
            is_binary=self.is_binary,
            chunks=tuple(self.chunks),
        )


def parse_diff(lines: Sequence[str]) -> list[FileDiff]:
    """Parse unified ``git diff`` output into per-file records."""
    files: list[FileDiff] = []
    current: _FileDiffBuilder | None = None

    for line in lines:
        if current is not None and current.in_hunk_body:
            current.hunk_line(line)
        elif line.startswith("diff --git "):
            if current is not None:
                files.append(current.build())
            current = _FileDiffBuilder(line)
        elif current is None:
            continue
        elif line.startswith("@@ "):
            current.start_hunk(line)
        elif current.hunk is not None:
            if not line.startswith("\\"):
                raise ParseError("unexpected line after hunk", line)
            current.hunk_line(line)
        else:
            current.header_line(line)

    if current is not None:
        files.append(current.build())
    return files
