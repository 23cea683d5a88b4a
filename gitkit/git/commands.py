"""Pure argv builders for git commands.

Every builder returns a fresh ``list[str]`` of discrete tokens. Nothing here
is ever joined into a shell string, so messages and names containing spaces
or quotes reach git untouched. ``None`` means "flag omitted"; an empty string
is a value.
"""

import re

from gitkit.exceptions import CommandArgumentError

RAW_FORMAT = "--pretty=raw"
TAG_FIELD_DELIMITER = "||"
# Annotated tags print name||commit||subject, lightweight tags name||commit.
TAG_LIST_FORMAT = (
    "%(refname:strip=2)"
    "%(if)%(*objectname)%(then)"
    f"{TAG_FIELD_DELIMITER}%(*objectname){TAG_FIELD_DELIMITER}%(contents:subject)"
    f"%(else){TAG_FIELD_DELIMITER}%(objectname)%(end)"
)

_CONTROL_OR_SPACE_RE = re.compile(r"[\x00-\x20\x7f]")
_REF_NAME_FORBIDDEN_RE = re.compile(r"\.\.|@\{|[~^:?*\[\\]")


def _check_ref(value: str, what: str = "ref") -> str:
    if not isinstance(value, str) or not value:
        raise CommandArgumentError(f"{what} must be a non-empty string")
    if value.startswith("-"):
        raise CommandArgumentError(f"{what} must not start with '-': {value}")
    if _CONTROL_OR_SPACE_RE.search(value):
        raise CommandArgumentError(
            f"{what} must not contain whitespace or control characters: {value!r}"
        )
    return value


def _check_ref_name(value: str, what: str) -> str:
    """Stricter check for names git will store under refs/."""
    _check_ref(value, what)
    if _REF_NAME_FORBIDDEN_RE.search(value):
        raise CommandArgumentError(f"invalid {what}: {value}")
    if value.endswith(("/", ".", ".lock")) or value.startswith("/") or "//" in value:
        raise CommandArgumentError(f"invalid {what}: {value}")
    return value


def _check_path(value: str) -> str:
    if not isinstance(value, str) or not value:
        raise CommandArgumentError("path must be a non-empty string")
    return value


# -- repository lifecycle ----------------------------------------------------


def init(*, bare: bool = False) -> list[str]:
    args = ["init"]
    if bare:
        args.append("--bare")
    return args


def add(path: str = ".") -> list[str]:
    return ["add", "--", _check_path(path)]


def commit(message: str, *, amend: bool = False) -> list[str]:
    if not isinstance(message, str) or not message.strip():
        raise CommandArgumentError("commit message must not be empty")
    args = ["commit", "-m", message]
    if amend:
        args.append("--amend")
    return args


def status(*, porcelain: bool = False) -> list[str]:
    if porcelain:
        return ["status", "--porcelain=v2", "--branch"]
    return ["status"]


def checkout(ref: str) -> list[str]:
    return ["checkout", _check_ref(ref)]


# -- branches ----------------------------------------------------------------


def branch_create(name: str, start_point: str | None = None) -> list[str]:
    args = ["branch", _check_ref_name(name, "branch name")]
    if start_point is not None:
        args.append(_check_ref(start_point, "start point"))
    return args


def branch_delete(name: str, *, force: bool = False) -> list[str]:
    return ["branch", "-D" if force else "-d", _check_ref_name(name, "branch name")]


def branch_list() -> list[str]:
    return ["branch", "--list", "-v", "--no-abbrev", "--no-color"]


# -- tags --------------------------------------------------------------------


def tag_create(
    name: str, start_point: str | None = None, message: str | None = None
) -> list[str]:
    _check_ref_name(name, "tag name")
    args = ["tag"]
    if message is not None:
        args.extend(["-m", message])
    args.append(name)
    if start_point is not None:
        args.append(_check_ref(start_point, "start point"))
    return args


def tag_delete(name: str) -> list[str]:
    return ["tag", "-d", _check_ref_name(name, "tag name")]


def tag_list() -> list[str]:
    return ["tag", "--list", f"--format={TAG_LIST_FORMAT}"]


# -- trees, commits, diffs, logs ---------------------------------------------


def ls_tree(ref: str = "HEAD", path: str = "") -> list[str]:
    """List the children of ``path`` (the root when empty) at ``ref``."""
    args = ["ls-tree", _check_ref(ref)]
    subpath = path.strip("/")
    if subpath:
        args.extend(["--", f"{subpath}/"])
    return args


def ls_tree_entry(ref: str, path: str) -> list[str]:
    """List the single entry named by ``path`` at ``ref``."""
    subpath = _check_path(path).strip("/")
    if not subpath:
        raise CommandArgumentError("path must name an entry, not the root")
    return ["ls-tree", _check_ref(ref), "--", subpath]


def show_commit(ref: str = "HEAD") -> list[str]:
    return ["show", "-s", RAW_FORMAT, "--no-color", _check_ref(ref)]


def diff(commit: str, parent: str | None = None, path: str | None = None) -> list[str]:
    """Diff ``commit`` against ``parent``, or against the empty tree for a root."""
    _check_ref(commit, "commit")
    if parent is not None:
        args = [
            "diff",
            "--full-index",
            "--no-color",
            "--no-ext-diff",
            "-M",
            _check_ref(parent, "parent"),
            commit,
        ]
    else:
        args = ["diff-tree", "--root", "-p", "--full-index", "--no-color", "-M", commit]
    if path is not None:
        args.extend(["--", _check_path(path)])
    return args


def merge_base(ref: str, other: str) -> list[str]:
    """List every best common ancestor of ``ref`` and ``other``."""
    return ["merge-base", "--all", _check_ref(ref), _check_ref(other, "branch")]


def log(
    *revisions: str,
    max_count: int | None = None,
    path: str | None = None,
) -> list[str]:
    """History reachable from any of ``revisions`` (HEAD when none given)."""
    args = ["log", "-s", RAW_FORMAT, "--no-color"]
    if max_count is not None:
        if max_count < 1:
            raise CommandArgumentError(f"max_count must be positive: {max_count}")
        args.append(f"--max-count={max_count}")
    args.extend(_check_ref(rev) for rev in revisions or ("HEAD",))
    if path is not None:
        args.extend(["--", _check_path(path)])
    return args
