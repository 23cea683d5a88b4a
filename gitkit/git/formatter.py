"""Pure functions to format git models as plain text."""

from gitkit.git.models import Branch, Commit, Diff, GitStatus, Log, Tag, Tree

_STATUS_LETTER = {
    "modified": "M",
    "added": "A",
    "deleted": "D",
    "renamed": "R",
    "copied": "C",
    "conflicted": "U",
    "untracked": "?",
}


def format_status(status: GitStatus) -> str:
    """Format GitStatus for display."""
    branch_line = f"On branch {status.branch}"
    if status.tracking:
        tracking_parts = [f"tracking {status.tracking}"]
        if status.ahead:
            tracking_parts.append(f"{status.ahead} ahead")
        if status.behind:
            tracking_parts.append(f"{status.behind} behind")
        branch_line += f" ({', '.join(tracking_parts)})"
    lines: list[str] = [branch_line]

    for title, changes in (("Staged:", status.staged), ("Unstaged:", status.unstaged)):
        if changes:
            lines.append("")
            lines.append(title)
            for change in changes:
                letter = _STATUS_LETTER.get(change.status, "?")
                lines.append(f"  {letter} {change.path}")

    if status.untracked:
        lines.append("")
        lines.append("Untracked:")
        for path in status.untracked:
            lines.append(f"  {path}")

    if status.is_clean:
        lines.append("")
        lines.append("Working tree clean")

    return "\n".join(lines)


def format_branches(branches: list[Branch], max_display: int = 50) -> str:
    if not branches:
        return "No branches found."

    width = max(len(b.name) for b in branches[:max_display])
    lines: list[str] = []
    for branch in branches[:max_display]:
        marker = "* " if branch.is_current else "  "
        line = f"{marker}{branch.name:<{width}}"
        if branch.commit:
            line += f" {branch.commit[:7]} {branch.subject or ''}"
        lines.append(line.rstrip())

    if len(branches) > max_display:
        lines.append(f"... and {len(branches) - max_display} more")
    return "\n".join(lines)


def format_tags(tags: list[Tag]) -> str:
    if not tags:
        return "No tags found."

    width = max(len(t.name) for t in tags)
    lines: list[str] = []
    for tag in tags:
        target = tag.target[:7] if tag.target else "-"
        line = f"{tag.name:<{width}} {target}"
        if tag.message:
            line += f" {tag.message}"
        lines.append(line)
    return "\n".join(lines)


def format_commit(commit: Commit) -> str:
    lines = [f"commit {commit.hash}"]
    if commit.is_merge:
        lines.append(f"Merge: {' '.join(p[:7] for p in commit.parents)}")
    lines.append(f"Author: {commit.author.name} <{commit.author.email}>")
    lines.append(f"Date:   {commit.date.isoformat()}")
    lines.append("")
    lines.extend(f"    {line}" for line in commit.message.split("\n"))
    return "\n".join(lines)


def format_log(log: Log, max_entries: int = 20) -> str:
    """Format a log as one line per commit."""
    if not len(log):
        return "No commits found."

    lines: list[str] = []
    for commit in log.commits[:max_entries]:
        lines.append(f"{commit.short_hash} {commit.subject}")
        lines.append(f"    {commit.author.name}, {commit.date:%Y-%m-%d %H:%M}")
    if len(log) > max_entries:
        lines.append(f"... and {len(log) - max_entries} more")
    return "\n".join(lines)


def format_tree(tree: Tree) -> str:
    if not len(tree):
        return f"Empty tree at {tree.ref}:{tree.path}"
    return "\n".join(
        f"{entry.mode} {entry.type:<6} {entry.hash[:7]}  "
        f"{entry.name}{'/' if entry.is_dir else ''}"
        for entry in tree
    )


def format_diff(diff: Diff, max_length: int = 20_000) -> str:
    """Render a diff file by file, truncated to ``max_length`` characters."""
    if not len(diff):
        return "No changes to display."

    blocks: list[str] = []
    for file in diff:
        title = file.path
        if file.old_path:
            title = f"{file.old_path} -> {file.path}"
        header = f"{file.change}: {title}"
        if file.is_binary:
            blocks.append(f"{header}\n(binary)")
        else:
            blocks.append(f"{header}\n{file.hunk_text}".rstrip())
    text = "\n\n".join(blocks)

    if len(text) <= max_length:
        return text

    total_lines = text.count("\n")
    truncated = text[:max_length]
    # Cut at last newline to avoid partial lines
    last_nl = truncated.rfind("\n")
    if last_nl > 0:
        truncated = truncated[:last_nl]
    return f"{truncated}\n\n... truncated ({total_lines} total lines)"
