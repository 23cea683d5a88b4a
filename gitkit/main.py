"""CLI entry point for gitkit."""

import asyncio
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Optional, TypeVar

import structlog
import typer

from gitkit.app import build_repository, configure_logging, load_config
from gitkit.exceptions import GitKitError
from gitkit.git import formatter
from gitkit.git.repository import Repository

logger = structlog.get_logger()

T = TypeVar("T")

app = typer.Typer(help="Inspect a git repository through gitkit's typed models.")

RepoOption = typer.Option(Path("."), "--repo", "-C", help="Repository directory")


def _run(repo: Path, op: Callable[[Repository], Awaitable[T]]) -> T:
    try:
        config = load_config()
        configure_logging(config)
        repository = build_repository(repo, config)
        return asyncio.run(op(repository))
    except GitKitError as e:
        logger.debug("cli_command_failed", error=str(e))
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e


@app.command()
def status(repo: Path = RepoOption) -> None:
    """Show the working tree status."""
    typer.echo(formatter.format_status(_run(repo, lambda r: r.get_status_summary())))


@app.command()
def branches(repo: Path = RepoOption) -> None:
    """List local branches, primary branch first."""
    typer.echo(formatter.format_branches(_run(repo, lambda r: r.get_branches())))


@app.command()
def tags(repo: Path = RepoOption) -> None:
    """List tags."""
    typer.echo(formatter.format_tags(_run(repo, lambda r: r.get_tags())))


@app.command()
def log(
    ref: str = typer.Argument("HEAD"),
    max_count: int = typer.Option(20, "--max-count", "-n"),
    branch: Optional[str] = typer.Option(
        None, "--branch", "-b", help="Only commits also reachable from this branch"
    ),
    repo: Path = RepoOption,
) -> None:
    """Show commit history for REF."""
    result = _run(repo, lambda r: r.get_log(ref, branch, max_count=max_count))
    typer.echo(formatter.format_log(result, max_entries=max_count))


@app.command()
def show(ref: str = typer.Argument("HEAD"), repo: Path = RepoOption) -> None:
    """Show one commit."""
    typer.echo(formatter.format_commit(_run(repo, lambda r: r.get_commit(ref))))


@app.command()
def tree(
    ref: str = typer.Argument("HEAD"),
    path: str = typer.Argument(""),
    repo: Path = RepoOption,
) -> None:
    """List the tree at REF, optionally below PATH."""
    typer.echo(formatter.format_tree(_run(repo, lambda r: r.get_tree(ref, path))))


@app.command()
def diff(
    ref: str = typer.Argument("HEAD"),
    path: Optional[str] = typer.Option(None, "--path", "-p"),
    repo: Path = RepoOption,
) -> None:
    """Show the changes introduced by commit REF."""
    result = _run(repo, lambda r: r.get_commit_diff(ref, path))
    typer.echo(formatter.format_diff(result))


def run() -> None:
    try:
        app()
    except KeyboardInterrupt:
        sys.exit(130)
