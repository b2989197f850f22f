"""Main CLI entry point for snapvcs."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.panel import Panel

from snapvcs.constants import (
    DEFAULT_BRANCH,
    DEFAULT_LOG_LEVEL,
    ENV_LOG_LEVEL,
    ENV_ROOT,
    EXIT_INTERRUPTED,
)
from snapvcs.core import Repository
from snapvcs.core.formatting import format_diff, format_log
from snapvcs.errors import VCSError
from snapvcs.logging_config import configure_logging

logger = logging.getLogger(__name__)

console = Console()
app = typer.Typer(
    name="snapvcs",
    help="Minimal snapshot-based version control for a local directory",
    add_completion=False,
)


def _size_str(size_bytes: int) -> str:
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.2f} MB"


def _repo(ctx: typer.Context) -> Repository:
    return Repository(ctx.obj["root"])


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Print a failed operation's fixed message and exit with its code."""
    try:
        yield
    except VCSError as e:
        logger.debug("command failed: %s", e, exc_info=True)
        console.print(f"[bold red]Error:[/bold red] {e.message}", style="red")
        raise typer.Exit(e.exit_code)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        raise typer.Exit(EXIT_INTERRUPTED)


@app.callback()
def cli(
    ctx: typer.Context,
    root: Optional[Path] = typer.Option(
        None,
        "--root",
        "-C",
        envvar=ENV_ROOT,
        help="Workspace root (default: current directory)",
    ),
    log_level: str = typer.Option(
        DEFAULT_LOG_LEVEL,
        "--log-level",
        envvar=ENV_LOG_LEVEL,
        help="Logging level: DEBUG, INFO, WARNING, ERROR",
    ),
) -> None:
    """Minimal snapshot-based version control for a local directory."""
    try:
        configure_logging(log_level)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level")
    ctx.obj = {"root": root if root is not None else Path.cwd()}


@app.command()
def version() -> None:
    """Show snapvcs version."""
    from snapvcs import __version__
    typer.echo(f"snapvcs version {__version__}")


@app.command()
def init(
    ctx: typer.Context,
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress output except errors",
    ),
) -> None:
    """Initialize a snapvcs repository in the workspace root."""
    repo = _repo(ctx)
    with _handle_errors():
        commit_hash = repo.init()

    if not quiet:
        success_message = f"""[bold green]✓[/bold green] Initialized snapvcs repository

[dim]Repository root:[/dim] {repo.workspace_root}
[dim]Storage location:[/dim] {repo.snapvcs_dir}
[dim]Initial commit:[/dim] {commit_hash[:7]} on {DEFAULT_BRANCH}

[bold]Next steps:[/bold]
  1. Stage files: [cyan]snapvcs add <files>[/cyan]
  2. Record a snapshot: [cyan]snapvcs commit -m "message"[/cyan]
  3. Check the workspace: [cyan]snapvcs status[/cyan]
"""
        console.print(Panel(success_message, border_style="green", title="snapvcs Initialized"))


@app.command()
def add(
    ctx: typer.Context,
    paths: list[str] = typer.Argument(..., help="Files or directories to add"),
    force: bool = typer.Option(
        False,
        "--force",
        help="Override .snapvcsignore rules",
    ),
) -> None:
    """Add files to the staging area."""
    repo = _repo(ctx)
    with _handle_errors():
        stats = repo.add(paths, force=force)

    for label, style, marker in (("added", "green", "+"), ("updated", "yellow", "*")):
        if not stats[label]:
            continue
        console.print(f"[bold {style}]{label.capitalize()}:[/bold {style}]")
        for path_str in stats[label]:
            size_str = _size_str((repo.workspace_root / path_str).stat().st_size)
            console.print(f"  [{style}]{marker}[/{style}] {path_str}  [dim]({size_str})[/dim]")

    if stats["ignored"]:
        console.print("[bold dim]Ignored:[/bold dim]")
        for path_str in stats["ignored"]:
            console.print(f"  [dim]-[/dim] {path_str}  [dim](.snapvcsignore)[/dim]")

    total_added = len(stats["added"]) + len(stats["updated"])
    if total_added > 0:
        console.print(f"\n[bold green]>[/bold green] {total_added} file(s) staged for commit")
    elif stats["ignored"]:
        console.print("\n[yellow]No files staged. All files were ignored.[/yellow]")
        console.print("  Use [bold]--force[/bold] to override .snapvcsignore rules")
    else:
        console.print("\n[yellow]No files found to add[/yellow]")


@app.command("rm")
def remove(
    ctx: typer.Context,
    paths: list[str] = typer.Argument(..., help="Files to unstage or mark for removal"),
) -> None:
    """Unstage a file, or stage a tracked file for removal."""
    repo = _repo(ctx)
    with _handle_errors():
        stats = repo.remove(paths)

    for path_str in stats["unstaged"]:
        console.print(f"  [yellow]*[/yellow] {path_str}  [dim](unstaged)[/dim]")
    for path_str in stats["removed"]:
        console.print(f"  [red]-[/red] {path_str}  [dim](staged for removal)[/dim]")


@app.command()
def commit(
    ctx: typer.Context,
    message: Optional[str] = typer.Option(
        None,
        "--message",
        "-m",
        help="Commit message (required)",
    ),
) -> None:
    """Commit staged files as a snapshot."""
    repo = _repo(ctx)
    with _handle_errors():
        commit_hash = repo.commit(message or "")
        _, head = repo.head()

    console.print(f"[bold green]>[/bold green] Committed [bold cyan]{commit_hash[:7]}[/bold cyan]")
    console.print(f"  [dim]Parent:[/dim]  {head.parent[:7] if head.parent else '(root commit)'}")
    console.print(f"  [dim]Files:[/dim]   {len(head.snapshot)}")
    console.print(f"\n  {head.message}")


@app.command()
def status(ctx: typer.Context) -> None:
    """Show branches, staged changes and working-tree changes."""
    repo = _repo(ctx)
    with _handle_errors():
        text = repo.status_text()
    typer.echo(text)


@app.command()
def branch(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Name of the branch to create"),
) -> None:
    """List branches, or create one at the current commit."""
    repo = _repo(ctx)
    with _handle_errors():
        if name is None:
            branches = repo.branches()
        else:
            commit_hash = repo.create_branch(name)

    if name is None:
        for b in branches:
            typer.echo(f"*{b.name}" if b.active else b.name)
    else:
        console.print(
            f"[bold green]>[/bold green] Created branch [bold]{name}[/bold] "
            f"at [cyan]{commit_hash[:7] or '(no commit)'}[/cyan]"
        )


@app.command()
def log(
    ctx: typer.Context,
    max_count: Optional[int] = typer.Option(
        None,
        "--max-count",
        "-n",
        min=1,
        help="Limit number of commits to show",
    ),
    oneline: bool = typer.Option(
        False,
        "--oneline",
        help="Show each commit on a single line",
    ),
) -> None:
    """Show commit history of the active branch."""
    repo = _repo(ctx)
    with _handle_errors():
        entries = repo.log(max_count)
    typer.echo(format_log(entries, oneline=oneline))


@app.command()
def diff(
    ctx: typer.Context,
    old: Optional[str] = typer.Argument(None, help="Old revision (default: parent of NEW)"),
    new: Optional[str] = typer.Argument(None, help="New revision (default: HEAD)"),
) -> None:
    """Show which paths differ between two commits."""
    repo = _repo(ctx)
    with _handle_errors():
        changes = repo.diff(old, new)
    typer.echo(format_diff(changes))


@app.command()
def reproduce(
    ctx: typer.Context,
    revision: str = typer.Argument(..., help="Commit hash, prefix, branch or HEAD"),
    output_dir: Optional[str] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Output directory (default: reproduce_<hash>/)",
    ),
) -> None:
    """Restore files from a historical commit into a separate directory."""
    repo = _repo(ctx)
    with _handle_errors():
        commit_hash, output_path, restored = repo.reproduce(revision, output_dir)

    console.print(f"[bold]Reproducing commit:[/bold] {commit_hash[:7]}")
    if not restored:
        console.print("[yellow]No files in this commit[/yellow]")
        return
    for rel_path in restored:
        console.print(f"  [green]✓[/green] {rel_path}")
    console.print(f"\n[bold green]✓[/bold green] Reproduced {len(restored)} file(s)")
    console.print(f"  [dim]Output directory:[/dim] {output_path}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
