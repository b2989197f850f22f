"""Plain-text payloads for read-only commands.

The exact layout of these strings is part of the command contract, so they are
built here rather than in the CLI and never contain terminal markup.
"""

from datetime import datetime, timezone
from typing import List, Sequence, Tuple

from snapvcs.core.refs import Branch
from snapvcs.core.status import SnapshotDiff, StatusReport
from snapvcs.models import Commit

DATE_FORMAT = "%a %b %d %H:%M:%S %Y %z"


def _section(title: str, lines: Sequence[str]) -> str:
    return "\n".join([f"=== {title} ==="] + list(lines))


def format_status(report: StatusReport, branches: Sequence[Branch]) -> str:
    """Render a status report.

    Example:
        === Branches ===
        *main
        other-branch

        === Staged Files ===
        wug.txt

        === Removed Files ===
        goodbye.txt

        === Modifications Not Staged For Commit ===
        junk.txt (deleted)
        wug3.txt (modified)

        === Untracked Files ===
        random.stuff
    """
    branch_lines = [f"*{b.name}" if b.active else b.name for b in branches]
    sections = [
        _section("Branches", branch_lines),
        _section("Staged Files", sorted(report.staged)),
        _section("Removed Files", sorted(report.removed)),
        _section(
            "Modifications Not Staged For Commit",
            [f"{path} ({kind})" for path, kind in report.modifications],
        ),
        _section("Untracked Files", sorted(report.untracked)),
    ]
    return "\n\n".join(sections)


def format_timestamp(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime(DATE_FORMAT)


def format_log(entries: List[Tuple[str, Commit]], oneline: bool = False) -> str:
    """Render commit history, newest first."""
    if oneline:
        return "\n".join(
            f"{commit_hash[:7]} {commit.message.splitlines()[0] if commit.message else ''}"
            for commit_hash, commit in entries
        )

    blocks = []
    for commit_hash, commit in entries:
        blocks.append(
            "\n".join(
                [
                    "===",
                    f"commit {commit_hash}",
                    f"Date: {format_timestamp(commit.timestamp)}",
                    commit.message,
                ]
            )
        )
    return "\n\n".join(blocks)


def format_diff(diff: SnapshotDiff) -> str:
    """One line per changed path, sorted by path."""
    if diff.is_empty():
        return "No changes between revisions"

    lines = [(path, "+") for path in diff.added]
    lines += [(path, "-") for path in diff.deleted]
    lines += [(path, "~") for path in diff.modified]
    return "\n".join(f"{marker} {path}" for path, marker in sorted(lines))
