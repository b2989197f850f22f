"""Snapshot and status computation.

Scanning the working tree and classifying paths are kept separate: the scan
is a lazy generator of (path, content identifier) pairs, and classification is
a pure function over four mappings. Neither touches repository state.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    AbstractSet,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
)

from snapvcs.core.ignore import IgnoreRules
from snapvcs.errors import StorageFaultError
from snapvcs.storage.object_store import compute_hash

logger = logging.getLogger(__name__)

MODIFIED = "modified"
DELETED = "deleted"


def walk_files(
    root: Path,
    ignore_rules: IgnoreRules,
    start: Optional[Path] = None,
) -> Iterator[Tuple[str, Path]]:
    """Yield (relative POSIX path, absolute path) for every non-ignored file.

    Directories are visited in sorted order so the sequence is deterministic.
    Symlinks are skipped. Ignored directories are pruned, not descended.

    Args:
        root: Workspace root that paths are made relative to
        ignore_rules: Rules deciding what to skip
        start: Directory under ``root`` to walk; defaults to ``root``
    """
    root = Path(root)
    top = Path(start) if start is not None else root

    for dirpath, dirnames, filenames in os.walk(top):
        current = Path(dirpath)
        rel_dir = current.relative_to(root)

        kept = []
        for name in sorted(dirnames):
            rel = (rel_dir / name).as_posix()
            if (current / name).is_symlink() or ignore_rules.is_ignored(rel, is_dir=True):
                continue
            kept.append(name)
        dirnames[:] = kept

        for name in sorted(filenames):
            abs_path = current / name
            if abs_path.is_symlink() or not abs_path.is_file():
                continue
            rel = (rel_dir / name).as_posix()
            if ignore_rules.is_ignored(rel):
                continue
            yield rel, abs_path


def _hash_file(rel_path: str, abs_path: Path) -> str:
    try:
        content = abs_path.read_bytes()
    except OSError as e:
        raise StorageFaultError(path=rel_path, cause=e) from e
    return compute_hash(content)


def scan_working_tree(root: Path, ignore_rules: IgnoreRules) -> Iterator[Tuple[str, str]]:
    """Yield (relative path, content identifier) for every non-ignored file.

    The generator is restartable: calling it again rescans from scratch.

    Raises:
        StorageFaultError: If a file cannot be read
    """
    for rel_path, abs_path in walk_files(root, ignore_rules):
        yield rel_path, _hash_file(rel_path, abs_path)


def hash_known_files(root: Path, rel_paths: Iterable[str]) -> Iterator[Tuple[str, str]]:
    """Yield (relative path, content identifier) for each path that is a regular file.

    Ignore rules are not consulted: a path the repository already tracks or
    has staged is reported from disk even if an ignore pattern matches it.

    Raises:
        StorageFaultError: If a file cannot be read
    """
    for rel_path in sorted(rel_paths):
        abs_path = Path(root) / rel_path
        if abs_path.is_symlink() or not abs_path.is_file():
            continue
        yield rel_path, _hash_file(rel_path, abs_path)


@dataclass(frozen=True)
class StatusReport:
    """Classification of every interesting path in the workspace.

    Attributes:
        staged: Paths staged for addition
        removed: Paths staged for removal
        modified_tracked: Tracked, changed on disk, not staged
        modified_staged: Staged, changed on disk since staging
        deleted_staged: Staged, missing from disk
        deleted_tracked: Tracked, not staged for removal, missing from disk
        untracked: On disk, neither tracked nor staged
    """

    staged: FrozenSet[str] = field(default_factory=frozenset)
    removed: FrozenSet[str] = field(default_factory=frozenset)
    modified_tracked: FrozenSet[str] = field(default_factory=frozenset)
    modified_staged: FrozenSet[str] = field(default_factory=frozenset)
    deleted_staged: FrozenSet[str] = field(default_factory=frozenset)
    deleted_tracked: FrozenSet[str] = field(default_factory=frozenset)
    untracked: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def modifications(self) -> List[Tuple[str, str]]:
        """Sorted (path, "modified" | "deleted") pairs for unstaged changes."""
        merged: Dict[str, str] = {}
        for path in self.modified_tracked | self.modified_staged:
            merged[path] = MODIFIED
        for path in self.deleted_staged | self.deleted_tracked:
            merged[path] = DELETED
        return sorted(merged.items())

    def is_clean(self) -> bool:
        return not (
            self.staged
            or self.removed
            or self.modified_tracked
            or self.modified_staged
            or self.deleted_staged
            or self.deleted_tracked
            or self.untracked
        )


def compute_status(
    tracked: Mapping[str, str],
    staged: Mapping[str, str],
    deleted: AbstractSet[str],
    working: Mapping[str, str],
) -> StatusReport:
    """Three-way comparison of commit snapshot, staging area and working tree.

    Args:
        tracked: Current commit snapshot, path -> blob identifier
        staged: Add-set, path -> blob identifier
        deleted: Remove-set
        working: Working tree, path -> content identifier
    """
    modified_tracked = frozenset(
        path
        for path, blob in tracked.items()
        if path in working and working[path] != blob and path not in staged
    )
    modified_staged = frozenset(
        path for path, blob in staged.items() if path in working and working[path] != blob
    )
    deleted_staged = frozenset(path for path in staged if path not in working)
    deleted_tracked = frozenset(
        path for path in tracked if path not in deleted and path not in working
    )
    untracked = frozenset(
        path for path in working if path not in tracked and path not in staged
    )

    return StatusReport(
        staged=frozenset(staged),
        removed=frozenset(deleted),
        modified_tracked=modified_tracked,
        modified_staged=modified_staged,
        deleted_staged=deleted_staged,
        deleted_tracked=deleted_tracked,
        untracked=untracked,
    )


@dataclass(frozen=True)
class SnapshotDiff:
    """Path-level differences between two commit snapshots."""

    added: Tuple[str, ...] = ()
    deleted: Tuple[str, ...] = ()
    modified: Tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return not (self.added or self.deleted or self.modified)


def diff_snapshots(old: Mapping[str, str], new: Mapping[str, str]) -> SnapshotDiff:
    """Compare two snapshots; each side maps path -> blob identifier."""
    return SnapshotDiff(
        added=tuple(sorted(path for path in new if path not in old)),
        deleted=tuple(sorted(path for path in old if path not in new)),
        modified=tuple(
            sorted(path for path in new if path in old and old[path] != new[path])
        ),
    )
