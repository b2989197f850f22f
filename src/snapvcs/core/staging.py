"""Staging area management for snapvcs.

The staging area (index) records what the next commit will add and remove.
It is read in full at the start of every command and rewritten in full at
the end of every mutating one; there is no incremental log.
"""

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

from snapvcs.constants import INDEX_FILE, SNAPVCS_DIR
from snapvcs.core.ignore import IgnoreRules
from snapvcs.core.status import walk_files
from snapvcs.errors import (
    FileNotFoundInWorkspaceError,
    NotARepositoryError,
    PathOutsideRepositoryError,
    StorageFaultError,
)
from snapvcs.models import StagingArea
from snapvcs.storage import ObjectStore, atomic_write

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class StagingManager:
    """Manager for the staging area (index).

    Index format (canonical JSON):
    {
        "deleted": {"path/removed": ""},
        "staged": {"path/added": "<blob sha256>"},
        "type": "index",
        "version": 1
    }

    Attributes:
        workspace_root: Root directory of the workspace
        index_path: Path to the index file (.snapvcs/index)
        object_store: ObjectStore instance for blob storage
    """

    def __init__(self, workspace_root: Path, object_store: ObjectStore):
        """Initialize StagingManager.

        Args:
            workspace_root: Root directory of workspace
            object_store: ObjectStore for blob management
        """
        self.workspace_root = Path(workspace_root).resolve()
        self.snapvcs_dir = self.workspace_root / SNAPVCS_DIR
        self.index_path = self.snapvcs_dir / INDEX_FILE
        self.object_store = object_store

        if not self.snapvcs_dir.is_dir():
            raise NotARepositoryError(path=str(workspace_root))

    def add(
        self,
        paths: Sequence[PathLike],
        force: bool = False,
        ignore_rules: Optional[IgnoreRules] = None,
    ) -> Dict[str, List[str]]:
        """Stage files for addition.

        Every path is processed before the index is written, so a failure on
        any path leaves the index untouched.

        Args:
            paths: Files or directories (absolute or relative to the workspace)
            force: Stage files even if they match ignore rules
            ignore_rules: Rules to apply; loaded from the workspace if None

        Returns:
            {"added": [...], "updated": [...], "ignored": [...]}

        Raises:
            PathOutsideRepositoryError: If a path is outside the workspace
            FileNotFoundInWorkspaceError: If a path does not exist
            StorageFaultError: If reading a file or writing a blob fails
        """
        area = self.load()
        if force:
            rules = IgnoreRules([])
        elif ignore_rules is not None:
            rules = ignore_rules
        else:
            rules = IgnoreRules.load(self.workspace_root)

        stats: Dict[str, List[str]] = {
            "added": [],
            "updated": [],
            "ignored": [],
        }

        for path in paths:
            abs_path = self._resolve_path(path)

            # The metadata directory is never staged
            if self._is_snapvcs_path(abs_path):
                continue

            if not abs_path.exists():
                raise FileNotFoundInWorkspaceError(path=str(path))

            if abs_path.is_dir():
                for rel_path, file_path in walk_files(
                    self.workspace_root, rules, start=abs_path
                ):
                    self._stage_file(area, rel_path, file_path, stats)
                continue

            rel_path = abs_path.relative_to(self.workspace_root).as_posix()
            if rules.is_ignored(rel_path):
                stats["ignored"].append(rel_path)
                continue

            self._stage_file(area, rel_path, abs_path, stats)

        self.save(area)
        return stats

    def remove(
        self, paths: Sequence[PathLike], tracked: Mapping[str, str]
    ) -> Dict[str, List[str]]:
        """Unstage files, or stage tracked files for removal.

        The working directory is not touched; tracked files are deleted from
        disk when the removal is committed.

        Args:
            paths: Paths to remove
            tracked: Snapshot of the current commit

        Returns:
            {"unstaged": [...], "removed": [...]}

        Raises:
            NoReasonToRemoveError: If a path is neither staged nor tracked
            PathOutsideRepositoryError: If a path is outside the workspace
        """
        area = self.load()

        stats: Dict[str, List[str]] = {
            "unstaged": [],
            "removed": [],
        }

        for path in paths:
            abs_path = self._resolve_path(path)
            rel_path = abs_path.relative_to(self.workspace_root).as_posix()
            outcome = area.unstage_or_stage_for_remove(rel_path, rel_path in tracked)
            stats[outcome].append(rel_path)

        self.save(area)
        return stats

    def get_staged_files(self) -> Dict[str, str]:
        """Get all files currently staged for addition (path -> blob hash)."""
        return dict(self.load().staged)

    def clear(self) -> None:
        """Clear both staging sets."""
        self.save(StagingArea())

    def is_empty(self) -> bool:
        return self.load().is_empty()

    def load(self) -> StagingArea:
        """Load the index from disk; a missing index is an empty one.

        Raises:
            SerializationFaultError: If the index is corrupted
            StorageFaultError: If the index cannot be read
        """
        if not self.index_path.exists():
            return StagingArea()

        try:
            data = self.index_path.read_bytes()
        except OSError as e:
            raise StorageFaultError(path=str(self.index_path), cause=e) from e

        area = StagingArea.decode(data)
        logger.debug(
            "loaded index: %d staged, %d removed", len(area.staged), len(area.deleted)
        )
        return area

    def save(self, area: StagingArea) -> None:
        """Rewrite the whole index.

        Raises:
            StorageFaultError: If the write fails
        """
        try:
            atomic_write(self.index_path, area.encode())
        except OSError as e:
            raise StorageFaultError(path=str(self.index_path), cause=e) from e
        logger.debug(
            "saved index: %d staged, %d removed", len(area.staged), len(area.deleted)
        )

    def _stage_file(
        self,
        area: StagingArea,
        rel_path: str,
        abs_path: Path,
        stats: Dict[str, List[str]],
    ) -> None:
        try:
            content = abs_path.read_bytes()
        except OSError as e:
            raise StorageFaultError(path=rel_path, cause=e) from e

        blob_hash = self.object_store.write_blob(content)
        was_staged = rel_path in area.staged
        area.stage_for_add(rel_path, blob_hash)

        if was_staged:
            stats["updated"].append(rel_path)
        else:
            stats["added"].append(rel_path)

    def _resolve_path(self, path: PathLike) -> Path:
        """Resolve path to absolute path within workspace."""
        path = Path(path)
        if path.is_absolute():
            abs_path = path.resolve()
        else:
            abs_path = (self.workspace_root / path).resolve()

        try:
            abs_path.relative_to(self.workspace_root)
        except ValueError:
            raise PathOutsideRepositoryError(path=str(path)) from None

        return abs_path

    def _is_snapvcs_path(self, abs_path: Path) -> bool:
        """Check if path is within .snapvcs directory."""
        try:
            abs_path.relative_to(self.snapvcs_dir)
            return True
        except ValueError:
            return False
