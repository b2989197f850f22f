"""Commit object builder.

This module turns a parent commit plus the staging area into the next commit
in a strictly linear history. A commit's snapshot is always complete: the
parent's snapshot with staged additions upserted and staged removals dropped.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from snapvcs.errors import (
    EmptyMessageError,
    NothingToCommitError,
    WorkingDirectoryError,
)
from snapvcs.models import Commit, StagingArea
from snapvcs.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)


def current_timestamp() -> int:
    """Current UTC time in whole seconds since the epoch."""
    return int(datetime.now(timezone.utc).timestamp())


class CommitBuilder:
    """Builder for creating and persisting commit objects.

    Attributes:
        workspace_root: Root of the working directory
        object_store: ObjectStore the new commit is written to
    """

    def __init__(self, workspace_root: Path, object_store: ObjectStore):
        self.workspace_root = Path(workspace_root)
        self.object_store = object_store

    @staticmethod
    def build_snapshot(
        parent_snapshot: Mapping[str, str], staging_area: StagingArea
    ) -> Dict[str, str]:
        """Apply the staging area to a parent snapshot.

        Additions are applied before removals.
        """
        snapshot = dict(parent_snapshot)
        snapshot.update(staging_area.staged)
        for path in staging_area.deleted:
            snapshot.pop(path, None)
        return snapshot

    def build_commit(
        self,
        parent_commit: Optional[Commit],
        parent_hash: str,
        staging_area: StagingArea,
        message: str,
        timestamp: Optional[int] = None,
    ) -> Commit:
        """Build the next commit without persisting it.

        Files staged for removal are deleted from the working directory here,
        before anything is written to the repository.

        Args:
            parent_commit: Current commit, or None if there is none yet
            parent_hash: Identifier of ``parent_commit`` ("" if None)
            staging_area: Pending additions and removals
            message: Commit message
            timestamp: Seconds since the epoch; defaults to now

        Returns:
            The new Commit

        Raises:
            EmptyMessageError: If message is blank
            NothingToCommitError: If the staging area is empty
            WorkingDirectoryError: If deleting a removed file fails
        """
        if not message or not message.strip():
            raise EmptyMessageError()
        if staging_area.is_empty():
            raise NothingToCommitError()

        parent_snapshot = parent_commit.snapshot if parent_commit is not None else {}
        snapshot = self.build_snapshot(parent_snapshot, staging_area)

        self._delete_removed_files(staging_area)

        return Commit(
            message=message,
            timestamp=current_timestamp() if timestamp is None else timestamp,
            snapshot=snapshot,
            parent=parent_hash,
        )

    def create_commit(
        self,
        parent_commit: Optional[Commit],
        parent_hash: str,
        staging_area: StagingArea,
        message: str,
        timestamp: Optional[int] = None,
    ) -> Tuple[str, Commit]:
        """Build the next commit and write it to the object store.

        Returns:
            (commit hash, commit)
        """
        commit = self.build_commit(
            parent_commit, parent_hash, staging_area, message, timestamp
        )
        commit_hash = self.object_store.write_commit(commit)
        logger.info(
            "created commit %s: %d file(s), %d added/updated, %d removed",
            commit_hash,
            len(commit.snapshot),
            len(staging_area.staged),
            len(staging_area.deleted),
        )
        return commit_hash, commit

    def _delete_removed_files(self, staging_area: StagingArea) -> None:
        for rel_path in sorted(staging_area.deleted):
            target = self.workspace_root / rel_path
            if not target.exists() and not target.is_symlink():
                continue
            try:
                target.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                raise WorkingDirectoryError(path=rel_path, cause=e) from e
            logger.debug("deleted %s from working directory", rel_path)
