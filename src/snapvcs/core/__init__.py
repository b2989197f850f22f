"""Core engine layer for snapvcs.

This module provides the version control operations themselves: staging,
branch pointers, status computation and the repository handle tying them
together.
"""

from snapvcs.core.ignore import IgnoreRules
from snapvcs.core.refs import Branch, BranchRegistry
from snapvcs.core.repository import Repository
from snapvcs.core.staging import StagingManager
from snapvcs.core.status import (
    SnapshotDiff,
    StatusReport,
    compute_status,
    diff_snapshots,
    hash_known_files,
    scan_working_tree,
)

__all__ = [
    "Branch",
    "BranchRegistry",
    "IgnoreRules",
    "Repository",
    "SnapshotDiff",
    "StagingManager",
    "StatusReport",
    "compute_status",
    "diff_snapshots",
    "hash_known_files",
    "scan_working_tree",
]
