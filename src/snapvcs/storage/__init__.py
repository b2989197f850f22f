"""Storage layer for snapvcs.

This module provides the content-addressable blob and commit store and
commit construction.
"""

from snapvcs.storage.object_store import ObjectStore, atomic_write, compute_hash
from snapvcs.storage.commit_builder import CommitBuilder

__all__ = [
    "ObjectStore",
    "CommitBuilder",
    "atomic_write",
    "compute_hash",
]
