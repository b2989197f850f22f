"""Content-addressable storage for snapvcs.

This module implements a Git-like, append-only object store using SHA-256
hashing for content addressing. File contents (blobs) live in
.snapvcs/objects/ with two-character sharding; commit records live in
.snapvcs/commits/ under the digest of their canonical encoding.
"""

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import List

from snapvcs.constants import COMMITS_DIR, HASH_ALGORITHM, HASH_LENGTH, OBJECTS_DIR
from snapvcs.errors import (
    NotARepositoryError,
    ObjectNotFoundError,
    SerializationFaultError,
    StorageFaultError,
)
from snapvcs.models import Commit

logger = logging.getLogger(__name__)


def compute_hash(content: bytes) -> str:
    """Compute the content identifier of a byte sequence.

    Args:
        content: Binary data to hash

    Returns:
        Hex digest (64 characters for SHA-256)
    """
    hasher = hashlib.new(HASH_ALGORITHM)
    hasher.update(content)
    return hasher.hexdigest()


def atomic_write(path: Path, data: bytes) -> None:
    """Replace ``path`` with ``data`` via a temp file and rename.

    Raises:
        OSError: If the write fails (permissions, disk full, etc.)
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_")
    try:
        with os.fdopen(tmp_fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except Exception:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


class ObjectStore:
    """Append-only store for blobs and commits.

    Storage layout:
        .snapvcs/objects/<hash[:2]>/<hash[2:]>   # Raw blob
        .snapvcs/commits/<hash>                  # Canonical commit bytes

    There are no update or delete operations.

    Attributes:
        snapvcs_dir: Path to the metadata directory
        objects_dir: Path to the blob namespace
        commits_dir: Path to the commit namespace

    Example:
        >>> store = ObjectStore(Path(".snapvcs"))
        >>> blob_hash = store.write_blob(b"hello\\n")
        >>> assert store.read_blob(blob_hash) == b"hello\\n"
    """

    def __init__(self, snapvcs_dir: Path) -> None:
        """Initialize the object store.

        Args:
            snapvcs_dir: Path to .snapvcs directory

        Raises:
            NotARepositoryError: If snapvcs_dir doesn't exist
        """
        self.snapvcs_dir = Path(snapvcs_dir)
        self.objects_dir = self.snapvcs_dir / OBJECTS_DIR
        self.commits_dir = self.snapvcs_dir / COMMITS_DIR

        if not self.snapvcs_dir.is_dir():
            raise NotARepositoryError(path=str(snapvcs_dir))

    # Blobs

    def write_blob(self, content: bytes) -> str:
        """Write a blob to the object store.

        If a blob with the same hash already exists, returns the hash without
        writing (deduplication).

        Args:
            content: Binary content to store

        Returns:
            SHA-256 hash of the content

        Raises:
            StorageFaultError: If the write fails
        """
        blob_hash = compute_hash(content)

        if self.blob_exists(blob_hash):
            return blob_hash

        blob_path = self._get_blob_path(blob_hash)
        try:
            atomic_write(blob_path, content)
        except OSError as e:
            raise StorageFaultError(
                path=str(blob_path), identifier=blob_hash, cause=e
            ) from e

        logger.debug("stored blob %s (%d bytes)", blob_hash, len(content))
        return blob_hash

    def read_blob(self, blob_hash: str) -> bytes:
        """Read a blob and verify it against its identifier.

        Raises:
            ObjectNotFoundError: If the blob is absent or its content no longer
                hashes to ``blob_hash``
            StorageFaultError: If the read fails
        """
        if not self._is_valid_hash(blob_hash):
            raise ObjectNotFoundError(identifier=blob_hash)

        blob_path = self._get_blob_path(blob_hash)
        if not blob_path.is_file():
            raise ObjectNotFoundError(identifier=blob_hash)

        try:
            content = blob_path.read_bytes()
        except OSError as e:
            raise StorageFaultError(
                path=str(blob_path), identifier=blob_hash, cause=e
            ) from e

        actual_hash = compute_hash(content)
        if actual_hash != blob_hash:
            raise ObjectNotFoundError(
                identifier=blob_hash,
                cause=ValueError(f"blob corrupted: content hashes to {actual_hash}"),
            )
        return content

    def blob_exists(self, blob_hash: str) -> bool:
        if not self._is_valid_hash(blob_hash):
            return False
        return self._get_blob_path(blob_hash).is_file()

    # Commits

    def write_commit(self, commit: Commit) -> str:
        """Persist a commit under the digest of its canonical encoding.

        Returns:
            Commit identifier

        Raises:
            StorageFaultError: If the write fails
        """
        data = commit.encode()
        commit_hash = compute_hash(data)
        commit_path = self.commits_dir / commit_hash

        if commit_path.is_file():
            return commit_hash

        try:
            atomic_write(commit_path, data)
        except OSError as e:
            raise StorageFaultError(
                path=str(commit_path), identifier=commit_hash, cause=e
            ) from e

        logger.info("stored commit %s (parent %s)", commit_hash, commit.parent or "-")
        return commit_hash

    def read_commit(self, commit_hash: str) -> Commit:
        """Read a commit by its full identifier.

        Raises:
            ObjectNotFoundError: If absent, corrupt, or not a valid commit
            StorageFaultError: If the read fails
        """
        if not self._is_valid_hash(commit_hash):
            raise ObjectNotFoundError(identifier=commit_hash)

        commit_path = self.commits_dir / commit_hash
        if not commit_path.is_file():
            raise ObjectNotFoundError(identifier=commit_hash)

        try:
            data = commit_path.read_bytes()
        except OSError as e:
            raise StorageFaultError(
                path=str(commit_path), identifier=commit_hash, cause=e
            ) from e

        if compute_hash(data) != commit_hash:
            raise ObjectNotFoundError(
                identifier=commit_hash,
                cause=ValueError("commit hash mismatch"),
            )

        try:
            return Commit.decode(data)
        except SerializationFaultError as e:
            raise ObjectNotFoundError(identifier=commit_hash, cause=e.cause) from e

    def commit_exists(self, commit_hash: str) -> bool:
        if not self._is_valid_hash(commit_hash):
            return False
        return (self.commits_dir / commit_hash).is_file()

    def find_commits(self, prefix: str) -> List[str]:
        """List commit identifiers starting with ``prefix``."""
        prefix = prefix.lower()
        if not prefix or not self.commits_dir.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.commits_dir.iterdir()
            if entry.is_file()
            and entry.name.startswith(prefix)
            and self._is_valid_hash(entry.name)
        )

    def _get_blob_path(self, blob_hash: str) -> Path:
        """Get the filesystem path for a blob.

        Uses Git-like sharding: objects/<hash[:2]>/<hash[2:]>
        """
        return self.objects_dir / blob_hash[:2] / blob_hash[2:]

    @staticmethod
    def _is_valid_hash(value: str) -> bool:
        if not isinstance(value, str) or len(value) != HASH_LENGTH:
            return False
        return all(c in "0123456789abcdef" for c in value)
