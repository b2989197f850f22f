"""Branch pointers and HEAD.

Each branch is a file under .snapvcs/refs/heads/ holding one commit
identifier (empty before the branch has a commit). HEAD holds the ref path of
the active branch, e.g. ``refs/heads/main``.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from snapvcs.constants import HEAD_FILE, HEADS_DIR
from snapvcs.errors import (
    BranchExistsError,
    InvalidBranchNameError,
    SerializationFaultError,
    StorageFaultError,
)
from snapvcs.storage import atomic_write

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Branch:
    """A named pointer to a commit."""

    name: str
    commit_hash: str
    active: bool = False


def validate_branch_name(name: str) -> None:
    """Reject names that cannot be stored as a single ref file.

    Raises:
        InvalidBranchNameError: If the name is unusable
    """
    if (
        not name
        or name == HEAD_FILE
        or name.startswith(".")
        or "/" in name
        or "\\" in name
        or any(c.isspace() for c in name)
    ):
        raise InvalidBranchNameError(name=name)


class BranchRegistry:
    """Named mutable pointers plus the active-branch selector.

    Attributes:
        snapvcs_dir: Path to the metadata directory
        heads_dir: Directory holding one file per branch
        head_file: Path to the HEAD file
    """

    def __init__(self, snapvcs_dir: Path):
        self.snapvcs_dir = Path(snapvcs_dir)
        self.heads_dir = self.snapvcs_dir / HEADS_DIR
        self.head_file = self.snapvcs_dir / HEAD_FILE

    def init(self, branch: str, commit_hash: str = "") -> None:
        """Create the heads namespace, bind ``branch`` and make it active."""
        validate_branch_name(branch)
        self._write(self.heads_dir / branch, commit_hash)
        self._write(self.head_file, f"{HEADS_DIR}/{branch}")

    def current_branch(self) -> str:
        """Name of the active branch.

        Raises:
            SerializationFaultError: If HEAD does not name a branch
        """
        ref = self._read(self.head_file)
        prefix = HEADS_DIR + "/"
        if not ref.startswith(prefix) or not ref[len(prefix):]:
            raise SerializationFaultError(
                path=str(self.head_file),
                cause=ValueError(f"HEAD does not point at a branch: {ref!r}"),
            )
        name = ref[len(prefix):]
        if not (self.heads_dir / name).is_file():
            raise SerializationFaultError(
                path=str(self.head_file),
                name=name,
                cause=ValueError("HEAD points at a missing branch"),
            )
        return name

    def current_commit(self) -> str:
        """Commit identifier of the active branch ("" if it has none)."""
        return self._read(self.heads_dir / self.current_branch())

    def branch_commit(self, name: str) -> Optional[str]:
        """Commit identifier bound to ``name``, or None if no such branch."""
        try:
            validate_branch_name(name)
        except InvalidBranchNameError:
            return None
        path = self.heads_dir / name
        if not path.is_file():
            return None
        return self._read(path)

    def create_branch(self, name: str, commit_hash: str) -> None:
        """Bind a new branch name to ``commit_hash`` without switching to it.

        Raises:
            InvalidBranchNameError: If the name is unusable
            BranchExistsError: If the name is already bound
        """
        validate_branch_name(name)
        path = self.heads_dir / name
        if path.exists():
            raise BranchExistsError(name=name)
        self._write(path, commit_hash)
        logger.info("created branch %s at %s", name, commit_hash or "(no commit)")

    def advance_active_branch(self, commit_hash: str) -> None:
        """Rebind the active branch to ``commit_hash``."""
        branch = self.current_branch()
        self._write(self.heads_dir / branch, commit_hash)
        logger.info("advanced %s to %s", branch, commit_hash)

    def list_branches(self) -> List[Branch]:
        """Active branch first, then the others in lexicographic order."""
        active = self.current_branch()
        names = sorted(
            entry.name
            for entry in self.heads_dir.iterdir()
            if entry.is_file() and not entry.name.startswith(".")
        )

        branches = [Branch(active, self._read(self.heads_dir / active), active=True)]
        for name in names:
            if name != active:
                branches.append(Branch(name, self._read(self.heads_dir / name)))
        return branches

    def _read(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8").strip()
        except FileNotFoundError as e:
            raise SerializationFaultError(path=str(path), cause=e) from e
        except OSError as e:
            raise StorageFaultError(path=str(path), cause=e) from e

    def _write(self, path: Path, content: str) -> None:
        try:
            atomic_write(path, content.encode("utf-8"))
        except OSError as e:
            raise StorageFaultError(path=str(path), cause=e) from e
