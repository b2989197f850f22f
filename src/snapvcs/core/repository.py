"""Repository handle.

A ``Repository`` is constructed once per command from a workspace root and
passed nothing else: every piece of persistent state (objects, index, refs)
is loaded from disk inside the operation that needs it and written back
before the operation returns.
"""

import logging
import shutil
from functools import wraps
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar, Union

from snapvcs.constants import (
    COMMITS_DIR,
    DEFAULT_BRANCH,
    HEADS_DIR,
    INITIAL_COMMIT_MESSAGE,
    INITIAL_COMMIT_TIMESTAMP,
    OBJECTS_DIR,
    SNAPVCS_DIR,
)
from snapvcs.core.formatting import format_status
from snapvcs.core.ignore import IgnoreRules
from snapvcs.core.refs import Branch, BranchRegistry
from snapvcs.core.staging import StagingManager
from snapvcs.core.status import (
    SnapshotDiff,
    StatusReport,
    compute_status,
    diff_snapshots,
    hash_known_files,
    scan_working_tree,
)
from snapvcs.errors import (
    AlreadyInitializedError,
    NotARepositoryError,
    ObjectNotFoundError,
    StorageFaultError,
    VCSError,
)
from snapvcs.models import Commit, StagingArea
from snapvcs.storage import CommitBuilder, ObjectStore

logger = logging.getLogger(__name__)

T = TypeVar("T")
PathLike = Union[str, Path]


def requires_repo(func: Callable[..., T]) -> Callable[..., T]:
    """Ensure the repository exists before running a Repository method."""

    @wraps(func)
    def _verify_repo(self: "Repository", *args, **kwargs) -> T:
        if not self.exists():
            raise NotARepositoryError(path=str(self.workspace_root))
        return func(self, *args, **kwargs)

    return _verify_repo


class Repository:
    """A snapvcs repository rooted at a workspace directory.

    Attributes:
        workspace_root: Root of the working directory
        snapvcs_dir: Metadata directory (.snapvcs)
        refs: Branch and HEAD registry
    """

    def __init__(self, workspace_root: PathLike):
        self.workspace_root = Path(workspace_root).resolve()
        self.snapvcs_dir = self.workspace_root / SNAPVCS_DIR
        self.refs = BranchRegistry(self.snapvcs_dir)

    def exists(self) -> bool:
        return self.snapvcs_dir.is_dir()

    @property
    def object_store(self) -> ObjectStore:
        return ObjectStore(self.snapvcs_dir)

    @property
    def staging(self) -> StagingManager:
        return StagingManager(self.workspace_root, self.object_store)

    @property
    def commit_builder(self) -> CommitBuilder:
        return CommitBuilder(self.workspace_root, self.object_store)

    def init(self) -> str:
        """Create the repository layout and the initial commit.

        Returns:
            Identifier of the initial commit

        Raises:
            AlreadyInitializedError: If .snapvcs already exists
            StorageFaultError: If the layout cannot be created
        """
        if self.snapvcs_dir.exists():
            raise AlreadyInitializedError(path=str(self.snapvcs_dir))

        try:
            try:
                self.snapvcs_dir.mkdir(parents=True)
                (self.snapvcs_dir / OBJECTS_DIR).mkdir()
                (self.snapvcs_dir / COMMITS_DIR).mkdir()
                (self.snapvcs_dir / HEADS_DIR).mkdir(parents=True)
            except OSError as e:
                raise StorageFaultError(path=str(self.snapvcs_dir), cause=e) from e

            initial = Commit(
                message=INITIAL_COMMIT_MESSAGE,
                timestamp=INITIAL_COMMIT_TIMESTAMP,
            )
            commit_hash = self.object_store.write_commit(initial)
            self.refs.init(DEFAULT_BRANCH, commit_hash)
            self.staging.save(StagingArea())
        except VCSError:
            # Clean up partial initialization
            shutil.rmtree(self.snapvcs_dir, ignore_errors=True)
            raise

        logger.info("initialized repository in %s", self.snapvcs_dir)
        return commit_hash

    @requires_repo
    def head(self) -> Tuple[str, Optional[Commit]]:
        """Current commit identifier and commit (("", None) before any commit)."""
        commit_hash = self.refs.current_commit()
        if not commit_hash:
            return "", None
        return commit_hash, self.object_store.read_commit(commit_hash)

    @requires_repo
    def add(self, paths: Sequence[PathLike], force: bool = False) -> Dict[str, List[str]]:
        """Stage files (or directories, recursively) for addition."""
        return self.staging.add(paths, force=force)

    @requires_repo
    def remove(self, paths: Sequence[PathLike]) -> Dict[str, List[str]]:
        """Unstage files, or stage files tracked by HEAD for removal."""
        _, head = self.head()
        tracked = head.snapshot if head is not None else {}
        return self.staging.remove(paths, tracked)

    @requires_repo
    def commit(self, message: str, timestamp: Optional[int] = None) -> str:
        """Record the staging area as a new commit on the active branch.

        Returns:
            Identifier of the new commit
        """
        parent_hash, parent = self.head()
        staging = self.staging
        area = staging.load()

        commit_hash, _ = self.commit_builder.create_commit(
            parent, parent_hash, area, message, timestamp
        )
        staging.clear()
        self.refs.advance_active_branch(commit_hash)
        return commit_hash

    @requires_repo
    def status(self) -> StatusReport:
        """Classify every path against HEAD, the index and the working tree."""
        _, head = self.head()
        area = self.staging.load()
        rules = IgnoreRules.load(self.workspace_root)
        tracked = head.snapshot if head is not None else {}

        # Ignore rules only limit discovery of untracked files
        working = dict(scan_working_tree(self.workspace_root, rules))
        known = (set(tracked) | set(area.staged)) - working.keys()
        working.update(hash_known_files(self.workspace_root, known))
        return compute_status(tracked, area.staged, area.deleted, working)

    @requires_repo
    def status_text(self) -> str:
        return format_status(self.status(), self.refs.list_branches())

    @requires_repo
    def create_branch(self, name: str) -> str:
        """Bind ``name`` to the current commit; the active branch is unchanged.

        Returns:
            The commit identifier the new branch points at
        """
        commit_hash = self.refs.current_commit()
        self.refs.create_branch(name, commit_hash)
        return commit_hash

    @requires_repo
    def branches(self) -> List[Branch]:
        return self.refs.list_branches()

    @requires_repo
    def log(self, max_count: Optional[int] = None) -> List[Tuple[str, Commit]]:
        """Walk the parent chain from HEAD, newest first."""
        store = self.object_store
        entries: List[Tuple[str, Commit]] = []
        commit_hash = self.refs.current_commit()

        while commit_hash and (max_count is None or len(entries) < max_count):
            commit = store.read_commit(commit_hash)
            entries.append((commit_hash, commit))
            commit_hash = commit.parent

        return entries

    @requires_repo
    def resolve(self, revision: str) -> str:
        """Turn ``HEAD``, a branch name, or a (prefix of a) commit id into an id.

        Raises:
            ObjectNotFoundError: If nothing, or more than one commit, matches
        """
        if revision == "HEAD":
            commit_hash = self.refs.current_commit()
        else:
            commit_hash = self.refs.branch_commit(revision) or ""

        if commit_hash:
            return commit_hash

        matches = self.object_store.find_commits(revision)
        if len(matches) == 1:
            return matches[0]
        raise ObjectNotFoundError(name=revision)

    @requires_repo
    def diff(self, old: Optional[str] = None, new: Optional[str] = None) -> SnapshotDiff:
        """Compare two commit snapshots.

        ``new`` defaults to HEAD and ``old`` to the parent of ``new``; a root
        commit is compared against an empty snapshot.
        """
        store = self.object_store
        new_commit = store.read_commit(self.resolve(new if new is not None else "HEAD"))

        if old is not None:
            old_snapshot = store.read_commit(self.resolve(old)).snapshot
        elif new_commit.parent:
            old_snapshot = store.read_commit(new_commit.parent).snapshot
        else:
            old_snapshot = {}

        return diff_snapshots(old_snapshot, new_commit.snapshot)

    @requires_repo
    def reproduce(
        self, revision: str, output_dir: Optional[PathLike] = None
    ) -> Tuple[str, Path, List[str]]:
        """Write every file of a commit's snapshot into ``output_dir``.

        Args:
            revision: Anything ``resolve`` accepts
            output_dir: Target directory; relative paths are taken from the
                workspace root. Defaults to ``reproduce_<short hash>``.

        Returns:
            (commit hash, output directory, restored paths)
        """
        store = self.object_store
        commit_hash = self.resolve(revision)
        commit = store.read_commit(commit_hash)

        if output_dir is None:
            output_path = self.workspace_root / f"reproduce_{commit_hash[:7]}"
        else:
            output_path = self.workspace_root / Path(output_dir)

        restored = []
        for rel_path, blob_hash in sorted(commit.snapshot.items()):
            content = store.read_blob(blob_hash)
            target = output_path / rel_path
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(content)
            except OSError as e:
                raise StorageFaultError(path=str(target), cause=e) from e
            restored.append(rel_path)

        logger.info("reproduced %s into %s", commit_hash, output_path)
        return commit_hash, output_path, restored
