"""Unit tests for StagingManager."""

import json
from pathlib import Path

import pytest

from snapvcs.core.ignore import IgnoreRules
from snapvcs.core.staging import StagingManager
from snapvcs.errors import (
    FileNotFoundInWorkspaceError,
    NoReasonToRemoveError,
    NotARepositoryError,
    PathOutsideRepositoryError,
    SerializationFaultError,
)
from snapvcs.storage import ObjectStore, compute_hash


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a workspace with initialized .snapvcs."""
    workspace_root = tmp_path / "workspace"
    workspace_root.mkdir()

    snapvcs_dir = workspace_root / ".snapvcs"
    snapvcs_dir.mkdir()
    (snapvcs_dir / "objects").mkdir()

    return workspace_root.resolve()


@pytest.fixture
def object_store(workspace: Path) -> ObjectStore:
    """Create ObjectStore instance."""
    return ObjectStore(workspace / ".snapvcs")


@pytest.fixture
def staging(workspace: Path, object_store: ObjectStore) -> StagingManager:
    """Create StagingManager instance."""
    return StagingManager(workspace, object_store)


class TestStagingManagerInit:
    """Test StagingManager initialization."""

    def test_init_valid_workspace(self, workspace: Path, object_store: ObjectStore) -> None:
        staging = StagingManager(workspace, object_store)

        assert staging.workspace_root == workspace
        assert staging.index_path == workspace / ".snapvcs" / "index"

    def test_init_no_snapvcs(self, tmp_path: Path, object_store: ObjectStore) -> None:
        """Test initialization fails without .snapvcs directory."""
        with pytest.raises(NotARepositoryError):
            StagingManager(tmp_path / "elsewhere", object_store)


class TestAdd:
    """Test adding files to staging area."""

    def test_add_single_file(self, staging: StagingManager, workspace: Path) -> None:
        test_file = workspace / "test.txt"
        test_file.write_text("Hello, world!")

        stats = staging.add([test_file])

        assert stats["added"] == ["test.txt"]
        staged = staging.get_staged_files()
        assert staged == {"test.txt": compute_hash(b"Hello, world!")}

    def test_add_stores_blob(
        self, staging: StagingManager, workspace: Path, object_store: ObjectStore
    ) -> None:
        (workspace / "test.txt").write_bytes(b"payload")
        staging.add(["test.txt"])

        blob_hash = staging.get_staged_files()["test.txt"]
        assert object_store.read_blob(blob_hash) == b"payload"

    def test_add_relative_path(self, staging: StagingManager, workspace: Path) -> None:
        (workspace / "rel.txt").write_text("x")
        assert staging.add(["rel.txt"])["added"] == ["rel.txt"]

    def test_add_multiple_files(self, staging: StagingManager, workspace: Path) -> None:
        (workspace / "file1.txt").write_text("content1")
        (workspace / "file2.txt").write_text("content2")

        stats = staging.add(["file1.txt", "file2.txt"])

        assert stats["added"] == ["file1.txt", "file2.txt"]

    def test_add_twice_reports_update(self, staging: StagingManager, workspace: Path) -> None:
        f = workspace / "a.txt"
        f.write_text("v1")
        staging.add([f])
        f.write_text("v2")

        stats = staging.add([f])

        assert stats["updated"] == ["a.txt"]
        assert staging.get_staged_files()["a.txt"] == compute_hash(b"v2")

    def test_add_directory_recursive(self, staging: StagingManager, workspace: Path) -> None:
        sub = workspace / "dir" / "nested"
        sub.mkdir(parents=True)
        (workspace / "dir" / "a.txt").write_text("a")
        (sub / "b.txt").write_text("b")

        stats = staging.add(["dir"])

        assert sorted(stats["added"]) == ["dir/a.txt", "dir/nested/b.txt"]

    def test_add_directory_skips_ignored(
        self, staging: StagingManager, workspace: Path
    ) -> None:
        (workspace / "dir").mkdir()
        (workspace / "dir" / "keep.txt").write_text("k")
        (workspace / "dir" / "skip.log").write_text("s")

        stats = staging.add(["dir"], ignore_rules=IgnoreRules(["*.log"]))

        assert stats["added"] == ["dir/keep.txt"]
        assert stats["ignored"] == []

    def test_add_explicit_ignored_file(self, staging: StagingManager, workspace: Path) -> None:
        (workspace / "debug.log").write_text("noise")

        stats = staging.add(["debug.log"], ignore_rules=IgnoreRules(["*.log"]))

        assert stats["ignored"] == ["debug.log"]
        assert staging.get_staged_files() == {}

    def test_add_force_overrides_ignore(self, staging: StagingManager, workspace: Path) -> None:
        (workspace / ".snapvcsignore").write_text("*.log\n")
        (workspace / "debug.log").write_text("noise")

        stats = staging.add(["debug.log"], force=True)

        assert stats["added"] == ["debug.log"]

    def test_add_reads_ignore_file(self, staging: StagingManager, workspace: Path) -> None:
        (workspace / ".snapvcsignore").write_text("# comment\n*.log\n")
        (workspace / "debug.log").write_text("noise")

        assert staging.add(["debug.log"])["ignored"] == ["debug.log"]

    def test_add_metadata_dir_skipped(self, staging: StagingManager, workspace: Path) -> None:
        stats = staging.add([workspace / ".snapvcs"])
        assert stats == {"added": [], "updated": [], "ignored": []}

    def test_add_nonexistent_file(self, staging: StagingManager, workspace: Path) -> None:
        with pytest.raises(FileNotFoundInWorkspaceError):
            staging.add(["missing.txt"])

    def test_add_outside_workspace(
        self, staging: StagingManager, workspace: Path, tmp_path: Path
    ) -> None:
        outside = tmp_path / "outside.txt"
        outside.write_text("x")

        with pytest.raises(PathOutsideRepositoryError):
            staging.add([outside])

    def test_failed_add_leaves_index_untouched(
        self, staging: StagingManager, workspace: Path
    ) -> None:
        (workspace / "ok.txt").write_text("ok")

        with pytest.raises(FileNotFoundInWorkspaceError):
            staging.add(["ok.txt", "missing.txt"])

        assert staging.get_staged_files() == {}
        assert not staging.index_path.exists()

    def test_add_clears_removal_marker(self, staging: StagingManager, workspace: Path) -> None:
        (workspace / "a.txt").write_text("a")
        staging.remove(["a.txt"], tracked={"a.txt": "f" * 64})
        assert staging.load().deleted == {"a.txt"}

        staging.add(["a.txt"])

        area = staging.load()
        assert area.deleted == set()
        assert "a.txt" in area.staged


class TestRemove:
    """Test unstaging and staging for removal."""

    def test_remove_staged_file_unstages(
        self, staging: StagingManager, workspace: Path
    ) -> None:
        (workspace / "a.txt").write_text("a")
        staging.add(["a.txt"])

        stats = staging.remove(["a.txt"], tracked={})

        assert stats == {"unstaged": ["a.txt"], "removed": []}
        assert staging.is_empty()
        assert (workspace / "a.txt").exists()

    def test_remove_tracked_file_marks_removal(
        self, staging: StagingManager, workspace: Path
    ) -> None:
        (workspace / "a.txt").write_text("a")

        stats = staging.remove(["a.txt"], tracked={"a.txt": "f" * 64})

        assert stats == {"unstaged": [], "removed": ["a.txt"]}
        assert staging.load().deleted == {"a.txt"}
        assert (workspace / "a.txt").exists()

    def test_remove_staged_and_tracked_only_unstages(
        self, staging: StagingManager, workspace: Path
    ) -> None:
        (workspace / "a.txt").write_text("a")
        staging.add(["a.txt"])

        stats = staging.remove(["a.txt"], tracked={"a.txt": "f" * 64})

        assert stats["unstaged"] == ["a.txt"]
        assert staging.load().deleted == set()

    def test_remove_unknown_file(self, staging: StagingManager, workspace: Path) -> None:
        with pytest.raises(NoReasonToRemoveError) as exc_info:
            staging.remove(["ghost.txt"], tracked={})
        assert exc_info.value.path == "ghost.txt"

    def test_failed_remove_leaves_index_untouched(
        self, staging: StagingManager, workspace: Path
    ) -> None:
        (workspace / "a.txt").write_text("a")
        staging.add(["a.txt"])

        with pytest.raises(NoReasonToRemoveError):
            staging.remove(["a.txt", "ghost.txt"], tracked={})

        assert "a.txt" in staging.get_staged_files()


class TestIndexPersistence:
    """Test loading and saving the index."""

    def test_missing_index_is_empty(self, staging: StagingManager) -> None:
        assert staging.is_empty()

    def test_empty_index_file_is_empty(self, staging: StagingManager) -> None:
        staging.index_path.write_bytes(b"")
        assert staging.is_empty()

    def test_index_format(self, staging: StagingManager, workspace: Path) -> None:
        (workspace / "a.txt").write_text("a")
        (workspace / "b.txt").write_text("b")
        staging.add(["a.txt"])
        staging.remove(["b.txt"], tracked={"b.txt": "f" * 64})

        data = json.loads(staging.index_path.read_text(encoding="utf-8"))

        assert data == {
            "deleted": {"b.txt": ""},
            "staged": {"a.txt": compute_hash(b"a")},
            "type": "index",
            "version": 1,
        }

    def test_clear(self, staging: StagingManager, workspace: Path) -> None:
        (workspace / "a.txt").write_text("a")
        staging.add(["a.txt"])

        staging.clear()

        assert staging.is_empty()

    def test_corrupted_index(self, staging: StagingManager) -> None:
        staging.index_path.write_text("{not json")
        with pytest.raises(SerializationFaultError):
            staging.load()
