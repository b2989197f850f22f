"""Ignore rules for working-tree scans.

The metadata directory is always ignored. Built-in housekeeping patterns and
the optional .snapvcsignore file add to that.
"""

import fnmatch
import logging
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional

from snapvcs.constants import DEFAULT_IGNORE_PATTERNS, IGNORE_FILE, SNAPVCS_DIR
from snapvcs.errors import SerializationFaultError, StorageFaultError

logger = logging.getLogger(__name__)


class IgnoreRules:
    """Decides which workspace-relative paths are excluded from snapshots.

    Patterns follow a small subset of .gitignore syntax:
      - ``name/`` matches a directory with that name at any depth
      - anything else is an fnmatch glob tried against the full relative
        path and against the final path component
    """

    def __init__(self, patterns: Optional[Iterable[str]] = None):
        self.patterns: List[str] = [SNAPVCS_DIR + "/"]
        self.patterns.extend(patterns if patterns is not None else DEFAULT_IGNORE_PATTERNS)

    @classmethod
    def load(cls, workspace_root: Path) -> "IgnoreRules":
        """Built-in patterns plus those in ``<workspace_root>/.snapvcsignore``."""
        patterns = list(DEFAULT_IGNORE_PATTERNS)
        ignore_file = Path(workspace_root) / IGNORE_FILE

        if ignore_file.is_file():
            try:
                content = ignore_file.read_text(encoding="utf-8")
            except UnicodeDecodeError as e:
                raise SerializationFaultError(path=str(ignore_file), cause=e) from e
            except OSError as e:
                raise StorageFaultError(path=str(ignore_file), cause=e) from e
            for line in content.splitlines():
                line = line.strip()
                # Skip empty lines and comments
                if line and not line.startswith("#"):
                    patterns.append(line)
            logger.debug("loaded ignore patterns from %s", ignore_file)

        return cls(patterns)

    def is_ignored(self, rel_path: str, is_dir: bool = False) -> bool:
        """Check a POSIX-style path relative to the workspace root."""
        path = PurePosixPath(rel_path)
        parts = path.parts
        if not parts:
            return False

        # Directories containing the path, plus the path itself when it is one
        dir_parts = parts if is_dir else parts[:-1]
        dir_prefixes = ["/".join(dir_parts[: i + 1]) for i in range(len(dir_parts))]

        for pattern in self.patterns:
            if pattern.endswith("/"):
                dir_pattern = pattern.rstrip("/")
                if "/" in dir_pattern:
                    candidates = dir_prefixes
                else:
                    candidates = list(dir_parts)
                if any(fnmatch.fnmatch(c, dir_pattern) for c in candidates):
                    return True
            else:
                if fnmatch.fnmatch(path.as_posix(), pattern):
                    return True
                if fnmatch.fnmatch(path.name, pattern):
                    return True

        return False
