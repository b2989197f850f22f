"""Record types persisted by snapvcs.

Two record types exist: ``Commit`` (immutable snapshot + message + parent link)
and ``StagingArea`` (the index). Each has an explicit canonical encoding:
JSON with sorted keys, compact separators and a ``"type"`` tag, so the same
logical value always produces the same bytes and therefore the same
content identifier.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Set

from snapvcs.constants import INDEX_VERSION
from snapvcs.errors import NoReasonToRemoveError, SerializationFaultError

COMMIT_TYPE = "commit"
INDEX_TYPE = "index"


def canonical_json(obj: Dict[str, Any]) -> bytes:
    """Serialize a JSON-compatible dict to canonical UTF-8 bytes."""
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def _load_tagged(data: bytes, expected_type: str) -> Dict[str, Any]:
    try:
        obj = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SerializationFaultError(cause=e) from e

    if not isinstance(obj, dict) or obj.get("type") != expected_type:
        raise SerializationFaultError(
            cause=ValueError(f"expected a {expected_type!r} record")
        )
    return obj


def _string_map(value: Any, field_name: str) -> Dict[str, str]:
    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise SerializationFaultError(
            cause=ValueError(f"{field_name} must map strings to strings")
        )
    return dict(value)


@dataclass(frozen=True)
class Commit:
    """An immutable snapshot record.

    Attributes:
        message: Commit message
        timestamp: Seconds since the Unix epoch (UTC)
        snapshot: Complete mapping of workspace path -> blob identifier
        parent: Identifier of the parent commit, empty for the root commit
    """

    message: str
    timestamp: int
    snapshot: Dict[str, str] = field(default_factory=dict)
    parent: str = ""

    # The snapshot mapping is mutable
    __hash__ = None  # type: ignore[assignment]

    @property
    def is_root(self) -> bool:
        return not self.parent

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": COMMIT_TYPE,
            "message": self.message,
            "timestamp": self.timestamp,
            "snapshot": dict(self.snapshot),
            "parent": self.parent,
        }

    def encode(self) -> bytes:
        """Canonical bytes; the commit identifier is the digest of these."""
        return canonical_json(self.to_dict())

    @classmethod
    def decode(cls, data: bytes) -> "Commit":
        """Parse canonical bytes back into a Commit.

        Raises:
            SerializationFaultError: If the bytes are not a valid commit record
        """
        obj = _load_tagged(data, COMMIT_TYPE)

        message = obj.get("message")
        timestamp = obj.get("timestamp")
        parent = obj.get("parent")
        if not isinstance(message, str) or not isinstance(parent, str):
            raise SerializationFaultError(
                cause=ValueError("commit message and parent must be strings")
            )
        # bool is an int subclass; reject it explicitly
        if not isinstance(timestamp, int) or isinstance(timestamp, bool):
            raise SerializationFaultError(
                cause=ValueError("commit timestamp must be an integer")
            )

        return cls(
            message=message,
            timestamp=timestamp,
            snapshot=_string_map(obj.get("snapshot"), "snapshot"),
            parent=parent,
        )


@dataclass
class StagingArea:
    """Pending add/remove intentions for the next commit.

    Invariant: a path is never in both ``staged`` and ``deleted``.

    Attributes:
        staged: Paths staged for addition -> blob identifier
        deleted: Paths staged for removal
    """

    staged: Dict[str, str] = field(default_factory=dict)
    deleted: Set[str] = field(default_factory=set)

    def stage_for_add(self, path: str, identifier: str) -> None:
        """Insert or overwrite an add-set entry, clearing any removal marker."""
        self.deleted.discard(path)
        self.staged[path] = identifier

    def unstage_or_stage_for_remove(self, path: str, is_tracked_in_head: bool) -> str:
        """Unstage ``path`` if staged, else mark it for removal if tracked.

        Returns:
            ``"unstaged"`` or ``"removed"``, naming what happened

        Raises:
            NoReasonToRemoveError: If the path is neither staged nor tracked
        """
        if path in self.staged:
            del self.staged[path]
            return "unstaged"
        if is_tracked_in_head:
            self.deleted.add(path)
            return "removed"
        raise NoReasonToRemoveError(path=path)

    def clear(self) -> None:
        self.staged.clear()
        self.deleted.clear()

    def is_empty(self) -> bool:
        return not self.staged and not self.deleted

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": INDEX_TYPE,
            "version": INDEX_VERSION,
            "staged": dict(self.staged),
            "deleted": {path: "" for path in self.deleted},
        }

    def encode(self) -> bytes:
        return canonical_json(self.to_dict())

    @classmethod
    def decode(cls, data: bytes) -> "StagingArea":
        """Parse index bytes; empty input is an empty staging area.

        Raises:
            SerializationFaultError: If the bytes are not a valid index record
        """
        if not data.strip():
            return cls()

        obj = _load_tagged(data, INDEX_TYPE)
        if obj.get("version") != INDEX_VERSION:
            raise SerializationFaultError(
                cause=ValueError(f"unsupported index version: {obj.get('version')}")
            )

        staged = _string_map(obj.get("staged"), "staged")
        deleted = set(_string_map(obj.get("deleted"), "deleted"))
        if staged.keys() & deleted:
            raise SerializationFaultError(
                cause=ValueError("path staged for both addition and removal")
            )
        return cls(staged=staged, deleted=deleted)
