"""Unit tests for Commit and StagingArea records."""

import json
from collections.abc import Hashable

import pytest

from snapvcs.errors import NoReasonToRemoveError, SerializationFaultError
from snapvcs.models import Commit, StagingArea, canonical_json

BLOB_A = "a" * 64
BLOB_B = "b" * 64


class TestCanonicalJson:
    """Test canonical serialization."""

    def test_sorted_compact(self) -> None:
        assert canonical_json({"b": 1, "a": [1, 2]}) == b'{"a":[1,2],"b":1}'

    def test_non_ascii_kept(self) -> None:
        assert canonical_json({"k": "é"}) == '{"k":"é"}'.encode("utf-8")


class TestCommit:
    """Test the commit record."""

    def test_encode_is_canonical(self) -> None:
        commit = Commit(message="m", timestamp=1, snapshot={"x": BLOB_A}, parent="")
        data = json.loads(commit.encode())

        assert data == {
            "message": "m",
            "parent": "",
            "snapshot": {"x": BLOB_A},
            "timestamp": 1,
            "type": "commit",
        }

    def test_encoding_independent_of_insertion_order(self) -> None:
        c1 = Commit(message="m", timestamp=1, snapshot={"a": BLOB_A, "b": BLOB_B})
        c2 = Commit(message="m", timestamp=1, snapshot={"b": BLOB_B, "a": BLOB_A})
        assert c1.encode() == c2.encode()

    def test_decode(self) -> None:
        commit = Commit(message="hello", timestamp=99, snapshot={"x": BLOB_A}, parent=BLOB_B)
        assert Commit.decode(commit.encode()) == commit

    def test_is_root(self) -> None:
        assert Commit(message="m", timestamp=0).is_root
        assert not Commit(message="m", timestamp=0, parent=BLOB_A).is_root

    def test_not_hashable(self) -> None:
        commit = Commit(message="m", timestamp=0, snapshot={"x": BLOB_A})
        assert Commit.__hash__ is None
        assert not isinstance(commit, Hashable)

    @pytest.mark.parametrize(
        "data",
        [
            b"garbage",
            b'{"type":"index"}',
            b'{"type":"commit","message":1,"parent":"","snapshot":{},"timestamp":0}',
            b'{"type":"commit","message":"m","parent":"","snapshot":{},"timestamp":"0"}',
            b'{"type":"commit","message":"m","parent":"","snapshot":{},"timestamp":true}',
            b'{"type":"commit","message":"m","parent":"","snapshot":[],"timestamp":0}',
        ],
    )
    def test_decode_invalid(self, data: bytes) -> None:
        with pytest.raises(SerializationFaultError):
            Commit.decode(data)


class TestStagingArea:
    """Test staging-area transitions."""

    def test_stage_for_add_overwrites(self) -> None:
        area = StagingArea()
        area.stage_for_add("a", BLOB_A)
        area.stage_for_add("a", BLOB_B)
        assert area.staged == {"a": BLOB_B}

    def test_stage_for_add_clears_removal(self) -> None:
        area = StagingArea(deleted={"a"})
        area.stage_for_add("a", BLOB_A)
        assert area.deleted == set()
        assert area.staged == {"a": BLOB_A}

    def test_unstage(self) -> None:
        area = StagingArea(staged={"a": BLOB_A})
        assert area.unstage_or_stage_for_remove("a", is_tracked_in_head=True) == "unstaged"
        assert area.is_empty()

    def test_stage_for_remove(self) -> None:
        area = StagingArea()
        assert area.unstage_or_stage_for_remove("a", is_tracked_in_head=True) == "removed"
        assert area.deleted == {"a"}

    def test_no_reason_to_remove(self) -> None:
        area = StagingArea()
        with pytest.raises(NoReasonToRemoveError):
            area.unstage_or_stage_for_remove("a", is_tracked_in_head=False)
        assert area.is_empty()

    def test_clear(self) -> None:
        area = StagingArea(staged={"a": BLOB_A}, deleted={"b"})
        area.clear()
        assert area.is_empty()

    def test_encode_decode(self) -> None:
        area = StagingArea(staged={"a": BLOB_A}, deleted={"b"})
        assert StagingArea.decode(area.encode()) == area

    def test_decode_empty_bytes(self) -> None:
        assert StagingArea.decode(b"").is_empty()
        assert StagingArea.decode(b"  \n").is_empty()

    @pytest.mark.parametrize(
        "data",
        [
            b"[]",
            b'{"type":"index","version":2,"staged":{},"deleted":{}}',
            b'{"type":"index","version":1,"staged":{"a":1},"deleted":{}}',
            b'{"type":"index","version":1,"staged":{"a":"x"},"deleted":{"a":""}}',
        ],
    )
    def test_decode_invalid(self, data: bytes) -> None:
        with pytest.raises(SerializationFaultError):
            StagingArea.decode(data)
