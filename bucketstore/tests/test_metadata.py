"""
Unit Tests: Metadata

Tests:
    - get/set/delete/clear semantics
    - Snapshot accessors
    - to_record copy vs as_record live view
    - Set-of-pairs equality
"""

import pytest

from bucketstore.storage.metadata import Metadata


class TestMetadataEntries:
    """Tests for entry mutation and lookup."""

    def test_empty_by_default(self):
        meta = Metadata()
        assert meta.is_empty()
        assert meta.length() == 0
        assert len(meta) == 0

    def test_get_returns_inserted_value(self):
        meta = Metadata()
        meta.set("owner", "alice")
        meta.set("team", "media")

        assert meta.get("owner") == "alice"
        assert meta.get("team") == "media"
        assert not meta.is_empty()

    def test_get_absent_is_none(self):
        assert Metadata().get("missing") is None

    def test_set_overwrites(self):
        meta = Metadata({"owner": "alice"})
        meta.set("owner", "bob")
        assert meta.get("owner") == "bob"
        assert meta.length() == 1

    def test_delete(self):
        meta = Metadata({"owner": "alice"})
        meta.delete("owner")
        assert meta.get("owner") is None
        assert meta.is_empty()

    def test_delete_absent_is_noop(self):
        meta = Metadata({"owner": "alice"})
        meta.delete("nope")
        assert meta.length() == 1

    def test_clear(self):
        meta = Metadata({"a": "1", "b": "2"})
        meta.clear()
        assert meta.is_empty()

    def test_constructor_copies_mapping(self):
        source = {"a": "1"}
        meta = Metadata(source)
        source["a"] = "changed"
        assert meta.get("a") == "1"


class TestMetadataQueries:
    """Tests for membership and snapshots."""

    def test_contains_key_and_value(self):
        meta = Metadata({"owner": "alice"})

        assert meta.contains_key("owner")
        assert "owner" in meta
        assert not meta.contains_key("alice")
        assert meta.contains_value("alice")
        assert not meta.contains_value("owner")

    def test_contains_pair(self):
        meta = Metadata({"owner": "alice"})
        assert meta.contains(("owner", "alice"))
        assert not meta.contains(("owner", "bob"))

    def test_snapshots_are_detached(self):
        meta = Metadata({"a": "1"})
        keys = meta.keys()
        keys.append("b")

        assert meta.keys() == ["a"]
        assert meta.values() == ["1"]
        assert meta.pairs() == [("a", "1")]

    def test_iteration_yields_keys(self):
        meta = Metadata({"a": "1", "b": "2"})
        assert sorted(meta) == ["a", "b"]


class TestMetadataRecords:
    """Tests for the copy and live-view accessors."""

    def test_to_record_is_copy(self):
        meta = Metadata({"owner": "alice"})
        record = meta.to_record()
        record["owner"] = "mallory"
        record["extra"] = "x"

        assert meta.get("owner") == "alice"
        assert meta.get("extra") is None

    def test_as_record_is_live(self):
        meta = Metadata({"owner": "alice"})
        record = meta.as_record()
        record["owner"] = "bob"
        record["extra"] = "x"

        assert meta.get("owner") == "bob"
        assert meta.get("extra") == "x"

    def test_as_record_reflects_later_sets(self):
        meta = Metadata()
        record = meta.as_record()
        meta.set("k", "v")
        assert record == {"k": "v"}


class TestMetadataEquality:
    """Tests for set-of-pairs equality."""

    def test_equal_regardless_of_order(self):
        left = Metadata({"a": "1", "b": "2"})
        right = Metadata({"b": "2", "a": "1"})
        assert left == right

    def test_unequal_values(self):
        assert Metadata({"a": "1"}) != Metadata({"a": "2"})

    def test_not_hashable(self):
        with pytest.raises(TypeError):
            hash(Metadata())
