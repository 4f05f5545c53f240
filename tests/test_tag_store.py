"""
Tests for TagStore: validation, replace semantics, rename and sweep.

Uses in-memory storage, no disk.
"""

import pytest

from tagit.errors import PersistenceError, ValidationError
from tagit.tag_store import TagStore


class TestGetSet:
    """get_tags / set_tags basics."""

    def test_get_untagged_is_empty(self, store):
        assert store.get_tags("file:///nothing") == []

    def test_set_then_get(self, store):
        store.set_tags("file:///a", ["#heap", "#tree"])
        assert set(store.get_tags("file:///a")) == {"#heap", "#tree"}

    def test_duplicates_collapse(self, store):
        store.set_tags("file:///a", ["#x", "#x", "#y"])
        tags = store.get_tags("file:///a")
        assert len(tags) == 2
        assert set(tags) == {"#x", "#y"}

    def test_first_seen_order_kept(self, store):
        store.set_tags("file:///a", ["#b", "#a", "#b", "#c"])
        assert store.get_tags("file:///a") == ["#b", "#a", "#c"]

    def test_set_replaces_not_merges(self, store):
        store.set_tags("file:///a", ["#old"])
        store.set_tags("file:///a", ["#new"])
        assert store.get_tags("file:///a") == ["#new"]

    def test_set_empty_removes_association(self, store, memory_storage):
        store.set_tags("file:///a", ["#x"])
        store.set_tags("file:///a", [])
        assert store.get_tags("file:///a") == []
        assert "file:///a" not in memory_storage.keys()
        assert store.list_identities() == []

    def test_accepts_any_iterable(self, store):
        store.set_tags("file:///a", (t for t in ["#x", "#y"]))
        assert store.get_tags("file:///a") == ["#x", "#y"]


class TestValidation:
    """Invalid tags reject the whole write."""

    def test_whitespace_rejected(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.set_tags("file:///a", ["#ok", "bad tag"])
        assert exc_info.value.invalid_tags == ["bad tag"]

    def test_rejection_leaves_prior_state(self, store):
        store.set_tags("file:///a", ["#before"])
        with pytest.raises(ValidationError):
            store.set_tags("file:///a", ["#ok", "bad tag"])
        assert store.get_tags("file:///a") == ["#before"]

    def test_rejection_on_new_file_writes_nothing(self, store, memory_storage):
        with pytest.raises(ValidationError):
            store.set_tags("file:///a", ["#ok", "bad\ttag"])
        assert memory_storage.keys() == []

    def test_all_offending_values_reported(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.set_tags("file:///a", ["a b", "#fine", "c\nd", ""])
        assert exc_info.value.invalid_tags == ["a b", "c\nd", ""]
        assert "'a b'" in str(exc_info.value)

    @pytest.mark.parametrize("tag", ["a&b", "a|b", "(a", "a)"])
    def test_query_operators_rejected(self, store, tag):
        with pytest.raises(ValidationError):
            store.set_tags("file:///a", [tag])

    def test_validation_error_is_value_error(self, store):
        with pytest.raises(ValueError):
            store.set_tags("file:///a", ["no good"])

    def test_bare_string_rejected(self, store):
        store.set_tags("file:///a", ["#before"])
        with pytest.raises(TypeError):
            store.set_tags("file:///a", "#heap")
        assert store.get_tags("file:///a") == ["#before"]


class TestPersistenceFailures:
    """Storage failures surface and leave committed state alone."""

    def test_write_failure_raises_and_keeps_old_tags(self, failing_storage):
        store = TagStore(failing_storage)
        store.set_tags("file:///a", ["#old"])
        failing_storage.fail_write = True
        with pytest.raises(PersistenceError):
            store.set_tags("file:///a", ["#new"])
        failing_storage.fail_write = False
        assert store.get_tags("file:///a") == ["#old"]

    def test_delete_failure_on_empty_set_raises(self, failing_storage):
        store = TagStore(failing_storage)
        store.set_tags("file:///a", ["#x"])
        failing_storage.fail_delete = True
        with pytest.raises(PersistenceError):
            store.set_tags("file:///a", [])
        failing_storage.fail_delete = False
        assert store.get_tags("file:///a") == ["#x"]

    def test_read_failure_surfaces(self, failing_storage):
        store = TagStore(failing_storage)
        failing_storage.fail_read = True
        with pytest.raises(PersistenceError):
            store.get_tags("file:///a")

    def test_validation_checked_before_storage(self, failing_storage):
        store = TagStore(failing_storage)
        with pytest.raises(ValidationError):
            store.set_tags("file:///a", ["bad tag"])
        assert failing_storage.write_calls == 0


class TestClear:

    def test_clear_removes(self, store):
        store.set_tags("file:///a", ["#x"])
        store.clear_tags("file:///a")
        assert store.get_tags("file:///a") == []

    def test_clear_missing_is_noop(self, store):
        store.clear_tags("file:///missing")
        store.clear_tags("file:///missing")
        assert store.list_identities() == []


class TestRename:
    """rename_identity moves tags and removes the old key."""

    def test_rename_moves_tags(self, store):
        store.set_tags("a", ["#x"])
        assert store.rename_identity("a", "b") is True
        assert store.get_tags("a") == []
        assert store.get_tags("b") == ["#x"]

    def test_rename_untagged_returns_false(self, store):
        assert store.rename_identity("a", "b") is False
        assert store.get_tags("a") == []
        assert store.get_tags("b") == []

    def test_rename_to_self_is_noop(self, store):
        store.set_tags("a", ["#x"])
        assert store.rename_identity("a", "a") is False
        assert store.get_tags("a") == ["#x"]

    def test_rename_replaces_target_tags(self, store):
        store.set_tags("a", ["#x"])
        store.set_tags("b", ["#y"])
        assert store.rename_identity("a", "b") is True
        assert store.get_tags("b") == ["#x"]

    def test_rename_write_failure_keeps_old(self, failing_storage):
        store = TagStore(failing_storage)
        store.set_tags("a", ["#x"])
        failing_storage.fail_write = True
        assert store.rename_identity("a", "b") is False
        failing_storage.fail_write = False
        assert store.get_tags("a") == ["#x"]
        assert store.get_tags("b") == []

    def test_rename_delete_failure_restores_target(self, failing_storage):
        store = TagStore(failing_storage)
        store.set_tags("a", ["#x"])
        store.set_tags("b", ["#y"])
        failing_storage.fail_delete = True
        assert store.rename_identity("a", "b") is False
        failing_storage.fail_delete = False
        assert store.get_tags("a") == ["#x"]
        assert store.get_tags("b") == ["#y"]

    def test_rename_rejects_invalid_stored_tags(self, memory_storage):
        """Tags written to storage by other means are still validated on move."""
        memory_storage.write("a", ["bad tag"])
        store = TagStore(memory_storage)
        assert store.rename_identity("a", "b") is False
        assert store.get_tags("a") == ["bad tag"]
        assert store.get_tags("b") == []


class TestListIdentities:

    def test_lists_tagged_only(self, store):
        store.set_tags("a", ["#x"])
        store.set_tags("b", ["#y"])
        store.set_tags("c", ["#z"])
        store.clear_tags("c")
        assert sorted(store.list_identities()) == ["a", "b"]

    def test_skips_empty_records(self, memory_storage):
        memory_storage.write("empty", [])
        memory_storage.write("full", ["#x"])
        store = TagStore(memory_storage)
        assert store.list_identities() == ["full"]

    def test_items_returns_pairs(self, store):
        store.set_tags("a", ["#x", "#y"])
        assert store.items() == [("a", ["#x", "#y"])]


class TestSweep:
    """sweep_stale drops missing files and skips failing probes."""

    def test_sweep_removes_missing(self, store):
        store.set_tags("x", ["#t"])
        store.set_tags("y", ["#t"])
        alive = {"x": True, "y": False, "z": True}
        removed = store.sweep_stale(lambda id: alive[id])
        assert removed == ["y"]
        assert "x" in store.list_identities()
        assert "y" not in store.list_identities()
        assert "z" not in store.list_identities()

    def test_probe_error_skips_identity(self, store):
        store.set_tags("a", ["#t"])
        store.set_tags("b", ["#t"])
        store.set_tags("c", ["#t"])

        def probe(id):
            if id == "b":
                raise OSError("transient")
            return False

        removed = store.sweep_stale(probe)
        assert sorted(removed) == ["a", "c"]
        assert store.list_identities() == ["b"]

    def test_sweep_empty_store(self, store):
        assert store.sweep_stale(lambda id: False) == []

    def test_sweep_visits_snapshot_only(self, store):
        store.set_tags("a", ["#t"])
        seen = []

        def probe(id):
            seen.append(id)
            store.set_tags("late", ["#t"])
            return True

        store.sweep_stale(probe)
        assert seen == ["a"]
        assert "late" in store.list_identities()
