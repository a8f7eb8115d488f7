import json

import pytest

from backend.store import AccountStore, StoreError, reconcile_groups


def test_missing_file_starts_empty(tmp_path):
    store = AccountStore(tmp_path / "nested" / "accounts.json", ["a"])
    assert store.load()["users"] == {}

    with store.transaction() as state:
        assert state["group_counts"] == {"a": 0}

    assert json.loads((tmp_path / "nested" / "accounts.json").read_text())["group_counts"] == {"a": 0}


def test_reconcile_adds_and_drops_groups():
    state = {"users": {}, "group_counts": {"old": 3, "a": 1}, "last_assigned_group_index": 5}
    reconcile_groups(state, ["a", "b"])
    assert state["group_counts"] == {"a": 1, "b": 0}
    assert state["last_assigned_group_index"] == 0


def test_failed_transaction_is_not_saved(tmp_path):
    store = AccountStore(tmp_path / "accounts.json", ["a"])
    with store.transaction() as state:
        state["users"]["kept@example.com"] = {}

    with pytest.raises(RuntimeError):
        with store.transaction() as state:
            state["users"]["lost@example.com"] = {}
            raise RuntimeError("boom")

    assert list(store.load()["users"]) == ["kept@example.com"]


def test_corrupted_file_raises(tmp_path):
    path = tmp_path / "accounts.json"
    path.write_text("{broken")
    store = AccountStore(path, ["a"])

    with pytest.raises(StoreError):
        store.load()

    path.write_text("[]")
    with pytest.raises(StoreError):
        store.load()


def test_no_temp_files_left_behind(tmp_path):
    store = AccountStore(tmp_path / "accounts.json", ["a"])
    with store.transaction() as state:
        state["group_counts"]["a"] = 1
    assert [p.name for p in tmp_path.iterdir()] == ["accounts.json"]


def test_load_reconciles_groups_without_writing(tmp_path):
    path = tmp_path / "accounts.json"
    original = {"users": {}, "group_counts": {"old": 2, "a": 1}, "last_assigned_group_index": 4}
    path.write_text(json.dumps(original))
    store = AccountStore(path, ["a", "b"])

    state = store.load()

    assert state["group_counts"] == {"a": 1, "b": 0}
    assert state["last_assigned_group_index"] == 0
    assert json.loads(path.read_text()) == original


def test_unreadable_file_raises_store_error(tmp_path):
    store = AccountStore(tmp_path, ["a"])

    with pytest.raises(StoreError, match="Cannot read"):
        store.load()


def test_unwritable_location_raises_store_error(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    store = AccountStore(blocker / "accounts.json", ["a"])

    with pytest.raises(StoreError, match="Cannot write"):
        with store.transaction() as state:
            state["group_counts"]["a"] = 1
