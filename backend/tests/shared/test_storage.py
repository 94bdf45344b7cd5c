"""Tests for shared/storage.py."""

import json

from shared.storage import IKeyValueStore, InMemoryKeyValueStore, JsonFileKeyValueStore


class TestInMemoryKeyValueStore:
    def test_implements_interface(self):
        assert isinstance(InMemoryKeyValueStore(), IKeyValueStore)

    def test_get_default(self):
        store = InMemoryKeyValueStore()
        assert store.get("missing") is None
        assert store.get("missing", []) == []

    def test_set_get_delete(self):
        store = InMemoryKeyValueStore()
        store.set("gate:subscribed:u1", True)
        assert store.get("gate:subscribed:u1") is True

        store.delete("gate:subscribed:u1")
        assert store.get("gate:subscribed:u1") is None

    def test_delete_missing_key_is_noop(self):
        store = InMemoryKeyValueStore()
        store.delete("missing")

    def test_initial_data_is_copied(self):
        initial = {"a": 1}
        store = InMemoryKeyValueStore(initial)
        store.set("b", 2)
        assert "b" not in initial


class TestJsonFileKeyValueStore:
    def test_implements_interface(self, tmp_path):
        assert isinstance(JsonFileKeyValueStore(tmp_path / "state.json"), IKeyValueStore)

    def test_missing_file_starts_empty(self, tmp_path):
        store = JsonFileKeyValueStore(tmp_path / "state.json")
        assert store.get("anything") is None
        assert not (tmp_path / "state.json").exists()

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "state.json"
        JsonFileKeyValueStore(path).set("history:recent:u1", ["a", "b"])

        reopened = JsonFileKeyValueStore(path)
        assert reopened.get("history:recent:u1") == ["a", "b"]
        assert json.loads(path.read_text(encoding="utf-8")) == {"history:recent:u1": ["a", "b"]}

    def test_delete_persists(self, tmp_path):
        path = tmp_path / "state.json"
        store = JsonFileKeyValueStore(path)
        store.set("k", 1)
        store.delete("k")

        assert JsonFileKeyValueStore(path).get("k") is None

    def test_no_temporary_file_left_behind(self, tmp_path):
        path = tmp_path / "state.json"
        JsonFileKeyValueStore(path).set("k", 1)
        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json", encoding="utf-8")

        store = JsonFileKeyValueStore(path)
        assert store.get("k") is None

        store.set("k", 1)
        assert JsonFileKeyValueStore(path).get("k") == 1

    def test_non_object_file_starts_empty(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")

        assert JsonFileKeyValueStore(path).get("0") is None
