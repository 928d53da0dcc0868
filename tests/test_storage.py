"""Tests for storage adapters."""

import json
import logging

import pytest

import statekeep.storage as storage_mod
from statekeep import JsonFileStorage, MemoryStorage


class TestMemoryStorage:
    def test_get_set_remove(self):
        s = MemoryStorage()
        assert s.get("k") is None
        s.set("k", "v")
        assert s.get("k") == "v"
        s.remove("k")
        assert s.get("k") is None

    def test_remove_missing(self):
        s = MemoryStorage({"a": "1"})
        s.remove("nope")  # no error
        assert s.get("a") == "1"


class TestJsonFileStorage:
    def test_missing_file_reads_empty(self, tmp_path):
        s = JsonFileStorage(tmp_path / "store.json")
        assert s.get("k") is None

    def test_roundtrip_survives_new_instance(self, tmp_path):
        path = tmp_path / "nested" / "store.json"
        JsonFileStorage(path).set("k", "value")
        assert JsonFileStorage(path).get("k") == "value"
        assert json.loads(path.read_text()) == {"k": "value"}

    def test_keys_are_independent(self, tmp_path):
        s = JsonFileStorage(tmp_path / "store.json")
        s.set("a", "1")
        s.set("b", "2")
        s.remove("a")
        assert s.get("a") is None
        assert s.get("b") == "2"

    def test_no_temp_file_left_behind(self, tmp_path):
        s = JsonFileStorage(tmp_path / "store.json")
        s.set("a", "1")
        assert [p.name for p in tmp_path.iterdir()] == ["store.json"]

    def test_corrupt_file_reads_empty(self, tmp_path, caplog):
        path = tmp_path / "store.json"
        path.write_text("{truncated")
        s = JsonFileStorage(path)
        with caplog.at_level(logging.ERROR, logger="statekeep.storage"):
            assert s.get("k") is None
        assert "Ignoring corrupt storage file" in caplog.text

        s.set("k", "v")
        assert json.loads(path.read_text()) == {"k": "v"}

    def test_non_object_file_reads_empty(self, tmp_path, caplog):
        path = tmp_path / "store.json"
        path.write_text("[1, 2]")
        with caplog.at_level(logging.ERROR, logger="statekeep.storage"):
            assert JsonFileStorage(path).get("k") is None
        assert "expected an object" in caplog.text

    def test_failed_write_keeps_old_file_and_no_temp(self, tmp_path, monkeypatch):
        path = tmp_path / "store.json"
        s = JsonFileStorage(path)
        s.set("k", "old")

        def broken_dump(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(storage_mod.json, "dump", broken_dump)
        with pytest.raises(OSError, match="disk full"):
            s.set("k", "new")
        monkeypatch.undo()

        assert [p.name for p in tmp_path.iterdir()] == ["store.json"]
        assert s.get("k") == "old"
