from __future__ import annotations

import json

from etf_projector.utils.cache import InMemoryStore, JsonFileStore, KeyValueStore, build_store


def test_in_memory_store():
    s = InMemoryStore()
    assert s.get("a") is None
    s.set("a", b"1")
    s.set("b", b"2")
    assert s.get("a") == b"1"
    assert sorted(s.keys()) == ["a", "b"]
    s.delete("a")
    assert s.get("a") is None
    s.clear()
    assert len(s) == 0


def test_json_file_store_roundtrip_and_persistence(tmp_path):
    path = tmp_path / "nested" / "store.json"
    s = JsonFileStore(path)
    s.set("VOO|2026-03-01", b'{"ticker":"VOO"}')
    s.set("bin", bytes([0, 255, 10]))
    assert path.exists()

    reopened = JsonFileStore(path)
    assert reopened.get("VOO|2026-03-01") == b'{"ticker":"VOO"}'
    assert reopened.get("bin") == bytes([0, 255, 10])
    assert sorted(reopened.keys()) == ["VOO|2026-03-01", "bin"]

    reopened.delete("bin")
    assert JsonFileStore(path).get("bin") is None
    assert list(tmp_path.joinpath("nested").glob("*.tmp")) == []


def test_json_file_store_unreadable_file_starts_empty(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    s = JsonFileStore(path)
    assert len(s) == 0
    s.set("k", b"v")
    assert json.loads(path.read_text(encoding="utf-8")).keys() == {"k"}


def test_build_store(tmp_path):
    assert isinstance(build_store(""), InMemoryStore)
    assert isinstance(build_store(str(tmp_path / "s.json")), JsonFileStore)
    assert isinstance(InMemoryStore(), KeyValueStore)
