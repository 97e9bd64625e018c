import json

import pytest

from shiba2048.storage import JsonFileStore, MemoryStore


@pytest.fixture(params=["memory", "file"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return MemoryStore()
    return JsonFileStore(tmp_path / "nested" / "storage.json")


def test_set_and_get(any_store):
    assert any_store.set("bestScore", "128")
    assert any_store.get("bestScore") == "128"


def test_values_are_stored_as_strings(any_store):
    any_store.set("darkMode", True)
    any_store.set("soundMuted", False)
    any_store.set("bestScore", 512)
    assert any_store.get("darkMode") == "true"
    assert any_store.get("soundMuted") == "false"
    assert any_store.get("bestScore") == "512"


def test_missing_key_returns_default(any_store):
    assert any_store.get("bestScore") is None
    assert any_store.get("bestScore", "0") == "0"


def test_invalid_arguments(any_store):
    assert any_store.set("", "1") is False
    assert any_store.set("bestScore", None) is False
    assert any_store.get("", "x") == "x"


def test_remove_clear_keys(any_store):
    any_store.set("a", "1")
    any_store.set("b", "2")
    assert sorted(any_store.keys()) == ["a", "b"]
    assert any_store.remove("a")
    assert any_store.keys() == ["b"]
    assert any_store.clear()
    assert any_store.keys() == []


def test_file_store_survives_reopen(tmp_path):
    path = tmp_path / "storage.json"
    JsonFileStore(path).set("bestScore", "4096")
    assert JsonFileStore(path).get("bestScore") == "4096"
    assert json.loads(path.read_text(encoding="utf-8")) == {"bestScore": "4096"}


def test_file_written_by_hand_reads_like_our_own(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text('{"darkMode": true, "soundMuted": false, "bestScore": 64}', encoding="utf-8")
    store = JsonFileStore(path)
    assert store.get("darkMode") == "true"
    assert store.get("soundMuted") == "false"
    assert store.get("bestScore") == "64"


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
def test_corrupt_file_reads_as_empty(tmp_path, content):
    path = tmp_path / "storage.json"
    path.write_text(content, encoding="utf-8")
    store = JsonFileStore(path)
    assert store.get("bestScore", "0") == "0"
    assert store.set("bestScore", "8")
    assert store.get("bestScore") == "8"


def test_unwritable_path_reports_failure(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    store = JsonFileStore(blocker / "storage.json")
    assert store.set("bestScore", "2") is False
    assert store.get("bestScore", "0") == "0"


def test_memory_store_initial_values():
    store = MemoryStore({"darkMode": True, "bestScore": 16})
    assert store.get("darkMode") == "true"
    assert store.get("bestScore") == "16"
