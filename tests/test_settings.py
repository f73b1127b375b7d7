"""Tests for config.settings"""

import asyncio
import json

from config.settings import SettingsStore, mask_api_key


def test_missing_file_gives_empty_settings(tmp_path):
    store = SettingsStore(str(tmp_path / "missing.json"))

    assert asyncio.run(store.load()) == {}
    assert store.get("apiKey") is None


def test_save_and_reload(tmp_path):
    path = tmp_path / "settings.json"
    store = SettingsStore(str(path))
    store.set("apiKey", "AIzaSyExampleKey1234")

    result = asyncio.run(store.save())

    assert result.succeeded
    assert result.error is None
    assert json.loads(path.read_text(encoding="utf-8")) == {"apiKey": "AIzaSyExampleKey1234"}
    reloaded = SettingsStore(str(path))
    asyncio.run(reloaded.load())
    assert reloaded.get("apiKey") == "AIzaSyExampleKey1234"


def test_save_failure_is_reported(tmp_path):
    store = SettingsStore(str(tmp_path / "no_such_dir" / "settings.json"))
    store.set("apiKey", "k")

    result = asyncio.run(store.save())

    assert not result.succeeded
    assert result.error


def test_corrupt_file_is_ignored(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")

    assert asyncio.run(SettingsStore(str(path)).load()) == {}


def test_mask_api_key():
    assert mask_api_key("AIzaSyExampleKeyJ8ZU") == "AIza...J8ZU"
    assert mask_api_key("short") == "short"
