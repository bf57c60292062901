"""Unit tests for the JSON-backed PositionStore."""

import json

from audio_notes.config import Settings
from audio_notes.playback.positions import PositionStore

DAY = 24 * 60 * 60


class TestPositionStore:

    def test_save_writes_file(self, tmp_path):
        path = tmp_path / "state" / "positions.json"
        store = PositionStore(path, clock=lambda: 1000.0)
        store.save("a.mp3", 12.5)
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data == {"positions": {"a.mp3": [12.5, 1000000.0]}}

    def test_load_drops_expired_and_rewrites(self, tmp_path):
        path = tmp_path / "positions.json"
        now = 100 * DAY
        path.write_text(json.dumps({
            "settings": {"keep": True},
            "positions": {
                "fresh.mp3": [10.0, (now - DAY) * 1000],
                "stale.mp3": [20.0, (now - 91 * DAY) * 1000],
            },
        }), encoding="utf-8")

        store = PositionStore(path, retention_s=90 * DAY, clock=lambda: now)
        assert store.load() == {"fresh.mp3": 10.0}
        assert store.get("stale.mp3") is None

        data = json.loads(path.read_text(encoding="utf-8"))
        assert list(data["positions"]) == ["fresh.mp3"]

    def test_retention_from_settings(self, tmp_path):
        path = tmp_path / "positions.json"
        now = 10 * DAY
        path.write_text(json.dumps({"positions": {
            "recent.mp3": [1.0, (now - DAY) * 1000],
            "older.mp3": [2.0, (now - 3 * DAY) * 1000],
        }}), encoding="utf-8")

        store = PositionStore(path, clock=lambda: now, settings=Settings(position_retention_s=2 * DAY))
        assert store.retention_s == 2 * DAY
        assert store.load() == {"recent.mp3": 1.0}
        assert PositionStore(path).retention_s == Settings().position_retention_s
        assert data["settings"] == {"keep": True}

    def test_missing_file_starts_empty(self, tmp_path):
        store = PositionStore(tmp_path / "none.json")
        assert store.load() == {}
        assert not (tmp_path / "none.json").exists()

    def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "positions.json"
        path.write_text("{oops", encoding="utf-8")
        store = PositionStore(path)
        assert store.load() == {}
        assert list(store.items()) == []

    def test_malformed_entries_dropped(self, tmp_path):
        path = tmp_path / "positions.json"
        path.write_text(json.dumps({"positions": {"a": "x", "b": [1.0]}}), encoding="utf-8")
        store = PositionStore(path, clock=lambda: 0.0)
        assert store.load() == {}
