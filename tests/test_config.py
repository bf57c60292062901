"""Tests for settings resolution and logging setup."""

import importlib
import logging

import pytest

import audio_notes.config as config
from audio_notes.log_setup import setup_logging


class TestSettings:

    def test_defaults(self):
        settings = config.load_settings()
        assert settings.player_cache_size == config.PLAYER_CACHE_SIZE
        assert settings.speed_step == pytest.approx(0.1)
        assert config.NOTE_OPENING_FENCE == "```audio-note"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("AUDIO_NOTES_PLAYER_CACHE_SIZE", "7")
        monkeypatch.setenv("AUDIO_NOTES_FORWARD_STEP", "20")
        try:
            reloaded = importlib.reload(config)
            assert reloaded.PLAYER_CACHE_SIZE == 7
            assert reloaded.Settings().forward_step == 20.0
        finally:
            monkeypatch.delenv("AUDIO_NOTES_PLAYER_CACHE_SIZE")
            monkeypatch.delenv("AUDIO_NOTES_FORWARD_STEP")
            importlib.reload(config)

    def test_invalid_override_raises(self, monkeypatch):
        monkeypatch.setenv("AUDIO_NOTES_BACKWARD_STEP", "five")
        try:
            with pytest.raises(ValueError):
                importlib.reload(config)
        finally:
            monkeypatch.delenv("AUDIO_NOTES_BACKWARD_STEP")
            importlib.reload(config)


class TestLogging:

    def test_single_handler_after_repeated_setup(self):
        root = logging.getLogger()
        saved = root.handlers[:], root.level
        try:
            setup_logging(logging.DEBUG)
            setup_logging(logging.DEBUG)
            assert len(root.handlers) == 1
            assert root.level == logging.DEBUG
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            root.handlers[:] = saved[0]
            root.setLevel(saved[1])
