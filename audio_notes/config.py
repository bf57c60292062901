"""Configuration constants and .env loading.

WHY: Centralizes the tunable values (player cache size, skip steps, the
range used when creating a note at the current time, position retention)
so they are easy to find and override without touching logic.

HOW: python-dotenv loads the .env file on import. Constants are module-level
values read from the environment with sensible defaults. load_settings()
bundles them into a Settings snapshot that services take as a constructor
argument, so tests can pass their own values.

RULES:
- NOTE_LANGUAGE is the fenced code block tag the host renderer registers
- All numeric defaults can be overridden via environment variables
- Invalid numeric overrides raise ValueError at import, never silently default
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Set

from dotenv import load_dotenv

# Load .env from the project root (where the tool is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Note block format
# ---------------------------------------------------------------------------

NOTE_LANGUAGE = "audio-note"
"""Language tag of the fenced code block that holds an audio note."""

NOTE_FENCE = "```"
NOTE_OPENING_FENCE = NOTE_FENCE + NOTE_LANGUAGE

TRANSCRIPT_EXTENSIONS: Set[str] = {".json", ".srt"}
"""File extensions treated as transcript files by the vault loader."""

# ---------------------------------------------------------------------------
# Playback defaults
# ---------------------------------------------------------------------------

PLAYER_CACHE_SIZE = int(os.getenv("AUDIO_NOTES_PLAYER_CACHE_SIZE", "30"))
PLUS_MINUS_DURATION = float(os.getenv("AUDIO_NOTES_PLUS_MINUS_DURATION", "30"))
BACKWARD_STEP = float(os.getenv("AUDIO_NOTES_BACKWARD_STEP", "5"))
FORWARD_STEP = float(os.getenv("AUDIO_NOTES_FORWARD_STEP", "15"))
SPEED_STEP = 0.1
MIN_PLAYBACK_RATE = 0.1

# Saved playback positions older than this are dropped on load (~3 months).
POSITION_RETENTION_S = float(os.getenv("AUDIO_NOTES_POSITION_RETENTION_S", "7884000"))

# ---------------------------------------------------------------------------
# Loader defaults
# ---------------------------------------------------------------------------

HTTP_TIMEOUT_S = float(os.getenv("AUDIO_NOTES_HTTP_TIMEOUT_S", "30"))


@dataclass(frozen=True)
class Settings:
    """Snapshot of the user-tunable settings.

    WHY: Services receive their settings explicitly instead of reading
    module globals, which keeps them testable and lets a host hold several
    sessions with different preferences.
    """

    player_cache_size: int = PLAYER_CACHE_SIZE
    plus_minus_duration: float = PLUS_MINUS_DURATION
    backward_step: float = BACKWARD_STEP
    forward_step: float = FORWARD_STEP
    speed_step: float = SPEED_STEP
    position_retention_s: float = POSITION_RETENTION_S


def load_settings() -> Settings:
    """Return the settings resolved from the environment at import time."""
    return Settings()
