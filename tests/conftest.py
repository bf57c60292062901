"""Shared test fixtures for the audio_notes test suite.

WHY: Alignment, note serialization, regeneration and the CLI all need the
same small transcripts. Keeping them here means every module tests against
the same segment boundaries.

HOW: Plain module-level constants for the raw file contents, plus pytest
fixtures that return parsed Transcript objects, an in-memory loader and a
fake player handle.

RULES:
- ABC_SEGMENTS is the three-segment transcript A(0-2) B(2-5) C(5-8)
- FakePlayer implements the PlayerHandle protocol and records display updates
- loader fixtures never touch the disk or network
"""

import json
from typing import Dict, List, Optional

import pytest

from audio_notes.core.transcript import Transcript, TranscriptSegment
from audio_notes.core.transcript_cache import TranscriptCache


# ---------------------------------------------------------------------------
# Transcript samples
# ---------------------------------------------------------------------------

ABC_SEGMENTS = [
    TranscriptSegment(id=0, start=0.0, end=2.0, text="A"),
    TranscriptSegment(id=1, start=2.0, end=5.0, text="B"),
    TranscriptSegment(id=2, start=5.0, end=8.0, text="C"),
]

WHISPER_JSON = json.dumps({
    "text": " Welcome back to the show. Today we talk about bees. They are great.",
    "segments": [
        {"id": 0, "start": 0.0, "end": 4.5, "text": " Welcome back to the show.", "avg_logprob": -0.2},
        {"id": 1, "start": 4.5, "end": 9.0, "text": " Today we talk about bees."},
        {"id": 2, "start": 9.0, "end": 12.25, "text": " They are great."},
    ],
})

SAMPLE_SRT = (
    "1\r\n"
    "00:00:00,000 --> 00:00:04,500\r\n"
    "Welcome back\r\n"
    "to the show.\r\n"
    "\r\n"
    "2\r\n"
    "00:00:04,500 --> 00:00:09,000\r\n"
    "Today we talk about bees.\r\n"
    "\r\n"
    "3\r\n"
    "00:00:09,000 --> 00:00:12,250\r\n"
    "They are great.\r\n"
)


@pytest.fixture
def abc_transcript():
    """Transcript with segments A(0-2), B(2-5), C(5-8)."""
    return Transcript(list(ABC_SEGMENTS))


@pytest.fixture
def whisper_json():
    return WHISPER_JSON


@pytest.fixture
def sample_srt():
    return SAMPLE_SRT


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------


class DictLoader:
    """In-memory load_files collaborator that records every call."""

    def __init__(self, files: Dict[str, str]) -> None:
        self.files = files
        self.calls: List[List[str]] = []

    async def __call__(self, names: List[str]) -> Dict[str, str]:
        self.calls.append(list(names))
        return {name: self.files[name] for name in names if name in self.files}


@pytest.fixture
def dict_loader():
    return DictLoader({
        "episode.json": WHISPER_JSON,
        "episode.srt": SAMPLE_SRT,
        "broken.json": "{not json",
    })


@pytest.fixture
def transcripts(dict_loader):
    return TranscriptCache(dict_loader)


# ---------------------------------------------------------------------------
# Players
# ---------------------------------------------------------------------------


class FakePlayer:
    """PlayerHandle stand-in that records display refreshes."""

    def __init__(
        self,
        id: str,
        source_key: str,
        current_time: float = 0.0,
        duration: Optional[float] = 120.0,
    ) -> None:
        self.id = id
        self.source_key = source_key
        self.current_time = current_time
        self.playback_rate = 1.0
        self.duration = duration
        self.paused = True
        self.displays: List[tuple] = []

    def update_display(self, readout: str, seek_value: float) -> None:
        self.displays.append((readout, seek_value))

    def __repr__(self) -> str:
        return "FakePlayer({!r})".format(self.id)
