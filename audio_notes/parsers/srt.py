"""SRT subtitle transcript parser.

WHY: Many podcasts and video sources publish captions as SRT files rather
than JSON. The timestamps in the wild are sloppy: ``.`` instead of ``,``,
one-digit hours, two- or four-digit milliseconds.

HOW: Strip carriage returns, then split the text on the block header
pattern ``index\\nSTART --> END``. The comma-separated variant is tried
first and the dot-separated variant as a fallback. Every timestamp is
normalized to ``HH:MM:SS,mmm`` before conversion to seconds.

RULES:
- Hours/minutes/seconds are left-padded with zeros or cut to 2 digits
- Milliseconds are right-padded with zeros or cut to 3 digits
  ("28.9" -> "28,900", "28.9670" -> "28,967")
- Seconds are rounded to the millisecond
- Multi-line caption bodies are joined with single spaces
- Segment id is the block index string
- No recognizable block raises ParseError
"""

from __future__ import annotations

import re
from typing import List

from audio_notes.core.transcript import Transcript, TranscriptSegment
from audio_notes.errors import ParseError
from audio_notes.parsers.base import BaseTranscriptParser

_COMMA_BLOCK_RE = re.compile(
    r"(\d+)\n(\d{1,2}:\d{2}:\d{2},\d{1,3}) --> (\d{1,2}:\d{2}:\d{2},\d{1,3})"
)
_DOT_BLOCK_RE = re.compile(
    r"(\d+)\n(\d{1,2}:\d{2}:\d{2}\.\d{1,3}) --> (\d{1,2}:\d{2}:\d{2}\.\d{1,3})"
)


def fixed_digits(value: str, width: int, pad_end: bool = True) -> str:
    """Make ``value`` exactly ``width`` characters long.

    Longer strings are cut from the end ("7771" -> "777"); shorter ones
    are padded with zeros at the end ("50" -> "500") or, with
    pad_end=False, at the start ("5" -> "05").
    """
    if len(value) >= width:
        return value[:width]
    if pad_end:
        return value.ljust(width, "0")
    return value.rjust(width, "0")


def normalize_timestamp(timestamp: str) -> str:
    """Normalize an SRT timestamp to ``HH:MM:SS,mmm``."""
    front, _, millis = timestamp.strip().replace(".", ",", 1).partition(",")
    hours, minutes, seconds = front.split(":")
    return "{}:{}:{},{}".format(
        fixed_digits(hours, 2, pad_end=False),
        fixed_digits(minutes, 2, pad_end=False),
        fixed_digits(seconds, 2, pad_end=False),
        fixed_digits(millis, 3),
    )


def timestamp_to_seconds(timestamp: str) -> float:
    """Convert a normalized ``HH:MM:SS,mmm`` timestamp to seconds."""
    rest, _, millis = timestamp.partition(",")
    hours, minutes, seconds = (int(x) for x in rest.split(":"))
    result = int(millis) * 0.001 + seconds + 60 * minutes + 3600 * hours
    return round(result, 3)


class SrtParser(BaseTranscriptParser):
    """Parser for SRT subtitle files with lenient timestamp handling."""

    @property
    def name(self) -> str:
        return "SRT subtitles"

    def parse(self, contents: str) -> Transcript:
        data = contents.replace("\r", "")
        parts = _COMMA_BLOCK_RE.split(data)
        if len(parts) < 5:
            parts = _DOT_BLOCK_RE.split(data)
        if len(parts) < 5:
            raise ParseError("No subtitle blocks found.")

        # parts = [preamble, index, start, end, body, index, start, end, body, ...]
        segments: List[TranscriptSegment] = []
        for i in range(1, len(parts) - 3, 4):
            index, start, end, body = parts[i:i + 4]
            segments.append(TranscriptSegment(
                id=index.strip(),
                start=timestamp_to_seconds(normalize_timestamp(start)),
                end=timestamp_to_seconds(normalize_timestamp(end)),
                text=" ".join(line.strip() for line in body.strip().split("\n") if line.strip()),
            ))
        return Transcript(segments)
