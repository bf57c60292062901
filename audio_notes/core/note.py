"""The AudioNote record and its optional document position.

WHY: Every consumer of an audio note block (renderer, regeneration,
playback) needs the same fields: the audio reference, the time range, the
playback speed, the transcript reference, and the quote. Notes found by a
document scan additionally need to know where their text lives so it can
be replaced in place.

HOW: AudioNote is a plain dataclass. Instead of a subclass for positioned
notes, it carries an optional DocumentPosition that is only set by the
document scanner (regeneration.discover_notes).

RULES:
- start is clamped to >= 0 on every assignment, including construction
- end defaults to infinity (play to the end of the file)
- speed 1.0 means "normal" and is omitted when serialized
- needs_to_be_updated is True exactly when the quote is empty or None
- position is None unless the note came from a document scan; it is never
  serialized
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from typing import Any, Optional

from audio_notes.core.timecodes import seconds_to_time_string


@dataclass(frozen=True)
class DocumentPosition:
    """Where a note's fenced block sits in its document.

    RULES:
    - start_line: 0-based line of the opening fence
    - end_line: 0-based line of the closing fence
    - end_ch: length of the line just before the closing fence
    """

    start_line: int
    end_line: int
    end_ch: int

    def contains(self, line: int, ch: int = 0) -> bool:
        """True if (line, ch) is within the fenced block, fences included.

        On the closing fence line the column must not pass end_ch.
        """
        if not self.start_line <= line <= self.end_line:
            return False
        return line != self.end_line or ch <= self.end_ch


@dataclass
class AudioNote:
    """A parsed audio note block."""

    audio_filename: str
    start: float = 0.0
    end: float = math.inf
    speed: float = 1.0
    title: Optional[str] = None
    author: Optional[str] = None
    transcript_filename: Optional[str] = None
    quote_created_for_start: Optional[float] = None
    quote_created_for_end: Optional[float] = None
    quote: Optional[str] = None
    extend_audio: bool = False
    position: Optional[DocumentPosition] = field(default=None, compare=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "start" and value < 0:
            value = 0.0
        super().__setattr__(name, value)

    @property
    def needs_to_be_updated(self) -> bool:
        return not self.quote

    def with_position(self, position: DocumentPosition) -> AudioNote:
        """Return a copy of this note located at ``position``."""
        return dataclasses.replace(self, position=position)

    def formatted_title(self) -> str:
        """Title line shown above the player, e.g. ``Episode 12: 1:05 - 2:30``.

        The time range is shown when the end is finite, or as ``start - ...``
        when only a nonzero start is known. A single leading zero is dropped
        from each time.
        """
        title = self.title or ""
        if self.end != math.inf:
            start_str = _short_time(self.start)
            end_str = _short_time(self.end)
        elif self.start != 0:
            start_str = _short_time(self.start)
            end_str = "..."
        else:
            return title
        return "{}: {} - {}".format(title, start_str, end_str)


def _short_time(seconds: float) -> str:
    text = seconds_to_time_string(math.floor(seconds), False)
    if text.startswith("0"):
        text = text[1:]
    return text
