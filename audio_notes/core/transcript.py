"""Transcript dataclasses shared by parsers, alignment and the cache.

WHY: Transcripts arrive as JSON segment lists (Whisper style) or SRT
subtitles. Downstream code only needs ordered, timed text, so both are
unified into one small in-memory representation.

HOW: TranscriptSegment is one timed unit of text; Transcript is an ordered
collection of them. Quote and caption lookups delegate to alignment.py.

RULES:
- Times are float seconds
- Segments keep the order they had in the source; nothing is sorted
- Segments are immutable once parsed
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union

from audio_notes.core.alignment import Quote, get_quote, get_segment_at


@dataclass(frozen=True)
class TranscriptSegment:
    """One timed unit of transcript text.

    RULES:
    - id: source identifier (SRT index string or JSON id/position)
    - start/end: seconds, end >= start is expected but not enforced
    - text: caption text with line breaks already collapsed
    """

    id: Union[int, str]
    start: float
    end: float
    text: str


@dataclass
class Transcript:
    """An ordered sequence of transcript segments."""

    segments: List[TranscriptSegment] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self):
        return iter(self.segments)

    @property
    def duration(self) -> float:
        """End of the latest segment, or 0.0 for an empty transcript."""
        return max((s.end for s in self.segments), default=0.0)

    def get_quote(self, start: float, end: float) -> Quote:
        """Return the covered span and quote text for ``[start, end)``.

        See alignment.get_quote() for the inclusion rules.
        """
        return get_quote(self, start, end)

    def get_segment_at(self, time: float) -> Optional[int]:
        """Return the index of the segment playing at ``time``, if any."""
        return get_segment_at(self, time)
