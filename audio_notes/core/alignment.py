"""Map a time range onto transcript segments to produce quote text.

WHY: A user picks an arbitrary range such as 01:10 to 01:40, but transcript
segments from speech-to-text or subtitle sources are short and rarely line
up with it. The quote must contain every segment the range touches, and
the note can optionally be widened to the segments' own boundaries
("extend audio").

HOW: get_quote() walks the segments once and includes a segment when its
start or end falls inside the range, or when the whole range sits inside
the segment. The covered span is the min start / max end of the included
segments. get_segment_at() is the point lookup used for live captions.

RULES:
- A segment is included if ANY of:
    range_start <= seg.start <  range_end
    range_start <  seg.end   <= range_end
    range_start >= seg.start and range_end <= seg.end
- Each segment contributes its text once, in transcript order
- Texts joined with single spaces, trimmed, double spaces collapsed
  (at most 100 passes)
- Zero included segments raises AlignmentError; never defaults silently
- get_segment_at() uses [start, end) and applies no extension
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, NamedTuple, Optional, Union

from audio_notes.errors import AlignmentError

if TYPE_CHECKING:
    from audio_notes.core.transcript import Transcript, TranscriptSegment

    SegmentSource = Union[Transcript, Iterable[TranscriptSegment]]

_MAX_COLLAPSE_PASSES = 100


class Quote(NamedTuple):
    """Result of aligning a time range against a transcript.

    start/end are the covered span of the included segments, not the
    requested range.
    """

    start: float
    end: float
    text: str


def _segments_of(source: "SegmentSource") -> Iterable["TranscriptSegment"]:
    return getattr(source, "segments", source)


def _overlaps(segment: "TranscriptSegment", range_start: float, range_end: float) -> bool:
    # Segment's start or end inside the range
    if range_start <= segment.start < range_end:
        return True
    if range_start < segment.end <= range_end:
        return True
    # Range entirely within the segment
    return range_start >= segment.start and range_end <= segment.end


def collapse_spaces(text: str) -> str:
    """Trim text and collapse runs of spaces to a single space."""
    text = text.strip()
    passes = 0
    while "  " in text and passes < _MAX_COLLAPSE_PASSES:
        text = text.replace("  ", " ")
        passes += 1
    return text


def get_quote(source: "SegmentSource", range_start: float, range_end: float) -> Quote:
    """Select the segments overlapping ``[range_start, range_end)``.

    Args:
        source: A Transcript or any iterable of TranscriptSegment.
        range_start: Requested start in seconds.
        range_end: Requested end in seconds (may be infinity).

    Returns:
        Quote with the covered span and the cleaned, joined text.

    Raises:
        AlignmentError: If no segment overlaps the range.
    """
    texts: List[str] = []
    covered_start: Optional[float] = None
    covered_end: Optional[float] = None

    for segment in _segments_of(source):
        if not _overlaps(segment, range_start, range_end):
            continue
        texts.append(segment.text)
        if covered_start is None or segment.start < covered_start:
            covered_start = segment.start
        if covered_end is None or segment.end > covered_end:
            covered_end = segment.end

    if covered_start is None or covered_end is None:
        raise AlignmentError(range_start, range_end)

    return Quote(covered_start, covered_end, collapse_spaces(" ".join(texts)))


def get_segment_at(source: "SegmentSource", time: float) -> Optional[int]:
    """Return the index of the first segment with ``start <= time < end``."""
    for index, segment in enumerate(_segments_of(source)):
        if segment.start <= time < segment.end:
            return index
    return None


def caption_at(source: "SegmentSource", time: float) -> Optional["TranscriptSegment"]:
    """Return the segment playing at ``time`` for a live caption, if any."""
    segments = list(_segments_of(source))
    index = get_segment_at(segments, time)
    if index is None:
        return None
    return segments[index]
