"""Text encoding of audio note blocks: from_src() and to_src().

WHY: An audio note lives inside a document as plain text that users edit
by hand. The block must be easy to type, survive round trips through the
tool, and carry everything needed to rebuild the quote.

HOW: The block is line oriented:

    audio: <filename-or-url>[#<params>]
    title: <text>
    author: <text>
    transcript: <filename-or-url>
    ---
    <quote text, zero or more lines>

Keyed lines are matched by prefix, in any order, until the ``---`` line;
everything after it is the quote. ``<params>`` is an ``&``-joined list of
``t=<start>[,<end>]`` and ``s=<speed>``. A ``!`` asks for the range to be
extended to the transcript's segment boundaries.

RULES:
- from_src() raises MissingAudioError when there is no ``audio:`` line
- Quote lines starting with "-" get a leading backslash so the renderer
  does not turn them into list items; the quote is trimmed as a whole
- The ``!`` extend marker is honoured only as the last character of the
  filename or anywhere inside the ``#`` fragment, and is removed before
  parsing; a "!" in the middle of a filename is part of the filename
- to_src() never raises for bad notes: it returns a SerializedNote whose
  error explains why nothing was produced (backtick in the quote,
  start >= end, or no transcript text for the range)
- With a transcript the quote is regenerated; without one it is kept
- ``#t=`` is written when start != 0 or end is finite; speed only when != 1
- title/author/transcript lines are written only when set
"""

from __future__ import annotations

import dataclasses
import math
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from audio_notes.core.alignment import get_quote
from audio_notes.core.note import AudioNote
from audio_notes.core.timecodes import seconds_to_time_string, time_string_to_seconds
from audio_notes.core.transcript import Transcript
from audio_notes.errors import (
    AlignmentError,
    AudioNotesError,
    FormatError,
    MissingAudioError,
    ValidationError,
)

_LINE_SPLIT_RE = re.compile(r"\r?\n")
_QUOTE_SEPARATOR = "---"
_EXTEND_MARKER = "!"


@dataclass
class SerializedNote:
    """Outcome of to_src().

    RULES:
    - text is the new block body, or None when the note was rejected
    - error explains the rejection and is None on success
    - note is the note as written (new quote and range), None on rejection
    """

    text: Optional[str]
    error: Optional[AudioNotesError] = None
    note: Optional[AudioNote] = None

    @property
    def ok(self) -> bool:
        return self.text is not None


def parse_time_params(fragment: str) -> Tuple[float, float, float]:
    """Parse the ``#`` fragment of an audio line into (start, end, speed).

    Unknown keys are ignored. Missing values default to 0, infinity and 1.0.

    Raises:
        FormatError: If a time or the speed cannot be parsed.
    """
    start = 0.0
    end = math.inf
    speed = 1.0
    for param in fragment.split("&"):
        param = param.strip()
        if param.startswith("t="):
            value = param[2:]
            if "," in value:
                start_str, end_str = value.split(",")[:2]
                start = time_string_to_seconds(start_str)
                end = time_string_to_seconds(end_str)
            else:
                start = time_string_to_seconds(value)
                end = math.inf
        elif param.startswith("s="):
            try:
                speed = float(param[2:])
            except ValueError:
                raise FormatError("Invalid playback speed: {}".format(param[2:])) from None
            if not math.isfinite(speed) or speed <= 0:
                raise FormatError("Playback speed must be positive: {}".format(param[2:]))
    return start, end, speed


def _key_value(line: str) -> str:
    return line.split(":", 1)[1].strip()


def from_src(src: str) -> AudioNote:
    """Parse the body of an audio note block.

    Raises:
        MissingAudioError: If the block has no ``audio:`` line.
        FormatError: If the time parameters are malformed.
    """
    title = None
    author = None
    audio_line = None
    transcript_filename = None
    quote_lines: List[str] = []
    quote_has_started = False

    for line in _LINE_SPLIT_RE.split(src):
        if quote_has_started:
            quote_lines.append(line)
        elif line.startswith("title:"):
            title = _key_value(line)
        elif line.startswith("author:"):
            author = _key_value(line)
        elif line.startswith("audio:"):
            audio_line = _key_value(line)
        elif line.startswith("transcript:"):
            transcript_filename = _key_value(line)
        elif line.strip() == _QUOTE_SEPARATOR:
            quote_has_started = True

    if audio_line is None:
        raise MissingAudioError()

    extend_audio = False
    filename, has_fragment, fragment = audio_line.partition("#")
    filename = filename.strip()
    if filename.endswith(_EXTEND_MARKER):
        extend_audio = True
        filename = filename[:-1].rstrip()
    if _EXTEND_MARKER in fragment:
        extend_audio = True
        fragment = fragment.replace(_EXTEND_MARKER, "")

    if has_fragment:
        start, end, speed = parse_time_params(fragment)
    else:
        start, end, speed = 0.0, math.inf, 1.0

    escaped = ["\\" + line if line.startswith("-") else line for line in quote_lines]
    quote = "\n".join(escaped).strip() or None

    return AudioNote(
        audio_filename=filename,
        start=start,
        end=end,
        speed=speed,
        title=title,
        author=author,
        transcript_filename=transcript_filename,
        quote=quote,
        extend_audio=extend_audio,
    )


def format_audio_line(
    audio_filename: str,
    start: float,
    end: float,
    speed: float,
    extend_audio: bool = False,
) -> str:
    """Build the ``audio:`` line for a note."""
    line = "audio: {}".format(audio_filename)
    has_fragment = False
    if start != 0 or end != math.inf:
        line += "#t={}".format(seconds_to_time_string(start, False))
        if end != math.inf:
            line += ",{}".format(seconds_to_time_string(end, False))
        has_fragment = True
    if speed != 1.0:
        line += "{}s={:g}".format("&" if has_fragment else "#", speed)
    if extend_audio:
        line += _EXTEND_MARKER
    return line


def to_src(note: AudioNote, transcript: Optional[Transcript] = None) -> SerializedNote:
    """Serialize a note, regenerating its quote when a transcript is given.

    Args:
        note: The note to write.
        transcript: The note's resolved transcript, or None to keep the
                    existing quote.

    Returns:
        SerializedNote with the new block body, or with an error.
    """
    if note.quote and "`" in note.quote:
        return SerializedNote(None, ValidationError(
            "Before the generation can be run, you must remove any ` "
            "characters from the audio note's quote."
        ))
    if note.start >= note.end:
        return SerializedNote(None, ValidationError(
            "An audio note has a start time that is after the end time. Fix it!"
        ))

    start = note.start
    end = note.end
    quote = note.quote or ""
    created_for = (note.quote_created_for_start, note.quote_created_for_end)

    if transcript is not None:
        try:
            aligned = get_quote(transcript, start, end)
        except AlignmentError as e:
            return SerializedNote(None, e)
        if "`" in aligned.text:
            return SerializedNote(None, ValidationError(
                "The transcript text for this range contains a ` character."
            ))
        quote = aligned.text
        created_for = (start, end)
        if note.extend_audio:
            start, end = aligned.start, aligned.end

    # The marker is kept only while it has not been applied yet.
    keep_marker = note.extend_audio and transcript is None

    lines = [format_audio_line(note.audio_filename, start, end, note.speed, keep_marker)]
    if note.title is not None:
        lines.append("title: {}".format(note.title))
    if note.author is not None:
        lines.append("author: {}".format(note.author))
    if note.transcript_filename is not None:
        lines.append("transcript: {}".format(note.transcript_filename))
    lines.append(_QUOTE_SEPARATOR)
    lines.append(quote)

    written = dataclasses.replace(
        note,
        start=start,
        end=end,
        quote=quote or None,
        quote_created_for_start=created_for[0],
        quote_created_for_end=created_for[1],
        extend_audio=keep_marker,
    )
    return SerializedNote("\n".join(lines), None, written)
