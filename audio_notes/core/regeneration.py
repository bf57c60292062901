"""Find audio note blocks in a document and rewrite them in place.

WHY: Regenerating quotes edits the document the notes live in. Each
replacement can change the number of lines of its block, which would
shift every block below it. Transcript loading is asynchronous, and the
user may keep typing while it runs.

HOW: scan_blocks() finds the fenced blocks and records where each one
sits. regenerate_all() loads every needed transcript up front, then
re-checks the document: if the text changed while it was waiting, the
blocks are scanned again and each pending note is matched to its new
location by its content. Replacements are then applied
from the bottom of the document to the top, so the recorded line numbers
of the blocks still to be processed stay valid.

RULES:
- A block opens with a line that is exactly ```audio-note (surrounding
  whitespace ignored) and closes with a line that is exactly ```
- An unterminated block at the end of the document is ignored
- Only the text strictly between the fences is replaced
- No document mutation happens before all transcript loads have finished
- In bulk mode a failure on one note is recorded as a skip and the loop
  continues; regenerate_one() raises instead
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple

from audio_notes.config import NOTE_FENCE, NOTE_OPENING_FENCE, Settings, load_settings
from audio_notes.core.note import AudioNote, DocumentPosition
from audio_notes.core.note_format import from_src, to_src
from audio_notes.core.transcript_cache import TranscriptCache
from audio_notes.errors import (
    AlreadyHasQuoteError,
    AudioNotesError,
    NoteNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

Point = Tuple[int, int]
"""(line, ch), both 0-based."""

_DOCUMENT_CHANGED = "The document changed while transcripts were loading."


class EditableDocument(Protocol):
    """The host's editor, as far as regeneration is concerned."""

    @property
    def text(self) -> str: ...

    def replace_range(self, text: str, start: Point, end: Point) -> None: ...


class TextDocument:
    """In-memory EditableDocument addressed by (line, ch)."""

    def __init__(self, text: str = "") -> None:
        self._text = text.replace("\r\n", "\n")

    @property
    def text(self) -> str:
        return self._text

    def _offset(self, point: Point) -> int:
        line, ch = point
        lines = self._text.split("\n")
        line = max(0, min(line, len(lines) - 1))
        offset = sum(len(l) + 1 for l in lines[:line])
        return offset + max(0, min(ch, len(lines[line])))

    def replace_range(self, text: str, start: Point, end: Point) -> None:
        start_offset = self._offset(start)
        end_offset = max(start_offset, self._offset(end))
        self._text = self._text[:start_offset] + text + self._text[end_offset:]

    def end_point(self) -> Point:
        return end_of(self._text)


def end_of(text: str) -> Point:
    """(line, ch) just past the last character of ``text``.

    Inserting at this point appends to the document.
    """
    lines = text.split("\n")
    return len(lines) - 1, len(lines[-1])


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NoteBlock:
    """Raw text of one fenced block and where it sits."""

    position: DocumentPosition
    source: str


def scan_blocks(document_text: str, limit: Optional[int] = None) -> List[NoteBlock]:
    """Return the complete audio note blocks of a document, top to bottom.

    HOW: A single pass over the lines. An opening fence starts collecting
    body lines; the next closing fence ends the block and records its
    position. Fences are compared after stripping surrounding whitespace,
    and CRLF line endings are treated as LF.

    RULES:
    - end_ch is the length of the last body line (of the opening fence
      line when the block is empty)
    - ``limit`` stops the scan once that many blocks are complete
    - The body is returned unparsed; discover_notes() parses it
    """
    lines = document_text.replace("\r\n", "\n").split("\n")
    blocks: List[NoteBlock] = []
    start_line: Optional[int] = None
    body: List[str] = []

    for i, line in enumerate(lines):
        if limit is not None and len(blocks) >= limit:
            break
        if start_line is not None:
            if line.strip() == NOTE_FENCE:
                position = DocumentPosition(start_line, i, len(lines[i - 1]))
                blocks.append(NoteBlock(position, "\n".join(body)))
                start_line = None
            else:
                body.append(line)
        elif line.strip() == NOTE_OPENING_FENCE:
            start_line = i
            body = []

    return blocks


def discover_notes(document_text: str, limit: Optional[int] = None) -> List[AudioNote]:
    """Parse every audio note block in the document.

    Blocks that fail to parse are logged and left out; use scan_blocks() to
    see them.
    """
    notes: List[AudioNote] = []
    for block in scan_blocks(document_text, limit):
        try:
            notes.append(from_src(block.source).with_position(block.position))
        except AudioNotesError as e:
            logger.warning("Skipping audio note at line %d: %s", block.position.start_line + 1, e)
    return notes


def replacement_range(note: AudioNote) -> Tuple[Point, Point]:
    """The span strictly between a note's fences.

    From the start of the line after the opening fence to the end of the
    line before the closing fence, so both fences survive the replacement.

    Raises:
        ValueError: If the note did not come from a document scan.
    """
    if note.position is None:
        raise ValueError("Note has no document position")
    pos = note.position
    return (pos.start_line + 1, 0), (pos.end_line - 1, pos.end_ch)


# ---------------------------------------------------------------------------
# Regeneration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SkippedNote:
    position: Optional[DocumentPosition]
    reason: str


@dataclass
class RegenerationReport:
    """What regenerate_all() did."""

    updated: List[AudioNote] = field(default_factory=list)
    skipped: List[SkippedNote] = field(default_factory=list)

    def skip(self, position: Optional[DocumentPosition], reason: str) -> None:
        line = position.start_line + 1 if position is not None else "?"
        logger.warning("Skipped audio note at line %s: %s", line, reason)
        self.skipped.append(SkippedNote(position, reason))


def _relocate(
    before: Sequence[AudioNote],
    after: Sequence[AudioNote],
    note: AudioNote,
) -> Optional[AudioNote]:
    """Find ``note`` from the ``before`` scan in the ``after`` scan.

    WHY: Blocks inserted or deleted above a note while transcripts were
    loading shift both its line numbers and its index in the scan, so
    neither can identify it. Its content can.

    HOW: Notes compare equal on every field except their position. The
    k-th note in ``before`` with the same content as ``note`` maps to the
    k-th such note in ``after``.

    RULES:
    - None when the number of identical notes differs between the scans
    """
    twins_before = [n for n in before if n == note]
    twins_after = [n for n in after if n == note]
    if not twins_after or len(twins_after) != len(twins_before):
        return None
    index = next((i for i, n in enumerate(twins_before) if n is note), None)
    if index is None:
        return None
    return twins_after[index]


async def regenerate_all(
    document: EditableDocument,
    transcripts: TranscriptCache,
    notes: Optional[List[AudioNote]] = None,
) -> RegenerationReport:
    """Fill in the quote of every note that has none.

    Args:
        document: Document to edit in place.
        transcripts: Session transcript cache.
        notes: Notes from an earlier discover_notes() of the same text;
               scanned from the document when omitted.

    Returns:
        RegenerationReport listing the notes written (as written) and the
        ones skipped with a reason.
    """
    report = RegenerationReport()
    snapshot = document.text
    if notes is None:
        notes = []
        for block in scan_blocks(snapshot):
            try:
                notes.append(from_src(block.source).with_position(block.position))
            except AudioNotesError as e:
                report.skip(block.position, str(e))

    pending: List[AudioNote] = []
    for note in notes:
        if not note.needs_to_be_updated:
            continue
        if not note.transcript_filename:
            report.skip(note.position, "No transcript file defined for audio note.")
            continue
        pending.append(note)

    names = [note.transcript_filename for note in pending if note.transcript_filename]
    loaded = await transcripts.preload(names)

    if document.text != snapshot:
        logger.info("Document changed during transcript loading, re-scanning")
        rescanned = discover_notes(document.text)
        relocated: List[AudioNote] = []
        for note in pending:
            moved = _relocate(notes, rescanned, note)
            if moved is None:
                report.skip(note.position, _DOCUMENT_CHANGED)
            else:
                relocated.append(moved)
        pending = relocated

    # Bottom to top so earlier positions stay valid.
    pending.sort(key=lambda n: n.position.start_line if n.position else -1, reverse=True)

    for note in pending:
        if note.position is None:
            report.skip(None, "Audio note has no position in the document.")
            continue
        transcript = loaded.get(note.transcript_filename or "")
        if transcript is None:
            report.skip(note.position, "Could not load transcript: {}".format(note.transcript_filename))
            continue
        result = to_src(note, transcript)
        if not result.ok or result.note is None or result.text is None:
            report.skip(note.position, str(result.error))
            continue
        start, end = replacement_range(note)
        document.replace_range(result.text, start, end)
        report.updated.append(result.note)

    logger.info(
        "Regenerated %d audio note(s), skipped %d", len(report.updated), len(report.skipped)
    )
    return report


async def regenerate_one(
    document: EditableDocument,
    transcripts: TranscriptCache,
    cursor: Point,
    notes: Optional[List[AudioNote]] = None,
) -> AudioNote:
    """Fill in the quote of the note under the cursor.

    Returns:
        The note as written.

    Raises:
        NoteNotFoundError: If the cursor is not inside any note block.
        AlreadyHasQuoteError: If that note already has a quote.
        ValidationError: If the note has no usable transcript or cannot be
            written (backtick in quote, start >= end).
        AlignmentError: If the transcript has no text for the note's range.
    """
    snapshot = document.text
    if notes is None:
        notes = discover_notes(snapshot)

    line, ch = cursor
    note = next((n for n in notes if n.position is not None and n.position.contains(line, ch)), None)
    if note is None:
        raise NoteNotFoundError()
    if note.quote:
        raise AlreadyHasQuoteError()
    if not note.transcript_filename:
        raise ValidationError("No transcript file defined for audio note.")

    transcript = await transcripts.get(note.transcript_filename)
    if transcript is None:
        raise ValidationError("Could not load transcript: {}".format(note.transcript_filename))

    if document.text != snapshot:
        moved = _relocate(notes, discover_notes(document.text), note)
        if moved is None:
            raise NoteNotFoundError(_DOCUMENT_CHANGED)
        note = moved

    result = to_src(note, transcript)
    if result.error is not None:
        raise result.error
    start, end = replacement_range(note)
    document.replace_range(result.text, start, end)
    return result.note


async def create_note_at_time(
    document: EditableDocument,
    transcripts: TranscriptCache,
    current_time: Optional[float] = None,
    plus_minus: Optional[float] = None,
    settings: Optional[Settings] = None,
) -> AudioNote:
    """Append a new note around ``current_time``, copied from the first note.

    The new note keeps the first note's audio, title, author, transcript and
    speed. Its range is ``current_time +/- plus_minus`` (start clamped to 0)
    and its quote is generated from the transcript when one is available.
    When current_time is None the first note's start is used.
    When plus_minus is None it comes from ``settings``, or from
    load_settings() when no settings are given.

    Raises:
        NoteNotFoundError: If the document has no audio note.
        AudioNotesError: If the new note cannot be written.
    """
    first = discover_notes(document.text, limit=1)
    if not first:
        raise NoteNotFoundError("This document has no audio note to copy.")
    template = first[0]
    if current_time is None:
        current_time = template.start
    if plus_minus is None:
        plus_minus = (settings or load_settings()).plus_minus_duration

    new_note = dataclasses.replace(
        template,
        start=current_time - plus_minus,
        end=current_time + plus_minus,
        quote=None,
        quote_created_for_start=None,
        quote_created_for_end=None,
        position=None,
    )
    transcript = await transcripts.get(new_note.transcript_filename)

    result = to_src(new_note, transcript)
    if result.error is not None:
        raise result.error
    end = end_of(document.text)
    block = "\n{}\n{}\n{}\n".format(NOTE_OPENING_FENCE, result.text, NOTE_FENCE)
    document.replace_range(block, end, end)
    logger.info("Created audio note at %.2fs", current_time)
    return result.note
