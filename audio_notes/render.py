"""Turn an audio note block into what the host needs to draw it.

WHY: The host draws the player, but it should not have to know how a note
maps to a playable URL, what the title line looks like, or what to show
when a block is malformed. A broken block must stay visible, with its raw
text, so the user can fix it instead of wondering where it went.

HOW: render_note() parses the block and resolves the audio reference
through the host's ``resolve(filename)`` callable. It returns a NoteView
for a good block and an ErrorBlock otherwise; it never raises for bad
user input.

RULES:
- URLs starting with "http" are used as-is; other names go through resolve()
- Any "?query" on the resolved path is dropped before "#t=" is appended
- source_key() is the resolved path without its fragment; players of the
  same file share it
- Author text starting with "-" is escaped with a backslash
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional, Union

from audio_notes.core.note import AudioNote
from audio_notes.core.note_format import from_src
from audio_notes.core.timecodes import seconds_to_time_string
from audio_notes.errors import AudioNotesError

Resolver = Callable[[str], Optional[str]]
"""Host collaborator: map a vault filename to a playable path, or None."""


@dataclass(frozen=True)
class NoteView:
    """Everything the host needs to draw a player for one note."""

    note: AudioNote
    title: str
    quote: Optional[str]
    author: Optional[str]
    src: str


@dataclass(frozen=True)
class ErrorBlock:
    """Shown in place of the player when a block cannot be rendered."""

    message: str
    source: str


def audio_src_path(note: AudioNote, resolve: Resolver) -> Optional[str]:
    """Playable path for the note's audio, with the note's range as ``#t=``."""
    if note.audio_filename.startswith("http"):
        path = note.audio_filename
    else:
        path = resolve(note.audio_filename)
        if path is None:
            return None
    if "?" in path:
        path = path[: path.index("?")]
    path += "#t={}".format(seconds_to_time_string(note.start, False))
    if note.end != math.inf:
        path += ",{}".format(seconds_to_time_string(note.end, False))
    return path


def source_key(src_path: str) -> str:
    return src_path.split("#", 1)[0]


def render_note(src: str, resolve: Resolver) -> Union[NoteView, ErrorBlock]:
    try:
        note = from_src(src)
    except AudioNotesError as e:
        return ErrorBlock(str(e), src)

    path = audio_src_path(note, resolve)
    if path is None:
        return ErrorBlock("Could not find audio file: {}".format(note.audio_filename), src)

    author = note.author
    if author and author.startswith("-"):
        author = "\\" + author

    return NoteView(
        note=note,
        title=note.formatted_title(),
        quote=note.quote,
        author=author,
        src=path,
    )
