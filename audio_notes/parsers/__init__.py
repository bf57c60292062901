"""Transcript parser registry and format detection.

WHY: Transcripts are referenced by filename or URL and the name does not
always reveal the format (a URL may serve either). parse_transcript()
sniffs the format by trying each registered parser in order.

HOW: PARSERS maps string keys to parser *classes* in priority order:
JSON first, SRT as the fallback. The first parser that does not raise
ParseError wins.

RULES:
- Keys are snake_case identifiers
- Values are BaseTranscriptParser subclasses (not instances)
- Order matters: JSON is attempted before SRT
- If every parser fails, a single ParseError lists each failure
"""

from __future__ import annotations

from typing import Dict, List, Type

from audio_notes.core.transcript import Transcript
from audio_notes.errors import ParseError
from audio_notes.parsers.base import BaseTranscriptParser
from audio_notes.parsers.json_segments import JsonSegmentsParser
from audio_notes.parsers.srt import SrtParser

PARSERS: Dict[str, Type[BaseTranscriptParser]] = {
    "json": JsonSegmentsParser,
    "srt": SrtParser,
}


def parse_transcript(contents: str) -> Transcript:
    """Parse transcript contents in any registered format.

    Raises:
        ParseError: If no registered parser accepts the contents.
    """
    failures: List[str] = []
    for parser_cls in PARSERS.values():
        parser = parser_cls()
        try:
            return parser.parse(contents)
        except ParseError as e:
            failures.append("{}: {}".format(parser.name, e))
    raise ParseError("Unrecognized transcript format ({})".format("; ".join(failures)))
