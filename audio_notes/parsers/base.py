"""Abstract base transcript parser.

WHY: Transcripts come in more than one text format, but every consumer
wants the same Transcript object. A shared interface lets
parse_transcript() try each registered format in turn.

HOW: BaseTranscriptParser is an ABC with a ``name`` property and a
``parse()`` method that either returns a Transcript or raises ParseError.

RULES:
- parse() never returns None; failure is always a ParseError
- Parsers are stateless; one instance may parse many documents

To add a new transcript format:
1. Create a new file in parsers/
2. Subclass BaseTranscriptParser
3. Implement parse() and name
4. Register in PARSERS dict in parsers/__init__.py
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from audio_notes.core.transcript import Transcript


class BaseTranscriptParser(ABC):
    """Abstract base for all transcript parsers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'SRT subtitles'."""

    @abstractmethod
    def parse(self, contents: str) -> Transcript:
        """Parse raw file contents into a Transcript.

        Raises:
            ParseError: If the contents are not in this parser's format.
        """
