"""Exception types raised by the audio notes engine.

WHY: Callers need to tell apart a malformed time string, an unreadable
transcript, a note with no audio, a range the transcript does not cover,
and misuse of cursor-based regeneration. Each gets its own type so the
bulk regeneration loop can report a skip and keep going while a single
explicit command can surface the exact problem.

RULES:
- Every exception derives from AudioNotesError
- Messages are written for the end user, not for developers
- Errors about malformed input also derive from ValueError
"""

from __future__ import annotations


class AudioNotesError(Exception):
    """Base class for all audio notes errors."""


class FormatError(AudioNotesError, ValueError):
    """Raised when a time string or seconds value cannot be converted."""


class ParseError(AudioNotesError, ValueError):
    """Raised when transcript contents match neither supported format."""


class MissingAudioError(AudioNotesError):
    """Raised when an audio note block has no ``audio:`` line."""

    def __init__(self, message: str = "No audio file defined for audio note.") -> None:
        super().__init__(message)


class AlignmentError(AudioNotesError):
    """Raised when no transcript segment overlaps the requested range.

    RULES:
    - start/end hold the requested range so the caller can report it
    """

    def __init__(self, start: float, end: float) -> None:
        self.start = start
        self.end = end
        super().__init__(
            "Transcript has no text between {} and {} seconds.".format(start, end)
        )


class ValidationError(AudioNotesError, ValueError):
    """Raised (or returned) when a note cannot be serialized as-is."""


class NoteNotFoundError(AudioNotesError):
    """Raised when no audio note contains the given cursor position."""

    def __init__(
        self,
        message: str = "Please place your cursor inside the Audio Note you want to generate.",
    ) -> None:
        super().__init__(message)


class AlreadyHasQuoteError(AudioNotesError):
    """Raised when cursor regeneration targets a note that already has a quote."""

    def __init__(
        self,
        message: str = "Please delete the quote for the audio note before regenerating it.",
    ) -> None:
        super().__init__(message)
