"""Command-line interface for working with audio notes in text files.

WHY: The engine is meant to be driven by an editor host, but the same
operations are useful from a terminal: see which notes a document holds,
fill in missing quotes in bulk, or check what a transcript says for a
time range before writing the note.

HOW: argparse with three subcommands. Transcripts are read through a
TranscriptCache backed by a VaultLoader (the document's directory, or
--vault) chained with an HttpLoader for URL references. The async work
runs via asyncio.run(). Status messages go to stderr; document text and
quotes go to stdout.

RULES:
- list FILE: one line per note with its 1-based line span and title
- regenerate FILE: fills in every note without a quote and writes the
  file back; --cursor LINE:CH (1-based) targets the note under the cursor
  only; --dry-run prints the result instead of writing
- quote TRANSCRIPT START END: prints the covered span and the quote
- --verbose enables DEBUG logging
- Any AudioNotesError prints "Error: ..." to stderr and exits with 1
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from audio_notes.config import TRANSCRIPT_EXTENSIONS
from audio_notes.core.alignment import get_quote
from audio_notes.core.regeneration import (
    TextDocument,
    discover_notes,
    regenerate_all,
    regenerate_one,
)
from audio_notes.core.timecodes import seconds_to_time_string, time_string_to_seconds
from audio_notes.core.transcript_cache import TranscriptCache
from audio_notes.errors import AudioNotesError
from audio_notes.loaders import ChainLoader, HttpLoader, VaultLoader
from audio_notes.log_setup import setup_logging


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: stdout carries document text and quotes, so status lines must stay
    out of it for the CLI to be pipeable.

    RULES:
    - All status messages go to stderr
    - Always flush after writing
    """
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    """Print ``Error: msg`` to stderr and exit with status 1."""
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _read_document(path_str: str) -> Tuple[Path, str]:
    """Read the document a subcommand works on.

    WHY: A missing file is a user error, not a crash; it should end with a
    one-line message and exit status 1 like every other failure.

    Returns:
        The path and its UTF-8 text.
    """
    path = Path(path_str)
    if not path.is_file():
        _fail("File not found: {}".format(path))
    return path, path.read_text(encoding="utf-8")


def _parse_cursor(value: str) -> Tuple[int, int]:
    """Parse a 1-based ``LINE:CH`` cursor into a 0-based (line, ch) tuple.

    WHY: Editors and grep report 1-based positions, while the engine
    addresses documents 0-based.

    RULES:
    - CH may be omitted (``LINE`` alone means column 1)
    - Line and column must both be >= 1
    - Errors are ArgumentTypeError so argparse reports them as usage errors
    """
    line_str, _, ch_str = value.partition(":")
    try:
        line = int(line_str)
        ch = int(ch_str) if ch_str else 1
    except ValueError:
        raise argparse.ArgumentTypeError("cursor must look like LINE:CH, got {!r}".format(value))
    if line < 1 or ch < 1:
        raise argparse.ArgumentTypeError("cursor line and column start at 1")
    return line - 1, ch - 1


def _parse_time(value: str) -> float:
    try:
        return time_string_to_seconds(value)
    except AudioNotesError as e:
        raise argparse.ArgumentTypeError(str(e))


def _transcript_cache(vault: Path) -> TranscriptCache:
    """Transcript cache for a document whose references are relative to ``vault``.

    HOW: Local names are read from the vault, limited to transcript file
    extensions; http(s) references go to an HttpLoader. Both answer in the
    same batched loader call.
    """
    loader = ChainLoader(VaultLoader(vault, TRANSCRIPT_EXTENSIONS), HttpLoader())
    return TranscriptCache(loader)


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

def _cmd_list(args: argparse.Namespace) -> None:
    """Print one tab-separated line per note: 1-based span, label, state.

    The label is the formatted title, or the audio reference when the note
    has no title. Blocks that fail to parse are logged and not listed.
    """
    path, text = _read_document(args.file)
    notes = discover_notes(text)
    if not notes:
        _status("No audio notes in {}".format(path.name))
        return
    for note in notes:
        if note.position is None:
            continue
        state = "needs quote" if note.needs_to_be_updated else "ok"
        label = note.formatted_title() if note.title else note.audio_filename
        print("{}-{}\t{}\t{}".format(
            note.position.start_line + 1,
            note.position.end_line + 1,
            label,
            state,
        ))


async def _run_regenerate(args: argparse.Namespace) -> None:
    """Fill in missing quotes and write the document back.

    WHY: The file on disk is the user's work. It is only rewritten once
    every edit has been applied in memory, and only if something changed.

    HOW: The document is loaded into a TextDocument. With --cursor only the
    note under the cursor is regenerated and its failures abort the
    command; otherwise regenerate_all() runs and each skipped note is
    reported on stderr.

    RULES:
    - --dry-run prints the result to stdout and never writes
    - Transcript names resolve against --vault, else the document's directory
    """
    path, text = _read_document(args.file)
    vault = Path(args.vault) if args.vault else path.resolve().parent
    transcripts = _transcript_cache(vault)
    document = TextDocument(text)

    if args.cursor is not None:
        note = await regenerate_one(document, transcripts, args.cursor)
        _status("Regenerated audio note: {}".format(note.formatted_title() if note.title else note.audio_filename))
    else:
        _status("Regenerating all audio notes in {}...".format(path.name))
        report = await regenerate_all(document, transcripts)
        for skipped in report.skipped:
            line = skipped.position.start_line + 1 if skipped.position else "?"
            _status("  Skipped note at line {}: {}".format(line, skipped.reason))
        _status("Updated {} note(s), skipped {}".format(len(report.updated), len(report.skipped)))

    if args.dry_run:
        sys.stdout.write(document.text)
    elif document.text != text:
        path.write_text(document.text, encoding="utf-8")
        _status("Saved: {}".format(path))


async def _run_quote(args: argparse.Namespace) -> None:
    """Print the quote for a time range of one transcript.

    The covered span goes to stderr and the quote text to stdout. A URL is
    fetched over HTTP; a local path is read from its own directory.
    """
    if HttpLoader.handles(args.transcript):
        transcripts = TranscriptCache(HttpLoader())
        name = args.transcript
    else:
        path = Path(args.transcript).resolve()
        transcripts = TranscriptCache(VaultLoader(path.parent))
        name = path.name

    transcript = await transcripts.get(name)
    if transcript is None:
        _fail("Could not load transcript: {}".format(args.transcript))
        return

    quote = get_quote(transcript, args.start, args.end)
    _status("Covered: {} - {}".format(
        seconds_to_time_string(quote.start, False),
        seconds_to_time_string(quote.end, False),
    ))
    print(quote.text)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    Kept separate from main() so tests can inspect the parser without
    running a command.
    """
    parser = argparse.ArgumentParser(
        prog="audio-notes",
        description="Inspect and regenerate audio note blocks in text documents.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="List the audio notes in a document.")
    p_list.add_argument("file", help="Path to the document.")

    p_regen = sub.add_parser("regenerate", help="Fill in missing quotes from transcripts.")
    p_regen.add_argument("file", help="Path to the document.")
    p_regen.add_argument(
        "--cursor",
        type=_parse_cursor,
        default=None,
        metavar="LINE:CH",
        help="Only regenerate the note containing this 1-based position.",
    )
    p_regen.add_argument(
        "--vault",
        default=None,
        help="Directory transcript names are relative to (default: the document's directory).",
    )
    p_regen.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the regenerated document instead of writing it.",
    )

    p_quote = sub.add_parser("quote", help="Print the transcript text for a time range.")
    p_quote.add_argument("transcript", help="Transcript file path or URL.")
    p_quote.add_argument("start", type=_parse_time, help="Start time, e.g. 1:05 or 65.")
    p_quote.add_argument("end", type=_parse_time, help="End time, e.g. 2:30 or 150.")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``audio-notes`` and ``python -m audio_notes``.

    argv=None means use sys.argv; an explicit list is for testing.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        if args.command == "list":
            _cmd_list(args)
        elif args.command == "regenerate":
            asyncio.run(_run_regenerate(args))
        elif args.command == "quote":
            asyncio.run(_run_quote(args))
    except AudioNotesError as e:
        _fail(str(e))


if __name__ == "__main__":
    main()
