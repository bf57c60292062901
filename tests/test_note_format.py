"""Unit tests for the AudioNote record and the note block text format.

WHY: Note blocks are edited by hand and rewritten by the tool. Anything
the tool writes must read back to the same note, and anything a user is
likely to type must parse.

HOW: Parse literal blocks with from_src(), serialize with to_src() with
and without a transcript, and check the validation paths return errors
instead of raising.

RULES:
- to_src() without a transcript keeps the existing quote
- Extend marker is applied only when a transcript is supplied
"""

import math

import pytest

from audio_notes.core.note import AudioNote, DocumentPosition
from audio_notes.core.note_format import (
    format_audio_line,
    from_src,
    parse_time_params,
    to_src,
)
from audio_notes.errors import AlignmentError, FormatError, MissingAudioError, ValidationError

ROUND_TRIP_SRC = "audio: a.mp3#t=00:10,00:20&s=1.5\ntitle: X\ntranscript: a.json\n---\nHello"


# ---------------------------------------------------------------------------
# AudioNote
# ---------------------------------------------------------------------------


class TestAudioNote:

    def test_defaults(self):
        note = AudioNote("a.mp3")
        assert note.start == 0.0
        assert note.end == math.inf
        assert note.speed == 1.0
        assert note.needs_to_be_updated

    def test_negative_start_clamped(self):
        note = AudioNote("a.mp3", start=-12)
        assert note.start == 0.0
        note.start = -3
        assert note.start == 0.0
        note.start = 4
        assert note.start == 4

    def test_needs_update_only_without_quote(self):
        assert AudioNote("a.mp3", quote="").needs_to_be_updated
        assert not AudioNote("a.mp3", quote="hi").needs_to_be_updated

    def test_position_ignored_in_equality(self):
        note = AudioNote("a.mp3", start=1, end=2)
        located = note.with_position(DocumentPosition(3, 8, 5))
        assert located == note
        assert located.position.contains(3, 40)
        assert located.position.contains(8, 5)
        assert not located.position.contains(8, 6)
        assert not located.position.contains(9)
        assert note.position is None

    @pytest.mark.parametrize("start,end,expected", [
        (65, 150, "Ep: 1:05 - 2:30"),
        (65.9, math.inf, "Ep: 1:05 - ..."),
        (0, math.inf, "Ep"),
        (0, 600, "Ep: 0:00 - 10:00"),
    ])
    def test_formatted_title(self, start, end, expected):
        assert AudioNote("a.mp3", start=start, end=end, title="Ep").formatted_title() == expected


# ---------------------------------------------------------------------------
# from_src
# ---------------------------------------------------------------------------


class TestFromSrc:

    def test_full_block(self):
        note = from_src(ROUND_TRIP_SRC)
        assert note.audio_filename == "a.mp3"
        assert (note.start, note.end, note.speed) == (10, 20, 1.5)
        assert note.title == "X"
        assert note.transcript_filename == "a.json"
        assert note.quote == "Hello"
        assert note.author is None
        assert not note.extend_audio

    def test_keys_in_any_order_and_colons_in_values(self):
        note = from_src(
            "title: Talk: part 2\n"
            "author: Jane Doe\n"
            "audio: https://example.com/ep.mp3#t=1:00\n"
            "---\n"
        )
        assert note.title == "Talk: part 2"
        assert note.audio_filename == "https://example.com/ep.mp3"
        assert note.start == 60
        assert note.end == math.inf
        assert note.quote is None

    def test_quote_is_verbatim_after_separator(self):
        note = from_src("audio: a.mp3\n---\n\nline one\ntitle: not a key\n  \n")
        assert note.quote == "line one\ntitle: not a key"
        assert note.title is None

    def test_dash_lines_escaped(self):
        note = from_src("audio: a.mp3\n---\n- first\nplain\n-- second")
        assert note.quote == "\\- first\nplain\n\\-- second"

    def test_missing_audio(self):
        with pytest.raises(MissingAudioError):
            from_src("title: nothing\n---\nquote")

    def test_malformed_time(self):
        with pytest.raises(FormatError):
            from_src("audio: a.mp3#t=xx")

    @pytest.mark.parametrize("line,filename", [
        ("audio: a.mp3!#t=00:10,00:20", "a.mp3"),
        ("audio: a.mp3#t=00:10,00:20!", "a.mp3"),
        ("audio: a.mp3#t=00:10!,00:20", "a.mp3"),
    ])
    def test_extend_marker(self, line, filename):
        note = from_src(line)
        assert note.extend_audio
        assert note.audio_filename == filename
        assert (note.start, note.end) == (10, 20)

    def test_bang_inside_filename_is_not_a_marker(self):
        note = from_src("audio: wow!great.mp3")
        assert note.audio_filename == "wow!great.mp3"
        assert not note.extend_audio

    def test_crlf_input(self):
        note = from_src("audio: a.mp3\r\ntitle: T\r\n---\r\nq")
        assert note.title == "T"
        assert note.quote == "q"


class TestParseTimeParams:

    def test_start_only(self):
        assert parse_time_params("t=01:00") == (60, math.inf, 1.0)

    def test_speed_first(self):
        assert parse_time_params("s=2&t=5,6") == (5, 6, 2.0)

    def test_unknown_keys_ignored(self):
        assert parse_time_params("x=1&t=5") == (5, math.inf, 1.0)

    @pytest.mark.parametrize("fragment", ["s=0", "s=-1", "s=fast", "s=inf"])
    def test_bad_speed(self, fragment):
        with pytest.raises(FormatError):
            parse_time_params(fragment)


# ---------------------------------------------------------------------------
# to_src
# ---------------------------------------------------------------------------


class TestToSrc:

    def test_round_trip_preserves_key_lines(self):
        result = to_src(from_src(ROUND_TRIP_SRC))
        assert result.ok
        assert result.text == ROUND_TRIP_SRC

    def test_unset_fields_omitted(self):
        result = to_src(AudioNote("a.mp3"))
        assert result.text == "audio: a.mp3\n---\n"

    def test_end_written_even_when_start_is_zero(self):
        result = to_src(AudioNote("a.mp3", start=0, end=30))
        assert result.text.splitlines()[0] == "audio: a.mp3#t=00:00,00:30"

    def test_speed_without_range(self):
        assert format_audio_line("a.mp3", 0, math.inf, 0.8) == "audio: a.mp3#s=0.8"
        assert format_audio_line("a.mp3", 5, math.inf, 2.0) == "audio: a.mp3#t=00:05&s=2"

    def test_start_after_end_rejected(self):
        result = to_src(AudioNote("a.mp3", start=10, end=5))
        assert not result.ok
        assert result.text is None
        assert isinstance(result.error, ValidationError)

    def test_backtick_in_quote_rejected(self):
        result = to_src(AudioNote("a.mp3", quote="uses `code`"))
        assert result.text is None
        assert isinstance(result.error, ValidationError)

    def test_transcript_regenerates_quote(self, abc_transcript):
        note = AudioNote("a.mp3", start=1, end=4, transcript_filename="abc.json")
        result = to_src(note, abc_transcript)
        assert result.text == "audio: a.mp3#t=00:01,00:04\ntranscript: abc.json\n---\nA B"
        assert result.note.quote == "A B"
        assert (result.note.quote_created_for_start, result.note.quote_created_for_end) == (1, 4)

    def test_extend_snaps_to_segments(self, abc_transcript):
        note = AudioNote("a.mp3", start=1, end=4, extend_audio=True)
        result = to_src(note, abc_transcript)
        assert result.text.splitlines()[0] == "audio: a.mp3#t=00:00,00:05"
        assert (result.note.start, result.note.end) == (0, 5)
        assert not result.note.extend_audio
        # The requested range is still what the quote was made for.
        assert result.note.quote_created_for_start == 1

    def test_extend_marker_kept_without_transcript(self):
        note = from_src("audio: a.mp3#t=00:10,00:20!\n---\nkept")
        result = to_src(note)
        assert result.text == "audio: a.mp3#t=00:10,00:20!\n---\nkept"
        assert from_src(result.text).extend_audio

    def test_no_overlap_is_returned_not_raised(self, abc_transcript):
        result = to_src(AudioNote("a.mp3", start=20, end=30), abc_transcript)
        assert result.text is None
        assert isinstance(result.error, AlignmentError)

    def test_reparse_reproduces_fields(self, abc_transcript):
        note = from_src("audio: a.mp3#t=00:02,00:05&s=1.25\ntitle: T\ntranscript: x.json\n---\nold")
        again = from_src(to_src(note, abc_transcript).text)
        for attr in ("start", "end", "speed", "audio_filename", "title", "transcript_filename"):
            assert getattr(again, attr) == getattr(note, attr)
        assert again.quote == "B"
