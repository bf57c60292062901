"""Conversion between seconds and compact ``H:MM:SS.ss`` time strings.

WHY: Audio notes store their time range as human-editable strings in the
``#t=`` fragment (``01:02:03.5``), and players show ``MM:SS / MM:SS``
readouts. Both directions must agree so a note written by the tool reads
back to the same range.

HOW: seconds_to_time_string() rounds to hundredths first and derives
hours/minutes/seconds from the rounded value, so a value like 59.999
carries into the minutes instead of printing ``00:60``.
time_string_to_seconds() splits on ``:`` and reads 1, 2 or 3 components.

RULES:
- 0 seconds is the literal "00:00"
- Hours only appear when nonzero; all components zero-padded to 2 digits
- Up to 2 fractional digits, trailing zeros dropped ("05.5", not "05.50")
- truncate_subseconds drops the fractional part and its separator
- Negative, NaN and infinite inputs raise FormatError
- Round trip recovers the input within 0.01s
"""

from __future__ import annotations

import math
from typing import Optional

from audio_notes.errors import FormatError

_UNKNOWN_TIME = "--:--"


def seconds_to_time_string(total_seconds: float, truncate_subseconds: bool) -> str:
    """Format seconds as ``[HH:]MM:SS[.ss]``.

    Args:
        total_seconds: Non-negative, finite number of seconds.
        truncate_subseconds: Drop the fractional part when True.

    Returns:
        The formatted time string.

    Raises:
        FormatError: If total_seconds is negative, NaN or infinite.
    """
    try:
        valid = math.isfinite(total_seconds) and total_seconds >= 0
    except TypeError:
        valid = False
    if not valid:
        raise FormatError(
            "Failed to convert seconds to time string: {}".format(total_seconds)
        )
    if total_seconds == 0:
        return "00:00"

    centiseconds = int(round(total_seconds * 100))
    hours, remainder = divmod(centiseconds, 360_000)
    minutes, remainder = divmod(remainder, 6_000)
    whole_seconds, fraction = divmod(remainder, 100)

    result = ""
    if hours > 0:
        result += "{:02d}:".format(hours)
    result += "{:02d}:{:02d}".format(minutes, whole_seconds)
    if fraction and not truncate_subseconds:
        result += ".{:02d}".format(fraction).rstrip("0")
    return result


def time_string_to_seconds(text: str) -> float:
    """Parse ``S``, ``M:S`` or ``H:M:S`` (seconds may be fractional).

    Raises:
        FormatError: If any component is not a number.
    """
    parts = text.strip().split(":")
    hours = 0
    minutes = 0
    try:
        if len(parts) > 2:
            hours = int(parts[0])
            minutes = int(parts[1])
            seconds = float(parts[2])
        elif len(parts) > 1:
            minutes = int(parts[0])
            seconds = float(parts[1])
        else:
            seconds = float(parts[0])
    except ValueError:
        raise FormatError(
            "Failed to convert time string to seconds: {}".format(text)
        ) from None
    if not math.isfinite(seconds):
        raise FormatError("Failed to convert time string to seconds: {}".format(text))
    return hours * 3600 + minutes * 60 + seconds


def format_playback_readout(current: float, duration: Optional[float]) -> str:
    """Render the ``current / duration`` readout shown next to a player.

    Durations that are unknown (metadata not loaded yet) or infinite
    (live streams) render as ``--:--``.
    """
    current_str = seconds_to_time_string(max(0.0, current), True)
    if duration is None or not math.isfinite(duration) or duration < 0:
        return "{} / {}".format(current_str, _UNKNOWN_TIME)
    return "{} / {}".format(current_str, seconds_to_time_string(duration, True))
