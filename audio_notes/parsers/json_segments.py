"""JSON segment-list transcript parser (Whisper-style output).

WHY: Speech-to-text tools such as Whisper write a JSON object whose
``segments`` array carries start/end seconds and text. It is the primary
transcript format for audio notes.

HOW: json.loads() the contents, validate the structure with jsonschema,
then build one TranscriptSegment per array element. Extra keys (tokens,
avg_logprob, ...) are ignored.

RULES:
- Top level must be an object with a ``segments`` array
- Each segment needs numeric ``start`` (>= 0) and ``end`` and string ``text``
- ``id`` is optional; defaults to the segment's position in the array
- An empty ``segments`` array is a valid, empty transcript
- Segment order is preserved
"""

from __future__ import annotations

import json
from typing import Any, Dict

import jsonschema

from audio_notes.core.transcript import Transcript, TranscriptSegment
from audio_notes.errors import ParseError
from audio_notes.parsers.base import BaseTranscriptParser

SEGMENTS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["segments"],
    "properties": {
        "segments": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["start", "end", "text"],
                "properties": {
                    "id": {"type": ["integer", "string"]},
                    "start": {"type": "number", "minimum": 0},
                    "end": {"type": "number"},
                    "text": {"type": "string"},
                },
            },
        },
    },
}


class JsonSegmentsParser(BaseTranscriptParser):
    """Parser for ``{"segments": [{"start", "end", "text"}, ...]}`` documents."""

    @property
    def name(self) -> str:
        return "JSON segments"

    def parse(self, contents: str) -> Transcript:
        try:
            data = json.loads(contents)
        except json.JSONDecodeError as e:
            raise ParseError("Not a JSON transcript: {}".format(e)) from e

        try:
            jsonschema.validate(instance=data, schema=SEGMENTS_SCHEMA)
        except jsonschema.ValidationError as e:
            raise ParseError("Invalid JSON transcript: {}".format(e.message)) from e

        segments = [
            TranscriptSegment(
                id=item.get("id", index),
                start=float(item["start"]),
                end=float(item["end"]),
                text=item["text"],
            )
            for index, item in enumerate(data["segments"])
        ]
        return Transcript(segments)
