"""Core engine: time codec, transcript model, alignment, note format,
transcript cache, and document regeneration.

WHY: Everything a host needs to turn an audio note block into a quote
lives here, free of any rendering or I/O concerns, so it can be driven
from an editor plugin, the CLI, or tests alike.

HOW: timecodes.py and transcript.py are leaves. alignment.py maps a time
range onto transcript segments. note.py and note_format.py define the
AudioNote record and its text encoding. transcript_cache.py loads and
memoizes transcripts through an injected loader. regeneration.py scans a
document for notes and rewrites them bottom-up.

RULES:
- No module in core/ reads files or talks to the network
- The AudioNote dataclass and the block grammar are the stable contract
"""
