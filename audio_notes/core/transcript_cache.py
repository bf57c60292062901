"""Session-scoped cache of parsed transcripts keyed by filename or URL.

WHY: A document often has many notes pointing at the same transcript, and
the same transcript is consulted again on every regeneration. Parsing a
long Whisper JSON file once per session instead of once per note keeps
bulk regeneration fast.

HOW: TranscriptCache is constructed with the host's file loader, an async
callable that takes a list of names and returns a mapping of the names it
could read to their contents. get() loads and parses a single name;
preload() fetches every missing name in one loader call.

RULES:
- The cache never performs I/O itself; all reads go through load_files
- A name the loader cannot supply yields None, not an exception
- A loader call that raises is logged; every name it covered yields None
- Contents that no parser accepts are logged and yield None
- Entries live until clear() is called (host teardown)
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Dict, List, Optional

from audio_notes.core.transcript import Transcript
from audio_notes.errors import ParseError
from audio_notes.parsers import parse_transcript

logger = logging.getLogger(__name__)

LoadFiles = Callable[[List[str]], Awaitable[Dict[str, str]]]
"""Host collaborator: ``await load_files(names) -> {name: contents}``."""


class TranscriptCache:
    """Parsed transcripts for the lifetime of a document-processing session."""

    def __init__(self, load_files: LoadFiles) -> None:
        self._load_files = load_files
        self._cache: Dict[str, Transcript] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        self._cache.clear()

    def put(self, name: str, transcript: Transcript) -> None:
        """Store an already-parsed transcript under ``name``."""
        self._cache[name] = transcript

    def peek(self, name: Optional[str]) -> Optional[Transcript]:
        """Return a cached transcript without loading."""
        if name is None:
            return None
        return self._cache.get(name)

    async def get(self, name: Optional[str]) -> Optional[Transcript]:
        """Return the transcript for ``name``, loading it on first use."""
        if name is None:
            return None
        if name in self._cache:
            return self._cache[name]
        loaded = await self.preload([name])
        return loaded.get(name)

    async def preload(self, names: Iterable[str]) -> Dict[str, Transcript]:
        """Make sure every name is loaded, with a single loader call.

        Returns:
            Mapping of each requested name that is available to its
            transcript. Unavailable or unparsable names are left out.
        """
        wanted: List[str] = []
        for name in names:
            if name not in wanted:
                wanted.append(name)

        missing = [name for name in wanted if name not in self._cache]
        if missing:
            try:
                contents = await self._load_files(missing)
            except Exception as e:
                logger.warning("Could not load transcripts %s: %s", ", ".join(missing), e)
                contents = {}
            for name in missing:
                raw = contents.get(name)
                if raw is None:
                    logger.warning("Could not find transcript: %s", name)
                    continue
                try:
                    self._cache[name] = parse_transcript(raw)
                except ParseError as e:
                    logger.warning("Could not parse transcript %s: %s", name, e)

        return {name: self._cache[name] for name in wanted if name in self._cache}
