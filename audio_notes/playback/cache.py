"""Bounded, source-keyed registry of rendered audio players.

WHY: Every time a note is rendered the host creates a new player widget.
To propagate a seek from one player to the others playing the same file,
the engine has to remember which players exist and which source each one
plays. Over a long editing session re-renders would accumulate without
bound, so the registry has a fixed capacity.

HOW: Entries are grouped in a dict of source key -> list of PlayerEntry.
Each entry records the insertion time and a sequence number. When the
registry is full, the globally oldest entry is evicted regardless of its
source, before the new one is inserted.

RULES:
- register() is idempotent per player id (duplicate renders are ignored)
- Eviction removes exactly one entry: the oldest insertion, ties broken
  by insertion order
- Entries are never mutated; player state lives in the handle
- No method raises; an unknown id yields None or an empty list
"""

from __future__ import annotations

import itertools
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Tuple

from audio_notes.config import PLAYER_CACHE_SIZE

logger = logging.getLogger(__name__)


class PlayerHandle(Protocol):
    """What the engine needs from a rendered player widget.

    RULES:
    - id: opaque, unique per rendered widget instance
    - source_key: resolved audio source shared by players of the same file
    - current_time / playback_rate: read-write, in seconds / multiplier
    - duration: seconds, or None while metadata is not loaded
    - paused: True while the player is not playing
    - update_display(): refresh the time readout and the seek control
    """

    @property
    def id(self) -> str: ...

    @property
    def source_key(self) -> str: ...

    current_time: float
    playback_rate: float

    @property
    def duration(self) -> Optional[float]: ...

    @property
    def paused(self) -> bool: ...

    def update_display(self, readout: str, seek_value: float) -> None: ...


@dataclass(frozen=True)
class PlayerEntry:
    """One registered player."""

    source_key: str
    handle: PlayerHandle
    inserted_at: float
    sequence: int


class PlaybackSyncCache:
    """Capacity-bounded multi-map of source key -> registered players."""

    def __init__(
        self,
        max_size: int = PLAYER_CACHE_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1, got {}".format(max_size))
        self.max_size = max_size
        self._clock = clock
        self._sequence = itertools.count()
        self._entries: Dict[str, List[PlayerEntry]] = {}

    @property
    def count(self) -> int:
        return sum(len(entries) for entries in self._entries.values())

    def __len__(self) -> int:
        return self.count

    def clear(self) -> None:
        self._entries.clear()

    def _find(self, player_id: str) -> Optional[PlayerEntry]:
        for entries in self._entries.values():
            for entry in entries:
                if entry.handle.id == player_id:
                    return entry
        return None

    def register(self, handle: PlayerHandle) -> bool:
        """Add a player; returns False if its id is already registered."""
        if self._find(handle.id) is not None:
            return False
        if self.count >= self.max_size:
            self._remove_oldest()
        entry = PlayerEntry(
            source_key=handle.source_key,
            handle=handle,
            inserted_at=self._clock(),
            sequence=next(self._sequence),
        )
        self._entries.setdefault(entry.source_key, []).append(entry)
        return True

    def get(self, player_id: str) -> Optional[PlayerHandle]:
        entry = self._find(player_id)
        return entry.handle if entry is not None else None

    def siblings_of(self, player_id: str) -> List[PlayerHandle]:
        """All players sharing the source of ``player_id``, itself included."""
        entry = self._find(player_id)
        if entry is None:
            return []
        return [e.handle for e in self._entries.get(entry.source_key, [])]

    def entries(self) -> List[Tuple[str, List[PlayerHandle]]]:
        return [
            (source_key, [e.handle for e in entries])
            for source_key, entries in self._entries.items()
        ]

    def handles(self) -> List[PlayerHandle]:
        return [e.handle for entries in self._entries.values() for e in entries]

    def _remove_oldest(self) -> None:
        oldest: Optional[PlayerEntry] = None
        for entries in self._entries.values():
            for entry in entries:
                if oldest is None or (entry.inserted_at, entry.sequence) < (oldest.inserted_at, oldest.sequence):
                    oldest = entry
        if oldest is None:
            return
        remaining = [e for e in self._entries[oldest.source_key] if e is not oldest]
        if remaining:
            self._entries[oldest.source_key] = remaining
        else:
            del self._entries[oldest.source_key]
        logger.debug("Evicted player %s (%s)", oldest.handle.id, oldest.source_key)
