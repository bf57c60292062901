"""Keeping several rendered players of the same recording in sync.

WHY: The same audio file is often referenced by many notes in a document,
and the document may be shown in more than one pane. Seeking in one
player should move all the others, and the last position should survive
a restart.

HOW: cache.py holds the bounded registry of player handles grouped by
source key. session.py owns the "currently playing" slot, pushes time
changes to sibling players and implements the playback commands.
positions.py persists the last known position per source.

RULES:
- Players are reached only through the PlayerHandle protocol; nothing
  here knows about widgets or DOM elements
- Lookups of unknown or evicted players return nothing and never raise
"""

from audio_notes.playback.cache import PlaybackSyncCache, PlayerEntry, PlayerHandle
from audio_notes.playback.positions import PositionStore
from audio_notes.playback.session import PlaybackSession

__all__ = [
    "PlaybackSession",
    "PlaybackSyncCache",
    "PlayerEntry",
    "PlayerHandle",
    "PositionStore",
]
