"""Playback session: the currently playing slot, sibling sync and commands.

WHY: When the user seeks in one player, every other player of the same
file should jump to the same time so that switching between notes picks
up where the listener left off. The player that is actively playing must
not be yanked around by its own time updates echoing back through a
sibling.

HOW: The host forwards player events (time changed, play, pause) to a
PlaybackSession. The session looks up the player's siblings in the
PlaybackSyncCache and pushes the new time into each of them. Commands
(skip, speed, reset) act on current_player() and feed the resulting time
through the same path.

RULES:
- The currently playing player is never written to by on_time_changed
- Siblings already at the new time are left alone
- Unknown or evicted player ids are a silent no-op
- Non-finite times (a stream with no known position) are ignored
- Speed changes move in steps of settings.speed_step, are rounded to one
  decimal and never go below MIN_PLAYBACK_RATE
- teardown() forgets everything; a new session starts clean
"""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional

from audio_notes.config import MIN_PLAYBACK_RATE, Settings, load_settings
from audio_notes.core.timecodes import format_playback_readout
from audio_notes.playback.cache import PlaybackSyncCache, PlayerHandle
from audio_notes.playback.positions import PositionStore

logger = logging.getLogger(__name__)


class PlaybackSession:
    """Routes player events and playback commands for one host session."""

    def __init__(
        self,
        cache: Optional[PlaybackSyncCache] = None,
        positions: Optional[PositionStore] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.cache = cache if cache is not None else PlaybackSyncCache(self.settings.player_cache_size)
        self.positions = positions
        self.currently_playing_id: Optional[str] = None
        self.known_times: Dict[str, float] = {}
        if positions is not None:
            self.known_times.update(positions.items())

    def register(self, handle: PlayerHandle) -> bool:
        return self.cache.register(handle)

    # ------------------------------------------------------------------
    # Player events
    # ------------------------------------------------------------------

    def on_time_changed(self, player_id: str, new_time: float) -> List[PlayerHandle]:
        """Propagate a time change to the player's siblings.

        Returns:
            The sibling handles whose time was changed.
        """
        if not math.isfinite(new_time):
            logger.debug("Ignoring non-finite time %r from %s", new_time, player_id)
            return []
        handle = self.cache.get(player_id)
        if handle is None:
            return []
        self.known_times[handle.source_key] = new_time

        updated: List[PlayerHandle] = []
        for sibling in self.cache.siblings_of(player_id):
            if sibling.id == self.currently_playing_id:
                continue
            if sibling.current_time == new_time:
                continue
            sibling.current_time = new_time
            sibling.update_display(format_playback_readout(new_time, sibling.duration), new_time)
            updated.append(sibling)
        return updated

    def on_play(self, player_id: str) -> None:
        self.currently_playing_id = player_id
        self._save_position(player_id)

    def on_pause(self, player_id: str) -> None:
        self._save_position(player_id)

    def _save_position(self, player_id: str) -> None:
        if self.positions is None:
            return
        handle = self.cache.get(player_id)
        if handle is None:
            return
        if not math.isfinite(handle.current_time):
            return
        self.positions.save(handle.source_key, handle.current_time)

    def resume_time(self, source_key: str) -> Optional[float]:
        """Last known time for a source, if any player of it has reported one."""
        if source_key in self.known_times:
            return self.known_times[source_key]
        if self.positions is not None:
            return self.positions.get(source_key)
        return None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def current_player(self) -> Optional[PlayerHandle]:
        """The player commands act on.

        That is the most recently started one. Failing that, the only
        registered player that is not paused, or the only registered player.
        """
        if self.currently_playing_id is not None:
            handle = self.cache.get(self.currently_playing_id)
            if handle is not None:
                return handle
        handles = self.cache.handles()
        unpaused = [h for h in handles if not h.paused]
        if len(unpaused) == 1:
            return unpaused[0]
        if len(handles) == 1:
            return handles[0]
        return None

    def _seek(self, player: PlayerHandle, new_time: float) -> Optional[float]:
        if not math.isfinite(new_time):
            logger.debug("Not seeking %s to non-finite time %r", player.id, new_time)
            return None
        player.current_time = new_time
        player.update_display(format_playback_readout(new_time, player.duration), new_time)
        self.on_time_changed(player.id, new_time)
        return new_time

    def skip_backward(self) -> Optional[float]:
        player = self.current_player()
        if player is None:
            return None
        return self._seek(player, max(0.0, player.current_time - self.settings.backward_step))

    def skip_forward(self) -> Optional[float]:
        player = self.current_player()
        if player is None:
            return None
        new_time = player.current_time + self.settings.forward_step
        duration = player.duration
        if duration is not None and math.isfinite(duration):
            new_time = min(new_time, duration)
        return self._seek(player, new_time)

    def reset_to_start(self, start: float = 0.0) -> Optional[float]:
        """Move the current player back to the start of its note."""
        player = self.current_player()
        if player is None:
            return None
        return self._seek(player, max(0.0, start))

    def _change_speed(self, delta: float) -> Optional[float]:
        player = self.current_player()
        if player is None:
            return None
        rate = round(player.playback_rate + delta, 1)
        player.playback_rate = max(MIN_PLAYBACK_RATE, rate)
        logger.debug("Playback rate of %s set to %s", player.id, player.playback_rate)
        return player.playback_rate

    def slow_down(self) -> Optional[float]:
        return self._change_speed(-self.settings.speed_step)

    def speed_up(self) -> Optional[float]:
        return self._change_speed(self.settings.speed_step)

    def teardown(self) -> None:
        self.cache.clear()
        self.known_times.clear()
        self.currently_playing_id = None
