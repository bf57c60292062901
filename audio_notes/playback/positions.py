"""Persisted last playback position per audio source.

WHY: A listener who closes the document halfway through an episode should
be able to resume from the same spot later, but positions for files that
have not been touched in months are just clutter.

HOW: Positions are kept in a small JSON file:

    {"positions": {"<source key>": [<time seconds>, <updated at, epoch ms>]}}

load() reads it, drops entries older than the retention window and writes
the pruned file back. save() updates one entry and rewrites the file.

RULES:
- A missing file starts empty; a corrupt one starts empty and is logged
- Other top-level keys in the file are preserved on write
- Timestamps are epoch milliseconds
- The retention window is retention_s, else settings.position_retention_s
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from audio_notes.config import Settings, load_settings

logger = logging.getLogger(__name__)


class PositionStore:
    """JSON-file backed map of source key -> last playback time."""

    def __init__(
        self,
        path: Union[str, Path],
        retention_s: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        settings: Optional[Settings] = None,
    ) -> None:
        self.path = Path(path)
        if retention_s is None:
            retention_s = (settings or load_settings()).position_retention_s
        self.retention_s = retention_s
        self._clock = clock
        self._positions: Dict[str, Tuple[float, float]] = {}
        self._extra: Dict[str, Any] = {}

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def load(self) -> Dict[str, float]:
        """Read the file, prune expired entries and return source -> time."""
        self._positions = {}
        self._extra = {}
        if self.path.exists():
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Ignoring unreadable positions file %s: %s", self.path, e)
                data = {}
            if not isinstance(data, dict):
                logger.warning("Ignoring malformed positions file %s", self.path)
                data = {}
            raw = data.pop("positions", {})
            self._extra = data
            cutoff = self._now_ms() - self.retention_s * 1000
            if isinstance(raw, dict):
                for source, value in raw.items():
                    try:
                        position, updated_at = float(value[0]), float(value[1])
                    except (TypeError, ValueError, IndexError):
                        logger.debug("Dropping malformed position for %s", source)
                        continue
                    if updated_at >= cutoff:
                        self._positions[source] = (position, updated_at)
            self._write()
        return dict(self.items())

    def save(self, source: str, position: float) -> None:
        self._positions[source] = (position, self._now_ms())
        self._write()

    def get(self, source: str) -> Optional[float]:
        entry = self._positions.get(source)
        return entry[0] if entry is not None else None

    def items(self) -> Iterator[Tuple[str, float]]:
        for source, (position, _) in self._positions.items():
            yield source, position

    def _write(self) -> None:
        data = dict(self._extra)
        data["positions"] = {
            source: [position, updated_at]
            for source, (position, updated_at) in self._positions.items()
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
