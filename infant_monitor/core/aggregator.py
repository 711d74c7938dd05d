"""
Rolling pitch history for live monitoring sessions.

Keeps the last K pitch values (oldest first) for trend display.
"""

import logging
from collections import deque
from typing import Any, Deque, Dict, Optional, Tuple

from infant_monitor.utils.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LENGTH: int = 10


class StreamingAggregator:
    """
    Bounded FIFO of pitch values.

    Every pushed value is kept, including the unvoiced sentinel (None), so
    a trend plot shows a gap where no pitch was found. Once ``capacity``
    values are held, each push evicts the oldest.
    """

    def __init__(self, capacity: int = DEFAULT_HISTORY_LENGTH):
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            raise ConfigurationError(
                f"History capacity must be a positive integer, got {capacity!r}",
                config_key="monitor.history_length"
            )
        self.capacity = capacity
        self._history: Deque[Optional[float]] = deque(maxlen=capacity)

    def push(self, pitch: Optional[float]) -> None:
        """Append a pitch value, evicting the oldest when full."""
        if len(self._history) == self.capacity:
            logger.debug(f"Pitch history full, evicting {self._history[0]}")
        self._history.append(pitch)

    def history(self) -> Tuple[Optional[float], ...]:
        """Return the stored pitches, oldest first."""
        return tuple(self._history)

    def voiced(self) -> Tuple[float, ...]:
        """Return the stored pitches with unvoiced gaps removed."""
        return tuple(p for p in self._history if p is not None)

    @property
    def latest(self) -> Optional[float]:
        """Most recent pitch, or None if the history is empty or it was unvoiced."""
        if not self._history:
            return None
        return self._history[-1]

    def clear(self) -> None:
        """Drop all stored values (start of a new session)."""
        self._history.clear()

    def __len__(self) -> int:
        return len(self._history)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'capacity': self.capacity,
            'history': list(self._history),
        }
