"""
Sample sources for live monitoring.

A source hands out successive SampleBuffers while it is active. The
monitoring loop only needs the ``SampleSource`` protocol; ``PlaybackSource``
simulates playing back a decoded file.
"""

import logging
import math
import threading
from typing import Protocol

from infant_monitor.core.models import SampleBuffer
from infant_monitor.utils.errors import ConfigurationError, SourceExhaustedError

logger = logging.getLogger(__name__)


class SampleSource(Protocol):
    """Anything that produces mono buffers on demand."""

    def read(self) -> SampleBuffer:
        ...

    def is_active(self) -> bool:
        ...


class PlaybackSource:
    """
    Plays a decoded buffer window by window.

    Each ``read()`` returns the next ``window_seconds`` of audio (the last
    window may be shorter) and advances the cursor. Reaching the end stops
    playback, so ``is_active()`` turns False and a polling loop goes idle.
    """

    def __init__(self, buffer: SampleBuffer, window_seconds: float = 3.0):
        if window_seconds <= 0:
            raise ConfigurationError(
                f"window_seconds must be positive, got {window_seconds}",
                config_key="monitor.window_seconds"
            )
        self.buffer = buffer
        self.window_size = max(1, math.ceil(window_seconds * buffer.sample_rate))
        self._position = 0
        self._playing = False
        self._lock = threading.Lock()

    @property
    def position(self) -> int:
        """Cursor position in samples."""
        return self._position

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def at_end(self) -> bool:
        return self._position >= len(self.buffer)

    def play(self) -> None:
        """Start or resume playback (no-op at end of buffer)."""
        with self._lock:
            if self._position >= len(self.buffer):
                logger.info("Playback requested at end of buffer; call stop() to rewind")
                return
            self._playing = True

    def pause(self) -> None:
        """Pause playback, keeping the cursor."""
        with self._lock:
            self._playing = False

    def stop(self) -> None:
        """Stop playback and rewind to the start."""
        with self._lock:
            self._playing = False
            self._position = 0

    def is_active(self) -> bool:
        """True while playing and samples remain."""
        return self._playing and not self.at_end

    def remaining_windows(self) -> int:
        """Number of reads left before the end of the buffer."""
        remaining = len(self.buffer) - self._position
        return max(0, math.ceil(remaining / self.window_size))

    def read(self) -> SampleBuffer:
        """
        Return the next window and advance.

        Raises:
            SourceExhaustedError: If the cursor is already at the end
        """
        with self._lock:
            start = self._position
            if start >= len(self.buffer):
                raise SourceExhaustedError(
                    "Playback reached the end of the buffer", position=start
                )
            stop = min(start + self.window_size, len(self.buffer))
            self._position = stop
            if stop >= len(self.buffer):
                self._playing = False
                logger.info("Playback finished")
            return self.buffer.slice(start, stop)
