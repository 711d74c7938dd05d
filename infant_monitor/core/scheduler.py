"""
Poll-based cadence loop for live monitoring.

Every ``interval_seconds`` the loop checks an is-active predicate; only
when it holds does it read a buffer from the source and tick the pipeline.
An idle source causes no reads and no state changes.
"""

import logging
import threading
import time
from typing import Callable, Optional

from infant_monitor.core.models import ClassificationResult, Outcome
from infant_monitor.core.pipeline import MonitoringPipeline
from infant_monitor.core.source import SampleSource
from infant_monitor.utils.errors import ConfigurationError, MonitorError

logger = logging.getLogger(__name__)

ResultCallback = Callable[[ClassificationResult], None]
ErrorCallback = Callable[[MonitorError], None]


class MonitoringLoop:
    """
    Drives a MonitoringPipeline from a SampleSource on a fixed cadence.

    Polls are single-flight: a poll started while another is still in
    progress is skipped rather than queued. Pipeline failures are returned
    as failed Outcomes and reported through ``on_error``; they never stop
    the loop and are never replaced with synthetic results.
    """

    def __init__(
        self,
        pipeline: MonitoringPipeline,
        source: SampleSource,
        interval_seconds: float = 3.0,
        is_active: Optional[Callable[[], bool]] = None,
        on_result: Optional[ResultCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ):
        """
        Initialize loop.

        Args:
            pipeline: Pipeline to tick
            source: Buffer source
            interval_seconds: Time between polls
            is_active: Predicate gating each poll (defaults to source.is_active)
            on_result: Called with every successful result
            on_error: Called with every pipeline error
        """
        if interval_seconds < 0:
            raise ConfigurationError(
                f"interval_seconds must be non-negative, got {interval_seconds}",
                config_key="monitor.interval_ms"
            )
        self.pipeline = pipeline
        self.source = source
        self.interval_seconds = interval_seconds
        self.is_active = is_active or source.is_active
        self.on_result = on_result
        self.on_error = on_error
        self.failures = 0
        self._poll_lock = threading.Lock()
        self._stop_event = threading.Event()

    def poll(self) -> Optional[Outcome[ClassificationResult]]:
        """
        Run one cadence step.

        Returns:
            None if the source was idle or a poll was already in flight,
            otherwise the tick's Outcome
        """
        if not self._poll_lock.acquire(blocking=False):
            logger.warning("Previous poll still running; skipping this one")
            return None

        try:
            if not self.is_active():
                return None

            try:
                buffer = self.source.read()
                result = self.pipeline.tick(buffer)
            except MonitorError as e:
                self.failures += 1
                logger.error(f"Monitoring tick failed: {e}")
                if self.on_error is not None:
                    self.on_error(e)
                return Outcome.failure(e)

            if self.on_result is not None:
                self.on_result(result)
            return Outcome.success(result)
        finally:
            self._poll_lock.release()

    def run(
        self,
        stop_event: Optional[threading.Event] = None,
        max_ticks: Optional[int] = None,
        until_idle: bool = False,
    ) -> int:
        """
        Poll until stopped.

        Args:
            stop_event: Event that ends the loop when set. When None, each
                run gets a fresh event that ``stop()`` sets
            max_ticks: Stop after this many ticks (successful or failed);
                zero or less runs none
            until_idle: Stop as soon as the predicate is False

        Returns:
            int: Number of ticks run
        """
        self._stop_event = stop_event if stop_event is not None else threading.Event()
        stop = self._stop_event
        ticks = 0

        logger.info(f"Monitoring loop started (interval {self.interval_seconds:.3f}s)")
        while not stop.is_set():
            if max_ticks is not None and ticks >= max_ticks:
                break
            started = time.monotonic()

            if until_idle and not self.is_active():
                break

            outcome = self.poll()
            if outcome is not None:
                ticks += 1
                if max_ticks is not None and ticks >= max_ticks:
                    break

            elapsed = time.monotonic() - started
            stop.wait(max(0.0, self.interval_seconds - elapsed))

        logger.info(f"Monitoring loop stopped after {ticks} ticks ({self.failures} failed)")
        return ticks

    def stop(self) -> None:
        """Ask a running loop to exit after its current poll."""
        self._stop_event.set()
