"""Tests for the polling MonitoringLoop."""

import threading
from unittest.mock import MagicMock, Mock

import numpy as np
import pytest

from infant_monitor.core.models import SampleBuffer
from infant_monitor.core.pipeline import MonitoringPipeline, create_pipeline
from infant_monitor.core.scheduler import MonitoringLoop
from infant_monitor.core.source import PlaybackSource
from infant_monitor.utils.config import get_default_config
from infant_monitor.utils.errors import (
    ConfigurationError,
    FeatureExtractionError,
    SourceExhaustedError,
)


@pytest.fixture
def pipeline():
    return create_pipeline(get_default_config(), seed=5)


@pytest.fixture
def window(sine_buffer):
    return sine_buffer(250.0, n_samples=4000)


def _endless_source(buffer, active=True):
    source = Mock()
    source.is_active.return_value = active
    source.read.return_value = buffer
    return source


class TestPoll:
    def test_idle_source_is_not_read(self, pipeline, window):
        source = _endless_source(window, active=False)
        loop = MonitoringLoop(pipeline, source, interval_seconds=0)

        assert loop.poll() is None
        source.read.assert_not_called()
        assert pipeline.tick_count == 0
        assert pipeline.history == ()

    def test_custom_predicate_gates_poll(self, pipeline, window):
        source = _endless_source(window)
        loop = MonitoringLoop(pipeline, source, interval_seconds=0, is_active=lambda: False)
        assert loop.poll() is None
        source.read.assert_not_called()

    def test_active_poll_ticks(self, pipeline, window):
        results = []
        loop = MonitoringLoop(
            pipeline, _endless_source(window), interval_seconds=0, on_result=results.append
        )
        outcome = loop.poll()

        assert outcome.ok is True
        assert results == [outcome.value]
        assert pipeline.tick_count == 1
        assert len(pipeline.history) == 1

    def test_pipeline_failure_becomes_failed_outcome(self, window):
        failing = MagicMock(spec=MonitoringPipeline)
        failing.tick.side_effect = FeatureExtractionError("pitch failed", feature_name="pitch")
        errors = []
        loop = MonitoringLoop(
            failing, _endless_source(window), interval_seconds=0, on_error=errors.append
        )
        outcome = loop.poll()

        assert outcome.ok is False
        assert isinstance(outcome.error, FeatureExtractionError)
        assert errors == [outcome.error]
        assert loop.failures == 1

    def test_source_failure_becomes_failed_outcome(self, pipeline):
        source = Mock()
        source.is_active.return_value = True
        source.read.side_effect = SourceExhaustedError("drained", position=10)
        loop = MonitoringLoop(pipeline, source, interval_seconds=0)

        outcome = loop.poll()
        assert outcome.ok is False
        assert isinstance(outcome.error, SourceExhaustedError)
        assert pipeline.tick_count == 0

    def test_overlapping_poll_is_skipped(self, pipeline, window):
        entered = threading.Event()
        release = threading.Event()

        class BlockingSource:
            def is_active(self):
                return True

            def read(self):
                entered.set()
                release.wait(5)
                return window

        loop = MonitoringLoop(pipeline, BlockingSource(), interval_seconds=0)
        worker = threading.Thread(target=loop.poll)
        worker.start()
        assert entered.wait(5)

        assert loop.poll() is None

        release.set()
        worker.join(5)
        assert pipeline.tick_count == 1

    def test_negative_interval_rejected(self, pipeline, window):
        with pytest.raises(ConfigurationError):
            MonitoringLoop(pipeline, _endless_source(window), interval_seconds=-1)


class TestRun:
    def test_max_ticks(self, pipeline, window):
        loop = MonitoringLoop(pipeline, _endless_source(window), interval_seconds=0)
        assert loop.run(max_ticks=3) == 3
        assert pipeline.tick_count == 3

    def test_failed_ticks_count_towards_max(self, window):
        failing = MagicMock(spec=MonitoringPipeline)
        failing.tick.side_effect = FeatureExtractionError("boom")
        loop = MonitoringLoop(failing, _endless_source(window), interval_seconds=0)
        assert loop.run(max_ticks=2) == 2
        assert loop.failures == 2

    def test_until_idle_drains_playback(self, pipeline):
        buffer = SampleBuffer(np.sin(np.arange(10000) * 0.3), 1000)
        source = PlaybackSource(buffer, window_seconds=3.0)
        source.play()
        loop = MonitoringLoop(pipeline, source, interval_seconds=0)

        assert loop.run(until_idle=True) == 4
        assert pipeline.tick_count == 4
        assert source.at_end is True

    def test_preset_stop_event(self, pipeline, window):
        stop = threading.Event()
        stop.set()
        loop = MonitoringLoop(pipeline, _endless_source(window), interval_seconds=0)
        assert loop.run(stop_event=stop) == 0

    def test_stop_from_another_thread(self, pipeline, window):
        loop = MonitoringLoop(pipeline, _endless_source(window), interval_seconds=0.01)
        timer = threading.Timer(0.1, loop.stop)
        timer.start()
        ticks = loop.run()
        timer.join()
        assert ticks >= 1
        assert pipeline.tick_count == ticks

    def test_history_bounded_over_long_run(self, window):
        pipeline = create_pipeline(get_default_config(), seed=1)
        loop = MonitoringLoop(pipeline, _endless_source(window), interval_seconds=0)
        loop.run(max_ticks=25)
        assert len(pipeline.history) == 10

    def test_runs_again_after_stop(self, pipeline, window):
        loop = MonitoringLoop(pipeline, _endless_source(window), interval_seconds=0)
        loop.stop()
        assert loop.run(max_ticks=2) == 2
        loop.stop()
        assert loop.run(max_ticks=2) == 2
        assert pipeline.tick_count == 4

    @pytest.mark.parametrize("max_ticks", [0, -3])
    def test_non_positive_max_ticks_runs_nothing(self, pipeline, window, max_ticks):
        loop = MonitoringLoop(pipeline, _endless_source(window), interval_seconds=0)
        assert loop.run(max_ticks=max_ticks) == 0
        assert pipeline.tick_count == 0
