"""Shared fixtures for the monitoring pipeline tests."""

import numpy as np
import pytest
import soundfile as sf

from infant_monitor.core.models import FeatureRecord, SampleBuffer


# ---------------------------------------------------------------------------
# Signal helpers
# ---------------------------------------------------------------------------


def sine_samples(freq: float, sample_rate: int, n_samples: int, amplitude: float = 1.0) -> np.ndarray:
    """Pure sine starting at phase 0."""
    t = np.arange(n_samples) / sample_rate
    return amplitude * np.sin(2 * np.pi * freq * t)


def in_range_features(**overrides) -> FeatureRecord:
    """A FeatureRecord that passes every threshold of the default rule."""
    values = dict(coefficients=(0.5,) * 13, zcr=4.0, pitch=300.0)
    values.update(overrides)
    return FeatureRecord(**values)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sine_buffer():
    """Factory: ``sine_buffer(freq, sample_rate, n_samples)`` -> SampleBuffer."""
    def _make(freq: float, sample_rate: int = 8000, n_samples: int = 8000) -> SampleBuffer:
        return SampleBuffer(sine_samples(freq, sample_rate, n_samples), sample_rate)
    return _make


@pytest.fixture
def silent_buffer():
    """100 zero samples at 44.1 kHz."""
    return SampleBuffer(np.zeros(100), 44100)


@pytest.fixture
def make_features():
    """Factory: in-range FeatureRecord with keyword overrides."""
    return in_range_features


@pytest.fixture
def rng():
    """Seeded numpy generator."""
    return np.random.default_rng(1234)


@pytest.fixture
def wav_file(tmp_path):
    """Factory writing a sine WAV: ``wav_file(name, seconds, sample_rate, channels)``."""
    def _write(
        name: str = "tone.wav",
        seconds: float = 1.0,
        sample_rate: int = 8000,
        channels: int = 1,
        freq: float = 200.0,
        amplitude: float = 0.5,
        subtype: str = "PCM_16",
    ):
        n = int(seconds * sample_rate)
        mono = sine_samples(freq, sample_rate, n, amplitude)
        data = mono if channels == 1 else np.column_stack([mono] * channels)
        path = tmp_path / name
        sf.write(str(path), data, sample_rate, subtype=subtype)
        return path
    return _write
