"""
Feature extractor for the Infant Health Monitor.

Computes the zero-crossing rate, an autocorrelation pitch estimate and a
fixed-length coefficient vector from a mono SampleBuffer.
"""

import logging
import math
from typing import Optional, Tuple

import librosa
import numpy as np

from infant_monitor.core.models import (
    UNVOICED,
    ExtractionMode,
    FeatureRecord,
    Outcome,
    SampleBuffer,
    ZCRNormalization,
)
from infant_monitor.core.settings import ExtractionSettings
from infant_monitor.utils.errors import FeatureExtractionError, MonitorError

logger = logging.getLogger(__name__)

# Smallest buffer the spectral mode will frame; shorter input yields zeros
MIN_SPECTRAL_SAMPLES: int = 256
MAX_N_FFT: int = 2048


def count_zero_crossings(samples: np.ndarray) -> int:
    """
    Count sign changes between consecutive samples.

    A pair counts only when the product is strictly negative, so a step
    onto or off an exact zero is not a crossing.
    """
    if samples.shape[0] < 2:
        return 0
    return int(np.count_nonzero(samples[:-1] * samples[1:] < 0))


def zero_crossing_rate(
    samples: np.ndarray,
    sample_rate: int,
    normalization: ZCRNormalization = ZCRNormalization.LEGACY,
) -> float:
    """
    Crossing rate of a buffer.

    LEGACY returns ``crossings / length * sample_rate / 2``, an approximate
    frequency in Hz for a pure tone rather than a true crossings-per-second
    figure. PER_SECOND returns ``crossings / (length / sample_rate)``.
    Both are only meaningful for buffers holding several crossings; a
    buffer of fewer than 2 samples has rate 0.
    """
    n = samples.shape[0]
    if n < 2:
        return 0.0
    crossings = count_zero_crossings(samples)
    if normalization is ZCRNormalization.PER_SECOND:
        return crossings / (n / sample_rate)
    return (crossings / n) * sample_rate / 2


def lag_bounds(sample_rate: int, min_hz: float, max_hz: float) -> Tuple[int, int]:
    """
    Return ``(min_lag, max_lag)`` for a pitch search between min_hz and max_hz.

    min_lag is at least 2 so a reported pitch never exceeds sample_rate / 2.
    """
    min_lag = max(2, math.floor(sample_rate / max_hz))
    max_lag = math.floor(sample_rate / min_hz)
    return min_lag, max_lag


def estimate_pitch(
    samples: np.ndarray,
    sample_rate: int,
    min_hz: float = 60.0,
    max_hz: float = 400.0,
) -> Optional[float]:
    """
    Estimate the fundamental frequency by autocorrelation.

    Scans lags ``min_lag <= L < max_lag`` in ascending order and keeps the
    first lag with the largest unnormalized correlation
    ``sum(s[i] * s[i + L])``. Because the sum shrinks as the lag grows,
    shorter periods win ties with their multiples.

    This is a single-pitch estimator: it is unreliable on polyphonic or
    noisy input, and a tone above ``max_hz`` is reported at a sub-multiple
    of its frequency (440 Hz with the default range comes back near 220 Hz).

    Returns:
        Pitch in Hz, or None (UNVOICED) when the buffer is not longer than
        ``min_lag``, the lag range is empty, or no lag correlates positively.
    """
    n = samples.shape[0]
    min_lag, max_lag = lag_bounds(sample_rate, min_hz, max_hz)
    if n <= min_lag:
        return UNVOICED

    # Lags at or past the buffer end have no overlapping terms
    stop = min(max_lag, n)
    if stop <= min_lag:
        return UNVOICED

    best_lag = 0
    best_correlation = -math.inf
    for lag in range(min_lag, stop):
        correlation = float(np.dot(samples[:n - lag], samples[lag:]))
        if correlation > best_correlation:
            best_correlation = correlation
            best_lag = lag

    if best_lag == 0 or best_correlation <= 0.0:
        return UNVOICED
    return sample_rate / best_lag


class FeatureExtractor:
    """
    Extracts a FeatureRecord from a SampleBuffer.

    ZCR and pitch are deterministic. The coefficient vector depends on the
    configured mode:

    - PLACEHOLDER: n values drawn uniformly from [-1, 1) using ``rng``. This
      stands in for a real spectral front end and carries no information.
    - SPECTRAL: mean MFCCs over frames (windowed FFT, mel filterbank, log,
      DCT) computed with librosa.

    Both modes always return exactly ``n_coefficients`` values.
    """

    def __init__(
        self,
        settings: Optional[ExtractionSettings] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Initialize extractor.

        Args:
            settings: Extraction settings (defaults if None)
            rng: Random generator for placeholder coefficients
        """
        self.settings = settings or ExtractionSettings()
        self.rng = rng if rng is not None else np.random.default_rng()

    @property
    def mode(self) -> ExtractionMode:
        return self.settings.mode

    def extract(self, buffer: SampleBuffer) -> FeatureRecord:
        """
        Extract all features from a buffer.

        Short buffers give a degraded record (``insufficient_samples``),
        never an error.

        Raises:
            FeatureExtractionError: If a computation fails
        """
        samples = buffer.samples
        sr = buffer.sample_rate
        settings = self.settings

        zcr = self._compute("zcr", zero_crossing_rate, samples, sr, settings.zcr_normalization)
        pitch = self._compute(
            "pitch", estimate_pitch, samples, sr, settings.pitch_min_hz, settings.pitch_max_hz
        )
        coefficients = self._compute("coefficients", self._coefficients, samples, sr)

        if len(coefficients) != settings.n_coefficients:
            raise FeatureExtractionError(
                f"Expected {settings.n_coefficients} coefficients, got {len(coefficients)}",
                feature_name="coefficients"
            )

        min_lag, _ = lag_bounds(sr, settings.pitch_min_hz, settings.pitch_max_hz)
        insufficient = len(buffer) < 2 or len(buffer) <= min_lag
        if settings.mode is ExtractionMode.SPECTRAL and len(buffer) < MIN_SPECTRAL_SAMPLES:
            insufficient = True
        if insufficient:
            logger.debug(
                f"Buffer of {len(buffer)} samples is too short for full analysis "
                f"(min lag {min_lag})"
            )

        return FeatureRecord(
            coefficients=coefficients,
            zcr=float(zcr),
            pitch=None if pitch is UNVOICED else float(pitch),
            insufficient_samples=insufficient,
        )

    def try_extract(self, buffer: SampleBuffer) -> Outcome[FeatureRecord]:
        """Extract features, returning failures as a tagged Outcome."""
        try:
            return Outcome.success(self.extract(buffer))
        except MonitorError as e:
            logger.error(f"Feature extraction failed: {e}")
            return Outcome.failure(e)

    def _compute(self, feature_name: str, func, *args):
        """Run one feature computation, wrapping unexpected errors."""
        try:
            return func(*args)
        except MonitorError:
            raise
        except Exception as e:
            raise FeatureExtractionError(
                f"Failed to compute {feature_name}: {e}",
                feature_name=feature_name,
                original_error=e
            ) from e

    def _coefficients(self, samples: np.ndarray, sr: int) -> Tuple[float, ...]:
        n = self.settings.n_coefficients
        if self.settings.mode is ExtractionMode.SPECTRAL:
            return self._spectral_coefficients(samples, sr)
        return tuple(float(v) for v in self.rng.uniform(-1.0, 1.0, size=n))

    def _spectral_coefficients(self, samples: np.ndarray, sr: int) -> Tuple[float, ...]:
        """Mean MFCC vector; zeros when the buffer can't fill one frame."""
        n = self.settings.n_coefficients
        if samples.shape[0] < MIN_SPECTRAL_SAMPLES:
            return (0.0,) * n

        # Largest power of two that fits the buffer, capped at MAX_N_FFT
        n_fft = min(MAX_N_FFT, 1 << (samples.shape[0].bit_length() - 1))
        mfcc = librosa.feature.mfcc(
            y=samples.astype(np.float32),
            sr=sr,
            n_mfcc=n,
            n_fft=n_fft,
            hop_length=n_fft // 4,
            n_mels=self.settings.n_mels,
        )
        return tuple(float(v) for v in np.mean(mfcc, axis=1))
