"""
Core data models for the Infant Health Monitor.

Immutable domain models for sample buffers, extracted features and
classification results, plus a tagged success/failure outcome.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar

import numpy as np

from infant_monitor.utils.errors import MonitorError, SampleBufferError

T = TypeVar('T')

# Pitch value reported when no reliable periodicity is found
UNVOICED = None


class ExtractionMode(str, Enum):
    """Which coefficient computation the extractor runs."""

    PLACEHOLDER = "placeholder"
    SPECTRAL = "spectral"


class ZCRNormalization(str, Enum):
    """How the crossing count is turned into a rate."""

    LEGACY = "legacy"  # crossings / length * sample_rate / 2
    PER_SECOND = "per_second"  # crossings / (length / sample_rate)


class HealthStatus(str, Enum):
    """Binary health classification."""

    NORMAL = "Normal"
    ABNORMAL = "Abnormal"


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """
    Immutable mono PCM buffer.

    Samples are stored as a read-only float64 copy so that the caller's
    array can't change underneath an extraction.
    """

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        """Validate and freeze the sample array."""
        if isinstance(self.sample_rate, bool) or not isinstance(self.sample_rate, numbers.Integral):
            raise SampleBufferError(
                f"Sample rate must be an integer, got {self.sample_rate!r}",
                field_name="sample_rate"
            )
        if self.sample_rate <= 0:
            raise SampleBufferError(
                f"Sample rate must be positive, got {self.sample_rate}",
                field_name="sample_rate"
            )

        try:
            samples = np.array(self.samples, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise SampleBufferError(
                f"Samples are not numeric: {e}", field_name="samples"
            ) from e

        if samples.ndim != 1:
            raise SampleBufferError(
                f"Expected mono (1-D) samples, got shape {samples.shape}",
                field_name="samples"
            )
        if not np.all(np.isfinite(samples)):
            raise SampleBufferError(
                "Samples contain NaN or infinite values", field_name="samples"
            )

        samples.setflags(write=False)
        object.__setattr__(self, 'samples', samples)
        object.__setattr__(self, 'sample_rate', int(self.sample_rate))

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return len(self) / self.sample_rate

    def slice(self, start: int, stop: int) -> "SampleBuffer":
        """Return a new buffer holding samples[start:stop]."""
        return SampleBuffer(samples=self.samples[start:stop], sample_rate=self.sample_rate)


@dataclass(frozen=True)
class FeatureRecord:
    """
    Features extracted from one SampleBuffer.

    ``pitch`` is None (UNVOICED) when no reliable periodicity was found.
    ``insufficient_samples`` marks a degraded record computed from a buffer
    too short for crossing or pitch analysis.
    """

    coefficients: Tuple[float, ...]
    zcr: float
    pitch: Optional[float]
    insufficient_samples: bool = False

    @property
    def is_voiced(self) -> bool:
        return self.pitch is not UNVOICED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'coefficients': list(self.coefficients),
            'zcr': self.zcr,
            'pitch': self.pitch,
            'voiced': self.is_voiced,
            'insufficient_samples': self.insufficient_samples,
        }


@dataclass(frozen=True)
class ClassificationResult:
    """Health classification for one FeatureRecord."""

    status: HealthStatus
    confidence: float  # [0.0, 100.0], not a calibrated probability
    features: FeatureRecord
    variance: float  # mean of squared coefficients

    def __post_init__(self) -> None:
        """Validate fields."""
        validate_confidence(self.confidence)

    @property
    def is_normal(self) -> bool:
        return self.status is HealthStatus.NORMAL

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'status': self.status.value,
            'confidence': self.confidence,
            'variance': self.variance,
            'features': self.features.to_dict(),
        }


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Tagged success/failure value.

    Exactly one of ``value`` and ``error`` is meaningful, selected by ``ok``.
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[MonitorError] = field(default=None)

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: MonitorError) -> "Outcome[T]":
        return cls(ok=False, error=error)

    def unwrap(self) -> T:
        """Return the value, or raise the stored error."""
        if not self.ok:
            if self.error is None:
                raise MonitorError("Failed outcome carries no error")
            raise self.error
        return self.value  # type: ignore[return-value]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        if self.ok:
            value = self.value.to_dict() if hasattr(self.value, 'to_dict') else self.value
            return {'ok': True, 'value': value}
        if isinstance(self.error, MonitorError):
            return {'ok': False, **self.error.to_dict()}
        return {'ok': False, 'error': type(self.error).__name__, 'message': str(self.error)}


def validate_confidence(confidence: float) -> None:
    """
    Validate a confidence score lies in [0, 100].

    Raises:
        ValueError: If confidence is out of range
    """
    if not 0.0 <= confidence <= 100.0:
        raise ValueError(f"Confidence must be in [0, 100], got {confidence}")
