"""
Typed, validated settings for the monitoring pipeline.

Built from the plain configuration dict returned by ``load_config``.
Every settings object validates itself on construction, so an invalid
configuration fails before a pipeline exists.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from infant_monitor.core.models import ExtractionMode, ZCRNormalization
from infant_monitor.utils.errors import ConfigurationError


def _check_range(low: float, high: float, key: str) -> None:
    """Require 0 < low < high, both finite."""
    for value in (low, high):
        if not isinstance(value, (int, float)) or isinstance(value, bool) or not math.isfinite(value):
            raise ConfigurationError(
                f"Bounds of {key} must be finite numbers, got ({low!r}, {high!r})",
                config_key=key
            )
    if low <= 0 or low >= high:
        raise ConfigurationError(
            f"Invalid range for {key}: expected 0 < min < max, got ({low}, {high})",
            config_key=key
        )


def _check_positive_int(value: Any, key: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(
            f"{key} must be a positive integer, got {value!r}",
            config_key=key
        )


def _parse_enum(enum_cls, value: Any, key: str):
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(
            f"Unknown {key} {value!r} (expected one of: {choices})",
            config_key=key
        ) from None


@dataclass(frozen=True)
class ExtractionSettings:
    """Feature extraction parameters."""

    mode: ExtractionMode = ExtractionMode.PLACEHOLDER
    n_coefficients: int = 13
    pitch_min_hz: float = 60.0
    pitch_max_hz: float = 400.0
    zcr_normalization: ZCRNormalization = ZCRNormalization.LEGACY
    n_mels: int = 40

    def __post_init__(self) -> None:
        _check_positive_int(self.n_coefficients, "extraction.n_coefficients")
        _check_positive_int(self.n_mels, "extraction.n_mels")
        _check_range(self.pitch_min_hz, self.pitch_max_hz, "extraction.pitch_min_hz/pitch_max_hz")
        if self.mode is ExtractionMode.SPECTRAL and self.n_coefficients > self.n_mels:
            raise ConfigurationError(
                f"Spectral mode needs n_coefficients <= n_mels "
                f"({self.n_coefficients} > {self.n_mels})",
                config_key="extraction.n_coefficients"
            )

    @classmethod
    def from_dict(cls, section: Dict[str, Any]) -> "ExtractionSettings":
        return cls(
            mode=_parse_enum(ExtractionMode, section.get("mode", "placeholder"), "extraction.mode"),
            n_coefficients=section.get("n_coefficients", 13),
            pitch_min_hz=section.get("pitch_min_hz", 60.0),
            pitch_max_hz=section.get("pitch_max_hz", 400.0),
            zcr_normalization=_parse_enum(
                ZCRNormalization,
                section.get("zcr_normalization", "legacy"),
                "extraction.zcr_normalization",
            ),
            n_mels=section.get("n_mels", 40),
        )


@dataclass(frozen=True)
class ClassifierSettings:
    """Thresholds of the placeholder health rule."""

    variance_max: float = 1.5
    zcr_max: float = 8.0
    pitch_min_hz: float = 200.0
    pitch_max_hz: float = 600.0
    random_seed: Optional[int] = None

    def __post_init__(self) -> None:
        for key, value in (("classifier.variance_max", self.variance_max),
                           ("classifier.zcr_max", self.zcr_max)):
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationError(
                    f"{key} must be a positive number, got {value!r}",
                    config_key=key
                )
        _check_range(self.pitch_min_hz, self.pitch_max_hz, "classifier.pitch_min_hz/pitch_max_hz")
        if self.random_seed is not None and (
            isinstance(self.random_seed, bool) or not isinstance(self.random_seed, int)
        ):
            raise ConfigurationError(
                f"classifier.random_seed must be an integer or null, got {self.random_seed!r}",
                config_key="classifier.random_seed"
            )

    @classmethod
    def from_dict(cls, section: Dict[str, Any]) -> "ClassifierSettings":
        return cls(
            variance_max=section.get("variance_max", 1.5),
            zcr_max=section.get("zcr_max", 8.0),
            pitch_min_hz=section.get("pitch_min_hz", 200.0),
            pitch_max_hz=section.get("pitch_max_hz", 600.0),
            random_seed=section.get("random_seed"),
        )


@dataclass(frozen=True)
class MonitorSettings:
    """Streaming parameters: history size and polling cadence."""

    history_length: int = 10
    interval_ms: int = 3000
    window_seconds: float = 3.0

    def __post_init__(self) -> None:
        _check_positive_int(self.history_length, "monitor.history_length")
        if isinstance(self.interval_ms, bool) or not isinstance(self.interval_ms, (int, float)) \
                or self.interval_ms < 0:
            raise ConfigurationError(
                f"monitor.interval_ms must be a non-negative number, got {self.interval_ms!r}",
                config_key="monitor.interval_ms"
            )
        if isinstance(self.window_seconds, bool) or not isinstance(self.window_seconds, (int, float)) \
                or self.window_seconds <= 0:
            raise ConfigurationError(
                f"monitor.window_seconds must be positive, got {self.window_seconds!r}",
                config_key="monitor.window_seconds"
            )

    @property
    def interval_seconds(self) -> float:
        return self.interval_ms / 1000.0

    @classmethod
    def from_dict(cls, section: Dict[str, Any]) -> "MonitorSettings":
        return cls(
            history_length=section.get("history_length", 10),
            interval_ms=section.get("interval_ms", 3000),
            window_seconds=section.get("window_seconds", 3.0),
        )


@dataclass(frozen=True)
class PipelineSettings:
    """All settings needed to build and drive a monitoring pipeline."""

    extraction: ExtractionSettings = ExtractionSettings()
    classifier: ClassifierSettings = ClassifierSettings()
    monitor: MonitorSettings = MonitorSettings()

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "PipelineSettings":
        """
        Build settings from a configuration dict.

        Raises:
            ConfigurationError: If any value is invalid
        """
        sections = {}
        for name in ("extraction", "classifier", "monitor"):
            section = config.get(name) or {}
            if not isinstance(section, dict):
                raise ConfigurationError(
                    f"Configuration section '{name}' must be a mapping",
                    config_key=name
                )
            sections[name] = section

        return cls(
            extraction=ExtractionSettings.from_dict(sections["extraction"]),
            classifier=ClassifierSettings.from_dict(sections["classifier"]),
            monitor=MonitorSettings.from_dict(sections["monitor"]),
        )
