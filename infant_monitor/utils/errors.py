"""
Custom exceptions for the Infant Health Monitor.

Every failure of the pipeline surfaces as a MonitorError subclass carrying
a small ``details`` dict, so the CLI and the monitoring loop can report it
without knowing the concrete type. Short or silent buffers are NOT errors:
they produce a degraded FeatureRecord instead.
"""

from typing import Any, Dict, Optional


class MonitorError(Exception):
    """Base exception for all monitoring pipeline errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}

    def __str__(self) -> str:
        known = {k: v for k, v in self.details.items() if v is not None}
        if known:
            return f"{self.message} (Details: {known})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Error report for JSON output."""
        return {
            'error': type(self).__name__,
            'message': self.message,
            'details': dict(self.details),
        }


class AudioDecodeError(MonitorError):
    """Raised when an audio file cannot be turned into PCM samples."""

    def __init__(self, message: str, file_path: Optional[str] = None, **details: Any):
        super().__init__(message, details={"file_path": file_path, **details})
        self.file_path = file_path


class UnsupportedFormatError(AudioDecodeError):
    """File suffix is not one of the accepted audio formats."""

    def __init__(
        self,
        message: str,
        format: Optional[str] = None,
        file_path: Optional[str] = None,
    ):
        super().__init__(message, file_path=file_path, format=format)
        self.format = format


class FileTooLargeError(AudioDecodeError):
    """File exceeds the configured size limit."""

    def __init__(
        self,
        message: str,
        file_size: Optional[int] = None,
        max_size: Optional[int] = None,
        file_path: Optional[str] = None,
    ):
        super().__init__(message, file_path=file_path, file_size=file_size, max_size=max_size)
        self.file_size = file_size
        self.max_size = max_size


class SampleBufferError(MonitorError):
    """Raised when a sample buffer is malformed (bad rate, shape or values)."""

    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(message, details={"field": field_name})
        self.field_name = field_name


class FeatureExtractionError(MonitorError):
    """Raised when feature computation fails on a well-formed buffer."""

    def __init__(
        self,
        message: str,
        feature_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, details={
            "feature_name": feature_name,
            "original_error": repr(original_error) if original_error else None,
        })
        self.feature_name = feature_name
        self.original_error = original_error


class ConfigurationError(MonitorError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message, details={"config_key": config_key})
        self.config_key = config_key


class SourceExhaustedError(MonitorError):
    """Raised when a sample source has no more samples to read."""

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message, details={"position": position})
        self.position = position
