"""
Utility modules for configuration, logging, and error handling.
"""

from infant_monitor.utils.errors import (
    MonitorError,
    AudioDecodeError,
    UnsupportedFormatError,
    FileTooLargeError,
    SampleBufferError,
    FeatureExtractionError,
    ConfigurationError,
    SourceExhaustedError,
)
from infant_monitor.utils.logging import (
    get_logger,
    setup_logging,
    setup_logging_from_config,
    create_logger_with_context,
    JSONFormatter,
)
from infant_monitor.utils.config import ConfigManager, load_config, get_default_config

__all__ = [
    "MonitorError",
    "AudioDecodeError",
    "UnsupportedFormatError",
    "FileTooLargeError",
    "SampleBufferError",
    "FeatureExtractionError",
    "ConfigurationError",
    "SourceExhaustedError",
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
    "create_logger_with_context",
    "JSONFormatter",
    "ConfigManager",
    "load_config",
    "get_default_config",
]
