"""
Core module containing data models, feature extraction, classification
and the monitoring pipeline.

Uses lazy imports for modules with heavy dependencies (librosa).
"""

# Models and settings are lightweight - import directly
from infant_monitor.core.models import (
    UNVOICED,
    ClassificationResult,
    ExtractionMode,
    FeatureRecord,
    HealthStatus,
    Outcome,
    SampleBuffer,
    ZCRNormalization,
    validate_confidence,
)
from infant_monitor.core.settings import (
    ClassifierSettings,
    ExtractionSettings,
    MonitorSettings,
    PipelineSettings,
)
from infant_monitor.core.aggregator import StreamingAggregator
from infant_monitor.core.classifier import Classifier, ThresholdClassifier

__all__ = [
    # Models (always available)
    "UNVOICED",
    "ClassificationResult",
    "ExtractionMode",
    "FeatureRecord",
    "HealthStatus",
    "Outcome",
    "SampleBuffer",
    "ZCRNormalization",
    "validate_confidence",
    "ClassifierSettings",
    "ExtractionSettings",
    "MonitorSettings",
    "PipelineSettings",
    "StreamingAggregator",
    "Classifier",
    "ThresholdClassifier",
    # Heavy modules (lazy loaded)
    "FeatureExtractor",
    "AudioLoader",
    "create_audio_loader",
    "MonitoringPipeline",
    "create_pipeline",
    "PlaybackSource",
    "SampleSource",
    "MonitoringLoop",
]


def __getattr__(name: str):
    """Lazy load modules that import librosa."""
    if name == "FeatureExtractor":
        from infant_monitor.core.features import FeatureExtractor
        return FeatureExtractor
    elif name in ("AudioLoader", "create_audio_loader"):
        from infant_monitor.core.loader import AudioLoader, create_audio_loader
        return AudioLoader if name == "AudioLoader" else create_audio_loader
    elif name in ("MonitoringPipeline", "create_pipeline"):
        from infant_monitor.core.pipeline import MonitoringPipeline, create_pipeline
        return MonitoringPipeline if name == "MonitoringPipeline" else create_pipeline
    elif name in ("PlaybackSource", "SampleSource"):
        from infant_monitor.core.source import PlaybackSource, SampleSource
        return PlaybackSource if name == "PlaybackSource" else SampleSource
    elif name == "MonitoringLoop":
        from infant_monitor.core.scheduler import MonitoringLoop
        return MonitoringLoop
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
