"""
Monitoring pipeline for the Infant Health Monitor.

Composes extraction, classification and pitch history into one ``tick``.
"""

import threading
import time
import uuid
from typing import Any, Dict, Optional, Tuple

import numpy as np

from infant_monitor.core.aggregator import StreamingAggregator
from infant_monitor.core.classifier import Classifier, ThresholdClassifier
from infant_monitor.core.features import FeatureExtractor
from infant_monitor.core.models import ClassificationResult, SampleBuffer
from infant_monitor.core.settings import PipelineSettings
from infant_monitor.utils.logging import create_logger_with_context


class MonitoringPipeline:
    """
    Extract -> classify -> record pitch, once per tick.

    Design:
    - Dependency Injection: extractor, classifier and aggregator are passed in
    - Serialized ticks: a lock makes each tick's history update complete
      before the next tick starts
    - Errors propagate: a failed extraction raises and leaves the history
      untouched
    """

    def __init__(
        self,
        extractor: FeatureExtractor,
        classifier: Classifier,
        aggregator: StreamingAggregator,
        settings: Optional[PipelineSettings] = None,
        session_id: Optional[str] = None,
    ):
        """
        Initialize pipeline.

        Args:
            extractor: Feature extractor
            classifier: Any object satisfying the Classifier protocol
            aggregator: Pitch history owned by this pipeline
            settings: Settings the pipeline was built from (for reporting)
            session_id: Identifier attached to log records
        """
        self.extractor = extractor
        self.classifier = classifier
        self.aggregator = aggregator
        self.settings = settings or PipelineSettings()
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.logger = create_logger_with_context(
            'infant_monitor.pipeline', {'session_id': self.session_id}
        )
        self._lock = threading.Lock()
        self._tick_count = 0
        self._last_result: Optional[ClassificationResult] = None

    def tick(self, buffer: SampleBuffer) -> ClassificationResult:
        """
        Run one extraction/classification step.

        Concurrent callers are serialized; each sees a consistent history.

        Raises:
            FeatureExtractionError: If feature computation fails
        """
        with self._lock:
            start_time = time.perf_counter()

            features = self.extractor.extract(buffer)
            result = self.classifier.classify(features)
            self.aggregator.push(features.pitch)

            self._tick_count += 1
            self._last_result = result

            elapsed = time.perf_counter() - start_time
            self.logger.info(
                f"Tick {self._tick_count}: {result.status.value} "
                f"({result.confidence:.1f}%) pitch={features.pitch} "
                f"zcr={features.zcr:.2f} in {elapsed * 1000:.1f}ms"
            )
            if features.insufficient_samples:
                self.logger.warning(
                    f"Tick {self._tick_count} used a short buffer ({len(buffer)} samples)"
                )
            return result

    @property
    def history(self) -> Tuple[Optional[float], ...]:
        """Pitch history, oldest first."""
        with self._lock:
            return self.aggregator.history()

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def last_result(self) -> Optional[ClassificationResult]:
        return self._last_result

    def reset(self) -> None:
        """Clear per-session state (history, counters)."""
        with self._lock:
            self.aggregator.clear()
            self._tick_count = 0
            self._last_result = None
            self.logger.info("Session state reset")

    def to_dict(self) -> Dict[str, Any]:
        """Summary of the session for reporting."""
        with self._lock:
            return {
                'session_id': self.session_id,
                'tick_count': self._tick_count,
                'extraction_mode': self.extractor.mode.value,
                'pitch_history': self.aggregator.to_dict(),
                'last_result': self._last_result.to_dict() if self._last_result else None,
            }


def create_pipeline(
    config: Dict[str, Any],
    seed: Optional[int] = None,
    session_id: Optional[str] = None,
) -> MonitoringPipeline:
    """
    Factory function to create a fully configured pipeline.

    Args:
        config: Configuration dict (see ``get_default_config``)
        seed: Random seed; overrides ``classifier.random_seed`` when given
        session_id: Optional session identifier for logs

    Returns:
        MonitoringPipeline: Configured pipeline

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    settings = PipelineSettings.from_config(config)
    if seed is None:
        seed = settings.classifier.random_seed

    # Independent streams so the coefficient draw never shifts confidence draws
    extractor_seq, classifier_seq = np.random.SeedSequence(seed).spawn(2)

    extractor = FeatureExtractor(settings.extraction, rng=np.random.default_rng(extractor_seq))
    classifier = ThresholdClassifier(settings.classifier, rng=np.random.default_rng(classifier_seq))
    aggregator = StreamingAggregator(settings.monitor.history_length)

    return MonitoringPipeline(
        extractor=extractor,
        classifier=classifier,
        aggregator=aggregator,
        settings=settings,
        session_id=session_id,
    )
