"""
Health classifiers for the Infant Health Monitor.

``Classifier`` is the contract any model must satisfy; ``ThresholdClassifier``
is the placeholder rule shipped until a trained model replaces it.
"""

import logging
from typing import Optional, Protocol

import numpy as np

from infant_monitor.core.models import ClassificationResult, FeatureRecord, HealthStatus
from infant_monitor.core.settings import ClassifierSettings

logger = logging.getLogger(__name__)

# Confidence draw ranges, [low, high)
NORMAL_CONFIDENCE = (85.0, 100.0)
ABNORMAL_CONFIDENCE = (70.0, 90.0)


class Classifier(Protocol):
    """
    Maps a FeatureRecord to a ClassificationResult.

    Structural protocol: any object with a matching ``classify`` method
    can drive the pipeline.
    """

    def classify(self, features: FeatureRecord) -> ClassificationResult:
        ...


def coefficient_variance(coefficients) -> float:
    """
    Mean of squared coefficients.

    Not a statistical variance (no mean subtraction); kept in this form so
    the thresholds keep their meaning. An empty vector has variance 0.
    """
    values = np.asarray(coefficients, dtype=np.float64)
    if values.size == 0:
        return 0.0
    return float(np.mean(values ** 2))


class ThresholdClassifier:
    """
    Placeholder threshold rule.

    Status is NORMAL only when all three hold:

    - coefficient variance < ``variance_max``
    - zcr < ``zcr_max``
    - ``pitch_min_hz`` < pitch < ``pitch_max_hz`` (an unvoiced pitch fails)

    Confidence is drawn from ``rng``: uniform in [85, 100) for NORMAL and
    [70, 90) for ABNORMAL. It is a display value, not a probability.
    """

    def __init__(
        self,
        settings: Optional[ClassifierSettings] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.settings = settings or ClassifierSettings()
        if rng is None:
            rng = np.random.default_rng(self.settings.random_seed)
        self.rng = rng

    def status_for(self, features: FeatureRecord) -> HealthStatus:
        """Deterministic part of the rule: status without a confidence draw."""
        s = self.settings
        variance_ok = coefficient_variance(features.coefficients) < s.variance_max
        zcr_ok = features.zcr < s.zcr_max
        pitch_ok = features.is_voiced and s.pitch_min_hz < features.pitch < s.pitch_max_hz
        if variance_ok and zcr_ok and pitch_ok:
            return HealthStatus.NORMAL
        return HealthStatus.ABNORMAL

    def classify(self, features: FeatureRecord) -> ClassificationResult:
        """Classify a feature record."""
        status = self.status_for(features)
        low, high = NORMAL_CONFIDENCE if status is HealthStatus.NORMAL else ABNORMAL_CONFIDENCE
        confidence = float(self.rng.uniform(low, high))

        logger.debug(
            f"Classified {status.value} (confidence {confidence:.1f}, "
            f"zcr {features.zcr:.2f}, pitch {features.pitch})"
        )

        return ClassificationResult(
            status=status,
            confidence=confidence,
            features=features,
            variance=coefficient_variance(features.coefficients),
        )
