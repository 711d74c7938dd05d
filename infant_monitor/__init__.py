"""
Infant Health Monitor

Audio feature extraction and health classification pipeline: zero-crossing
rate, autocorrelation pitch and spectral coefficients reduced to a
Normal/Abnormal status with a confidence score. The classification rule is
a placeholder, not a validated diagnostic.
"""

__version__ = "1.0.0"
__author__ = "Infant Health Monitoring Team"
