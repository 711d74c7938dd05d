"""
Decoding of recordings into SampleBuffers.

The loader is the decode boundary of the pipeline: whatever goes wrong
inside librosa or soundfile leaves this module as AudioDecodeError.
Multi-channel recordings are averaged to mono and the native sample rate
is kept unless a target rate is configured.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

import librosa
import numpy as np
import soundfile as sf

from infant_monitor.core.models import SampleBuffer
from infant_monitor.utils.errors import (
    AudioDecodeError,
    ConfigurationError,
    FileTooLargeError,
    UnsupportedFormatError,
)

SUPPORTED_FORMATS = ('.wav', '.flac', '.ogg', '.aiff', '.aif', '.mp3')
MAX_FILE_SIZE: int = 104857600  # 100 MB
SILENCE_RMS: float = 1e-6

PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


class AudioLoader:
    """
    Turns audio files into mono SampleBuffers.

    Holds configuration only, so one instance can serve several sessions.
    """

    def __init__(
        self,
        target_sr: Optional[int] = None,
        max_file_size: int = MAX_FILE_SIZE,
        supported_formats: Iterable[str] = SUPPORTED_FORMATS,
    ):
        """
        Args:
            target_sr: Resample to this rate; None keeps the native rate
            max_file_size: Largest accepted file, in bytes
            supported_formats: Accepted file suffixes (case-insensitive)

        Raises:
            ConfigurationError: If target_sr is not a positive integer
        """
        if target_sr is not None and (
            isinstance(target_sr, bool) or not isinstance(target_sr, int) or target_sr <= 0
        ):
            raise ConfigurationError(
                f"target_sr must be a positive integer, got {target_sr!r}",
                config_key="audio.target_sample_rate"
            )
        self.target_sr = target_sr
        self.max_file_size = max_file_size
        self.supported_suffixes = {s.lower() for s in supported_formats}

    def load(
        self,
        file_path: PathLike,
        offset: float = 0.0,
        duration: Optional[float] = None,
    ) -> SampleBuffer:
        """
        Decode a recording, or a segment of it.

        Args:
            file_path: Recording to decode
            offset: Start reading this many seconds into the file
            duration: Read at most this many seconds (None reads to the end)

        Returns:
            SampleBuffer: Mono samples in [-1, 1] at the resulting rate

        Raises:
            FileNotFoundError: File doesn't exist
            UnsupportedFormatError: Suffix not accepted
            FileTooLargeError: File exceeds the size limit
            AudioDecodeError: Decoder failed or produced no usable samples
        """
        path = self.check(file_path)
        self._describe(path)

        try:
            samples, sample_rate = librosa.load(
                str(path),
                sr=self.target_sr,
                mono=True,
                offset=offset,
                duration=duration,
                dtype=np.float32,
            )
        except Exception as e:
            raise AudioDecodeError(
                f"Failed to decode audio from {path}: {e}",
                file_path=str(path)
            ) from e

        samples = self._condition(samples, path)
        logger.info(
            f"Decoded {path.name}: {samples.shape[0]} samples at {sample_rate} Hz "
            f"({samples.shape[0] / sample_rate:.2f}s)"
        )
        return SampleBuffer(samples=samples, sample_rate=int(sample_rate))

    def check(self, file_path: PathLike) -> Path:
        """
        Preflight a path without decoding it.

        Raises:
            FileNotFoundError, UnsupportedFormatError, FileTooLargeError
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")

        suffix = path.suffix.lower()
        if suffix not in self.supported_suffixes:
            raise UnsupportedFormatError(
                f"Format {suffix or '(none)'} not supported "
                f"(accepted: {', '.join(sorted(self.supported_suffixes))})",
                format=suffix,
                file_path=str(path)
            )

        size = path.stat().st_size
        if size > self.max_file_size:
            raise FileTooLargeError(
                f"{path.name} is {size / 1048576:.1f} MB, "
                f"limit is {self.max_file_size / 1048576:.1f} MB",
                file_size=size,
                max_size=self.max_file_size,
                file_path=str(path)
            )
        return path

    def probe(self, file_path: PathLike) -> Dict[str, Any]:
        """
        Stream properties read from the header (soundfile formats only).

        Raises:
            AudioDecodeError: If soundfile cannot read the header
        """
        path = self.check(file_path)
        try:
            info = sf.info(str(path))
        except RuntimeError as e:
            raise AudioDecodeError(
                f"Cannot read stream info from {path}: {e}",
                file_path=str(path)
            ) from e
        return {
            'sample_rate': info.samplerate,
            'channels': info.channels,
            'frames': info.frames,
            'duration': info.duration,
            'subtype': info.subtype,
        }

    def _describe(self, path: Path) -> None:
        try:
            info = self.probe(path)
        except AudioDecodeError as e:
            # MP3 on older libsndfile builds decodes through librosa's fallback
            logger.debug(f"No header info for {path.name}: {e}")
            return
        logger.debug(
            f"{path.name}: {info['sample_rate']} Hz, {info['channels']} ch, {info['subtype']}"
        )

    @staticmethod
    def _condition(samples: np.ndarray, path: Path) -> np.ndarray:
        """Reject unusable decodes, warn on silence, rescale clipped audio."""
        if samples.size == 0:
            raise AudioDecodeError(f"No samples decoded from {path}", file_path=str(path))
        if not np.all(np.isfinite(samples)):
            raise AudioDecodeError(
                f"Decoded audio contains non-finite samples: {path}",
                file_path=str(path)
            )

        if np.sqrt(np.mean(np.square(samples, dtype=np.float64))) < SILENCE_RMS:
            logger.warning(f"{path.name} appears to be silent")

        peak = float(np.max(np.abs(samples)))
        if peak > 1.0:
            logger.warning(f"{path.name} clips (peak {peak:.2f}); rescaling to [-1, 1]")
            samples = samples / peak
        return samples


def create_audio_loader(config: Optional[Dict[str, Any]] = None) -> AudioLoader:
    """Build an AudioLoader from the ``audio`` configuration section."""
    config = config or {}
    return AudioLoader(
        target_sr=config.get('target_sample_rate'),
        max_file_size=config.get('max_file_size', MAX_FILE_SIZE),
        supported_formats=config.get('supported_formats', SUPPORTED_FORMATS),
    )
