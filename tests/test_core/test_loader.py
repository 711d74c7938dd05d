"""Tests for AudioLoader."""

import numpy as np
import pytest

from infant_monitor.core.loader import AudioLoader, create_audio_loader
from infant_monitor.core.models import SampleBuffer
from infant_monitor.utils.errors import (
    AudioDecodeError,
    ConfigurationError,
    FileTooLargeError,
    UnsupportedFormatError,
)


class TestLoad:
    def test_native_rate_kept(self, wav_file):
        buffer = AudioLoader().load(wav_file(seconds=0.5, sample_rate=8000))
        assert isinstance(buffer, SampleBuffer)
        assert buffer.sample_rate == 8000
        assert len(buffer) == 4000

    def test_resamples_to_target(self, wav_file):
        buffer = AudioLoader(target_sr=16000).load(wav_file(seconds=0.5, sample_rate=8000))
        assert buffer.sample_rate == 16000
        assert len(buffer) == pytest.approx(8000, abs=2)

    def test_stereo_is_downmixed(self, wav_file):
        buffer = AudioLoader().load(wav_file(channels=2))
        assert buffer.samples.ndim == 1
        assert len(buffer) == 8000

    def test_samples_in_range(self, wav_file):
        buffer = AudioLoader().load(wav_file(amplitude=0.5))
        assert np.max(np.abs(buffer.samples)) == pytest.approx(0.5, abs=0.01)

    def test_clipping_is_normalized(self, wav_file):
        path = wav_file(name="hot.wav", amplitude=2.0, subtype="FLOAT")
        buffer = AudioLoader().load(path)
        assert np.max(np.abs(buffer.samples)) == pytest.approx(1.0)

    def test_accepts_str_path(self, wav_file):
        assert len(AudioLoader().load(str(wav_file()))) == 8000

    def test_segment(self, wav_file):
        buffer = AudioLoader().load(wav_file(seconds=2.0), offset=0.5, duration=1.0)
        assert buffer.sample_rate == 8000
        assert len(buffer) == 8000


class TestProbe:
    def test_header_info(self, wav_file):
        info = AudioLoader().probe(wav_file(seconds=0.5, channels=2))
        assert info['sample_rate'] == 8000
        assert info['channels'] == 2
        assert info['frames'] == 4000
        assert info['subtype'] == "PCM_16"

    def test_unreadable_header(self, tmp_path):
        path = tmp_path / "broken.wav"
        path.write_bytes(b"not a riff header at all")
        with pytest.raises(AudioDecodeError) as exc_info:
            AudioLoader().probe(path)
        assert exc_info.value.file_path == str(path)

    def test_check_returns_path(self, wav_file):
        path = wav_file()
        assert AudioLoader().check(str(path)) == path


class TestValidation:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AudioLoader().load(tmp_path / "missing.wav")

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("not audio")
        with pytest.raises(UnsupportedFormatError) as exc_info:
            AudioLoader().load(path)
        assert exc_info.value.format == ".txt"

    def test_too_large(self, wav_file):
        with pytest.raises(FileTooLargeError) as exc_info:
            AudioLoader(max_file_size=100).load(wav_file())
        assert exc_info.value.max_size == 100

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "broken.wav"
        path.write_bytes(b"RIFF\x00\x00\x00\x00garbage-not-a-wave-file")
        with pytest.raises(AudioDecodeError):
            AudioLoader().load(path)

    def test_format_errors_are_decode_errors(self):
        assert issubclass(UnsupportedFormatError, AudioDecodeError)
        assert issubclass(FileTooLargeError, AudioDecodeError)


class TestFactory:
    def test_from_config_section(self):
        loader = create_audio_loader({
            "target_sample_rate": 22050,
            "max_file_size": 1024,
            "supported_formats": [".WAV"],
        })
        assert loader.target_sr == 22050
        assert loader.max_file_size == 1024
        assert loader.supported_suffixes == {".wav"}

    def test_defaults(self):
        loader = create_audio_loader()
        assert loader.target_sr is None
        assert ".flac" in loader.supported_suffixes

    @pytest.mark.parametrize("target_sr", [0, -8000, "fast", 22050.5])
    def test_rejects_bad_target_rate(self, target_sr):
        with pytest.raises(ConfigurationError) as exc_info:
            AudioLoader(target_sr=target_sr)
        assert exc_info.value.config_key == "audio.target_sample_rate"
