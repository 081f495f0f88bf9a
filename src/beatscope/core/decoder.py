"""
Audio decoding module.

Turns audio files or raw 16-bit PCM into the mono float buffer the
analysis engine consumes. Decoding is the only step that touches the
filesystem or external processes; failures surface immediately as
:class:`InputError` or :class:`DecodeError` and are never retried here.
"""

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import librosa
import numpy as np

from beatscope.errors import DecodeError, InputError

logger = logging.getLogger(__name__)


PCM16_SCALE = 32768.0


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """Mono float samples in [-1, 1] tagged with their sample rate."""

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self):
        try:
            rate = int(self.sample_rate)
        except (TypeError, ValueError):
            rate = None
        if rate is None or isinstance(self.sample_rate, bool) or rate != self.sample_rate:
            raise InputError(f"sample_rate must be an integer, got {self.sample_rate!r}")
        if rate <= 0:
            raise InputError(f"sample_rate must be positive, got {rate}")

        try:
            samples = np.array(self.samples, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise InputError(f"samples are not numeric: {exc}") from exc
        if samples.ndim != 1:
            raise InputError(
                f"expected a mono (1-D) buffer, got an array of shape {samples.shape}"
            )
        if not np.all(np.isfinite(samples)):
            raise InputError("sample buffer contains NaN or infinite values")
        samples.flags.writeable = False

        object.__setattr__(self, "samples", samples)
        object.__setattr__(self, "sample_rate", rate)

    @property
    def n_samples(self) -> int:
        """Total number of samples."""
        return len(self.samples)

    @property
    def duration(self) -> float:
        """Length of the buffer in seconds."""
        return self.n_samples / self.sample_rate


class AudioDecoder:
    """
    Loads audio into a :class:`SampleBuffer`.

    Two backends are available: ``"librosa"`` decodes in-process, while
    ``"ffmpeg"`` shells out to an ffmpeg binary and reads back mono
    16-bit little-endian PCM.
    """

    BACKENDS = ("librosa", "ffmpeg")

    def __init__(self, ffmpeg_binary: str = "ffmpeg"):
        """
        Initialize the decoder.

        Args:
            ffmpeg_binary: Name or path of the ffmpeg executable.
        """
        self.ffmpeg_binary = ffmpeg_binary

    @staticmethod
    def _check_path(audio_path: Union[str, Path]) -> Path:
        path = Path(audio_path)
        if not path.is_file():
            raise InputError(f"Audio not found: {path}")
        return path

    @staticmethod
    def from_pcm16(data: bytes, sample_rate: int) -> SampleBuffer:
        """
        Decode raw mono s16le PCM.

        Args:
            data: Little-endian signed 16-bit samples.
            sample_rate: Sample rate of the PCM stream.

        Returns:
            SampleBuffer with samples divided by 32768.
        """
        if len(data) % 2:
            raise DecodeError(
                f"PCM16 stream has an odd byte count ({len(data)}); expected 2 bytes per sample"
            )
        pcm = np.frombuffer(data, dtype="<i2")
        return SampleBuffer(samples=pcm / PCM16_SCALE, sample_rate=sample_rate)

    def load_audio(
        self,
        audio_path: Union[str, Path],
        sr: Optional[int] = None,
    ) -> SampleBuffer:
        """
        Load audio from file with librosa.

        Args:
            audio_path: Path to audio file (wav, mp3, flac).
            sr: Target sample rate. None preserves original.

        Returns:
            Mono SampleBuffer.
        """
        path = self._check_path(audio_path)
        try:
            y, sr_out = librosa.load(path, sr=sr, mono=True)
        except Exception as exc:
            raise DecodeError(f"Failed to decode {path}: {exc}") from exc
        return SampleBuffer(samples=y, sample_rate=int(sr_out))

    def transcode_file(
        self,
        audio_path: Union[str, Path],
        sample_rate: Optional[int] = None,
    ) -> SampleBuffer:
        """
        Transcode a file to mono s16le PCM with ffmpeg and decode it.

        Args:
            audio_path: Path to any ffmpeg-readable audio or video file.
            sample_rate: Output sample rate. None keeps the file's own rate.

        Returns:
            Mono SampleBuffer.
        """
        path = self._check_path(audio_path)
        if shutil.which(self.ffmpeg_binary) is None:
            raise DecodeError(f"ffmpeg binary not found: {self.ffmpeg_binary}")

        if sample_rate is None:
            try:
                sample_rate = int(librosa.get_samplerate(path))
            except Exception as exc:
                raise DecodeError(f"Failed to read sample rate of {path}: {exc}") from exc

        cmd = [
            self.ffmpeg_binary,
            "-v", "error",
            "-i", str(path),
            "-ac", "1",
            "-ar", str(sample_rate),
            "-f", "s16le",
            "-acodec", "pcm_s16le",
            "-",
        ]
        logger.debug("Transcoding: %s", " ".join(cmd))

        proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        if proc.returncode != 0:
            raise DecodeError(
                f"ffmpeg failed: {proc.stderr.decode(errors='ignore')[:4000]}"
            )
        return self.from_pcm16(proc.stdout, sample_rate)

    def decode_file(
        self,
        audio_path: Union[str, Path],
        backend: str = "librosa",
        sr: Optional[int] = None,
    ) -> SampleBuffer:
        """Decode *audio_path* with the chosen backend."""
        if backend == "librosa":
            return self.load_audio(audio_path, sr=sr)
        if backend == "ffmpeg":
            return self.transcode_file(audio_path, sample_rate=sr)
        raise InputError(
            f"Unknown decode backend {backend!r}; choose one of {', '.join(self.BACKENDS)}"
        )
