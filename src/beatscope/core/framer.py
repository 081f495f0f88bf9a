"""
Windowing and framing module.

Slices a mono sample buffer into fixed-size, fixed-hop overlapping frames
and applies a symmetric Hann window ahead of the spectral transform.
"""

from dataclasses import dataclass
from functools import lru_cache

import librosa
import numpy as np
from scipy import signal as scipy_signal

from beatscope.errors import InputError


DEFAULT_WINDOW_SIZE = 2048
DEFAULT_HOP_SIZE = 512


def is_power_of_two(n: int) -> bool:
    """True when *n* is a positive integral power of two."""
    return n > 0 and (n & (n - 1)) == 0


@dataclass(frozen=True)
class AnalysisParams:
    """Frame geometry for one analysis run."""

    window_size: int = DEFAULT_WINDOW_SIZE
    hop_size: int = DEFAULT_HOP_SIZE

    def __post_init__(self):
        if not isinstance(self.window_size, (int, np.integer)) or isinstance(self.window_size, bool):
            raise InputError(f"window_size must be an integer, got {self.window_size!r}")
        if not isinstance(self.hop_size, (int, np.integer)) or isinstance(self.hop_size, bool):
            raise InputError(f"hop_size must be an integer, got {self.hop_size!r}")
        # The recursive FFT halves the frame at every level. Never pad.
        if self.window_size < 2 or not is_power_of_two(self.window_size):
            raise InputError(
                f"window_size must be a power of two >= 2, got {self.window_size}"
            )
        if self.hop_size <= 0:
            raise InputError(f"hop_size must be positive, got {self.hop_size}")
        if self.hop_size > self.window_size:
            raise InputError(
                f"hop_size ({self.hop_size}) must not exceed window_size ({self.window_size})"
            )


@dataclass(frozen=True)
class Frame:
    """Non-owning view of one analysis window."""

    index: int
    start_index: int
    length: int

    @property
    def stop_index(self) -> int:
        return self.start_index + self.length


def count_frames(n_samples: int, params: AnalysisParams) -> int:
    """
    Number of analysis frames for a buffer of *n_samples*.

    The final partial hop is never analysed, so this is one fewer than
    the number of complete windows librosa would report.
    """
    if n_samples < params.window_size:
        return 0
    return max(0, (n_samples - params.window_size) // params.hop_size)


def iter_frames(n_samples: int, params: AnalysisParams):
    """Yield a :class:`Frame` for every analysis window, in order."""
    for i in range(count_frames(n_samples, params)):
        yield Frame(index=i, start_index=i * params.hop_size, length=params.window_size)


def frame_signal(samples: np.ndarray, params: AnalysisParams) -> np.ndarray:
    """
    Slice *samples* into overlapping frames.

    Args:
        samples: 1-D sample buffer.
        params: Frame geometry.

    Returns:
        Read-only array of shape (n_frames, window_size). Rows are views
        into *samples*; nothing is copied.
    """
    n_frames = count_frames(len(samples), params)
    if n_frames == 0:
        return np.empty((0, params.window_size), dtype=np.float64)

    y = np.ascontiguousarray(samples)
    frames = librosa.util.frame(
        y,
        frame_length=params.window_size,
        hop_length=params.hop_size,
        axis=0,
    )
    frames = frames[:n_frames]
    frames.flags.writeable = False
    return frames


@lru_cache(maxsize=16)
def hann_window(window_size: int) -> np.ndarray:
    """Symmetric Hann window: ``0.5 - 0.5*cos(2*pi*k/(window_size-1))``."""
    window = scipy_signal.windows.hann(window_size, sym=True)
    window.flags.writeable = False
    return window


def apply_window(frames: np.ndarray) -> np.ndarray:
    """Multiply each frame by the Hann window. Returns a new array."""
    return frames * hann_window(frames.shape[-1])


def frame_times(frame_indices: np.ndarray, sample_rate: int, hop_size: int) -> np.ndarray:
    """Start time in seconds of each frame index."""
    return librosa.frames_to_time(frame_indices, sr=sample_rate, hop_length=hop_size)
