"""
Loudness normalization module.

Two-pass dynamic-range normalization of per-frame RMS energy. The global
minimum and maximum are taken over every frame before any frame is
normalized.
"""

import logging
from dataclasses import dataclass

import numpy as np

from beatscope.core.framer import AnalysisParams, apply_window, frame_signal

logger = logging.getLogger(__name__)


DEFAULT_GATE_THRESHOLD = 0.05


@dataclass(frozen=True, eq=False)
class LoudnessProfile:
    """Per-frame loudness for a whole buffer."""

    rms: np.ndarray          # (n_frames,) Hann-windowed RMS
    intensity: np.ndarray    # (n_frames,) [0,1]
    retained: np.ndarray     # (n_frames,) bool, True where the gate passes
    min_rms: float
    max_rms: float

    @property
    def n_frames(self) -> int:
        return len(self.rms)

    @property
    def retained_indices(self) -> np.ndarray:
        """Ascending indices of frames that pass the gate."""
        return np.flatnonzero(self.retained)


class LoudnessNormalizer:
    """
    Maps frame RMS onto [0, 1] and gates out near-silent frames.

    Frames below the gate threshold are dropped from the output but keep
    their position in the frame index space.
    """

    def __init__(self, gate_threshold: float = DEFAULT_GATE_THRESHOLD, batch_size: int = 256):
        """
        Initialize the normalizer.

        Args:
            gate_threshold: Frames with normalized intensity strictly below
                this value are dropped.
            batch_size: Frames windowed per batch during the RMS pass.
        """
        self.gate_threshold = gate_threshold
        self.batch_size = max(1, int(batch_size))

    @staticmethod
    def frame_rms(windowed: np.ndarray) -> np.ndarray:
        """RMS of each windowed frame along the last axis."""
        return np.sqrt(np.mean(np.square(windowed), axis=-1))

    def measure(self, samples: np.ndarray, params: AnalysisParams) -> np.ndarray:
        """
        Pass 1: Hann-windowed RMS of every frame.

        Args:
            samples: 1-D sample buffer.
            params: Frame geometry.

        Returns:
            Array of shape (n_frames,).
        """
        frames = frame_signal(samples, params)
        rms = np.empty(len(frames), dtype=np.float64)
        for start in range(0, len(frames), self.batch_size):
            stop = start + self.batch_size
            rms[start:stop] = self.frame_rms(apply_window(frames[start:stop]))
        return rms

    def normalize(self, rms: np.ndarray) -> LoudnessProfile:
        """
        Pass 2: normalize against the global range and apply the gate.

        A flat level (silence or a perfectly constant signal) has no
        dynamic range; every frame then gets intensity 0 and is gated.
        """
        if len(rms) == 0:
            empty = np.zeros(0, dtype=np.float64)
            return LoudnessProfile(
                rms=empty,
                intensity=empty,
                retained=np.zeros(0, dtype=bool),
                min_rms=0.0,
                max_rms=0.0,
            )

        min_rms = float(np.min(rms))
        max_rms = float(np.max(rms))
        range_rms = max_rms - min_rms

        if range_rms > 0:
            intensity = (rms - min_rms) / range_rms
        else:
            intensity = np.zeros_like(rms)

        retained = intensity >= self.gate_threshold

        logger.debug(
            "RMS dynamic range: min=%.4f max=%.4f range=%.4f (%d/%d frames retained)",
            min_rms,
            max_rms,
            range_rms,
            int(np.count_nonzero(retained)),
            len(rms),
        )

        return LoudnessProfile(
            rms=rms,
            intensity=intensity,
            retained=retained,
            min_rms=min_rms,
            max_rms=max_rms,
        )

    def profile(self, samples: np.ndarray, params: AnalysisParams) -> LoudnessProfile:
        """Run both passes over *samples*."""
        return self.normalize(self.measure(samples, params))
