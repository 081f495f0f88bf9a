"""
Feature extraction module for audio analysis.

Extracts visual drivers from the magnitude spectrum of each retained frame:
dominant frequency and its coarse band, spectral centroid and rolloff,
zero-crossing rate, and a compact timbre fingerprint.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

import numpy as np
from scipy import fft as scipy_fft

from beatscope.core.fft import fft, magnitude_spectrum
from beatscope.core.framer import apply_window


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class SpectralFeatures:
    """Per-frame spectral descriptors for a batch of frames."""

    frequency: np.ndarray           # (n,) dominant frequency in Hz
    beat_types: Tuple[str, ...]     # (n,) "low" | "mid" | "high"
    spectral_centroid: np.ndarray   # (n,) [0,1]
    spectral_rolloff: np.ndarray    # (n,) [0,1]
    zero_crossing_rate: np.ndarray  # (n,) [0,1]
    timbre: np.ndarray              # (n, 13)

    def __len__(self) -> int:
        return len(self.frequency)


# ---------------------------------------------------------------------------
# Timbre filter bank
# ---------------------------------------------------------------------------

@lru_cache(maxsize=16)
def linear_filter_bank(n_bins: int, n_filters: int = 26) -> np.ndarray:
    """
    Binary, linearly spaced filter bank over *n_bins* spectrum bins.

    Filter ``j`` covers bins ``[floor(j/n·L), floor((j+2)/n·L))``, so each
    filter overlaps half of its neighbour and the last one is clipped at
    the top of the spectrum. This is a stand-in for mel spacing, which is
    logarithmic; the coefficients are a fingerprint for animation and are
    not recognition-grade MFCCs.

    Returns:
        Read-only array of shape (n_filters, n_bins).
    """
    bank = np.zeros((n_filters, n_bins), dtype=np.float64)
    for j in range(n_filters):
        start = (j * n_bins) // n_filters
        end = min(((j + 2) * n_bins) // n_filters, n_bins)
        bank[j, start:end] = 1.0
    bank.flags.writeable = False
    return bank


# ---------------------------------------------------------------------------
# Feature analyzer
# ---------------------------------------------------------------------------

class FeatureAnalyzer:
    """
    Extracts per-frame spectral features from raw frames.

    All extractors work on 2-D batches of shape (n_frames, ...) and return
    one value (or one row) per frame.
    """

    BEAT_TYPES = ("low", "mid", "high")

    # Lower bounds are inclusive
    LOW_MID_HZ = 250.0
    MID_HIGH_HZ = 2000.0

    ROLLOFF_PERCENT = 0.85
    N_FILTERS = 26
    N_TIMBRE = 13
    LOG_FLOOR = 1e-10

    def __init__(self, sample_rate: int, window_size: int):
        """
        Initialize the analyzer.

        Args:
            sample_rate: Sample rate of the analysed buffer.
            window_size: Frame length (FFT size).
        """
        self.sample_rate = sample_rate
        self.window_size = window_size

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def bin_width(self) -> float:
        """Frequency resolution in Hz."""
        return self.sample_rate / self.window_size

    def spectrum(self, windowed: np.ndarray) -> np.ndarray:
        """Magnitude spectrum (first N/2 bins) of Hann-windowed frames."""
        real, imag = fft(windowed)
        return magnitude_spectrum(real, imag)

    # ------------------------------------------------------------------
    # Frequency / beat classification
    # ------------------------------------------------------------------

    def dominant_frequency(self, magnitude: np.ndarray) -> np.ndarray:
        """Frequency of the strongest bin. The first maximum wins ties."""
        peak_bins = np.argmax(magnitude, axis=-1)
        return peak_bins * self.sample_rate / self.window_size

    @classmethod
    def classify_band(cls, frequency: float) -> str:
        """Bucket a frequency in Hz into low, mid or high."""
        if frequency < cls.LOW_MID_HZ:
            return "low"
        if frequency < cls.MID_HIGH_HZ:
            return "mid"
        return "high"

    # ------------------------------------------------------------------
    # Spectral shape
    # ------------------------------------------------------------------

    @staticmethod
    def spectral_centroid(magnitude: np.ndarray) -> np.ndarray:
        """
        Magnitude-weighted mean bin, as a fraction of the bin count.

        Zero-energy frames have centroid 0.
        """
        magnitude = np.atleast_2d(magnitude)
        n_bins = magnitude.shape[-1]
        total = np.sum(magnitude, axis=-1)
        weighted = magnitude @ np.arange(n_bins, dtype=np.float64)
        centroid = np.zeros_like(total)
        np.divide(weighted, total, out=centroid, where=total > 0)
        return centroid / n_bins

    @classmethod
    def spectral_rolloff(cls, magnitude: np.ndarray, roll_percent: Optional[float] = None) -> np.ndarray:
        """
        Fraction of the spectrum below which *roll_percent* of the
        magnitude lies.

        Returns 1.0 for frames whose threshold is never reached, which
        includes all-zero spectra.
        """
        if roll_percent is None:
            roll_percent = cls.ROLLOFF_PERCENT
        magnitude = np.atleast_2d(magnitude)
        n_bins = magnitude.shape[-1]
        cumulative = np.cumsum(magnitude, axis=-1)
        total = cumulative[:, -1]
        reached = cumulative >= (total * roll_percent)[:, None]

        first = np.argmax(reached, axis=-1).astype(np.float64)
        rolloff = first / n_bins
        never = (total <= 0) | ~np.any(reached, axis=-1)
        rolloff[never] = 1.0
        return rolloff

    @staticmethod
    def zero_crossing_rate(frames: np.ndarray) -> np.ndarray:
        """
        Fraction of adjacent sample pairs whose sign differs.

        Computed on raw frames. Zero counts as positive.
        """
        frames = np.atleast_2d(frames)
        positive = frames >= 0
        crossings = np.count_nonzero(positive[:, 1:] != positive[:, :-1], axis=-1)
        return crossings / (frames.shape[-1] - 1)

    # ------------------------------------------------------------------
    # Timbre
    # ------------------------------------------------------------------

    @classmethod
    def timbre(cls, magnitude: np.ndarray) -> np.ndarray:
        """
        Cosine transform of log filter-bank energies.

        ``coeff[c] = sum_j log(max(E[j], 1e-10)) * cos(pi*c*(j+0.5)/26)``.
        scipy's unnormalized DCT-II carries an extra factor of two.
        """
        magnitude = np.atleast_2d(magnitude)
        bank = linear_filter_bank(magnitude.shape[-1], cls.N_FILTERS)
        energies = magnitude @ bank.T
        log_energies = np.log(np.maximum(energies, cls.LOG_FLOOR))
        coeffs = scipy_fft.dct(log_energies, type=2, axis=-1) / 2.0
        return coeffs[:, : cls.N_TIMBRE]

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def analyze(self, frames: np.ndarray) -> SpectralFeatures:
        """
        Extract every spectral feature for a batch of raw frames.

        Args:
            frames: Raw (unwindowed) frames, shape (n, window_size).

        Returns:
            SpectralFeatures with one entry per frame.
        """
        frames = np.atleast_2d(frames)
        magnitude = self.spectrum(apply_window(frames))
        frequency = self.dominant_frequency(magnitude)

        return SpectralFeatures(
            frequency=frequency,
            beat_types=tuple(self.classify_band(f) for f in frequency),
            spectral_centroid=self.spectral_centroid(magnitude),
            spectral_rolloff=self.spectral_rolloff(magnitude),
            zero_crossing_rate=self.zero_crossing_rate(frames),
            timbre=self.timbre(magnitude),
        )
