"""
Result aggregation module.

Assembles per-frame records from the loudness profile and the spectral
features, and reduces them to a summary.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from beatscope.core.analyzer import FeatureAnalyzer, SpectralFeatures
from beatscope.core.framer import AnalysisParams
from beatscope.errors import ComputationError


@dataclass(frozen=True)
class AnalysisResult:
    """Acoustic features of one retained frame."""

    frame_index: int
    timestamp: float            # seconds
    intensity: float            # [0,1]
    frequency: float            # Hz, [0, sample_rate/2]
    beat_type: str              # "low" | "mid" | "high"
    spectral_centroid: float    # [0,1]
    spectral_rolloff: float     # [0,1]
    zero_crossing_rate: float   # [0,1]
    timbre: Tuple[float, ...]   # 13 coefficients


@dataclass(frozen=True)
class Summary:
    """Aggregate statistics over the retained frames."""

    frame_count: int = 0
    average_intensity: float = 0.0
    low_count: int = 0
    mid_count: int = 0
    high_count: int = 0


@dataclass(frozen=True)
class AnalysisOutput:
    """Complete, time-ascending analysis of one buffer."""

    results: Tuple[AnalysisResult, ...]
    summary: Summary
    sample_rate: int
    duration: float
    total_frames: int = 0
    params: AnalysisParams = field(default_factory=AnalysisParams)
    min_rms: float = 0.0
    max_rms: float = 0.0

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self):
        return iter(self.results)

    @property
    def timestamps(self) -> np.ndarray:
        return np.array([r.timestamp for r in self.results], dtype=np.float64)

    @property
    def intensities(self) -> np.ndarray:
        return np.array([r.intensity for r in self.results], dtype=np.float64)

    @property
    def beat_types(self) -> List[str]:
        return [r.beat_type for r in self.results]


def build_results(
    frame_indices: np.ndarray,
    timestamps: np.ndarray,
    intensity: np.ndarray,
    features: SpectralFeatures,
) -> List[AnalysisResult]:
    """
    Zip per-frame arrays into records.

    Raises:
        ComputationError: If the arrays disagree on the number of frames.
    """
    n = len(frame_indices)
    lengths = {
        "timestamps": len(timestamps),
        "intensity": len(intensity),
        "features": len(features),
        "timbre": len(features.timbre),
    }
    mismatched = {name: size for name, size in lengths.items() if size != n}
    if mismatched:
        raise ComputationError(
            f"per-frame arrays disagree with {n} frame indices: {mismatched}"
        )

    return [
        AnalysisResult(
            frame_index=int(frame_indices[i]),
            timestamp=float(timestamps[i]),
            intensity=float(intensity[i]),
            frequency=float(features.frequency[i]),
            beat_type=features.beat_types[i],
            spectral_centroid=float(features.spectral_centroid[i]),
            spectral_rolloff=float(features.spectral_rolloff[i]),
            zero_crossing_rate=float(features.zero_crossing_rate[i]),
            timbre=tuple(float(c) for c in features.timbre[i]),
        )
        for i in range(n)
    ]


def summarize(results: Sequence[AnalysisResult]) -> Summary:
    """Frame count, mean intensity and per-band counts. Empty input gives zeros."""
    if not results:
        return Summary()

    counts = {beat_type: 0 for beat_type in FeatureAnalyzer.BEAT_TYPES}
    for r in results:
        if r.beat_type not in counts:
            raise ComputationError(f"unknown beat type {r.beat_type!r}")
        counts[r.beat_type] += 1

    return Summary(
        frame_count=len(results),
        average_intensity=float(np.mean([r.intensity for r in results])),
        low_count=counts["low"],
        mid_count=counts["mid"],
        high_count=counts["high"],
    )


def aggregate(
    batches: Iterable[List[AnalysisResult]],
    sample_rate: int,
    duration: float,
    total_frames: int,
    params: Optional[AnalysisParams] = None,
    min_rms: float = 0.0,
    max_rms: float = 0.0,
) -> AnalysisOutput:
    """
    Merge result batches into one time-ascending :class:`AnalysisOutput`.

    Batches may arrive in any order; records are sorted by frame index.

    Raises:
        ComputationError: If a frame index appears twice.
    """
    results = sorted(
        (r for batch in batches for r in batch),
        key=lambda r: r.frame_index,
    )
    for prev, cur in zip(results, results[1:]):
        if cur.frame_index == prev.frame_index:
            raise ComputationError(f"frame {cur.frame_index} was analysed twice")

    return AnalysisOutput(
        results=tuple(results),
        summary=summarize(results),
        sample_rate=sample_rate,
        duration=duration,
        total_frames=total_frames,
        params=params or AnalysisParams(),
        min_rms=min_rms,
        max_rms=max_rms,
    )
