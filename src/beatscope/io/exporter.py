"""
Analysis serialization module.

Exports an AnalysisOutput to the JSON payload consumed by the video
composition step, or to a NumPy archive for faster reloading.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import numpy as np

from beatscope.core.aggregator import AnalysisOutput, AnalysisResult
from beatscope.core.analyzer import FeatureAnalyzer


@dataclass
class ManifestMetadata:
    """Metadata header describing how the analysis was produced."""

    sample_rate: int
    window_size: int
    hop_size: int
    total_frames: int
    schema_version: str = "1.0"


class AnalysisExporter:
    """
    Exports analysis results to JSON manifest format.

    Frames are listed under ``analysis`` with camelCase keys; the
    per-frame timbre vector is published as ``mfcc``.
    """

    def __init__(self, precision: int = 4):
        """
        Initialize the exporter.

        Args:
            precision: Decimal places for floating point values.
        """
        self.precision = precision

    def _round(self, value: float) -> Optional[float]:
        """Round to configured precision. Non-finite values become None."""
        f = float(value)
        if np.isnan(f) or np.isinf(f):
            return None
        return round(f, self.precision)

    def _build_frame(self, result: AnalysisResult) -> dict[str, Any]:
        return {
            "timestamp": self._round(result.timestamp),
            "intensity": self._round(result.intensity),
            "frequency": self._round(result.frequency),
            "beatType": result.beat_type,
            "spectralCentroid": self._round(result.spectral_centroid),
            "spectralRolloff": self._round(result.spectral_rolloff),
            "zeroCrossingRate": self._round(result.zero_crossing_rate),
            "mfcc": [self._round(c) for c in result.timbre],
        }

    def build_manifest(self, output: AnalysisOutput) -> dict[str, Any]:
        """
        Build the complete manifest dictionary.

        Args:
            output: Result of an analysis run.

        Returns:
            Manifest dictionary ready for serialization.
        """
        metadata = ManifestMetadata(
            sample_rate=output.sample_rate,
            window_size=output.params.window_size,
            hop_size=output.params.hop_size,
            total_frames=output.total_frames,
        )
        summary = output.summary

        return {
            "metadata": {
                "sampleRate": metadata.sample_rate,
                "windowSize": metadata.window_size,
                "hopSize": metadata.hop_size,
                "totalFrames": metadata.total_frames,
                "schemaVersion": metadata.schema_version,
            },
            "analysis": [self._build_frame(r) for r in output.results],
            "durationInSeconds": self._round(output.duration),
            "summary": {
                "totalBeats": summary.frame_count,
                "averageIntensity": self._round(summary.average_intensity),
                "lowBeats": summary.low_count,
                "midBeats": summary.mid_count,
                "highBeats": summary.high_count,
            },
        }

    def export_json(
        self,
        output: AnalysisOutput,
        output_path: Union[str, Path],
        indent: int = 2,
    ) -> Path:
        """
        Export manifest to JSON file.

        Args:
            output: Analysis to export.
            output_path: Path for output JSON file.
            indent: JSON indentation level.

        Returns:
            Path to written file.
        """
        manifest = self.build_manifest(output)
        output_path = Path(output_path)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(manifest, f, indent=indent)

        return output_path

    def export_numpy(
        self,
        output: AnalysisOutput,
        output_path: Union[str, Path],
    ) -> Path:
        """
        Export per-frame arrays as a compressed NumPy .npz archive.

        Args:
            output: Analysis to export.
            output_path: Path for output .npz file.

        Returns:
            Path to written file.
        """
        output_path = Path(output_path)
        results = output.results
        timbre = np.array([r.timbre for r in results], dtype=np.float64)

        np.savez_compressed(
            output_path,
            frame_index=np.array([r.frame_index for r in results], dtype=np.int64),
            timestamp=output.timestamps,
            intensity=output.intensities,
            frequency=np.array([r.frequency for r in results], dtype=np.float64),
            beat_type=np.array(output.beat_types, dtype="U4"),
            spectral_centroid=np.array([r.spectral_centroid for r in results], dtype=np.float64),
            spectral_rolloff=np.array([r.spectral_rolloff for r in results], dtype=np.float64),
            zero_crossing_rate=np.array([r.zero_crossing_rate for r in results], dtype=np.float64),
            timbre=timbre.reshape(len(results), FeatureAnalyzer.N_TIMBRE),
            sample_rate=np.array([output.sample_rate]),
            duration=np.array([output.duration]),
            total_frames=np.array([output.total_frames]),
        )

        return output_path

    def to_dict(self, output: AnalysisOutput) -> dict[str, Any]:
        """Return manifest as dictionary (for in-memory use)."""
        return self.build_manifest(output)
