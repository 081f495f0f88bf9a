"""
Analysis pipeline.

Wires the framer, loudness normalizer, feature analyzer and aggregator
into a single call:

    framer -> RMS pass -> global min/max -> normalize + gate
           -> FFT -> {classifier, shape, timbre} -> aggregator
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

import numpy as np

from beatscope.core.aggregator import AnalysisOutput, aggregate, build_results
from beatscope.core.analyzer import FeatureAnalyzer
from beatscope.core.decoder import AudioDecoder, SampleBuffer
from beatscope.core.framer import (
    DEFAULT_HOP_SIZE,
    DEFAULT_WINDOW_SIZE,
    AnalysisParams,
    frame_signal,
    frame_times,
)
from beatscope.core.normalizer import DEFAULT_GATE_THRESHOLD, LoudnessNormalizer
from beatscope.io.exporter import AnalysisExporter

logger = logging.getLogger(__name__)


def analyze_buffer(
    buffer: SampleBuffer,
    params: Optional[AnalysisParams] = None,
    gate_threshold: float = DEFAULT_GATE_THRESHOLD,
    batch_size: int = 256,
) -> AnalysisOutput:
    """
    Analyse a decoded buffer.

    Pure function of its inputs: no state is kept between calls and the
    buffer is never modified.

    Args:
        buffer: Mono samples and sample rate.
        params: Frame geometry (defaults: 2048 / 512).
        gate_threshold: Minimum normalized intensity for a frame to be kept.
        batch_size: Frames transformed per FFT batch.

    Returns:
        AnalysisOutput with retained frames in ascending time order.
    """
    params = params or AnalysisParams()
    batch_size = max(1, int(batch_size))

    normalizer = LoudnessNormalizer(gate_threshold=gate_threshold, batch_size=batch_size)
    loudness = normalizer.profile(buffer.samples, params)
    retained = loudness.retained_indices

    frames = frame_signal(buffer.samples, params)
    analyzer = FeatureAnalyzer(sample_rate=buffer.sample_rate, window_size=params.window_size)

    batches = []
    for start in range(0, len(retained), batch_size):
        indices = retained[start:start + batch_size]
        features = analyzer.analyze(frames[indices])
        batches.append(
            build_results(
                frame_indices=indices,
                timestamps=frame_times(indices, buffer.sample_rate, params.hop_size),
                intensity=loudness.intensity[indices],
                features=features,
            )
        )

    output = aggregate(
        batches,
        sample_rate=buffer.sample_rate,
        duration=buffer.duration,
        total_frames=loudness.n_frames,
        params=params,
        min_rms=loudness.min_rms,
        max_rms=loudness.max_rms,
    )

    logger.info(
        "Analysed %.2fs of audio: %d frames, %d retained (low=%d mid=%d high=%d)",
        buffer.duration,
        output.total_frames,
        output.summary.frame_count,
        output.summary.low_count,
        output.summary.mid_count,
        output.summary.high_count,
    )
    return output


def analyze_audio(
    samples: np.ndarray,
    sample_rate: int,
    window_size: int = DEFAULT_WINDOW_SIZE,
    hop_size: int = DEFAULT_HOP_SIZE,
) -> AnalysisOutput:
    """
    Analyse mono float samples in [-1, 1].

    Raises:
        InputError: On a non power-of-two window, a bad hop size or sample
            rate, or samples that are not a finite 1-D array.
    """
    params = AnalysisParams(window_size=window_size, hop_size=hop_size)
    buffer = SampleBuffer(samples=samples, sample_rate=sample_rate)
    return analyze_buffer(buffer, params)


class AudioPipeline:
    """
    End-to-end pipeline from an audio file to a serializable analysis.

    Decoding happens once per call; the pipeline itself keeps no results.
    """

    def __init__(
        self,
        window_size: int = DEFAULT_WINDOW_SIZE,
        hop_size: int = DEFAULT_HOP_SIZE,
        batch_size: int = 256,
        backend: str = "librosa",
        precision: int = 4,
        gate_threshold: float = DEFAULT_GATE_THRESHOLD,
    ):
        """
        Initialize the pipeline.

        Args:
            window_size: FFT window size, a power of two.
            hop_size: Samples between frame starts.
            batch_size: Frames transformed per FFT batch.
            backend: Decode backend, "librosa" or "ffmpeg".
            precision: Decimal places in exported JSON.
            gate_threshold: Minimum normalized intensity to keep a frame.
        """
        self.params = AnalysisParams(window_size=window_size, hop_size=hop_size)
        self.batch_size = batch_size
        self.backend = backend
        self.gate_threshold = gate_threshold
        self.decoder = AudioDecoder()
        self.exporter = AnalysisExporter(precision=precision)

    def analyze(self, buffer: SampleBuffer) -> AnalysisOutput:
        """Analyse an already-decoded buffer."""
        return analyze_buffer(
            buffer,
            self.params,
            gate_threshold=self.gate_threshold,
            batch_size=self.batch_size,
        )

    def process(self, audio_path: Union[str, Path]) -> dict[str, Any]:
        """
        Decode and analyse an audio file.

        Args:
            audio_path: Path to the input audio.

        Returns:
            Dict with the AnalysisOutput, its JSON-ready manifest, the
            duration and the sample rate.
        """
        logger.info("Decoding %s (backend=%s)", audio_path, self.backend)
        buffer = self.decoder.decode_file(audio_path, backend=self.backend)
        output = self.analyze(buffer)

        return {
            "output": output,
            "manifest": self.exporter.build_manifest(output),
            "duration": buffer.duration,
            "sample_rate": buffer.sample_rate,
        }

    def process_to_file(
        self,
        audio_path: Union[str, Path],
        output_path: Union[str, Path],
        indent: int = 2,
    ) -> Path:
        """Analyse *audio_path* and write the manifest as JSON."""
        result = self.process(audio_path)
        return self.exporter.export_json(result["output"], output_path, indent=indent)
