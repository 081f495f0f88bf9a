"""Audio feature extraction for audio-reactive video."""

from beatscope.core.aggregator import AnalysisOutput, AnalysisResult, Summary
from beatscope.core.analyzer import FeatureAnalyzer
from beatscope.core.decoder import AudioDecoder, SampleBuffer
from beatscope.core.framer import AnalysisParams
from beatscope.core.normalizer import LoudnessNormalizer
from beatscope.errors import BeatscopeError, ComputationError, DecodeError, InputError
from beatscope.io.exporter import AnalysisExporter
from beatscope.pipeline import AudioPipeline, analyze_audio, analyze_buffer

__version__ = "0.1.0"
__all__ = [
    "AnalysisExporter",
    "AnalysisOutput",
    "AnalysisParams",
    "AnalysisResult",
    "AudioDecoder",
    "AudioPipeline",
    "BeatscopeError",
    "ComputationError",
    "DecodeError",
    "FeatureAnalyzer",
    "InputError",
    "LoudnessNormalizer",
    "SampleBuffer",
    "Summary",
    "analyze_audio",
    "analyze_buffer",
]
