"""Core audio processing modules."""

from beatscope.core.analyzer import FeatureAnalyzer
from beatscope.core.decoder import AudioDecoder, SampleBuffer
from beatscope.core.normalizer import LoudnessNormalizer

__all__ = ["AudioDecoder", "FeatureAnalyzer", "LoudnessNormalizer", "SampleBuffer"]
