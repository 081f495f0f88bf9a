"""Serialization of analysis results."""

from beatscope.io.exporter import AnalysisExporter

__all__ = ["AnalysisExporter"]
