"""Livescribe - live transcription text aggregator."""

__version__ = "0.1.0"
