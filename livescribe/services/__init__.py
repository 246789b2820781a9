"""Services layer for Livescribe application logic."""

from .transcription_service import TranscriptionService

__all__ = [
    "TranscriptionService",
]
