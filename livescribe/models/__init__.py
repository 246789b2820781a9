"""Data models for the Livescribe application."""

from .transcription import ConfidenceLevel, CompletionCause, SessionConfig
from .session import SessionInfo
from .events import SessionEvent
from .ui import TranscriptionStatus

__all__ = [
    "ConfidenceLevel",
    "CompletionCause",
    "SessionConfig",
    "SessionInfo",
    "SessionEvent",
    "TranscriptionStatus",
]
