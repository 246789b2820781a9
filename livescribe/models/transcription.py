"""Transcription-related data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional


class ConfidenceLevel(Enum):
    """Confidence attached to a final result."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    REJECTED = "rejected"

    @classmethod
    def from_score(cls, score: Optional[float]) -> "ConfidenceLevel":
        """Map a provider score in [0, 1] onto a confidence level."""
        if score is None or score <= 0.0:
            return cls.REJECTED
        if score >= 0.85:
            return cls.HIGH
        if score >= 0.6:
            return cls.MEDIUM
        return cls.LOW


class CompletionCause(Enum):
    """Why a backend stopped producing results."""
    COMPLETE = "complete"
    AUDIO_QUALITY_FAILURE = "audio_quality_failure"
    CANCELED = "canceled"
    TIMEOUT_EXCEEDED = "timeout_exceeded"
    PAUSE_LIMIT_EXCEEDED = "pause_limit_exceeded"
    NETWORK_FAILURE = "network_failure"
    MICROPHONE_UNAVAILABLE = "microphone_unavailable"
    UNKNOWN_ERROR = "unknown_error"

    @property
    def is_natural(self) -> bool:
        return self is CompletionCause.COMPLETE


@dataclass
class SessionConfig:
    """Parameters for one call to TranscriptAggregator.start()."""
    # Factory called once per start; a backend class works as-is
    backend: Callable[[], Any]
    session_prefix: str = ""
    clear_on_start: bool = False

    @classmethod
    def from_config(cls, config, backend: Callable[[], Any]) -> "SessionConfig":
        """Build session parameters from the `session` section of a LivescribeConfig."""
        return cls(
            backend=backend,
            session_prefix=config.get('session.prefix', "") or "",
            clear_on_start=bool(config.get('session.clear_on_start', False)),
        )
