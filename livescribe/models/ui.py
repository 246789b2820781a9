"""UI-related data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class TranscriptionStatus:
    """Status information for a transcription session."""
    session_id: Optional[str] = None
    is_active: bool = False
    duration_seconds: float = 0.0
    committed_text: str = ""
    pending_preview: str = ""
    finals_received: int = 0
    auto_restarts: int = 0
    last_error: Optional[str] = None
