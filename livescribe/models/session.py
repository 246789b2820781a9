"""Session-related data models."""

import random
import string
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


def new_session_id() -> str:
    """Timestamp-based session ID with a random suffix (YYYYMMDD_HHMMSS_xxxx)."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
    return f"{timestamp}_{random_suffix}"


@dataclass
class SessionInfo:
    """Information about one start-to-stop transcription session."""
    session_id: str = field(default_factory=new_session_id)
    start_time: datetime = field(default_factory=datetime.now)
    session_prefix: str = ""
    finals_received: int = 0
    partials_received: int = 0
    auto_restarts: int = 0
    end_time: Optional[datetime] = None
    end_reason: Optional[str] = None

    @property
    def duration_seconds(self) -> float:
        end = self.end_time or datetime.now()
        return (end - self.start_time).total_seconds()
