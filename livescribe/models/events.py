"""Event models for pub/sub session notifications."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Any, Dict


@dataclass
class SessionEvent:
    """Session lifecycle event."""
    event_type: str  # "started", "stopped", "restarted", "warning", "error"
    session_id: Optional[str] = None
    message: str = ""
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)
