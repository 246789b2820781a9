"""Display targets for transcript text."""

from .display import (
    DisplaySink,
    RichDisplaySink,
    PubSubDisplaySink,
    RecordingDisplaySink,
    mark_preview,
)

__all__ = [
    "DisplaySink",
    "RichDisplaySink",
    "PubSubDisplaySink",
    "RecordingDisplaySink",
    "mark_preview",
]
