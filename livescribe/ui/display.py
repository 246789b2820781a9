"""Display sinks that render the aggregator's current text."""

import logging
from typing import List, Optional, Protocol, runtime_checkable

from pubsub import pub
from rich.console import Console
from rich.errors import MarkupError
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

logger = logging.getLogger(__name__)

DISPLAY_TOPIC = "transcript.display"
DEFAULT_PREVIEW_STYLE = "dim italic"


@runtime_checkable
class DisplaySink(Protocol):
    """Anything that can render the full displayable string."""

    def set_text(self, text: str) -> None: ...


def mark_preview(text: str, style: str = DEFAULT_PREVIEW_STYLE) -> str:
    """Wrap a partial hypothesis in rich markup so it renders faded."""
    return f"[{style}]{escape(text)}[/{style}]"


class RichDisplaySink:
    """Render transcript text in a rich panel.

    Updates a ``rich.live.Live`` display when one is attached, otherwise
    prints each update to the console.
    """

    def __init__(self, console: Optional[Console] = None, title: str = "Livescribe",
                 live: Optional[Live] = None):
        self.console = console or Console()
        self.title = title
        self.live = live
        self.text = ""

    def attach(self, live: Optional[Live]) -> None:
        self.live = live
        if live is not None:
            live.update(self.render(self.text))

    def render(self, text: str) -> Panel:
        try:
            body = Text.from_markup(text)
        except MarkupError:
            # Recognized speech may contain bracketed text that is not markup
            body = Text(text)
        return Panel(body, title=self.title, border_style="bright_blue")

    def set_text(self, text: str) -> None:
        self.text = text
        renderable = self.render(text)
        if self.live is not None:
            self.live.update(renderable)
        else:
            self.console.print(renderable)


class PubSubDisplaySink:
    """Publish every display update on a pub/sub topic as ``text=``."""

    def __init__(self, topic: str = DISPLAY_TOPIC):
        self.topic = topic
        logger.info(f"PubSubDisplaySink initialized with topic: {topic}")

    def set_text(self, text: str) -> None:
        pub.sendMessage(self.topic, text=text)


class RecordingDisplaySink:
    """Keep every pushed string. Used by tests and headless hosts."""

    def __init__(self):
        self.history: List[str] = []

    @property
    def text(self) -> str:
        return self.history[-1] if self.history else ""

    def set_text(self, text: str) -> None:
        self.history.append(text)
