"""Unit tests for display sinks."""

import io
from unittest.mock import Mock

import pytest
from pubsub import pub
from rich.console import Console
from rich.panel import Panel

from livescribe.transcription.aggregator import TranscriptAggregator
from livescribe.ui.display import (
    DISPLAY_TOPIC,
    DisplaySink,
    PubSubDisplaySink,
    RecordingDisplaySink,
    RichDisplaySink,
    mark_preview,
)


def make_console():
    return Console(file=io.StringIO(), width=80, color_system=None, force_terminal=False)


@pytest.mark.unit
class TestMarkPreview:

    def test_default_style(self):
        assert mark_preview("how") == "[dim italic]how[/dim italic]"

    def test_custom_style(self):
        assert mark_preview("how", style="grey50") == "[grey50]how[/grey50]"

    def test_escapes_markup_in_text(self):
        assert mark_preview("a[b]") == "[dim italic]a\\[b][/dim italic]"


@pytest.mark.unit
class TestRichDisplaySink:

    def test_prints_rendered_markup_without_live(self):
        console = make_console()
        sink = RichDisplaySink(console, title="Test")
        sink.set_text("hello \n" + mark_preview("wor"))

        output = console.file.getvalue()
        assert "hello" in output
        assert "wor" in output
        assert "[dim italic]" not in output
        assert sink.text.startswith("hello")

    def test_invalid_markup_falls_back_to_plain_text(self):
        console = make_console()
        sink = RichDisplaySink(console)
        sink.set_text("closing [/bold] tag")
        assert "closing [/bold] tag" in console.file.getvalue()

    def test_updates_attached_live_display(self):
        live = Mock()
        sink = RichDisplaySink(make_console())
        sink.attach(live)
        sink.set_text("live text")

        assert live.update.call_count == 2
        assert isinstance(live.update.call_args.args[0], Panel)

    def test_detached_sink_prints_again(self):
        console = make_console()
        sink = RichDisplaySink(console)
        sink.attach(Mock())
        sink.attach(None)
        sink.set_text("printed")
        assert "printed" in console.file.getvalue()

    @pytest.mark.parametrize("phrase", ["press [enter] now", "see [/b] here"])
    def test_bracketed_speech_renders_literally(self, phrase):
        sink = RichDisplaySink(make_console())
        aggregator = TranscriptAggregator(display_sink=sink)
        aggregator.on_final(phrase)
        aggregator.on_partial("how")

        console = make_console()
        console.print(sink.render(sink.text))
        output = console.file.getvalue()
        assert phrase in output
        assert "how" in output
        assert "[dim italic]" not in output


@pytest.mark.unit
class TestOtherSinks:

    def test_recording_sink_keeps_history(self):
        sink = RecordingDisplaySink()
        assert sink.text == ""
        sink.set_text("a")
        sink.set_text("b")
        assert sink.history == ["a", "b"]
        assert sink.text == "b"

    def test_pubsub_sink_publishes_text(self):
        received = []

        class Listener:
            def on_text(self, text):
                received.append(text)

        listener = Listener()
        pub.subscribe(listener.on_text, DISPLAY_TOPIC)
        PubSubDisplaySink().set_text("broadcast")
        assert received == ["broadcast"]

    @pytest.mark.parametrize("sink", [RecordingDisplaySink(), PubSubDisplaySink(), RichDisplaySink(make_console())])
    def test_sinks_satisfy_protocol(self, sink):
        assert isinstance(sink, DisplaySink)
