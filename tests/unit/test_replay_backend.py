"""Unit tests for ReplayTranscriptionBackend."""

import pytest

from livescribe.models.transcription import CompletionCause, SessionConfig
from livescribe.transcription.aggregator import TranscriptAggregator
from livescribe.transcription.base import BackendHandlers
from livescribe.transcription.dispatch import CallbackMarshaller, marshal_handlers
from livescribe.transcription.replay_backend import ReplayTranscriptionBackend


def recording_handlers(events):
    return BackendHandlers(
        on_partial=lambda text: events.append(("partial", text)),
        on_final=lambda text, confidence: events.append(("final", text)),
        on_completed=lambda cause: events.append(("completed", cause)),
    )


@pytest.mark.unit
class TestReplayTranscriptionBackend:

    def test_phrase_is_revealed_word_by_word(self, pump_until):
        backend = ReplayTranscriptionBackend(["one two three"], word_delay_seconds=0.0)
        marshaller = CallbackMarshaller()
        events = []
        backend.subscribe(marshal_handlers(recording_handlers(events), marshaller))

        backend.start()
        assert pump_until(marshaller, lambda: events and events[-1][0] == "completed")
        backend.close()

        assert events == [
            ("partial", "one"),
            ("partial", "one two"),
            ("final", "one two three"),
            ("completed", CompletionCause.COMPLETE),
        ]

    def test_blank_lines_are_skipped(self):
        backend = ReplayTranscriptionBackend(["", "  first  ", "\t", "second"])
        assert backend.pending == ["first", "second"]

    def test_exhausted_script_completes_immediately(self, pump_until):
        backend = ReplayTranscriptionBackend([], word_delay_seconds=0.0)
        marshaller = CallbackMarshaller()
        events = []
        backend.subscribe(marshal_handlers(recording_handlers(events), marshaller))

        backend.start()
        assert pump_until(marshaller, lambda: bool(events))
        backend.close()
        assert events == [("completed", CompletionCause.COMPLETE)]

    def test_stop_cancels_replay(self, pump_until):
        backend = ReplayTranscriptionBackend(["a b c d e f g h"], word_delay_seconds=0.5)
        marshaller = CallbackMarshaller()
        events = []
        backend.subscribe(marshal_handlers(recording_handlers(events), marshaller))

        backend.start()
        backend.stop()
        assert pump_until(marshaller, lambda: bool(events) and events[-1][0] == "completed")
        backend.close()

        assert events[-1] == ("completed", CompletionCause.CANCELED)
        assert ("final", "a b c d e f g h") not in events
        assert not backend.is_running

    def test_from_file(self, tmp_path):
        script = tmp_path / "script.txt"
        script.write_text("hello world\n\nsecond line\n", encoding="utf-8")
        backend = ReplayTranscriptionBackend.from_file(str(script), word_delay_seconds=0.0)
        assert backend.pending == ["hello world", "second line"]
        assert backend.word_delay_seconds == 0.0

    def test_from_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ReplayTranscriptionBackend.from_file(str(tmp_path / "missing.txt"))

    def test_session_runs_script_then_hits_restart_limit(self, display_sink, pump_until):
        marshaller = CallbackMarshaller()
        aggregator = TranscriptAggregator(display_sink=display_sink, max_auto_restarts=2,
                                          marshaller=marshaller)
        config = SessionConfig(
            backend=lambda: ReplayTranscriptionBackend(["hello world", "how are you?"], word_delay_seconds=0.0),
            session_prefix="You: ",
            clear_on_start=True,
        )

        assert aggregator.start(config)
        assert pump_until(marshaller, lambda: not aggregator.is_active, timeout=5.0)

        assert aggregator.committed_text == "You: hello world how are you? "
        assert aggregator.session.end_reason == "restart_limit"
        assert aggregator.session.finals_received == 2
        assert display_sink.text == "You: hello world how are you? "
        assert any("[dim italic]how[/dim italic]" in text for text in display_sink.history)
