"""Unit tests for TranscriptionService backend selection and session control."""

import pytest

from livescribe.config import LivescribeConfig
from livescribe.services.transcription_service import TranscriptionService
from livescribe.transcription.errors import BackendStartFailure
from livescribe.transcription.replay_backend import ReplayTranscriptionBackend


REPLAY_CONFIG = """
session:
  prefix: "You: "
  clear_on_start: true
  max_auto_restarts: 1
display:
  preview_style: italic
backend:
  type: replay
replay:
  script_path: dictation.txt
  word_delay_seconds: 0.0
"""


@pytest.fixture
def replay_config(write_config, tmp_path):
    (tmp_path / "dictation.txt").write_text("hello world\nhow are you?\n", encoding="utf-8")
    return LivescribeConfig(write_config(REPLAY_CONFIG))


@pytest.mark.unit
class TestTranscriptionService:

    def test_replay_session_runs_to_completion(self, replay_config, display_sink, pump_until, session_events):
        service = TranscriptionService(replay_config, display_sink)
        assert service.start_session()
        assert isinstance(service.aggregator.backend, ReplayTranscriptionBackend)

        assert pump_until(service.marshaller, lambda: not service.aggregator.is_active, timeout=5.0)
        assert service.aggregator.committed_text == "You: hello world how are you? "
        assert any("[italic]" in text for text in display_sink.history)
        assert session_events.types[0] == "started"
        assert session_events.types[-1] == "stopped"

    def test_stop_session_ends_and_flushes_queue(self, replay_config, display_sink):
        replay_config.set('replay.word_delay_seconds', 0.2)
        service = TranscriptionService(replay_config, display_sink)
        assert service.start_session()

        service.stop_session()
        assert not service.aggregator.is_active
        assert service.marshaller.pending == 0
        assert service.aggregator.committed_text == "You: "

    def test_missing_script_fails_to_start(self, write_config, display_sink, tmp_path):
        config = LivescribeConfig(write_config(REPLAY_CONFIG))
        service = TranscriptionService(config, display_sink)

        assert service.start_session() is False
        assert not service.aggregator.is_active
        error = service.aggregator.last_error
        assert isinstance(error, BackendStartFailure)
        assert isinstance(error.__cause__, FileNotFoundError)

    def test_backend_type_override(self, replay_config):
        service = TranscriptionService(replay_config)
        assert service.create_backend_factory("google") == service._create_google_backend
        assert service.create_backend_factory() == service._create_replay_backend

    def test_unknown_backend_type(self, replay_config):
        service = TranscriptionService(replay_config)
        with pytest.raises(ValueError, match="Unknown backend type"):
            service.create_backend_factory("carrier-pigeon")

    def test_google_without_credentials_fails_to_start(self, replay_config, display_sink):
        service = TranscriptionService(replay_config, display_sink)
        assert service.start_session("google") is False
        assert isinstance(service.aggregator.last_error.__cause__, ValueError)
