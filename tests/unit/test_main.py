"""Unit tests for the console entry point helpers."""

import logging

import pytest

from livescribe.config import LivescribeConfig
from livescribe.main import Server, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
class TestSetupLogging:

    def test_file_and_console_handlers(self, write_config, tmp_path, restore_root_logger):
        config = LivescribeConfig(write_config("logging:\n  file_path: logs/app.log\n  console_output: true\n"))
        setup_logging(config, "DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2
        assert (tmp_path / "logs" / "app.log").exists()

    def test_console_output_disabled(self, write_config, restore_root_logger):
        config = LivescribeConfig(write_config("logging:\n  file_path: app.log\n  console_output: false\n"))
        setup_logging(config, "WARNING")

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], logging.FileHandler)


@pytest.mark.unit
def test_server_runs_replay_session_for_duration(write_config, tmp_path, restore_root_logger):
    (tmp_path / "dictation.txt").write_text("hello world\n", encoding="utf-8")
    path = write_config(
        "session:\n  prefix: 'You: '\n  max_auto_restarts: 0\n"
        "replay:\n  script_path: dictation.txt\n  word_delay_seconds: 0.0\n"
        "logging:\n  file_path: app.log\n  console_output: false\n"
    )
    server = Server(path)
    server.init("replay")

    assert server.run(duration=5)
    aggregator = server.transcription_service.aggregator
    assert not aggregator.is_active
    assert aggregator.committed_text == "You: hello world "
    assert aggregator.session.end_reason == "restart_limit"
