"""Pytest configuration and fixtures for Livescribe tests."""

import pytest
import logging
import time
from pathlib import Path

from pubsub import pub

from livescribe.transcription.mock_backend import MockTranscriptionBackend
from livescribe.transcription.publisher import SESSION_TOPIC
from livescribe.ui.display import RecordingDisplaySink


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external services")


@pytest.fixture(autouse=True)
def reset_pubsub():
    """Drop every pub/sub listener registered during a test."""
    yield
    pub.unsubAll()


@pytest.fixture
def display_sink():
    """Display sink that records every update."""
    return RecordingDisplaySink()


@pytest.fixture
def backend_factory():
    """Backend factory that remembers every MockTranscriptionBackend it created."""
    created = []

    def factory():
        backend = MockTranscriptionBackend()
        created.append(backend)
        return backend

    factory.created = created
    return factory


class EventCollector:
    """Pub/sub listener that keeps received session events."""

    def __init__(self):
        self.events = []

    def on_event(self, event):
        self.events.append(event)

    @property
    def types(self):
        return [e.event_type for e in self.events]


@pytest.fixture
def session_events():
    """Collect SessionEvents published on the default session topic."""
    collector = EventCollector()
    pub.subscribe(collector.on_event, SESSION_TOPIC)
    return collector


@pytest.fixture
def write_config(tmp_path):
    """Write a YAML config file into a temp directory and return its path."""
    def write(text: str, name: str = "livescribe.yaml") -> str:
        path = Path(tmp_path) / name
        path.write_text(text, encoding="utf-8")
        return str(path)
    return write


@pytest.fixture
def pump_until():
    """Drain marshaled callbacks until predicate() holds or timeout elapses."""
    def pump(marshaller, predicate, timeout: float = 3.0) -> bool:
        deadline = time.time() + timeout
        while time.time() < deadline:
            marshaller.drain(timeout=0.05)
            if predicate():
                return True
        return predicate()
    return pump
