"""Manually driven backend for tests and hosts that feed text themselves."""

import logging
from typing import Optional

from ..models.transcription import CompletionCause, ConfidenceLevel
from .base import AbstractTranscriptionBackend

logger = logging.getLogger(__name__)


class MockTranscriptionBackend(AbstractTranscriptionBackend):
    """A backend whose events are emitted by calling its ``emit_*`` methods.

    It never produces anything on its own. ``fail_on_start``/``fail_on_stop``
    make start()/stop() raise so error paths can be exercised.
    """

    service_name = "mock"

    def __init__(self, language: str = "en-US", fail_on_start: bool = False,
                 fail_on_stop: bool = False):
        super().__init__(language)
        self.fail_on_start = fail_on_start
        self.fail_on_stop = fail_on_stop
        self.running = False
        self.closed = False
        self.start_calls = 0
        self.stop_calls = 0

    @property
    def is_running(self) -> bool:
        return self.running

    def start(self) -> None:
        self.start_calls += 1
        if self.fail_on_start:
            raise RuntimeError("mock backend refused to start")
        self.running = True
        logger.debug(f"MockTranscriptionBackend started (call #{self.start_calls})")

    def stop(self) -> None:
        self.stop_calls += 1
        if self.fail_on_stop:
            raise RuntimeError("mock backend failed to stop")
        self.running = False

    def close(self) -> None:
        self.closed = True

    def emit_partial(self, text: str) -> None:
        self._emit_partial(text)

    def emit_final(self, text: str, confidence: Optional[ConfidenceLevel] = ConfidenceLevel.HIGH) -> None:
        self._emit_final(text, confidence)

    def complete(self, cause: CompletionCause = CompletionCause.COMPLETE) -> None:
        self.running = False
        self._emit_completed(cause)

    def fail(self, message: str, code: int = 0) -> None:
        self._emit_error(message, code)
