"""Transcript aggregator that relays backend events into a display sink.

The aggregator owns the committed transcript and the transient preview of the
current hypothesis. It subscribes to one backend per session, appends final
results to the committed text, and pushes the rendered text to a display sink
on every change.

Threading: all public methods, and every backend callback, must run on the
thread that owns the aggregator. Backends that emit from a worker thread need
a CallbackMarshaller (pass ``marshaller=``) whose ``drain()`` is pumped by the
owning thread.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from rich.markup import escape

from ..models.session import SessionInfo
from ..models.transcription import CompletionCause, ConfidenceLevel, SessionConfig
from ..models.ui import TranscriptionStatus
from ..ui.display import DisplaySink, mark_preview
from .base import AbstractTranscriptionBackend, BackendHandlers, BackendSubscription
from .dispatch import CallbackMarshaller, marshal_handlers
from .errors import (
    AbnormalCompletion,
    BackendRuntimeError,
    BackendStartFailure,
    BackendStopFailure,
    TranscriptionBackendError,
)
from .publisher import SessionEventPublisher

logger = logging.getLogger(__name__)

SENTENCE_ENDINGS = (". ", "! ", "? ")


class TranscriptAggregator:
    """Maintains transcript state between a transcription backend and a display sink."""

    def __init__(self,
                 display_sink: Optional[DisplaySink] = None,
                 preview_separator: str = "\n",
                 preview_formatter: Callable[[str], str] = mark_preview,
                 text_formatter: Callable[[str], str] = escape,
                 max_auto_restarts: Optional[int] = 10,
                 publisher: Optional[SessionEventPublisher] = None,
                 marshaller: Optional[CallbackMarshaller] = None):
        """Initialize transcript aggregator.

        Args:
            display_sink: Target that renders the text; updates are skipped when None
            preview_separator: Inserted between committed text and the preview
            preview_formatter: Marks up the preview text for the display sink
            text_formatter: Prepares committed text for the display sink; the
                default escapes brackets so speech is never read as markup
            max_auto_restarts: Consecutive restarts without any speech before a
                natural completion ends the session. None restarts forever.
            publisher: Optional pub/sub publisher for session lifecycle events
            marshaller: Optional marshaller for backends emitting from other threads
        """
        self.display_sink = display_sink
        self.preview_separator = preview_separator
        self.preview_formatter = preview_formatter
        self.text_formatter = text_formatter
        self.max_auto_restarts = max_auto_restarts
        self.publisher = publisher
        self.marshaller = marshaller

        self._segments: List[str] = []
        self._pending_preview = ""
        self._active = False
        self._backend: Optional[AbstractTranscriptionBackend] = None
        self._subscription: Optional[BackendSubscription] = None
        self._generation = 0
        self._restarts_without_speech = 0

        self.session: Optional[SessionInfo] = None
        self.last_error: Optional[TranscriptionBackendError] = None

        if display_sink is None:
            logger.warning("No display sink assigned; transcript updates will not be rendered")

    @property
    def committed_text(self) -> str:
        return "".join(self._segments)

    @property
    def pending_preview(self) -> str:
        return self._pending_preview

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def backend(self) -> Optional[AbstractTranscriptionBackend]:
        return self._backend

    def start(self, config: SessionConfig) -> bool:
        """Start a transcription session.

        Returns:
            True if a session is active after the call. On failure the error
            is logged, published and kept in ``last_error``.
        """
        if self._active:
            logger.debug("start() ignored: session already active")
            return True

        if config.clear_on_start:
            self._segments.clear()
            self._pending_preview = ""
            self._set_display("")

        session = SessionInfo(session_prefix=config.session_prefix)

        try:
            backend = config.backend()
        except Exception as e:
            return self._start_failed(session, f"Failed to create transcription backend: {e}", e)

        self._generation += 1
        subscription = backend.subscribe(self._session_handlers())

        # Prefix goes in before start() so events emitted during start land after it
        mark = len(self._segments)
        if config.session_prefix:
            self._segments.append(config.session_prefix)

        self._backend = backend
        self._subscription = subscription
        self._restarts_without_speech = 0
        self.session = session
        self._active = True

        try:
            backend.start()
        except Exception as e:
            self._active = False
            self._backend = None
            self._subscription = None
            del self._segments[mark:]
            subscription.release()
            self._close_backend(backend)
            return self._start_failed(session, f"Failed to start {backend.service_name} backend: {e}", e)

        logger.info(f"Transcription session {session.session_id} started with {backend.service_name} backend")
        self._publish("started", backend=backend.service_name)
        if config.session_prefix:
            self._set_display(self.compose_view())
        return True

    def stop(self) -> None:
        """Stop the active session. Never raises; no-op when inactive."""
        self._end_session("stopped")

    def clear(self) -> None:
        """Explicitly discard the committed text and the preview."""
        self._segments.clear()
        self._pending_preview = ""
        self._set_display("")
        logger.debug("Transcript cleared")

    def on_final(self, text: str, confidence: Optional[ConfidenceLevel] = None) -> None:
        """Commit a finalized phrase."""
        if not text:
            return
        if not text.endswith(SENTENCE_ENDINGS):
            text += " "
        logger.debug(f"Final result: '{text}' (confidence={confidence.value if confidence else 'n/a'})")
        self._note_speech(final=True)
        self._commit(text)

    def on_partial(self, text: str) -> None:
        """Replace the preview with an in-progress hypothesis."""
        self._pending_preview = text
        if text:
            self._note_speech(final=False)
        self._set_display(self.compose_view())

    def append_external(self, text: str) -> None:
        """Commit a complete string from a provider outside the backend protocol."""
        if not text:
            return
        if not text.endswith(" "):
            text += " "
        self._commit(text)

    def on_backend_completed(self, cause: CompletionCause) -> None:
        """Handle the backend finishing a recognition run."""
        if not self._active or self._backend is None:
            logger.debug(f"Completion ({cause.name}) ignored: no active session")
            return

        if not cause.is_natural:
            failure = AbnormalCompletion(cause)
            logger.warning(str(failure))
            self.last_error = failure
            self._publish("warning", message=str(failure), cause=cause.value)
            self._end_session(cause.value)
            return

        if self.max_auto_restarts is not None and self._restarts_without_speech >= self.max_auto_restarts:
            failure = AbnormalCompletion(cause)
            logger.warning(f"Backend completed {self._restarts_without_speech} times in a row "
                           f"without speech; not restarting")
            self.last_error = failure
            self._publish("warning", message="auto-restart limit reached", cause=cause.value)
            self._end_session("restart_limit")
            return

        self._restarts_without_speech += 1
        self.session.auto_restarts += 1
        try:
            self._backend.start()
        except Exception as e:
            failure = BackendStartFailure(f"Failed to restart {self._backend.service_name} backend: {e}")
            failure.__cause__ = e
            logger.error(str(failure))
            self.last_error = failure
            self._publish("error", message=str(failure))
            self._end_session("restart_failed")
            return

        logger.info(f"Backend completed naturally; restarted (restart #{self.session.auto_restarts})")
        self._publish("restarted", restarts=self.session.auto_restarts)

    def on_backend_error(self, message: str, code: int = 0) -> None:
        """Report a runtime error from the backend. State is left untouched."""
        failure = BackendRuntimeError(message, code)
        logger.error(f"Dictation error: {failure}")
        self.last_error = failure
        self._publish("error", message=str(failure), code=code)

    def compose_view(self) -> str:
        """Committed text plus the marked-up preview, if any, as pushed to the sink."""
        committed = self.text_formatter(self.committed_text)
        if not self._pending_preview:
            return committed
        return committed + self.preview_separator + self.preview_formatter(self._pending_preview)

    def get_status(self) -> TranscriptionStatus:
        session = self.session
        return TranscriptionStatus(
            session_id=session.session_id if session else None,
            is_active=self._active,
            duration_seconds=session.duration_seconds if session else 0.0,
            committed_text=self.committed_text,
            pending_preview=self._pending_preview,
            finals_received=session.finals_received if session else 0,
            auto_restarts=session.auto_restarts if session else 0,
            last_error=str(self.last_error) if self.last_error else None,
        )

    def _session_handlers(self) -> BackendHandlers:
        generation = self._generation

        def bind(fn):
            def handler(*args):
                # Drop events queued or emitted after this session ended
                if not self._active or generation != self._generation:
                    logger.debug(f"Dropping stale backend callback {fn.__name__}")
                    return
                fn(*args)
            return handler

        handlers = BackendHandlers(
            on_partial=bind(self.on_partial),
            on_final=bind(self.on_final),
            on_completed=bind(self.on_backend_completed),
            on_error=bind(self.on_backend_error),
        )
        if self.marshaller is not None:
            handlers = marshal_handlers(handlers, self.marshaller)
        return handlers

    def _note_speech(self, final: bool) -> None:
        self._restarts_without_speech = 0
        if self.session is None:
            return
        if final:
            self.session.finals_received += 1
        else:
            self.session.partials_received += 1

    def _commit(self, text: str) -> None:
        self._segments.append(text)
        self._pending_preview = ""
        self._set_display(self.compose_view())

    def _set_display(self, text: str) -> None:
        if self.display_sink is None:
            return
        self.display_sink.set_text(text)

    def _start_failed(self, session: SessionInfo, message: str, exc: Exception) -> bool:
        failure = BackendStartFailure(message)
        failure.__cause__ = exc
        logger.error(message)
        self.last_error = failure
        self.session = session
        session.end_time = datetime.now()
        session.end_reason = "start_failed"
        self._publish("error", session=session, message=message)
        return False

    def _end_session(self, reason: str) -> None:
        if not self._active:
            return
        self._active = False
        self._generation += 1
        backend, subscription = self._backend, self._subscription
        self._backend = None
        self._subscription = None

        # Detach first so events raised by stop() itself are not delivered
        if subscription is not None:
            subscription.release()
        if backend is not None:
            try:
                backend.stop()
            except Exception as e:
                self._note_stop_failure(f"Error stopping {backend.service_name} backend: {e}", e)
            self._close_backend(backend)

        if self.session is not None:
            self.session.end_time = datetime.now()
            self.session.end_reason = reason
            logger.info(f"Transcription session {self.session.session_id} ended ({reason}); "
                        f"{self.session.finals_received} final results")
        self._publish("stopped", reason=reason)

    def _close_backend(self, backend: AbstractTranscriptionBackend) -> None:
        try:
            backend.close()
        except Exception as e:
            self._note_stop_failure(f"Error releasing {backend.service_name} backend: {e}", e)

    def _note_stop_failure(self, message: str, exc: Exception) -> None:
        failure = BackendStopFailure(message)
        failure.__cause__ = exc
        logger.warning(message)
        self.last_error = failure

    def _publish(self, event_type: str, message: str = "", session: Optional[SessionInfo] = None,
                 **metadata) -> None:
        if self.publisher is None:
            return
        session = session or self.session
        try:
            self.publisher.publish(event_type,
                                   session_id=session.session_id if session else None,
                                   message=message,
                                   **metadata)
        except Exception as e:
            logger.error(f"Failed to publish '{event_type}' session event: {e}")
