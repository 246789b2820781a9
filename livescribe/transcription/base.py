"""Abstract base classes for transcription backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional
import logging
import threading

from ..models.transcription import CompletionCause, ConfidenceLevel

logger = logging.getLogger(__name__)


PartialHandler = Callable[[str], None]
FinalHandler = Callable[[str, Optional[ConfidenceLevel]], None]
CompletedHandler = Callable[[CompletionCause], None]
ErrorHandler = Callable[[str, int], None]


@dataclass
class BackendHandlers:
    """Set of callbacks a subscriber attaches to a backend."""
    on_partial: Optional[PartialHandler] = None
    on_final: Optional[FinalHandler] = None
    on_completed: Optional[CompletedHandler] = None
    on_error: Optional[ErrorHandler] = None


class BackendSubscription:
    """Handle returned by AbstractTranscriptionBackend.subscribe().

    Releasing it detaches every handler it registered. Release is idempotent
    and may be called from inside one of the handlers.
    """

    def __init__(self, backend: "AbstractTranscriptionBackend", handlers: BackendHandlers):
        self.backend = backend
        self.handlers = handlers
        self._released = False

    @property
    def active(self) -> bool:
        return not self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self.backend._detach(self)

    def __enter__(self) -> "BackendSubscription":
        return self

    def __exit__(self, *args) -> None:
        self.release()


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for streaming transcription backends.

    Subclasses implement start()/stop() and report results with the
    ``_emit_*`` helpers. Events may be emitted from any thread; handlers run
    on the emitting thread.
    """

    service_name = "abstract"

    def __init__(self, language: str = "en-US"):
        """Initialize backend with language preference."""
        self.language = language
        self._subscriptions: List[BackendSubscription] = []
        self._subscriptions_lock = threading.RLock()

    @abstractmethod
    def start(self) -> None:
        """Begin (or resume) producing transcription events.

        Called again by the aggregator after a natural completion.
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Request the backend to stop producing events."""
        pass

    @property
    def is_running(self) -> bool:
        """Whether the backend is currently producing events."""
        return False

    def close(self) -> None:
        """Release backend resources. The instance is not reused afterwards."""
        pass

    def subscribe(self, handlers: BackendHandlers) -> BackendSubscription:
        """Attach a set of handlers and return the handle that detaches them."""
        subscription = BackendSubscription(self, handlers)
        with self._subscriptions_lock:
            self._subscriptions.append(subscription)
        logger.debug(f"{self.service_name}: subscriber attached ({len(self._subscriptions)} total)")
        return subscription

    @property
    def subscriber_count(self) -> int:
        with self._subscriptions_lock:
            return len(self._subscriptions)

    def _detach(self, subscription: BackendSubscription) -> None:
        with self._subscriptions_lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
        logger.debug(f"{self.service_name}: subscriber detached")

    def _dispatch(self, handler_name: str, *args) -> None:
        with self._subscriptions_lock:
            snapshot = list(self._subscriptions)
        for subscription in snapshot:
            # Re-checked per subscriber so a release mid-dispatch takes effect
            if not subscription.active:
                continue
            handler = getattr(subscription.handlers, handler_name)
            if handler:
                handler(*args)

    def _emit_partial(self, text: str) -> None:
        self._dispatch("on_partial", text)

    def _emit_final(self, text: str, confidence: Optional[ConfidenceLevel] = None) -> None:
        self._dispatch("on_final", text, confidence)

    def _emit_completed(self, cause: CompletionCause) -> None:
        self._dispatch("on_completed", cause)

    def _emit_error(self, message: str, code: int = 0) -> None:
        self._dispatch("on_error", message, code)
