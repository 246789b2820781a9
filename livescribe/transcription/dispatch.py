"""Marshal backend callbacks onto the thread that owns the aggregator.

TranscriptAggregator is not thread-safe. Backends that emit events from a
worker thread must have their handlers wrapped so the calls are queued and
later run by the owning thread via CallbackMarshaller.drain().
"""

import logging
import queue
from typing import Callable, Optional

from .base import BackendHandlers

logger = logging.getLogger(__name__)


class CallbackMarshaller:
    """Thread-safe FIFO of deferred calls, drained by the owning thread."""

    def __init__(self):
        self.call_queue = queue.Queue()

    def wrap(self, fn: Optional[Callable]) -> Optional[Callable]:
        """Return a callable that enqueues ``fn(*args)`` instead of calling it."""
        if fn is None:
            return None

        def enqueue(*args):
            self.call_queue.put((fn, args))

        return enqueue

    def drain(self, timeout: Optional[float] = None) -> int:
        """Run queued calls in order on the calling thread.

        Args:
            timeout: Seconds to wait for the first call when the queue is
                empty. None returns immediately.

        Returns:
            Number of calls executed
        """
        executed = 0
        if timeout is not None and self.call_queue.empty():
            try:
                fn, args = self.call_queue.get(timeout=timeout)
            except queue.Empty:
                return 0
            fn(*args)
            executed += 1

        while True:
            try:
                fn, args = self.call_queue.get_nowait()
            except queue.Empty:
                break
            fn(*args)
            executed += 1

        if executed:
            logger.debug(f"Drained {executed} marshaled callbacks")
        return executed

    @property
    def pending(self) -> int:
        return self.call_queue.qsize()


def marshal_handlers(handlers: BackendHandlers, marshaller: CallbackMarshaller) -> BackendHandlers:
    """Wrap every handler so it runs on the marshaller's draining thread."""
    return BackendHandlers(
        on_partial=marshaller.wrap(handlers.on_partial),
        on_final=marshaller.wrap(handlers.on_final),
        on_completed=marshaller.wrap(handlers.on_completed),
        on_error=marshaller.wrap(handlers.on_error),
    )
