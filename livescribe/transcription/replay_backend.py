"""Backend that replays a script of phrases as if they were being dictated.

Each phrase is revealed word by word as partial results, then committed as a
final result. After one phrase the backend reports natural completion, the
way a dictation engine ends a recognition run after a pause, and expects to
be restarted. Once the script is exhausted every start completes at once.
"""

import logging
import threading
from pathlib import Path
from typing import Iterable, List, Optional

from ..models.transcription import CompletionCause, ConfidenceLevel
from .base import AbstractTranscriptionBackend

logger = logging.getLogger(__name__)


class ReplayTranscriptionBackend(AbstractTranscriptionBackend):
    """Replays phrases on a worker thread."""

    service_name = "replay"

    def __init__(self, lines: Iterable[str], word_delay_seconds: float = 0.15,
                 phrases_per_run: int = 1, language: str = "en-US"):
        """Initialize replay backend.

        Args:
            lines: Phrases to replay; blank lines are skipped
            word_delay_seconds: Pause between successive partial results
            phrases_per_run: Phrases emitted before each natural completion
        """
        super().__init__(language)
        self.pending: List[str] = [line.strip() for line in lines if line.strip()]
        self.word_delay_seconds = word_delay_seconds
        self.phrases_per_run = max(1, phrases_per_run)
        self.thread: Optional[threading.Thread] = None
        self.stop_event = threading.Event()
        self.lock = threading.Lock()
        self.replaying = False

    @classmethod
    def from_file(cls, script_path: str, **kwargs) -> "ReplayTranscriptionBackend":
        path = Path(script_path)
        if not path.exists():
            raise FileNotFoundError(f"Replay script not found: {script_path}")
        with open(path, 'r', encoding='utf-8') as f:
            return cls(f.read().splitlines(), **kwargs)

    @property
    def is_running(self) -> bool:
        return self.replaying

    def start(self) -> None:
        with self.lock:
            if self.replaying:
                return
            self.replaying = True
        self.stop_event.clear()
        self.thread = threading.Thread(target=self._run, name="replay_backend", daemon=True)
        self.thread.start()
        logger.debug(f"Replay backend started; {len(self.pending)} phrases left")

    def stop(self) -> None:
        self.stop_event.set()

    def close(self) -> None:
        self.stop_event.set()
        thread = self.thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)
            if thread.is_alive():
                logger.warning("Replay backend thread did not terminate cleanly")
        self.thread = None

    def _next_phrase(self) -> Optional[str]:
        with self.lock:
            return self.pending.pop(0) if self.pending else None

    def _run(self) -> None:
        cause = CompletionCause.COMPLETE
        for _ in range(self.phrases_per_run):
            phrase = self._next_phrase()
            if phrase is None:
                break
            if not self._replay_phrase(phrase):
                break
        if self.stop_event.is_set():
            cause = CompletionCause.CANCELED
        # Cleared before emitting so a restart from the handler is accepted
        with self.lock:
            self.replaying = False
        self._emit_completed(cause)

    def _replay_phrase(self, phrase: str) -> bool:
        words = phrase.split()
        for count in range(1, len(words)):
            if self.stop_event.wait(self.word_delay_seconds):
                return False
            self._emit_partial(" ".join(words[:count]))
        if self.stop_event.wait(self.word_delay_seconds):
            return False
        self._emit_final(phrase, ConfidenceLevel.HIGH)
        return True
