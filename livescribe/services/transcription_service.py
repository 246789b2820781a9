"""Transcription service that wires a configured backend into the aggregator."""

import functools
import logging
from typing import Callable, Optional

from ..config import LivescribeConfig
from ..models.transcription import SessionConfig
from ..transcription import (
    AbstractTranscriptionBackend,
    CallbackMarshaller,
    GoogleStreamingBackend,
    RawAudioSource,
    ReplayTranscriptionBackend,
    SessionEventPublisher,
    TranscriptAggregator,
)
from ..transcription.publisher import SESSION_TOPIC
from ..ui.display import DEFAULT_PREVIEW_STYLE, DisplaySink, mark_preview

logger = logging.getLogger(__name__)

BACKEND_TYPES = ("replay", "google")


class TranscriptionService:
    """Service that selects the backend from config and manages session lifecycle.

    Backend callbacks are marshaled; the owning thread must call pump()
    regularly for results to reach the aggregator.
    """

    def __init__(self, config: LivescribeConfig, display_sink: Optional[DisplaySink] = None):
        """Initialize transcription service.

        Args:
            config: Application configuration
            display_sink: Where transcript text is rendered
        """
        self.config = config
        self.marshaller = CallbackMarshaller()
        self.publisher = SessionEventPublisher(SESSION_TOPIC)
        self._audio_source: Optional[RawAudioSource] = None

        preview_style = config.get('display.preview_style', DEFAULT_PREVIEW_STYLE)
        self.aggregator = TranscriptAggregator(
            display_sink=display_sink,
            preview_separator=config.get('display.preview_separator', "\n"),
            preview_formatter=functools.partial(mark_preview, style=preview_style),
            max_auto_restarts=config.get('session.max_auto_restarts', 10),
            publisher=self.publisher,
            marshaller=self.marshaller,
        )

    def create_backend_factory(self, backend_type: Optional[str] = None) -> Callable[[], AbstractTranscriptionBackend]:
        """Return the factory for the configured (or given) backend type."""
        backend_type = backend_type or self.config.get('backend.type', 'replay')
        if backend_type == "replay":
            return self._create_replay_backend
        if backend_type == "google":
            return self._create_google_backend
        raise ValueError(f"Unknown backend type '{backend_type}' (expected one of {', '.join(BACKEND_TYPES)})")

    def start_session(self, backend_type: Optional[str] = None) -> bool:
        """Start a session with the selected backend.

        Returns:
            True if the session is active
        """
        session_config = SessionConfig.from_config(self.config, self.create_backend_factory(backend_type))
        started = self.aggregator.start(session_config)
        if not started:
            logger.error(f"Transcription session failed to start: {self.aggregator.last_error}")
        return started

    def stop_session(self) -> None:
        self.aggregator.stop()
        # Anything still queued belongs to the finished session and is dropped
        self.marshaller.drain()

    def pump(self, timeout: Optional[float] = None) -> int:
        """Deliver queued backend callbacks on the calling thread."""
        return self.marshaller.drain(timeout=timeout)

    def _create_replay_backend(self) -> ReplayTranscriptionBackend:
        script_path = self.config.get('replay.script_path')
        if not script_path:
            raise ValueError("Replay script path not configured in livescribe.yaml")
        word_delay = self.config.get('replay.word_delay_seconds', 0.15)

        logger.info(f"Creating replay backend from {script_path}")
        return ReplayTranscriptionBackend.from_file(script_path, word_delay_seconds=word_delay)

    def _create_google_backend(self) -> GoogleStreamingBackend:
        credentials_path = self.config.get_google_credentials_path()
        language = self.config.get('google_cloud.language', 'en-US')
        enable_punctuation = self.config.get('google_cloud.enable_automatic_punctuation', True)
        sample_rate = self.config.get('google_cloud.sample_rate', 16000)

        if self._audio_source is None:
            audio_file = self.config.get('google_cloud.audio_file')
            if not audio_file:
                raise ValueError("google_cloud.audio_file not configured in livescribe.yaml")
            self._audio_source = RawAudioSource(
                audio_file,
                chunk_size=self.config.get('google_cloud.chunk_size', 1024),
                sample_rate=sample_rate,
                realtime=self.config.get('google_cloud.realtime', True),
            )

        logger.info("Creating Google streaming backend...")
        logger.debug(f"Config: language={language}, punctuation={enable_punctuation}, sample_rate={sample_rate}")
        return GoogleStreamingBackend(
            credentials_path=credentials_path,
            audio_source=self._audio_source,
            sample_rate=sample_rate,
            language=language,
            enable_automatic_punctuation=enable_punctuation,
        )
