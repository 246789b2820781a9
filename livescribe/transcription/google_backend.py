"""Google Speech-to-Text streaming transcription backend."""

import itertools
import logging
import threading
import time
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from .base import AbstractTranscriptionBackend
from ..models.transcription import CompletionCause, ConfidenceLevel

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


class RawAudioSource:
    """Reads LINEAR16 mono PCM from a file in fixed-size chunks.

    The read position is kept between calls, so a restarted stream resumes
    where the previous one stopped instead of replaying the file.
    """

    def __init__(self, path: str, chunk_size: int = 1024, sample_rate: int = 16000,
                 realtime: bool = True):
        """
        Args:
            path: Raw PCM file (16-bit little-endian, mono)
            chunk_size: Samples per chunk
            sample_rate: Sample rate in Hz, used for realtime pacing
            realtime: Sleep between chunks to mimic a live stream
        """
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")
        self.chunk_bytes = chunk_size * 2
        self.sample_rate = sample_rate
        self.realtime = realtime
        self.offset = 0

    def __call__(self) -> Iterator[bytes]:
        return self._chunks()

    def _chunks(self) -> Iterator[bytes]:
        with open(self.path, 'rb') as f:
            f.seek(self.offset)
            while True:
                chunk = f.read(self.chunk_bytes)
                if not chunk:
                    return
                self.offset += len(chunk)
                yield chunk
                if self.realtime:
                    time.sleep(len(chunk) / (self.sample_rate * 2))


class GoogleStreamingBackend(AbstractTranscriptionBackend):
    """Google Speech-to-Text streaming recognition with interim results."""

    service_name = "Google Speech-to-Text"

    def __init__(self,
                 credentials_path: Optional[str],
                 audio_source: Callable[[], Iterable[bytes]],
                 sample_rate: int = 16000,
                 language: str = "en-US",
                 enable_automatic_punctuation: bool = True):
        """Initialize Google streaming backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            audio_source: Called on every start; returns LINEAR16 chunks to stream
            sample_rate: Sample rate of the audio in Hz
            language: Language code (e.g., 'en-US', 'es-ES')
            enable_automatic_punctuation: Enable automatic punctuation
        """
        super().__init__(language)
        self.credentials_path = credentials_path
        if not self.credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")
        self.audio_source = audio_source
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.client = None
        self.project_id = None
        self.thread: Optional[threading.Thread] = None
        self.stop_event = threading.Event()
        self.streaming = False
        self.streaming_config = speech.StreamingRecognitionConfig(
            config=speech.RecognitionConfig(
                encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
                sample_rate_hertz=sample_rate,
                language_code=self.language,
                enable_automatic_punctuation=self.enable_automatic_punctuation,
            ),
            interim_results=True,
        )

    def initialize(self) -> None:
        """Create the Speech client from the service account file."""
        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
        self.client = speech.SpeechClient(credentials=credentials)
        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")

    @property
    def is_running(self) -> bool:
        return self.streaming

    def start(self) -> None:
        if self.client is None:
            self.initialize()
        if self.streaming:
            return
        self.streaming = True
        self.stop_event.clear()
        self.thread = threading.Thread(target=self._stream_loop, name="google_stream", daemon=True)
        self.thread.start()
        logger.info("Google streaming recognition started")

    def stop(self) -> None:
        self.stop_event.set()

    def close(self) -> None:
        self.stop_event.set()
        thread = self.thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5.0)
            if thread.is_alive():
                logger.warning("Google streaming thread did not terminate cleanly")
        self.thread = None
        self.client = None

    def _requests(self, chunks: Iterable[bytes]) -> Iterator[speech.StreamingRecognizeRequest]:
        for chunk in chunks:
            if self.stop_event.is_set():
                return
            yield speech.StreamingRecognizeRequest(audio_content=chunk)

    def _stream_loop(self) -> None:
        try:
            chunks = iter(self.audio_source())
            first = next(chunks, None)
        except Exception as e:
            logger.error(f"Failed to read audio source: {e}")
            self._emit_error(f"Failed to read audio source: {e}", 0)
            self._finish(CompletionCause.MICROPHONE_UNAVAILABLE)
            return
        if first is None:
            logger.warning("Audio source produced no audio; ending recognition")
            self._finish(CompletionCause.MICROPHONE_UNAVAILABLE)
            return

        try:
            responses = self.client.streaming_recognize(
                config=self.streaming_config,
                requests=self._requests(itertools.chain([first], chunks)),
            )
            for response in responses:
                self._handle_response(response)
        except gax_exceptions.DeadlineExceeded as e:
            self._report_api_error("Google STT stream deadline exceeded", e, CompletionCause.TIMEOUT_EXCEEDED)
            return
        except gax_exceptions.ServiceUnavailable as e:
            self._report_api_error("Google STT service unavailable", e, CompletionCause.NETWORK_FAILURE)
            return
        except gax_exceptions.GoogleAPICallError as e:
            self._report_api_error("Google STT API call error", e, CompletionCause.UNKNOWN_ERROR)
            return
        except Exception as e:
            logger.error(f"Unhandled exception in Google stream: {e}", exc_info=True)
            self._emit_error(f"Unhandled exception in Google stream: {e}", 0)
            self._finish(CompletionCause.UNKNOWN_ERROR)
            return

        if self.stop_event.is_set():
            self._finish(CompletionCause.CANCELED)
        else:
            logger.debug("Google stream ended naturally")
            self._finish(CompletionCause.COMPLETE)

    def _finish(self, cause: CompletionCause) -> None:
        # Cleared before emitting so a restart from the handler is accepted
        self.streaming = False
        self._emit_completed(cause)

    def _handle_response(self, response: speech.StreamingRecognizeResponse) -> None:
        interim = []
        for result in response.results:
            if not result.alternatives:
                continue
            alternative = result.alternatives[0]
            if result.is_final:
                logger.debug(f"Final transcript='{alternative.transcript}' (conf={alternative.confidence})")
                self._emit_final(alternative.transcript.strip(),
                                 ConfidenceLevel.from_score(alternative.confidence))
            else:
                interim.append(alternative.transcript)
        if interim:
            self._emit_partial("".join(interim).strip())

    def _report_api_error(self, message: str, error: gax_exceptions.GoogleAPICallError,
                          cause: CompletionCause) -> None:
        # grpc.StatusCode values are (code, name) tuples
        status = error.grpc_status_code
        code = status.value[0] if status is not None else 0
        logger.error(f"{message}: {error}")
        self._emit_error(f"{message}: {error}", code)
        self._finish(cause)
