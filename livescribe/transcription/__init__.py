"""Transcription module for Livescribe."""

from .base import AbstractTranscriptionBackend, BackendHandlers, BackendSubscription
from .aggregator import TranscriptAggregator
from .dispatch import CallbackMarshaller, marshal_handlers
from .errors import (
    TranscriptionBackendError,
    BackendStartFailure,
    BackendStopFailure,
    BackendRuntimeError,
    AbnormalCompletion,
)
from .mock_backend import MockTranscriptionBackend
from .publisher import SessionEventPublisher
from .replay_backend import ReplayTranscriptionBackend
from .google_backend import GoogleStreamingBackend, RawAudioSource

__all__ = [
    "AbstractTranscriptionBackend",
    "BackendHandlers",
    "BackendSubscription",
    "TranscriptAggregator",
    "CallbackMarshaller",
    "marshal_handlers",
    "TranscriptionBackendError",
    "BackendStartFailure",
    "BackendStopFailure",
    "BackendRuntimeError",
    "AbnormalCompletion",
    "MockTranscriptionBackend",
    "SessionEventPublisher",
    "ReplayTranscriptionBackend",
    "GoogleStreamingBackend",
    "RawAudioSource",
]
