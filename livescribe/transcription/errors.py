"""Error taxonomy for transcription sessions.

None of these propagate past TranscriptAggregator; they are logged, kept as
``last_error`` and published as session events.
"""


class TranscriptionBackendError(Exception):
    """Base class for backend failures seen by the aggregator."""


class BackendStartFailure(TranscriptionBackendError):
    """Backend construction or start raised."""


class BackendStopFailure(TranscriptionBackendError):
    """Backend stop or release raised. Always swallowed."""


class BackendRuntimeError(TranscriptionBackendError):
    """Error reported by a running backend."""

    def __init__(self, message: str, code: int = 0):
        super().__init__(f"{message} (0x{code & 0xFFFFFFFF:X})")
        self.message = message
        self.code = code


class AbnormalCompletion(TranscriptionBackendError):
    """Backend finished for a reason other than natural completion."""

    def __init__(self, cause):
        super().__init__(f"Dictation completed: {cause.name}")
        self.cause = cause
