"""Domain error types.

Every error here is terminal for the in-flight transcription call and is
reported to the caller as a ``Failed`` message carrying ``reason``.
"""


class TranscriptionError(Exception):
    """Base class for failures that end a transcription call."""

    reason = 'TranscriptionError'


class EngineUnavailable(TranscriptionError):
    """Raised when the ASR engine cannot be constructed (download, disk, or model error)."""

    reason = 'EngineUnavailable'


class ModelResolutionError(EngineUnavailable):
    """Raised when a whisper model cannot be resolved to local files."""


class InvalidAudio(TranscriptionError):
    """Raised for empty or malformed sample sequences."""

    reason = 'InvalidAudio'


class Busy(TranscriptionError):
    """Raised when a transcription is requested while another is in progress."""

    reason = 'Busy'


class StitchFailure(TranscriptionError):
    """Raised when engine output cannot be merged into a transcript."""

    reason = 'StitchFailure'


class TranscriptionCancelled(TranscriptionError):
    """Raised when the caller cancels a transcription between windows."""

    reason = 'Cancelled'


class WindowTooLong(TranscriptionError):
    """Raised when the planned window exceeds what the loaded model can see in one pass."""

    reason = 'WindowTooLong'
