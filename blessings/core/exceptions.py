"""
Exceptions raised by the batch generation pipeline.

Provider and stage errors are caught inside the pipeline and turned into
degraded features or per-item errors; only lookup and state errors reach the
route layer.
"""

from typing import Optional


class BlessingsError(Exception):
    """Base class for all pipeline errors."""


class ProviderUnconfiguredError(BlessingsError):
    """
    Raised when a provider is used without credentials.

    Attributes:
        provider: Provider name
    """

    def __init__(self, provider: str, hint: str = ""):
        self.provider = provider
        message = f"{provider} is not configured"
        if hint:
            message += f" ({hint})"
        super().__init__(message)


class VoiceUploadError(BlessingsError):
    """
    Raised when creating a voice clone fails.

    Attributes:
        audio_path: Reference audio that was uploaded
        reason: Description of the failure
    """

    def __init__(self, audio_path: str, reason: str = ""):
        self.audio_path = audio_path
        self.reason = reason
        message = f"Voice upload failed for '{audio_path}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class EmptyInputError(BlessingsError):
    """Raised when text is empty after sanitizing, so no synthesis request is sent."""


class SynthesisFailedError(BlessingsError):
    """
    Raised when every speech synthesis attempt failed.

    Attributes:
        attempts: Number of attempts made
    """

    def __init__(self, attempts: int, reason: str = ""):
        self.attempts = attempts
        message = f"Speech synthesis failed after {attempts} attempts"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class RenderError(BlessingsError):
    """
    Raised when the external renderer fails or times out.

    Attributes:
        output_filename: Video that was being rendered
        stderr: Captured renderer stderr, if any
    """

    def __init__(self, output_filename: str, reason: str = "", stderr: Optional[str] = None):
        self.output_filename = output_filename
        self.stderr = stderr
        message = f"Render failed for '{output_filename}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class NarrationValidationError(BlessingsError):
    """Raised when LLM output does not match the narration schema."""


class JobNotFoundError(BlessingsError):
    """Raised for unknown or expired batch ids."""

    def __init__(self, batch_id: str):
        self.batch_id = batch_id
        super().__init__(f"Batch '{batch_id}' does not exist or has expired")


class BatchStateError(BlessingsError):
    """Raised when an operation does not fit the batch's current phase."""


class InvalidTransitionError(BlessingsError):
    """Raised when an item status would move backwards or lose its invariants."""


class NoFinishedVideosError(BlessingsError):
    """Raised when an archive is requested for a batch without finished videos."""

    def __init__(self, batch_id: str):
        self.batch_id = batch_id
        super().__init__(f"Batch '{batch_id}' has no finished videos")
