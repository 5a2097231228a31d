"""
Error taxonomy for the content-generation pipeline.

Every error carries a stable ``error_type`` string that is recorded on the job
when the failure happens inside the asynchronous pipeline.
"""

from typing import Any

from shared.enums import TranscriptionErrorKind


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_type = "pipeline_error"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"error_type": self.error_type, "message": self.message, **self.details}


class AdmissionDenied(PipelineError):
    """Insufficient memory headroom to start a memory-heavy operation."""

    error_type = "admission_denied"

    def __init__(
        self,
        message: str,
        required_memory: int | None = None,
        available_memory: int | None = None,
        level: str | None = None,
    ) -> None:
        super().__init__(
            message,
            required_memory=required_memory,
            available_memory=available_memory,
            level=level,
        )
        self.required_memory = required_memory
        self.available_memory = available_memory
        self.level = level


class ExtractionFailure(PipelineError):
    """Unsupported or corrupt input, or unreadable media."""

    error_type = "extraction_failure"


class TranscriptionFailure(PipelineError):
    """Speech-to-text call failed; ``kind`` is decided at the call site."""

    error_type = "transcription_failure"

    def __init__(
        self,
        message: str,
        kind: TranscriptionErrorKind = TranscriptionErrorKind.GENERIC,
    ) -> None:
        super().__init__(message, kind=kind.value)
        self.kind = kind

    @property
    def retryable(self) -> bool:
        # Only transient kinds are retried.
        return self.kind in (TranscriptionErrorKind.TIMEOUT, TranscriptionErrorKind.GENERIC)


class GenerationFailure(PipelineError):
    """Completion call could not be completed after retries."""

    error_type = "generation_failure"


class ValidationFailure(PipelineError):
    """Request-shape error caught at submission."""

    error_type = "validation_failure"


class SubscriptionLimitExceeded(PipelineError):
    """Monthly quota reached or feature not included in the tier."""

    error_type = "subscription_limit_exceeded"


class JobTimeout(PipelineError):
    """Job stayed in processing past the sweep timeout."""

    error_type = "timeout"


class NotFound(PipelineError):
    """Job, user or linked resource does not exist for the caller."""

    error_type = "not_found"


class JobNoLongerActive(PipelineError):
    """The job left ``processing`` while a worker was still running on it."""

    error_type = "job_inactive"
