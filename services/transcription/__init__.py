"""Speech-to-text transcription of uploaded videos."""

from .worker import TranscriptionWorker

__all__ = ["TranscriptionWorker"]
