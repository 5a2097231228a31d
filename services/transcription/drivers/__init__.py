"""Transcription driver implementations."""

from .base import RawTranscript, TranscriptionDriver, TranscriptSegment
from .openai_driver import OpenAIWhisperDriver

__all__ = [
    "OpenAIWhisperDriver",
    "RawTranscript",
    "TranscriptSegment",
    "TranscriptionDriver",
]
