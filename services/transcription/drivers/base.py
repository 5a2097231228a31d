from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class TranscriptSegment:
    start: float
    end: float
    text: str


@dataclass
class RawTranscript:
    text: str
    segments: list[TranscriptSegment] = field(default_factory=list)
    language: str | None = None
    duration: float | None = None


class TranscriptionDriver(ABC):
    """Abstract base class for speech-to-text drivers.

    Implementations raise TranscriptionFailure with a typed kind; callers
    never inspect exception messages.
    """

    @abstractmethod
    async def transcribe(
        self, path: Path, mime_type: str, language: str | None = None
    ) -> RawTranscript:
        """Transcribe the media file at ``path``."""
        pass
