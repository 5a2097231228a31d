"""OpenAI speech-to-text driver streaming media through ChunkedMediaReader."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import openai

from shared.config import MB, config
from shared.enums import TranscriptionErrorKind
from shared.errors import TranscriptionFailure
from shared.logging_utils import setup_logging
from shared.openai_client import create_client, get_azure_deployment_name

from ..media_stream import DEFAULT_CHUNK_SIZE, ChunkedMediaReader
from .base import RawTranscript, TranscriptionDriver, TranscriptSegment

logger = setup_logging("transcription-driver")


def classify_openai_error(exc: Exception) -> TranscriptionErrorKind:
    """Map an SDK exception type to a transcription error kind."""
    if isinstance(exc, openai.APITimeoutError):
        return TranscriptionErrorKind.TIMEOUT
    if isinstance(exc, openai.APIStatusError):
        if exc.status_code == 413:
            return TranscriptionErrorKind.SIZE_EXCEEDED
        if exc.status_code in (400, 415, 422):
            return TranscriptionErrorKind.INVALID_FORMAT
        if exc.status_code in (408, 504):
            return TranscriptionErrorKind.TIMEOUT
    return TranscriptionErrorKind.GENERIC


class OpenAIWhisperDriver(TranscriptionDriver):
    """Whisper transcription requesting segment-level timestamps only."""

    def __init__(self, client: Any | None = None) -> None:
        timeout = config.get_pipeline_value("transcription.timeout_seconds", 300)
        self.client = client or create_client(timeout=timeout)
        model = config.get_pipeline_value("transcription.model", "whisper-1")
        self.model = get_azure_deployment_name(transcription=True) if config.get("use_azure_openai") else model
        self.chunk_size = int(
            config.get_pipeline_value("transcription.chunk_size_bytes", DEFAULT_CHUNK_SIZE)
        )
        self.service_limit_bytes = config.get_pipeline_bytes("transcription.service_limit_mb", 100)

    async def transcribe(
        self, path: Path, mime_type: str, language: str | None = None
    ) -> RawTranscript:
        size = path.stat().st_size
        if size > self.service_limit_bytes:
            raise TranscriptionFailure(
                f"Video is {size / MB:.1f}MB; the transcription service accepts "
                f"at most {self.service_limit_bytes / MB:.0f}MB",
                kind=TranscriptionErrorKind.SIZE_EXCEEDED,
            )

        request: dict[str, Any] = {
            "model": self.model,
            "response_format": "verbose_json",
            "timestamp_granularities": ["segment"],
        }
        if language:
            request["language"] = language.split("-")[0].lower()

        progress = _ProgressLogger(path.name)
        try:
            with ChunkedMediaReader(path, self.chunk_size, progress) as reader:
                response = await self.client.audio.transcriptions.create(
                    file=(path.name, reader, mime_type), **request
                )
        except openai.OpenAIError as exc:
            kind = classify_openai_error(exc)
            raise TranscriptionFailure(f"Transcription service error: {exc}", kind=kind) from exc
        except OSError as exc:
            raise TranscriptionFailure(f"Could not stream media file: {exc}") from exc

        segments = [
            TranscriptSegment(
                start=float(_field(segment, "start", 0.0)),
                end=float(_field(segment, "end", 0.0)),
                text=str(_field(segment, "text", "")).strip(),
            )
            for segment in (_field(response, "segments", None) or [])
        ]
        return RawTranscript(
            text=str(_field(response, "text", "") or ""),
            segments=segments,
            language=_field(response, "language", None) or language,
            duration=_field(response, "duration", None),
        )


class _ProgressLogger:
    """Logs streaming progress at roughly every 25%."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._next_mark = 25

    def __call__(self, read: int, total: int) -> None:
        if total <= 0:
            return
        percent = read * 100 // total
        if percent >= self._next_mark:
            logger.debug(f"Streaming {self.name}: {percent}% ({read}/{total} bytes)")
            while self._next_mark <= percent:
                self._next_mark += 25


def _field(obj: Any, name: str, default: Any) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)
