"""Normalizes text, document and video inputs into a brief."""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from services.resource_monitor import AdmissionController
from shared.config import config
from shared.enums import InputKind
from shared.errors import ExtractionFailure, SubscriptionLimitExceeded, ValidationFailure
from shared.logging_utils import setup_logging
from shared.models import MediaReference
from shared.utils import ensure_directory, unique_storage_name

from .extractors import DOCUMENT_MIME_TYPES, VIDEO_MIME_TYPES, extract_document_text

logger = setup_logging("ingestion")

UPLOAD_CHUNK_SIZE = 1024 * 1024


class AsyncReadable(Protocol):
    filename: str | None
    content_type: str | None

    async def read(self, size: int = -1) -> bytes: ...


@dataclass
class IngestionInput:
    kind: InputKind
    text: str | None = None
    media: MediaReference | None = None


@dataclass
class IngestionResult:
    brief_text: str | None
    needs_transcription: bool = False
    source_metadata: dict[str, Any] = field(default_factory=dict)


class IngestionService:
    """Turns a submitted input into brief text, or a reference for transcription."""

    def __init__(self, admission: AdmissionController, media_root: str | Path | None = None) -> None:
        self.admission = admission
        self.media_root = Path(media_root or config.get("media_root", "./media"))
        self.min_text_length = config.get_pipeline_value("ingestion.min_text_length", 50)
        self.max_text_length = config.get_pipeline_value("ingestion.max_text_length", 50000)

    async def ingest(self, item: IngestionInput) -> IngestionResult:
        if item.kind == InputKind.TEXT:
            if item.text is None:
                raise ValidationFailure("Brief text is required for text input")
            return IngestionResult(brief_text=self.ingest_text(item.text))

        if item.media is None:
            raise ValidationFailure(f"An uploaded file is required for {item.kind.value} input")

        if item.kind == InputKind.DOCUMENT:
            text = await self.ingest_document(item.media)
            return IngestionResult(
                brief_text=text,
                source_metadata={"extracted_length": len(text)},
            )

        # Video text comes from the transcription worker later on.
        return IngestionResult(
            brief_text=None,
            needs_transcription=True,
            source_metadata={"path": item.media.path},
        )

    def ingest_text(self, text: str) -> str:
        brief = text.strip()
        if len(brief) < self.min_text_length:
            raise ValidationFailure(
                f"Brief text must be at least {self.min_text_length} characters long"
            )
        if len(brief) > self.max_text_length:
            raise ValidationFailure(f"Brief text cannot exceed {self.max_text_length} characters")
        return brief

    async def ingest_document(self, media: MediaReference) -> str:
        if media.mime_type not in DOCUMENT_MIME_TYPES:
            raise ExtractionFailure(f"Unsupported document type: {media.mime_type}")

        self.admission.ensure_size(media.size)
        try:
            text = await asyncio.to_thread(extract_document_text, media.path, media.mime_type)
        finally:
            self.admission.after_large_operation(media.size)

        if len(text) > self.max_text_length:
            logger.info(
                f"Extracted text from {media.filename} truncated "
                f"from {len(text)} to {self.max_text_length} characters"
            )
            text = text[: self.max_text_length]

        logger.info(f"Text extracted from {media.filename} ({len(text)} characters)")
        return text

    async def store_upload(
        self, upload: AsyncReadable, kind: InputKind, max_bytes: int
    ) -> MediaReference:
        """Stream an upload to disk, enforcing the tier ceiling while reading."""
        mime_type = upload.content_type or "application/octet-stream"
        allowed = VIDEO_MIME_TYPES if kind == InputKind.VIDEO else DOCUMENT_MIME_TYPES
        if mime_type not in allowed:
            raise ValidationFailure(f"Invalid {kind.value} type: {mime_type}")

        target_dir = self.media_root / "uploads" / f"{kind.value}s"
        ensure_directory(str(target_dir))
        filename = upload.filename or "upload"
        target = target_dir / unique_storage_name(filename)

        size = 0
        try:
            with open(target, "wb") as handle:
                while True:
                    chunk = await upload.read(UPLOAD_CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > max_bytes:
                        raise SubscriptionLimitExceeded(
                            f"File exceeds the {max_bytes // (1024 * 1024)}MB limit for your plan"
                        )
                    handle.write(chunk)
        except BaseException:
            target.unlink(missing_ok=True)
            raise

        if size == 0:
            target.unlink(missing_ok=True)
            raise ValidationFailure("Uploaded file is empty")

        logger.info(f"Stored {kind.value} upload {filename} ({size} bytes)")
        return MediaReference(path=str(target), filename=filename, size=size, mime_type=mime_type)
