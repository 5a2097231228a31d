"""Brief ingestion: raw text, uploaded documents and uploaded videos."""

from .extractors import DOCUMENT_MIME_TYPES, VIDEO_MIME_TYPES, extract_document_text
from .service import IngestionInput, IngestionResult, IngestionService

__all__ = [
    "DOCUMENT_MIME_TYPES",
    "IngestionInput",
    "IngestionResult",
    "IngestionService",
    "VIDEO_MIME_TYPES",
    "extract_document_text",
]
