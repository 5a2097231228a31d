"""Text extractors keyed by declared mime type."""

from collections.abc import Callable
from pathlib import Path
from zipfile import BadZipFile

import docx
from docx.opc.exceptions import PackageNotFoundError
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from shared.errors import ExtractionFailure

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
MSWORD_MIME = "application/msword"
PLAIN_MIME = "text/plain"

# Accepted at upload; legacy .doc files are stored but cannot be extracted.
DOCUMENT_MIME_TYPES = frozenset({PDF_MIME, DOCX_MIME, MSWORD_MIME, PLAIN_MIME})

VIDEO_MIME_TYPES = frozenset(
    {"video/mp4", "video/mov", "video/avi", "video/quicktime", "video/x-msvideo"}
)


def extract_pdf(path: Path) -> str:
    try:
        reader = PdfReader(str(path))
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    except (PdfReadError, ValueError) as exc:
        raise ExtractionFailure(f"Could not read PDF document: {exc}") from exc


def extract_docx(path: Path) -> str:
    try:
        document = docx.Document(str(path))
    except (PackageNotFoundError, BadZipFile, KeyError, ValueError) as exc:
        raise ExtractionFailure(f"Could not read Word document: {exc}") from exc

    parts = [paragraph.text for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            parts.append(" ".join(cell.text for cell in row.cells))
    return "\n".join(parts)


def extract_plain(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ExtractionFailure("Text file is not valid UTF-8") from exc


EXTRACTORS: dict[str, Callable[[Path], str]] = {
    PDF_MIME: extract_pdf,
    DOCX_MIME: extract_docx,
    PLAIN_MIME: extract_plain,
}


def extract_document_text(path: str | Path, mime_type: str) -> str:
    """Extract trimmed text from a stored document.

    Raises:
        ExtractionFailure: unsupported mime type, missing file, unreadable
            content, or no text at all.
    """
    extractor = EXTRACTORS.get(mime_type)
    if extractor is None:
        raise ExtractionFailure(f"Unsupported document type: {mime_type}")

    file_path = Path(path)
    if not file_path.is_file():
        raise ExtractionFailure(f"Document not found: {file_path.name}")

    text = extractor(file_path).strip()
    if not text:
        raise ExtractionFailure("No text content found in document")
    return text
