import uuid
from datetime import UTC, datetime
from pathlib import Path

from shared.config import ServiceConfig, config
from shared.logging_utils import setup_logging

__all__ = [
    "ServiceConfig",
    "config",
    "ensure_directory",
    "sanitize_filename",
    "setup_logging",
    "unique_storage_name",
    "utcnow",
]


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe storage"""
    invalid_chars = '<>:"/\\|?* '
    for char in invalid_chars:
        filename = filename.replace(char, "_")
    return filename


def unique_storage_name(filename: str) -> str:
    """Prefix a sanitized filename with a random token so uploads never collide"""
    return f"{uuid.uuid4().hex[:12]}_{sanitize_filename(Path(filename).name or 'upload')}"


def ensure_directory(path: str) -> None:
    """Ensure directory exists, create if not"""
    Path(path).mkdir(parents=True, exist_ok=True)


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the ORM columns store"""
    return datetime.now(UTC).replace(tzinfo=None)
