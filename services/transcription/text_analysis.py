"""Heuristics applied to raw transcripts."""

import re
from collections.abc import Sequence

from .drivers.base import TranscriptSegment

_WHITESPACE = re.compile(r"\s+")
_ORNAMENTAL = re.compile(r"[^\w\s.,!?;:'\"()-]")
_PRONOUNS = re.compile(r"\b(i|you|he|she|they)\b", re.IGNORECASE)

BASE_CONFIDENCE = 0.85
DEFAULT_CONFIDENCE = 0.80
MIN_CONFIDENCE = 0.60
MAX_CONFIDENCE = 0.95
LONG_SEGMENT_SECONDS = 10.0
SILENT_GAP_SECONDS = 2.0


def clean_transcript(raw_text: str) -> str:
    """Collapse whitespace and strip ornamental characters, keeping punctuation."""
    text = _WHITESPACE.sub(" ", raw_text)
    text = _ORNAMENTAL.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def estimate_speaker_count(text: str) -> int:
    """Guess 2 speakers for question-heavy, pronoun-dense transcripts, else 1."""
    pronouns = len(_PRONOUNS.findall(text))
    questions = text.count("?")
    if questions > 2 and pronouns > 10:
        return 2
    return 1


def estimate_confidence(segments: Sequence[TranscriptSegment]) -> float:
    if not segments:
        return DEFAULT_CONFIDENCE

    score = BASE_CONFIDENCE

    average_length = sum(len(segment.text) for segment in segments) / len(segments)
    if average_length < 10:
        score -= 0.10

    long_segment = any(segment.end - segment.start > LONG_SEGMENT_SECONDS for segment in segments)
    silent_gap = any(
        later.start - earlier.end > SILENT_GAP_SECONDS
        for earlier, later in zip(segments, segments[1:])
    )
    if long_segment or silent_gap:
        score -= 0.05

    if len(segments) < 3:
        score -= 0.10

    return round(max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, score)), 2)
