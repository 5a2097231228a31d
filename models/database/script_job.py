"""
Script job model - one content-generation request and its pipeline state
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from database import Base
from shared.enums import DURATION_SECONDS, DEFAULT_DURATION_SECONDS, TargetDuration
from shared.utils import utcnow


def empty_trend_snapshot() -> dict:
    return {
        "trending_hashtags": [],
        "trending_audio": [],
        "viral_elements": [],
        "last_updated": utcnow().isoformat(),
    }


def empty_processing_metadata() -> dict:
    return {
        "model": None,
        "tokens_used": 0,
        "processing_time": 0.0,
        "confidence_score": 0,
        "retry_count": 0,
        "last_error": None,
        "error_type": None,
        "placeholder_fields": [],
        "generation_version": "2.0",
    }


class ScriptJob(Base):
    """Persisted unit of work shared by every pipeline stage"""

    __tablename__ = "script_jobs"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(String(36), unique=True, nullable=False, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)

    input_kind = Column(String(20), nullable=False)  # text, document, video
    platform = Column(String(50), nullable=False)
    target_duration = Column(String(20), nullable=False, default=TargetDuration.SECONDS_60.value)
    custom_duration = Column(Integer, nullable=True)
    granularity = Column(String(20), nullable=False, default="detailed")
    style_notes = Column(Text, nullable=True)
    language = Column(String(10), nullable=True)
    tags = Column(JSON, default=list)

    # Exactly one of these matches input_kind
    source_text = Column(Text, nullable=True)
    document = Column(JSON, nullable=True)
    video = Column(JSON, nullable=True)

    transcription = Column(JSON, nullable=True)
    brief_text = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default="pending", index=True)
    pipeline_stage = Column(String(20), nullable=False, default="generation")
    generated_content = Column(JSON, nullable=True)
    processing_metadata = Column(JSON, nullable=False, default=empty_processing_metadata)
    variations = Column(JSON, nullable=False, default=list)
    trend_snapshot = Column(JSON, nullable=False, default=empty_trend_snapshot)

    times_generated = Column(Integer, nullable=False, default=1)
    variations_created = Column(Integer, nullable=False, default=0)
    successful_generations = Column(Integer, nullable=False, default=0)
    failed_generations = Column(Integer, nullable=False, default=0)

    deal_connection = Column(JSON, nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    deleted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    last_processed_at = Column(DateTime, nullable=True)

    owner = relationship("User", back_populates="script_jobs")

    @property
    def duration_seconds(self) -> int:
        if self.target_duration == TargetDuration.CUSTOM.value and self.custom_duration:
            return int(self.custom_duration)
        try:
            return DURATION_SECONDS[TargetDuration(self.target_duration)]
        except ValueError:
            return DEFAULT_DURATION_SECONDS

    @property
    def retry_count(self) -> int:
        return int((self.processing_metadata or {}).get("retry_count") or 0)
