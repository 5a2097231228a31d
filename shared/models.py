from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from shared.enums import (
    AdmissionLevel,
    GenerationStatus,
    Granularity,
    InputKind,
    PipelineStage,
    Platform,
    TargetDuration,
    VariationType,
)


# Generated content
class Hook(BaseModel):
    text: str
    visual_cue: str = ""
    duration: str = "0-3 seconds"
    notes: str = ""


class Scene(BaseModel):
    scene_number: int
    title: str
    timeframe: str
    dialogue: str
    visual_description: str
    camera_angle: str = "Medium shot"
    lighting: str = "Natural"
    props: list[str] = Field(default_factory=list)
    transitions: str = "Cut to next scene"
    notes: str = ""


class BrandMention(BaseModel):
    model_config = ConfigDict(extra="allow")

    timing: str = ""
    type: str = "natural_mention"
    content: str = ""
    duration: str = ""
    placement: str = "verbal"


class CallToAction(BaseModel):
    primary: str
    secondary: str = ""
    placement: str = "end"
    visual_treatment: str = "Text overlay"


class HashtagSet(BaseModel):
    primary: list[str] = Field(default_factory=list)
    secondary: list[str] = Field(default_factory=list)
    trending: list[str] = Field(default_factory=list)


class Mention(BaseModel):
    model_config = ConfigDict(extra="allow")

    handle: str = ""
    purpose: str = ""
    timing: str = ""


class AudioSuggestions(BaseModel):
    music_style: str = "Upbeat"
    trending_audio: str = ""
    voiceover_notes: str = "Clear and engaging"
    sound_effects: list[str] = Field(default_factory=list)


class TextOverlay(BaseModel):
    model_config = ConfigDict(extra="allow")

    text: str = ""
    timing: str = ""
    style: str = ""
    position: str = "center"


class AlternativeEnding(BaseModel):
    model_config = ConfigDict(extra="allow")

    description: str = ""
    content: str = ""
    use_case: str = ""


class GeneratedContent(BaseModel):
    """Structurally complete generated script; every collection is a list, never null."""

    hook: Hook
    scenes: list[Scene] = Field(..., min_length=3)
    brand_mentions: list[BrandMention] = Field(default_factory=list)
    call_to_action: CallToAction
    hashtags: HashtagSet = Field(default_factory=HashtagSet)
    mentions: list[Mention] = Field(default_factory=list)
    audio_suggestions: AudioSuggestions = Field(default_factory=AudioSuggestions)
    text_overlays: list[TextOverlay] = Field(default_factory=list)
    alternative_endings: list[AlternativeEnding] = Field(default_factory=list)


class TrendSnapshot(BaseModel):
    trending_hashtags: list[dict[str, Any]] = Field(default_factory=list)
    trending_audio: list[dict[str, Any]] = Field(default_factory=list)
    viral_elements: list[dict[str, Any]] = Field(default_factory=list)
    last_updated: datetime


class Variation(BaseModel):
    variation_type: VariationType
    title: str
    description: str
    changes: dict[str, Any]
    created_at: datetime | None = None


class ProcessingMetadata(BaseModel):
    model: str | None = None
    tokens_used: int = 0
    processing_time: float = 0.0
    confidence_score: int = 0
    retry_count: int = 0
    last_error: str | None = None
    error_type: str | None = None
    placeholder_fields: list[str] = Field(default_factory=list)
    generation_version: str = "2.0"


class TranscriptionRecord(BaseModel):
    raw_text: str
    cleaned_text: str
    speaker_count: int = Field(..., ge=1)
    language: str | None = None
    confidence: float = Field(..., ge=0.0, le=1.0)
    processing_time: float
    segment_count: int = 0


class MediaReference(BaseModel):
    path: str
    filename: str
    size: int = Field(..., ge=0, description="Size in bytes")
    mime_type: str
    duration: float | None = Field(None, description="Video duration in seconds, when known")


# Request/Response Models
class ScriptJobCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200, description="Job title")
    brief_text: str | None = Field(None, description="Raw brief text; omitted for uploaded inputs")
    platform: Platform = Field(..., description="Target platform")
    target_duration: TargetDuration = Field(default=TargetDuration.SECONDS_60)
    custom_duration: int | None = Field(None, description="Seconds, required for custom durations")
    granularity: Granularity = Field(default=Granularity.DETAILED)
    style_notes: str | None = Field(None, max_length=2000, description="Creator style preferences")
    language: str | None = Field(None, max_length=10, description="Spoken language hint for videos")
    tags: list[str] = Field(default_factory=list)


class RegenerateRequest(BaseModel):
    style_notes: str | None = Field(None, max_length=2000)
    granularity: Granularity | None = None
    platform: Platform | None = None
    target_duration: TargetDuration | None = None
    custom_duration: int | None = None


class VariationRequest(BaseModel):
    variation_type: VariationType = Field(..., description="Category of variation to derive")
    title: str | None = Field(None, max_length=200)
    description: str | None = Field(None, max_length=1000)
    changes: dict[str, Any] | None = Field(
        None, description="Hand-written changes; derived from the script when omitted"
    )


class DealLinkRequest(BaseModel):
    deal_id: str = Field(..., min_length=1, description="Identifier of the deal to link")


class JobStatusResponse(BaseModel):
    job_id: str
    status: GenerationStatus
    pipeline_stage: PipelineStage
    input_kind: InputKind
    retry_count: int = 0
    last_error: str | None = None
    error_type: str | None = None
    quality_score: int | None = None
    updated_at: datetime | None = None


class JobResponse(BaseModel):
    job_id: str
    title: str
    input_kind: InputKind
    platform: Platform
    target_duration: TargetDuration
    custom_duration: int | None = None
    duration_seconds: int
    granularity: Granularity
    style_notes: str | None = None
    status: GenerationStatus
    pipeline_stage: PipelineStage
    brief_text: str | None = None
    document: dict[str, Any] | None = None
    video: dict[str, Any] | None = None
    transcription: dict[str, Any] | None = None
    generated_content: dict[str, Any]
    processing_metadata: ProcessingMetadata
    variations: list[dict[str, Any]] = Field(default_factory=list)
    trend_snapshot: TrendSnapshot
    times_generated: int
    variations_created: int
    successful_generations: int
    failed_generations: int
    deal_connection: dict[str, Any] | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime | None = None
    last_processed_at: datetime | None = None


class JobListResponse(BaseModel):
    jobs: list[JobStatusResponse]
    total: int
    page: int
    page_size: int


class UsageResponse(BaseModel):
    tier: str
    jobs_this_month: int
    monthly_job_limit: int | None = Field(None, description="None means unlimited")
    videos_this_month: int
    monthly_video_limit: int | None = None
    features: dict[str, bool]


class AdmissionStatsResponse(BaseModel):
    allowed: bool
    level: AdmissionLevel
    stats: dict[str, Any]


class APIResponse(BaseModel):
    """Standard API response wrapper."""

    success: bool = Field(default=True, description="Whether the operation was successful")
    message: str = Field(default="Operation completed successfully", description="Response message")
    data: dict[str, Any] | None = Field(None, description="Response data")
