"""
Enums and constants used across the pipeline.
"""

from enum import Enum


class InputKind(str, Enum):
    """Kinds of brief a job can be created from."""

    TEXT = "text"
    DOCUMENT = "document"
    VIDEO = "video"


class Platform(str, Enum):
    """Target publishing platforms."""

    INSTAGRAM_REEL = "instagram_reel"
    INSTAGRAM_POST = "instagram_post"
    INSTAGRAM_STORY = "instagram_story"
    YOUTUBE_VIDEO = "youtube_video"
    YOUTUBE_SHORTS = "youtube_shorts"
    LINKEDIN_VIDEO = "linkedin_video"
    LINKEDIN_POST = "linkedin_post"
    TWITTER_POST = "twitter_post"
    FACEBOOK_REEL = "facebook_reel"
    TIKTOK_VIDEO = "tiktok_video"


SHORT_VERTICAL_PLATFORMS = frozenset(
    {
        Platform.INSTAGRAM_REEL,
        Platform.INSTAGRAM_STORY,
        Platform.YOUTUBE_SHORTS,
        Platform.FACEBOOK_REEL,
        Platform.TIKTOK_VIDEO,
    }
)

PROFESSIONAL_PLATFORMS = frozenset({Platform.LINKEDIN_VIDEO, Platform.LINKEDIN_POST})


class Granularity(str, Enum):
    """How much production detail the generated script carries."""

    BASIC = "basic"
    DETAILED = "detailed"
    COMPREHENSIVE = "comprehensive"


class TargetDuration(str, Enum):
    """Duration presets; CUSTOM defers to an explicit seconds value."""

    SECONDS_15 = "15_seconds"
    SECONDS_30 = "30_seconds"
    SECONDS_60 = "60_seconds"
    SECONDS_90 = "90_seconds"
    MINUTES_3 = "3_minutes"
    MINUTES_5 = "5_minutes"
    MINUTES_10 = "10_minutes"
    CUSTOM = "custom"


DURATION_SECONDS = {
    TargetDuration.SECONDS_15: 15,
    TargetDuration.SECONDS_30: 30,
    TargetDuration.SECONDS_60: 60,
    TargetDuration.SECONDS_90: 90,
    TargetDuration.MINUTES_3: 180,
    TargetDuration.MINUTES_5: 300,
    TargetDuration.MINUTES_10: 600,
}

DEFAULT_DURATION_SECONDS = 60
MIN_CUSTOM_DURATION = 5
MAX_CUSTOM_DURATION = 3600


class GenerationStatus(str, Enum):
    """Status of a job's current generation attempt."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class PipelineStage(str, Enum):
    """Next stage the pipeline runner should execute for a job."""

    TRANSCRIPTION = "transcription"
    GENERATION = "generation"
    AUGMENTATION = "augmentation"
    DONE = "done"


class VariationType(str, Enum):
    """Categories of derived A/B alternatives."""

    HOOK = "hook_variation"
    CTA = "cta_variation"
    BRAND = "brand_integration"


class AdmissionLevel(str, Enum):
    """Memory pressure level reported by the admission controller."""

    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"


class TranscriptionErrorKind(str, Enum):
    """Typed classification of speech-to-text failures."""

    SIZE_EXCEEDED = "size_exceeded"
    INVALID_FORMAT = "invalid_format"
    TIMEOUT = "timeout"
    GENERIC = "generic"


class ExecutionMode(str, Enum):
    """How submitted jobs are handed to the pipeline runner."""

    INLINE = "inline"
    QUEUE = "queue"


class ExportFormat(str, Enum):
    """Available export formats for generated scripts."""

    JSON = "json"
    TEXT = "text"


class SubscriptionTier(str, Enum):
    """Subscription tiers known to the pipeline."""

    STARTER = "starter"
    PRO = "pro"
    ELITE = "elite"
    AGENCY_STARTER = "agency_starter"
    AGENCY_PRO = "agency_pro"
