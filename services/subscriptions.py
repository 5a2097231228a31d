"""Subscription tier limits and usage accounting."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from models.database import User
from services.pipeline.repository import JobRepository
from shared.config import config
from shared.enums import InputKind, SubscriptionTier
from shared.errors import SubscriptionLimitExceeded
from shared.logging_utils import setup_logging
from shared.utils import utcnow

logger = setup_logging("subscriptions")

MB = 1024 * 1024
UNLIMITED = -1


@dataclass(frozen=True)
class TierLimits:
    name: str
    max_jobs_per_month: int
    max_document_mb: int
    video_transcription: bool
    max_video_mb: int
    max_videos_per_month: int
    ab_variations: bool
    trend_integration: bool

    @classmethod
    def from_config(cls, name: str, values: dict[str, Any]) -> "TierLimits":
        return cls(
            name=name,
            max_jobs_per_month=int(values.get("max_jobs_per_month", 0)),
            max_document_mb=int(values.get("max_document_mb", 0)),
            video_transcription=bool(values.get("video_transcription", False)),
            max_video_mb=int(values.get("max_video_mb", 0)),
            max_videos_per_month=int(values.get("max_videos_per_month", 0)),
            ab_variations=bool(values.get("ab_variations", False)),
            trend_integration=bool(values.get("trend_integration", False)),
        )

    @property
    def features(self) -> dict[str, bool]:
        return {
            "video_transcription": self.video_transcription,
            "ab_variations": self.ab_variations,
            "trend_integration": self.trend_integration,
        }

    def max_upload_bytes(self, kind: InputKind) -> int:
        if kind == InputKind.VIDEO:
            return self.max_video_mb * MB
        return self.max_document_mb * MB


def month_start(now: datetime | None = None) -> datetime:
    now = now or utcnow()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _limit_or_none(value: int) -> int | None:
    return None if value == UNLIMITED else value


class SubscriptionService:
    """Resolves a user's tier and enforces its quotas.

    Soft-deleted jobs still count toward the monthly quota.
    """

    def __init__(self, repository: JobRepository, tiers: dict[str, Any] | None = None) -> None:
        self.repository = repository
        self._tiers = tiers

    @property
    def tiers(self) -> dict[str, TierLimits]:
        raw = self._tiers or config.get_pipeline_value("subscriptions.tiers", {})
        return {name: TierLimits.from_config(name, values) for name, values in raw.items()}

    def limits_for(self, user: User) -> TierLimits:
        tiers = self.tiers
        default_tier = config.get_pipeline_value("subscriptions.default_tier", SubscriptionTier.STARTER.value)
        name = user.subscription_tier or default_tier
        if name not in tiers:
            logger.warning(f"Unknown subscription tier '{name}' for user {user.id}; using {default_tier}")
            name = default_tier
        return tiers[name]

    def check_submission(self, user: User, kind: InputKind, size: int | None = None) -> TierLimits:
        """Raise SubscriptionLimitExceeded unless the user may submit this job."""
        limits = self.limits_for(user)
        since = month_start()

        if limits.max_jobs_per_month != UNLIMITED:
            used = self.repository.count_since(user.id, since)
            if used >= limits.max_jobs_per_month:
                raise SubscriptionLimitExceeded(
                    f"Monthly script limit reached ({limits.max_jobs_per_month}) for the {limits.name} plan",
                    tier=limits.name,
                    limit=limits.max_jobs_per_month,
                )

        if kind == InputKind.VIDEO:
            if not limits.video_transcription:
                raise SubscriptionLimitExceeded(
                    f"Video transcription is not available on the {limits.name} plan", tier=limits.name
                )
            if limits.max_videos_per_month != UNLIMITED:
                videos = self.repository.count_since(user.id, since, InputKind.VIDEO)
                if videos >= limits.max_videos_per_month:
                    raise SubscriptionLimitExceeded(
                        f"Monthly video limit reached ({limits.max_videos_per_month}) for the {limits.name} plan",
                        tier=limits.name,
                        limit=limits.max_videos_per_month,
                    )

        if size is not None and kind != InputKind.TEXT and size > limits.max_upload_bytes(kind):
            raise SubscriptionLimitExceeded(
                f"File exceeds the {limits.max_upload_bytes(kind) // MB}MB limit for the {limits.name} plan",
                tier=limits.name,
            )
        return limits

    def usage(self, user: User) -> dict[str, Any]:
        limits = self.limits_for(user)
        since = month_start()
        return {
            "tier": limits.name,
            "jobs_this_month": self.repository.count_since(user.id, since),
            "monthly_job_limit": _limit_or_none(limits.max_jobs_per_month),
            "videos_this_month": self.repository.count_since(user.id, since, InputKind.VIDEO),
            "monthly_video_limit": _limit_or_none(limits.max_videos_per_month),
            "features": limits.features,
        }
