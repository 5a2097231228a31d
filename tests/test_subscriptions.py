"""Tests for tier resolution and quota enforcement."""

import pytest

from conftest import MB, create_text_job
from services.subscriptions import SubscriptionService, TierLimits, month_start
from shared.enums import InputKind
from shared.errors import SubscriptionLimitExceeded
from shared.utils import utcnow

TIERS = {
    "starter": {"max_jobs_per_month": 2, "max_document_mb": 5, "video_transcription": False},
    "pro": {
        "max_jobs_per_month": 25,
        "max_document_mb": 10,
        "video_transcription": True,
        "max_video_mb": 25,
        "max_videos_per_month": 1,
        "ab_variations": True,
        "trend_integration": True,
    },
    "elite": {
        "max_jobs_per_month": -1,
        "max_document_mb": 25,
        "video_transcription": True,
        "max_video_mb": 100,
        "max_videos_per_month": -1,
        "ab_variations": True,
        "trend_integration": True,
    },
}


@pytest.fixture
def subscriptions(repository) -> SubscriptionService:
    return SubscriptionService(repository, tiers=TIERS)


def test_tier_limits_from_config() -> None:
    limits = TierLimits.from_config("pro", TIERS["pro"])

    assert limits.max_upload_bytes(InputKind.VIDEO) == 25 * MB
    assert limits.max_upload_bytes(InputKind.DOCUMENT) == 10 * MB
    assert limits.features == {"video_transcription": True, "ab_variations": True, "trend_integration": True}


def test_month_start() -> None:
    start = month_start(utcnow())
    assert start.day == 1 and start.hour == 0 and start.minute == 0


def test_unknown_tier_falls_back_to_default(subscriptions, users) -> None:
    user = users["testuser"]
    user.subscription_tier = "legacy_gold"

    assert subscriptions.limits_for(user).name == "starter"


def test_monthly_job_quota(subscriptions, repository, users) -> None:
    user = users["starteruser"]
    subscriptions.check_submission(user, InputKind.TEXT)
    create_text_job(repository, user.id)
    create_text_job(repository, user.id)

    with pytest.raises(SubscriptionLimitExceeded) as exc_info:
        subscriptions.check_submission(user, InputKind.TEXT)

    assert exc_info.value.details["tier"] == "starter"


def test_video_quota_and_feature_flag(subscriptions, repository, users) -> None:
    with pytest.raises(SubscriptionLimitExceeded):
        subscriptions.check_submission(users["starteruser"], InputKind.VIDEO)

    pro = users["testuser"]
    subscriptions.check_submission(pro, InputKind.VIDEO)
    create_text_job(repository, pro.id, input_kind="video")
    with pytest.raises(SubscriptionLimitExceeded):
        subscriptions.check_submission(pro, InputKind.VIDEO)


def test_declared_size_is_checked(subscriptions, users) -> None:
    with pytest.raises(SubscriptionLimitExceeded):
        subscriptions.check_submission(users["testuser"], InputKind.DOCUMENT, size=11 * MB)
    subscriptions.check_submission(users["testuser"], InputKind.TEXT, size=11 * MB)


def test_unlimited_tiers(subscriptions, repository, users) -> None:
    elite = users["eliteuser"]
    for _ in range(3):
        create_text_job(repository, elite.id, input_kind="video")

    subscriptions.check_submission(elite, InputKind.VIDEO)
    usage = subscriptions.usage(elite)

    assert usage["tier"] == "elite"
    assert usage["jobs_this_month"] == 3
    assert usage["videos_this_month"] == 3
    assert usage["monthly_job_limit"] is None
    assert usage["monthly_video_limit"] is None


def test_configured_tiers_are_used_by_default(repository, users) -> None:
    limits = SubscriptionService(repository).limits_for(users["testuser"])

    assert limits.name == "pro"
    assert limits.max_jobs_per_month == 25
    assert limits.max_video_mb == 25
