"""Tests for job submission, stage sequencing and job operations."""

from datetime import timedelta
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from conftest import (
    MB,
    VALID_BRIEF,
    FakeUpload,
    ScriptedCompletionDriver,
    create_text_job,
    sample_generation,
)
from services.deals import Deal, DealDirectory
from services.pipeline.exporter import export_job, serialize_job, status_view
from services.pipeline.sweeper import StuckJobSweeper
from services.pipeline.worker import QueueWorker
from services.trends import TrendAugmenter
from shared.enums import (
    ExecutionMode,
    ExportFormat,
    GenerationStatus,
    Granularity,
    InputKind,
    PipelineStage,
    Platform,
    TargetDuration,
    VariationType,
)
from shared.errors import (
    AdmissionDenied,
    ExtractionFailure,
    NotFound,
    PipelineError,
    SubscriptionLimitExceeded,
    ValidationFailure,
)
from shared.models import GeneratedContent, JobResponse, RegenerateRequest, ScriptJobCreate, VariationRequest
from shared.utils import utcnow


def text_request(**overrides: Any) -> ScriptJobCreate:
    values: dict[str, Any] = {
        "title": "Bottle launch",
        "brief_text": VALID_BRIEF,
        "platform": Platform.INSTAGRAM_REEL,
    }
    values.update(overrides)
    return ScriptJobCreate(**values)


def upload_request(**overrides: Any) -> ScriptJobCreate:
    return text_request(brief_text=None, **overrides)


def completed_job(repository, owner_id: int, **fields: Any):
    values: dict[str, Any] = {
        "status": GenerationStatus.COMPLETED.value,
        "pipeline_stage": PipelineStage.DONE.value,
        "generated_content": sample_generation(),
        "successful_generations": 1,
    }
    values.update(fields)
    return create_text_job(repository, owner_id, **values)


def stored_uploads(media_root: Path) -> list[Path]:
    return [path for path in media_root.rglob("*") if path.is_file()]


class BrokenTrendAugmenter(TrendAugmenter):
    async def augment(self, platform):
        raise RuntimeError("trend service exploded")


class TestSubmit:
    @pytest.mark.asyncio
    async def test_text_job_is_created_pending_and_queued(self, orchestrator, users) -> None:
        job = await orchestrator.submit(users["testuser"], text_request(tags=["launch"]))

        assert job.status == GenerationStatus.PENDING.value
        assert job.pipeline_stage == PipelineStage.GENERATION.value
        assert job.brief_text == VALID_BRIEF
        assert job.source_text == VALID_BRIEF
        assert job.tags == ["launch"]
        assert job.duration_seconds == 60
        assert orchestrator.queue.dequeue_message(orchestrator.queue_name) == {"job_id": job.job_id}
        JobResponse.model_validate(serialize_job(job))
        GeneratedContent.model_validate(job.generated_content)
        assert len(job.generated_content["scenes"]) == 4
        assert job.processing_metadata["placeholder_fields"] == ["hook", "scenes", "call_to_action", "hashtags"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("custom_duration", [None, 2, 4000])
    async def test_invalid_custom_duration(self, orchestrator, repository, users, custom_duration) -> None:
        request = text_request(target_duration=TargetDuration.CUSTOM, custom_duration=custom_duration)

        with pytest.raises(ValidationFailure):
            await orchestrator.submit(users["testuser"], request)

        assert repository.list_for_owner(users["testuser"].id)[1] == 0

    @pytest.mark.asyncio
    async def test_custom_duration_is_stored(self, orchestrator, users) -> None:
        request = text_request(target_duration=TargetDuration.CUSTOM, custom_duration=40)

        job = await orchestrator.submit(users["testuser"], request)

        assert job.custom_duration == 40
        assert job.duration_seconds == 40

    @pytest.mark.asyncio
    async def test_text_job_needs_exactly_one_payload(self, orchestrator, users) -> None:
        upload = FakeUpload("brief.txt", VALID_BRIEF.encode(), "text/plain")

        with pytest.raises(ValidationFailure):
            await orchestrator.submit(users["testuser"], upload_request())
        with pytest.raises(ValidationFailure):
            await orchestrator.submit(users["testuser"], text_request(), upload=upload)
        with pytest.raises(ValidationFailure):
            await orchestrator.submit(
                users["testuser"], text_request(), upload=upload, input_kind=InputKind.DOCUMENT
            )
        with pytest.raises(ValidationFailure):
            await orchestrator.submit(users["testuser"], upload_request(), input_kind=InputKind.DOCUMENT)

    @pytest.mark.asyncio
    async def test_short_brief_is_rejected(self, orchestrator, users) -> None:
        with pytest.raises(ValidationFailure):
            await orchestrator.submit(users["testuser"], text_request(brief_text="Too short"))

    @pytest.mark.asyncio
    async def test_document_upload_is_extracted(self, orchestrator, users) -> None:
        upload = FakeUpload("brief.txt", f"  {VALID_BRIEF}  ".encode(), "text/plain")

        job = await orchestrator.submit(
            users["testuser"], upload_request(), upload=upload, input_kind=InputKind.DOCUMENT
        )

        assert job.input_kind == InputKind.DOCUMENT.value
        assert job.brief_text == VALID_BRIEF
        assert job.source_text is None
        assert job.document["filename"] == "brief.txt"
        assert job.pipeline_stage == PipelineStage.GENERATION.value

    @pytest.mark.asyncio
    async def test_unreadable_document_is_rejected_and_removed(self, orchestrator, users, media_root) -> None:
        upload = FakeUpload("blank.txt", b"   \n  ", "text/plain")

        with pytest.raises(ExtractionFailure):
            await orchestrator.submit(
                users["testuser"], upload_request(), upload=upload, input_kind=InputKind.DOCUMENT
            )

        assert stored_uploads(media_root) == []

    @pytest.mark.asyncio
    async def test_video_upload_waits_for_transcription(self, orchestrator, users) -> None:
        upload = FakeUpload("clip.mp4", b"\x00" * 2048, "video/mp4")

        job = await orchestrator.submit(
            users["testuser"], upload_request(language="en"), upload=upload, input_kind=InputKind.VIDEO
        )

        assert job.brief_text is None
        assert job.pipeline_stage == PipelineStage.TRANSCRIPTION.value
        assert job.video["size"] == 2048
        assert Path(job.video["path"]).is_file()

    @pytest.mark.asyncio
    async def test_starter_tier_cannot_upload_video(self, orchestrator, users, media_root) -> None:
        upload = FakeUpload("clip.mp4", b"\x00" * 2048, "video/mp4")

        with pytest.raises(SubscriptionLimitExceeded):
            await orchestrator.submit(
                users["starteruser"], upload_request(), upload=upload, input_kind=InputKind.VIDEO
            )

        assert stored_uploads(media_root) == []

    @pytest.mark.asyncio
    async def test_upload_over_tier_size_limit(self, orchestrator, users, media_root) -> None:
        upload = FakeUpload("huge.txt", b"a" * (5 * MB + 1), "text/plain")

        with pytest.raises(SubscriptionLimitExceeded):
            await orchestrator.submit(
                users["starteruser"], upload_request(), upload=upload, input_kind=InputKind.DOCUMENT
            )

        assert stored_uploads(media_root) == []

    @pytest.mark.asyncio
    async def test_monthly_quota_counts_deleted_jobs(self, orchestrator, repository, users) -> None:
        owner = users["starteruser"]
        for index in range(10):
            create_text_job(repository, owner.id, is_deleted=index % 2 == 0)

        with pytest.raises(SubscriptionLimitExceeded) as exc_info:
            await orchestrator.submit(owner, text_request())

        assert exc_info.value.details["limit"] == 10

    @pytest.mark.asyncio
    async def test_memory_pressure_rejects_uploads(self, orchestrator, memory_monitor, users, media_root) -> None:
        memory_monitor.used = memory_monitor.total - 100
        upload = FakeUpload("clip.mp4", b"\x00" * 2048, "video/mp4")

        with pytest.raises(AdmissionDenied):
            await orchestrator.submit(
                users["testuser"], upload_request(), upload=upload, input_kind=InputKind.VIDEO
            )

        assert stored_uploads(media_root) == []


class TestRun:
    @pytest.mark.asyncio
    async def test_text_job_runs_to_completion_with_augmentation(self, orchestrator, repository, users) -> None:
        job = await orchestrator.submit(users["testuser"], text_request())

        await orchestrator.run(job.job_id)

        stored = repository.get(job.job_id)
        assert stored.status == GenerationStatus.COMPLETED.value
        assert stored.pipeline_stage == PipelineStage.DONE.value
        assert len(stored.variations) == 6
        assert stored.variations_created == 0
        assert len(stored.trend_snapshot["trending_hashtags"]) == 3
        assert status_view(stored)["quality_score"] == 100

    @pytest.mark.asyncio
    async def test_starter_jobs_skip_augmentation(self, orchestrator, repository, users) -> None:
        job = await orchestrator.submit(users["starteruser"], text_request())

        await orchestrator.run(job.job_id)

        stored = repository.get(job.job_id)
        assert stored.status == GenerationStatus.COMPLETED.value
        assert stored.pipeline_stage == PipelineStage.DONE.value
        assert stored.variations == []
        assert stored.trend_snapshot["trending_hashtags"] == []

    @pytest.mark.asyncio
    async def test_video_job_is_transcribed_then_generated(
        self, orchestrator, repository, users, transcription_driver, completion_driver
    ) -> None:
        upload = FakeUpload("clip.mp4", b"\x00" * 2048, "video/mp4")
        job = await orchestrator.submit(
            users["testuser"], upload_request(platform=Platform.YOUTUBE_SHORTS), upload=upload, input_kind=InputKind.VIDEO
        )

        await orchestrator.run(job.job_id)

        stored = repository.get(job.job_id)
        assert len(transcription_driver.calls) == 1
        assert stored.transcription["segment_count"] == 3
        assert stored.brief_text in completion_driver.calls[0]["user"]
        assert stored.status == GenerationStatus.COMPLETED.value
        assert stored.trend_snapshot["trending_hashtags"][0]["hashtag"] == "#shorts"
        assert not Path(job.video["path"]).exists()

    @pytest.mark.asyncio
    async def test_video_too_large_for_memory_fails_after_creation(
        self, orchestrator, repository, memory_monitor, users
    ) -> None:
        upload = FakeUpload("clip.mp4", b"\x00" * 4096, "video/mp4")
        job = await orchestrator.submit(
            users["testuser"], upload_request(), upload=upload, input_kind=InputKind.VIDEO
        )
        memory_monitor.available = 4096

        await orchestrator.run(job.job_id)

        stored = repository.get(job.job_id)
        assert stored.status == GenerationStatus.FAILED.value
        assert stored.processing_metadata["error_type"] == "admission_denied"
        GeneratedContent.model_validate(stored.generated_content)
        assert "hook" in stored.processing_metadata["placeholder_fields"]
        assert not Path(job.video["path"]).exists()

    @pytest.mark.asyncio
    async def test_unexpected_errors_are_recorded(self, orchestrator, repository, users) -> None:
        orchestrator.generation.driver = ScriptedCompletionDriver([RuntimeError("driver bug")])
        job = await orchestrator.submit(users["testuser"], text_request())

        await orchestrator.run(job.job_id)

        stored = repository.get(job.job_id)
        assert stored.status == GenerationStatus.FAILED.value
        assert stored.processing_metadata["error_type"] == "internal_error"
        assert stored.processing_metadata["last_error"] == "driver bug"

    @pytest.mark.asyncio
    async def test_augmentation_failures_are_isolated(self, orchestrator, repository, users) -> None:
        orchestrator.trends = BrokenTrendAugmenter()
        job = await orchestrator.submit(users["testuser"], text_request())

        await orchestrator.run(job.job_id)

        stored = repository.get(job.job_id)
        assert stored.status == GenerationStatus.COMPLETED.value
        assert stored.pipeline_stage == PipelineStage.DONE.value
        assert len(stored.variations) == 6
        assert stored.trend_snapshot["trending_audio"] == []

    @pytest.mark.asyncio
    async def test_missing_job_is_skipped(self, orchestrator) -> None:
        await orchestrator.run("no-such-job")


class TestInlineExecution:
    @pytest.mark.asyncio
    async def test_inline_mode_runs_in_background(self, orchestrator, repository, users) -> None:
        orchestrator.mode = ExecutionMode.INLINE

        job = await orchestrator.submit(users["testuser"], text_request())
        assert orchestrator.active_tasks == 1
        await orchestrator.wait_for_tasks()

        assert repository.get(job.job_id).status == GenerationStatus.COMPLETED.value
        assert orchestrator.active_tasks == 0

    @pytest.mark.asyncio
    async def test_resume_picks_up_pending_jobs(self, orchestrator, repository, users) -> None:
        job = create_text_job(repository, users["testuser"].id)

        assert await orchestrator.resume_interrupted() == 0

        orchestrator.mode = ExecutionMode.INLINE
        assert await orchestrator.resume_interrupted() == 1
        await orchestrator.wait_for_tasks()
        assert repository.get(job.job_id).status == GenerationStatus.COMPLETED.value


class TestRegenerate:
    def test_regenerate_resets_status_and_keeps_history(self, orchestrator, repository, users) -> None:
        job = completed_job(repository, users["testuser"].id, variations=[{"title": "old"}])
        overrides = RegenerateRequest(
            style_notes="More playful",
            platform=Platform.TIKTOK_VIDEO,
            granularity=Granularity.BASIC,
            target_duration=TargetDuration.CUSTOM,
            custom_duration=45,
        )

        regenerated = orchestrator.regenerate(job.job_id, users["testuser"], overrides)

        assert regenerated.status == GenerationStatus.PENDING.value
        assert regenerated.pipeline_stage == PipelineStage.GENERATION.value
        assert regenerated.times_generated == 2
        assert regenerated.successful_generations == 1
        assert regenerated.variations == []
        assert regenerated.generated_content == sample_generation()
        assert regenerated.platform == "tiktok_video"
        assert regenerated.duration_seconds == 45
        assert regenerated.style_notes == "More playful"
        assert orchestrator.queue.dequeue_message(orchestrator.queue_name) == {"job_id": job.job_id}

    @pytest.mark.asyncio
    async def test_regenerated_job_completes_again(self, orchestrator, repository, users) -> None:
        job = completed_job(repository, users["testuser"].id)

        orchestrator.regenerate(job.job_id, users["testuser"])
        await orchestrator.run(job.job_id)

        stored = repository.get(job.job_id)
        assert stored.status == GenerationStatus.COMPLETED.value
        assert stored.successful_generations == 2
        assert stored.times_generated == 2

    def test_failed_jobs_can_be_regenerated(self, orchestrator, repository, users) -> None:
        job = create_text_job(repository, users["testuser"].id, status=GenerationStatus.FAILED.value)

        assert orchestrator.regenerate(job.job_id, users["testuser"]).status == GenerationStatus.PENDING.value

    def test_in_flight_jobs_cannot_be_regenerated(self, orchestrator, repository, users) -> None:
        job = create_text_job(repository, users["testuser"].id, status=GenerationStatus.PROCESSING.value)

        with pytest.raises(ValidationFailure):
            orchestrator.regenerate(job.job_id, users["testuser"])

    def test_invalid_duration_override(self, orchestrator, repository, users) -> None:
        job = completed_job(repository, users["testuser"].id)

        with pytest.raises(ValidationFailure):
            orchestrator.regenerate(
                job.job_id, users["testuser"], RegenerateRequest(target_duration=TargetDuration.CUSTOM)
            )


class TestVariations:
    def test_derived_variations_are_appended_and_counted(self, orchestrator, repository, users) -> None:
        job = completed_job(repository, users["testuser"].id)

        updated = orchestrator.create_variation(
            job.job_id, users["testuser"], VariationRequest(variation_type=VariationType.HOOK)
        )

        assert len(updated.variations) == 3
        assert updated.variations_created == 3

    def test_custom_variation(self, orchestrator, repository, users) -> None:
        job = completed_job(repository, users["testuser"].id)
        request = VariationRequest(
            variation_type=VariationType.CTA,
            title="Soft CTA",
            changes={"call_to_action": {"primary": "See you in the comments"}},
        )

        updated = orchestrator.create_variation(job.job_id, users["testuser"], request)

        assert updated.variations[0]["title"] == "Soft CTA"
        assert updated.variations[0]["changes"]["call_to_action"]["primary"] == "See you in the comments"
        assert updated.variations_created == 1

    def test_cap_is_enforced(self, orchestrator, repository, users) -> None:
        job = completed_job(repository, users["testuser"].id, variations=[{"title": str(n)} for n in range(6)])
        request = VariationRequest(variation_type=VariationType.HOOK, changes={"hook": {"text": "New"}})

        with pytest.raises(ValidationFailure):
            orchestrator.create_variation(job.job_id, users["testuser"], request)
        with pytest.raises(ValidationFailure):
            orchestrator.create_variation(
                job.job_id, users["testuser"], VariationRequest(variation_type=VariationType.HOOK)
            )

    def test_script_without_cta_has_no_cta_variation(self, orchestrator, repository, users) -> None:
        job = completed_job(
            repository, users["testuser"].id, generated_content=sample_generation(call_to_action={"primary": ""})
        )

        with pytest.raises(ValidationFailure):
            orchestrator.create_variation(
                job.job_id, users["testuser"], VariationRequest(variation_type=VariationType.CTA)
            )

    def test_tier_without_ab_testing(self, orchestrator, repository, users) -> None:
        job = completed_job(repository, users["starteruser"].id)

        with pytest.raises(SubscriptionLimitExceeded):
            orchestrator.create_variation(
                job.job_id, users["starteruser"], VariationRequest(variation_type=VariationType.HOOK)
            )

    def test_requires_completed_script(self, orchestrator, repository, users) -> None:
        job = create_text_job(repository, users["testuser"].id)

        with pytest.raises(ValidationFailure):
            orchestrator.create_variation(
                job.job_id, users["testuser"], VariationRequest(variation_type=VariationType.HOOK)
            )


class TestJobOperations:
    def test_jobs_are_scoped_to_their_owner(self, orchestrator, repository, users) -> None:
        job = create_text_job(repository, users["testuser"].id)

        with pytest.raises(NotFound):
            orchestrator.get_job(job.job_id, users["eliteuser"])

    def test_soft_delete_hides_job_but_keeps_quota(self, orchestrator, repository, users) -> None:
        job = create_text_job(repository, users["testuser"].id)

        orchestrator.delete(job.job_id, users["testuser"])

        with pytest.raises(NotFound):
            orchestrator.get_job(job.job_id, users["testuser"])
        assert repository.get(job.job_id, include_deleted=True).deleted_at is not None
        assert orchestrator.subscriptions.usage(users["testuser"])["jobs_this_month"] == 1
        assert orchestrator.list_jobs(users["testuser"]) == ([], 0)

    def test_list_jobs_filters_and_paginates(self, orchestrator, repository, users) -> None:
        owner = users["testuser"]
        for _ in range(3):
            create_text_job(repository, owner.id)
        completed_job(repository, owner.id, platform="tiktok_video")

        jobs, total = orchestrator.list_jobs(owner, page=1, page_size=2)
        assert total == 4 and len(jobs) == 2
        jobs, total = orchestrator.list_jobs(owner, status=GenerationStatus.COMPLETED)
        assert total == 1
        jobs, total = orchestrator.list_jobs(owner, platform=Platform.TIKTOK_VIDEO, input_kind=InputKind.TEXT)
        assert total == 1


class TestDeals:
    @pytest.mark.asyncio
    async def test_link_and_unlink(self, orchestrator, repository, users) -> None:
        orchestrator.deals = MagicMock(
            get_deal=AsyncMock(return_value=Deal(deal_id="deal-7", title="Summer launch", brand_name="AquaSteel"))
        )
        job = completed_job(repository, users["testuser"].id)

        linked = await orchestrator.link_deal(job.job_id, users["testuser"], "deal-7")

        orchestrator.deals.get_deal.assert_awaited_once_with("deal-7", users["testuser"].id)
        assert linked.deal_connection["deal_title"] == "Summer launch"
        assert linked.deal_connection["brand_name"] == "AquaSteel"
        assert export_job(linked)["deal"] == {"deal_title": "Summer launch", "brand_name": "AquaSteel"}
        assert orchestrator.unlink_deal(job.job_id, users["testuser"]).deal_connection is None

    @pytest.mark.asyncio
    async def test_unknown_deal(self, orchestrator, repository, users) -> None:
        orchestrator.deals = MagicMock(get_deal=AsyncMock(side_effect=NotFound("Deal not found")))
        job = completed_job(repository, users["testuser"].id)

        with pytest.raises(NotFound):
            await orchestrator.link_deal(job.job_id, users["testuser"], "missing")

        assert repository.get(job.job_id).deal_connection is None


class FakeDealClient:
    def __init__(self, timeout: float = 30) -> None:
        self.timeout = timeout

    async def __aenter__(self) -> "FakeDealClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None

    get = AsyncMock()


class TestDealDirectory:
    @pytest.mark.asyncio
    async def test_unconfigured_directory(self) -> None:
        with patch("services.deals.config.get", return_value=None):
            directory = DealDirectory()

        with pytest.raises(PipelineError):
            await directory.get_deal("deal-1", 1)

    @pytest.mark.asyncio
    async def test_payload_is_mapped(self) -> None:
        FakeDealClient.get = AsyncMock(
            return_value={"id": "deal-1", "title": "Summer launch", "brand": {"name": "AquaSteel"}}
        )
        with patch("services.deals.AsyncHTTPClient", FakeDealClient):
            deal = await DealDirectory("https://deals.example.com/", token="t").get_deal("deal-1", 7)

        assert deal == Deal(deal_id="deal-1", title="Summer launch", brand_name="AquaSteel")
        FakeDealClient.get.assert_awaited_once_with(
            "https://deals.example.com/deals/deal-1",
            params={"owner": 7},
            headers={"Authorization": "Bearer t"},
        )

    @pytest.mark.asyncio
    async def test_missing_deal_maps_to_not_found(self) -> None:
        FakeDealClient.get = AsyncMock(
            side_effect=aiohttp.ClientResponseError(request_info=MagicMock(), history=(), status=404)
        )
        with patch("services.deals.AsyncHTTPClient", FakeDealClient):
            with pytest.raises(NotFound):
                await DealDirectory("https://deals.example.com").get_deal("gone", 7)


class TestStuckJobSweeper:
    def test_stale_processing_jobs_fail_with_timeout(self, repository, users) -> None:
        owner_id = users["testuser"].id
        stale = create_text_job(
            repository, owner_id, status="processing", updated_at=utcnow() - timedelta(minutes=30)
        )
        fresh = create_text_job(repository, owner_id, status="processing")
        finished = completed_job(repository, owner_id, updated_at=utcnow() - timedelta(minutes=30))

        swept = StuckJobSweeper(repository, timeout_minutes=15).sweep()

        assert swept == [stale.job_id]
        stored = repository.get(stale.job_id)
        assert stored.status == GenerationStatus.FAILED.value
        assert stored.processing_metadata["error_type"] == "timeout"
        assert stored.failed_generations == 1
        assert repository.get(fresh.job_id).status == GenerationStatus.PROCESSING.value
        assert repository.get(finished.job_id).status == GenerationStatus.COMPLETED.value

    @pytest.mark.asyncio
    async def test_start_and_stop(self, repository) -> None:
        sweeper = StuckJobSweeper(repository, timeout_minutes=15, interval_seconds=60)

        task = sweeper.start()
        assert sweeper.start() is task
        await sweeper.stop()

        assert task.cancelled() or task.done()


class TestExport:
    def test_export_requires_completed_script(self, repository, users) -> None:
        job = create_text_job(repository, users["testuser"].id)

        with pytest.raises(ValidationFailure):
            export_job(job)

    def test_json_export(self, repository, users) -> None:
        job = completed_job(repository, users["testuser"].id)

        document = export_job(job, ExportFormat.JSON)

        assert document["title"] == "Bottle launch"
        assert document["duration_seconds"] == 60
        assert document["script"]["hook"]["text"] == "Stop buying plastic bottles today"
        assert document["deal"] is None
        assert document["trend_snapshot"]["trending_audio"] == []

    def test_text_export(self, repository, users) -> None:
        job = completed_job(repository, users["testuser"].id)

        text = export_job(job, ExportFormat.TEXT)

        assert text.startswith("# Bottle launch\n")
        assert "Platform: instagram_reel" in text
        assert "## Hook (0-3 seconds)\nStop buying plastic bottles today" in text
        assert "## Scene 1: Beat 1 (0-10 seconds)" in text
        assert "Dialogue: Line 2 about the bottle" in text
        assert "## Call to Action\nGrab yours today\nLink in bio" in text
        assert "#hydration #eco" in text

    def test_status_view_hides_score_until_completed(self, repository, users) -> None:
        job = create_text_job(repository, users["testuser"].id)

        view = status_view(job)

        assert view["quality_score"] is None
        assert view["retry_count"] == 0


class TestQueueWorker:
    @pytest.mark.asyncio
    async def test_worker_runs_queued_jobs(self, orchestrator, repository, users) -> None:
        worker = QueueWorker(orchestrator, poll_interval=0.01, max_concurrency=1)
        job = await orchestrator.submit(users["testuser"], text_request())

        assert worker.poll_once() == job.job_id
        assert worker.poll_once() is None
        worker.stop()
        await worker.run_forever()

        assert repository.get(job.job_id).status == GenerationStatus.COMPLETED.value

    @pytest.mark.asyncio
    async def test_messages_without_job_id_are_ignored(self, orchestrator) -> None:
        orchestrator.queue.enqueue_message(orchestrator.queue_name, {"unexpected": True})

        assert QueueWorker(orchestrator).poll_once() is None
