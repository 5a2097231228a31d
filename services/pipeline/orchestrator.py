"""Pipeline orchestration: submission, dispatch and stage sequencing.

A job's durable ``pipeline_stage`` is the only handoff between stages, so a
job can be picked up by any runner (in-process task or queue worker) after a
restart.
"""

import asyncio
from pathlib import Path
from typing import Any
from uuid import uuid4

from models.database import ScriptJob, User
from models.database.script_job import empty_processing_metadata, empty_trend_snapshot
from services.deals import DealDirectory
from services.ingestion import IngestionInput, IngestionService
from services.ingestion.service import AsyncReadable
from services.resource_monitor import AdmissionController
from services.script_generation import GenerationWorker
from services.subscriptions import SubscriptionService
from services.transcription import TranscriptionWorker
from services.trends import TrendAugmenter
from services.variations import VariationGenerator
from shared.config import config
from shared.enums import (
    DURATION_SECONDS,
    MAX_CUSTOM_DURATION,
    MIN_CUSTOM_DURATION,
    ExecutionMode,
    GenerationStatus,
    InputKind,
    PipelineStage,
    Platform,
    TargetDuration,
)
from shared.errors import NotFound, PipelineError, SubscriptionLimitExceeded, ValidationFailure
from shared.logging_utils import setup_logging
from shared.models import RegenerateRequest, ScriptJobCreate, VariationRequest
from shared.utils import utcnow

from . import state
from .repository import JobRepository

logger = setup_logging("pipeline-orchestrator")


def validate_duration(target: TargetDuration, custom_duration: int | None) -> None:
    if target == TargetDuration.CUSTOM:
        if custom_duration is None:
            raise ValidationFailure("custom_duration is required when target_duration is custom")
        if not MIN_CUSTOM_DURATION <= custom_duration <= MAX_CUSTOM_DURATION:
            raise ValidationFailure(
                f"custom_duration must be between {MIN_CUSTOM_DURATION} and {MAX_CUSTOM_DURATION} seconds"
            )
    elif target not in DURATION_SECONDS:
        raise ValidationFailure(f"Unsupported target duration: {target}")


class PipelineOrchestrator:
    def __init__(
        self,
        repository: JobRepository,
        admission: AdmissionController | None = None,
        ingestion: IngestionService | None = None,
        transcription: TranscriptionWorker | None = None,
        generation: GenerationWorker | None = None,
        variations: VariationGenerator | None = None,
        trends: TrendAugmenter | None = None,
        subscriptions: SubscriptionService | None = None,
        deals: DealDirectory | None = None,
        mode: ExecutionMode | None = None,
    ) -> None:
        self.repository = repository
        self.admission = admission or AdmissionController()
        self.ingestion = ingestion or IngestionService(self.admission)
        self.transcription = transcription or TranscriptionWorker(repository, self.admission)
        self.generation = generation or GenerationWorker(repository, self.admission)
        self.variations = variations or VariationGenerator()
        self.trends = trends or TrendAugmenter()
        self.subscriptions = subscriptions or SubscriptionService(repository)
        self._deals = deals
        self._queue = None
        self.mode = mode or ExecutionMode(config.get_pipeline_value("execution.mode", "inline"))
        self.queue_name = config.get_pipeline_value("execution.queue_name", "script_generation_jobs")
        self._tasks: set[asyncio.Task] = set()

    @property
    def queue(self):
        """Lazy load the redis queue only when queue mode is used."""
        if self._queue is None:
            from services.queue import QueueManager

            self._queue = QueueManager()
        return self._queue

    @queue.setter
    def queue(self, queue) -> None:
        self._queue = queue

    @property
    def deals(self) -> DealDirectory:
        if self._deals is None:
            self._deals = DealDirectory()
        return self._deals

    @deals.setter
    def deals(self, deals: DealDirectory) -> None:
        self._deals = deals

    @property
    def active_tasks(self) -> int:
        return len(self._tasks)

    # Submission

    async def submit(
        self,
        owner: User,
        request: ScriptJobCreate,
        upload: AsyncReadable | None = None,
        input_kind: InputKind = InputKind.TEXT,
    ) -> ScriptJob:
        """Validate, ingest and persist a new job, then hand it to the pipeline.

        Everything that can be rejected up front (request shape, tier limits,
        admission, document extraction) raises here; later failures are
        recorded on the job.
        """
        validate_duration(request.target_duration, request.custom_duration)
        if input_kind == InputKind.TEXT:
            if upload is not None or not request.brief_text:
                raise ValidationFailure("Text jobs require brief_text and no uploaded file")
        else:
            if upload is None:
                raise ValidationFailure(f"An uploaded file is required for {input_kind.value} jobs")
            if request.brief_text:
                raise ValidationFailure("Provide either brief_text or an uploaded file, not both")

        limits = self.subscriptions.check_submission(owner, input_kind)

        media = None
        if upload is not None:
            self.admission.ensure_admission()
            media = await self.ingestion.store_upload(
                upload, input_kind, limits.max_upload_bytes(input_kind)
            )

        try:
            result = await self.ingestion.ingest(
                IngestionInput(kind=input_kind, text=request.brief_text, media=media)
            )
            job = ScriptJob(
                job_id=str(uuid4()),
                owner_id=owner.id,
                title=request.title,
                input_kind=input_kind.value,
                platform=request.platform.value,
                target_duration=request.target_duration.value,
                custom_duration=(
                    request.custom_duration
                    if request.target_duration == TargetDuration.CUSTOM
                    else None
                ),
                granularity=request.granularity.value,
                style_notes=request.style_notes,
                language=request.language,
                tags=list(request.tags),
                source_text=result.brief_text if input_kind == InputKind.TEXT else None,
                document=media.model_dump() if input_kind == InputKind.DOCUMENT else None,
                video=media.model_dump() if input_kind == InputKind.VIDEO else None,
                brief_text=result.brief_text,
                status=GenerationStatus.PENDING.value,
                pipeline_stage=(
                    PipelineStage.TRANSCRIPTION.value
                    if result.needs_transcription
                    else PipelineStage.GENERATION.value
                ),
                processing_metadata=empty_processing_metadata(),
                trend_snapshot=empty_trend_snapshot(),
                variations=[],
            )
            state.seed_placeholder_content(job)
            job = self.repository.create(job)
        except Exception:
            if media is not None:
                Path(media.path).unlink(missing_ok=True)
            raise

        logger.info(f"Created {input_kind.value} job {job.job_id} for user {owner.id} on {job.platform}")
        self.dispatch(job.job_id)
        return job

    def dispatch(self, job_id: str) -> None:
        """Hand a job to a runner without waiting for it."""
        if self.mode == ExecutionMode.QUEUE:
            self.queue.enqueue_message(self.queue_name, {"job_id": job_id})
            logger.info(f"Queued job {job_id} on '{self.queue_name}'")
            return

        task = asyncio.create_task(self.run(job_id), name=f"pipeline-{job_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_for_tasks(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # Execution

    async def run(self, job_id: str) -> None:
        """Run the remaining stages of a job. Failures end up on the job record."""
        job = self.repository.get(job_id)
        if job is None:
            logger.warning(f"Job {job_id} no longer exists; skipping")
            return

        stage = PipelineStage(job.pipeline_stage)
        try:
            if stage == PipelineStage.TRANSCRIPTION:
                await self.transcription.transcribe(job_id)
                stage = PipelineStage.GENERATION
            if stage == PipelineStage.GENERATION:
                await self.generation.generate(job_id)
                stage = PipelineStage.AUGMENTATION
            if stage == PipelineStage.AUGMENTATION:
                await self.augment(job_id)
        except PipelineError as error:
            # Workers persist their own failures before raising.
            logger.error(f"Pipeline for job {job_id} stopped at {stage.value}: {error}")
        except Exception as error:
            logger.exception(f"Unexpected error in pipeline for job {job_id} at {stage.value}")
            self.repository.mutate(
                job_id, lambda row: state.record_failure(row, error, row.retry_count)
            )

    async def augment(self, job_id: str) -> None:
        """Variations and trends run independently; each only touches its own field."""
        job = self.repository.get(job_id)
        if job is None or job.status != GenerationStatus.COMPLETED.value:
            return

        owner = self.repository.get_user(job.owner_id)
        steps = []
        if owner is not None:
            limits = self.subscriptions.limits_for(owner)
            if limits.ab_variations:
                steps.append(self._attach_variations(job))
            if limits.trend_integration:
                steps.append(self._attach_trends(job))

        for outcome in await asyncio.gather(*steps, return_exceptions=True):
            if isinstance(outcome, Exception):
                logger.error(f"Augmentation step failed for job {job_id}: {outcome}")

        self.repository.update(job_id, pipeline_stage=PipelineStage.DONE.value)
        logger.info(f"Pipeline finished for job {job_id}")

    async def _attach_variations(self, job: ScriptJob) -> None:
        variations = self.variations.generate_variations(job.generated_content, job.platform)
        self.repository.update(job.job_id, variations=variations)

    async def _attach_trends(self, job: ScriptJob) -> None:
        snapshot = await self.trends.augment(job.platform)
        self.repository.update(job.job_id, trend_snapshot=snapshot.model_dump(mode="json"))

    async def resume_interrupted(self) -> int:
        """Re-dispatch pending jobs left behind by a previous process."""
        if self.mode == ExecutionMode.QUEUE:
            # Queued jobs survive restarts in redis.
            return 0
        job_ids = self.repository.find_resumable()
        for job_id in job_ids:
            self.dispatch(job_id)
        if job_ids:
            logger.info(f"Resumed {len(job_ids)} interrupted jobs")
        return len(job_ids)

    # Job operations

    def get_job(self, job_id: str, owner: User) -> ScriptJob:
        job = self.repository.get(job_id, owner_id=owner.id)
        if job is None:
            raise NotFound("Script job not found", job_id=job_id)
        return job

    def regenerate(self, job_id: str, owner: User, overrides: RegenerateRequest | None = None) -> ScriptJob:
        job = self.get_job(job_id, owner)
        if job.status not in (GenerationStatus.COMPLETED.value, GenerationStatus.FAILED.value):
            raise ValidationFailure(f"Job is {job.status}; only completed or failed jobs can be regenerated")
        if not job.brief_text:
            raise ValidationFailure("Job has no brief to regenerate from")

        changes: dict[str, Any] = {}
        if overrides is not None:
            if overrides.target_duration is not None:
                validate_duration(overrides.target_duration, overrides.custom_duration)
                changes["target_duration"] = overrides.target_duration.value
                changes["custom_duration"] = (
                    overrides.custom_duration
                    if overrides.target_duration == TargetDuration.CUSTOM
                    else None
                )
            if overrides.style_notes is not None:
                changes["style_notes"] = overrides.style_notes
            if overrides.granularity is not None:
                changes["granularity"] = overrides.granularity.value
            if overrides.platform is not None:
                changes["platform"] = overrides.platform.value

        def apply(row: ScriptJob) -> None:
            for name, value in changes.items():
                setattr(row, name, value)
            state.reset_for_regeneration(row)

        job = self.repository.mutate(job_id, apply)
        logger.info(f"Regeneration {job.times_generated} requested for job {job_id}")
        self.dispatch(job_id)
        return job

    def create_variation(self, job_id: str, owner: User, request: VariationRequest) -> ScriptJob:
        job = self.get_job(job_id, owner)
        if not self.subscriptions.limits_for(owner).ab_variations:
            raise SubscriptionLimitExceeded("A/B testing is not available in your subscription tier")
        if job.status != GenerationStatus.COMPLETED.value or not job.generated_content:
            raise ValidationFailure("Variations can only be created for completed scripts")

        existing = list(job.variations or [])
        if request.changes:
            if len(existing) >= self.variations.max_variations:
                raise ValidationFailure(f"A script can hold at most {self.variations.max_variations} variations")
            created = [
                {
                    "variation_type": request.variation_type.value,
                    "title": request.title or request.variation_type.value.replace("_", " ").title(),
                    "description": request.description or "",
                    "changes": request.changes,
                    "created_at": utcnow().isoformat(),
                }
            ]
        else:
            created = self.variations.create_variation(
                job.generated_content, request.variation_type, existing=len(existing)
            )
            if not created:
                raise ValidationFailure(
                    f"No {request.variation_type.value} can be derived for this script"
                )

        def apply(row: ScriptJob) -> None:
            row.variations = list(row.variations or []) + created
            row.variations_created = (row.variations_created or 0) + len(created)

        job = self.repository.mutate(job_id, apply)
        logger.info(f"Created {len(created)} {request.variation_type.value} for job {job_id}")
        return job

    def delete(self, job_id: str, owner: User) -> ScriptJob:
        self.get_job(job_id, owner)

        def apply(row: ScriptJob) -> None:
            row.is_deleted = True
            row.deleted_at = utcnow()

        job = self.repository.mutate(job_id, apply)
        logger.info(f"Soft-deleted job {job_id}")
        return job

    async def link_deal(self, job_id: str, owner: User, deal_id: str) -> ScriptJob:
        self.get_job(job_id, owner)
        deal = await self.deals.get_deal(deal_id, owner.id)
        connection = {
            "deal_id": deal.deal_id,
            "deal_title": deal.title,
            "brand_name": deal.brand_name,
            "connected_at": utcnow().isoformat(),
        }
        job = self.repository.update(job_id, deal_connection=connection)
        logger.info(f"Linked job {job_id} to deal {deal.deal_id}")
        return job

    def unlink_deal(self, job_id: str, owner: User) -> ScriptJob:
        self.get_job(job_id, owner)
        job = self.repository.update(job_id, deal_connection=None)
        logger.info(f"Unlinked job {job_id} from its deal")
        return job

    def list_jobs(
        self,
        owner: User,
        status: GenerationStatus | None = None,
        platform: Platform | None = None,
        input_kind: InputKind | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[ScriptJob], int]:
        return self.repository.list_for_owner(
            owner.id,
            status=status,
            platform=platform.value if platform else None,
            input_kind=input_kind,
            page=page,
            page_size=page_size,
        )
