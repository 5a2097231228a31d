"""Job state transitions shared by the pipeline stages.

Each function mutates a ScriptJob loaded inside a repository session; callers
pass them to ``JobRepository.mutate`` so every transition commits atomically.
Transitions only move a job forward: once the sweeper (or a stage) has failed
a job, later writes from a worker still running on it are ignored.
"""

from typing import Any

from models.database import ScriptJob
from models.database.script_job import empty_processing_metadata, empty_trend_snapshot
from services.script_generation.postprocessor import minimal_generation
from shared.enums import GenerationStatus, PipelineStage
from shared.errors import PipelineError
from shared.utils import utcnow


def is_processing(job: ScriptJob | None) -> bool:
    return job is not None and job.status == GenerationStatus.PROCESSING.value


def seed_placeholder_content(job: ScriptJob) -> None:
    """Give a job without a script the minimal placeholder structure."""
    if job.generated_content:
        return
    fallback = minimal_generation(job.duration_seconds)
    job.generated_content = fallback.content
    metadata = {**empty_processing_metadata(), **(job.processing_metadata or {})}
    metadata["placeholder_fields"] = fallback.placeholder_fields
    job.processing_metadata = metadata


def start_processing(job: ScriptJob) -> None:
    if job.status in (GenerationStatus.PENDING.value, GenerationStatus.PROCESSING.value):
        job.status = GenerationStatus.PROCESSING.value


def heartbeat(job: ScriptJob) -> None:
    """No-op mutation; ``JobRepository.mutate`` refreshes ``updated_at``."""


def record_failure(job: ScriptJob, error: Exception, retry_count: int) -> None:
    """Terminal failure: reason and retry count recorded, augmentation reset."""
    if job.status == GenerationStatus.FAILED.value:
        # First recorded reason wins.
        return
    error_type = error.error_type if isinstance(error, PipelineError) else "internal_error"
    message = error.message if isinstance(error, PipelineError) else str(error) or type(error).__name__

    metadata = {**empty_processing_metadata(), **(job.processing_metadata or {})}
    metadata.update({"retry_count": retry_count, "last_error": message, "error_type": error_type})

    job.status = GenerationStatus.FAILED.value
    job.pipeline_stage = PipelineStage.DONE.value
    job.processing_metadata = metadata
    job.variations = []
    job.trend_snapshot = empty_trend_snapshot()
    job.failed_generations = (job.failed_generations or 0) + 1
    job.last_processed_at = utcnow()
    seed_placeholder_content(job)


def record_transcription(job: ScriptJob, record: dict[str, Any], brief_text: str) -> None:
    if not is_processing(job):
        return
    job.transcription = record
    job.brief_text = brief_text
    job.pipeline_stage = PipelineStage.GENERATION.value


def record_generation(
    job: ScriptJob, content: dict[str, Any], metadata: dict[str, Any]
) -> None:
    if not is_processing(job):
        return
    job.status = GenerationStatus.COMPLETED.value
    job.pipeline_stage = PipelineStage.AUGMENTATION.value
    job.generated_content = content
    job.processing_metadata = {**empty_processing_metadata(), **metadata}
    job.successful_generations = (job.successful_generations or 0) + 1
    job.last_processed_at = utcnow()


def reset_for_regeneration(job: ScriptJob) -> None:
    """Back to pending; history counters are left for the new attempt to update."""
    job.status = GenerationStatus.PENDING.value
    job.pipeline_stage = PipelineStage.GENERATION.value
    job.times_generated = (job.times_generated or 1) + 1
    job.variations = []
    job.trend_snapshot = empty_trend_snapshot()
    metadata = {**empty_processing_metadata(), **(job.processing_metadata or {})}
    metadata.update({"retry_count": 0, "last_error": None, "error_type": None})
    job.processing_metadata = metadata
