"""Job serialization and script export."""

from typing import Any

from models.database import ScriptJob
from models.database.script_job import empty_processing_metadata, empty_trend_snapshot
from services.script_generation.postprocessor import minimal_generation
from shared.enums import ExportFormat, GenerationStatus
from shared.errors import ValidationFailure


def serialize_job(job: ScriptJob) -> dict[str, Any]:
    """Full job document; content, metadata and trend snapshot are always present."""
    return {
        "job_id": job.job_id,
        "title": job.title,
        "input_kind": job.input_kind,
        "platform": job.platform,
        "target_duration": job.target_duration,
        "custom_duration": job.custom_duration,
        "duration_seconds": job.duration_seconds,
        "granularity": job.granularity,
        "style_notes": job.style_notes,
        "status": job.status,
        "pipeline_stage": job.pipeline_stage,
        "brief_text": job.brief_text,
        "document": job.document,
        "video": job.video,
        "transcription": job.transcription,
        "generated_content": job.generated_content or minimal_generation(job.duration_seconds).content,
        "processing_metadata": {**empty_processing_metadata(), **(job.processing_metadata or {})},
        "variations": list(job.variations or []),
        "trend_snapshot": job.trend_snapshot or empty_trend_snapshot(),
        "times_generated": job.times_generated or 1,
        "variations_created": job.variations_created or 0,
        "successful_generations": job.successful_generations or 0,
        "failed_generations": job.failed_generations or 0,
        "deal_connection": job.deal_connection,
        "tags": list(job.tags or []),
        "created_at": job.created_at,
        "updated_at": job.updated_at,
        "last_processed_at": job.last_processed_at,
    }


def status_view(job: ScriptJob) -> dict[str, Any]:
    metadata = job.processing_metadata or {}
    completed = job.status == GenerationStatus.COMPLETED.value
    return {
        "job_id": job.job_id,
        "status": job.status,
        "pipeline_stage": job.pipeline_stage,
        "input_kind": job.input_kind,
        "retry_count": job.retry_count,
        "last_error": metadata.get("last_error"),
        "error_type": metadata.get("error_type"),
        "quality_score": metadata.get("confidence_score") if completed else None,
        "updated_at": job.updated_at,
    }


def export_job(job: ScriptJob, fmt: ExportFormat = ExportFormat.JSON) -> dict[str, Any] | str:
    if job.status != GenerationStatus.COMPLETED.value or not job.generated_content:
        raise ValidationFailure("Script generation not completed")

    document = {
        "title": job.title,
        "platform": job.platform,
        "duration_seconds": job.duration_seconds,
        "script": job.generated_content,
        "variations": list(job.variations or []),
        "trend_snapshot": job.trend_snapshot or empty_trend_snapshot(),
        "created_at": job.created_at.isoformat() if job.created_at else None,
        "deal": (
            {
                "deal_title": job.deal_connection.get("deal_title"),
                "brand_name": job.deal_connection.get("brand_name"),
            }
            if job.deal_connection
            else None
        ),
    }
    if fmt == ExportFormat.TEXT:
        return render_text(document)
    return document


def render_text(document: dict[str, Any]) -> str:
    script = document["script"]
    lines = [
        f"# {document['title']}",
        "",
        f"Platform: {document['platform']}",
        f"Duration: {document['duration_seconds']} seconds",
        "",
    ]

    hook = script.get("hook") or {}
    if hook.get("text"):
        lines += [f"## Hook ({hook.get('duration', '')})", hook["text"], ""]

    for scene in script.get("scenes") or []:
        lines += [
            f"## Scene {scene.get('scene_number')}: {scene.get('title', '')} ({scene.get('timeframe', '')})",
            f"Visual: {scene.get('visual_description', '')}",
            f"Dialogue: {scene.get('dialogue', '')}",
            f"Camera: {scene.get('camera_angle', '')}",
            "",
        ]

    cta = script.get("call_to_action") or {}
    if cta.get("primary"):
        lines += ["## Call to Action", cta["primary"]]
        if cta.get("secondary"):
            lines.append(cta["secondary"])
        lines.append("")

    hashtags = script.get("hashtags") or {}
    tags = [tag for group in ("primary", "secondary", "trending") for tag in hashtags.get(group) or []]
    if tags:
        lines += ["## Hashtags", " ".join(tags), ""]

    return "\n".join(lines).rstrip() + "\n"
