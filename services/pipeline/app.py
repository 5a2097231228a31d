"""Script generation service API endpoints."""

from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from database import SessionLocal
from models.database import User
from services.auth import get_current_user
from shared.enums import (
    ExportFormat,
    GenerationStatus,
    Granularity,
    InputKind,
    Platform,
    TargetDuration,
)
from shared.errors import (
    AdmissionDenied,
    ExtractionFailure,
    NotFound,
    PipelineError,
    SubscriptionLimitExceeded,
    ValidationFailure,
)
from shared.models import (
    AdmissionStatsResponse,
    APIResponse,
    DealLinkRequest,
    JobListResponse,
    JobResponse,
    JobStatusResponse,
    RegenerateRequest,
    ScriptJobCreate,
    UsageResponse,
    VariationRequest,
)
from shared.utils import config, setup_logging

from .exporter import export_job, serialize_job, status_view
from .orchestrator import PipelineOrchestrator
from .repository import JobRepository

logger = setup_logging("script-pipeline-service")

app = FastAPI(
    title="Script Pipeline Service",
    description="Asynchronous script generation from text briefs, documents and videos",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get("allowed_origins", ["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

repository = JobRepository(SessionLocal)
orchestrator = PipelineOrchestrator(repository)

ERROR_STATUS = {
    ValidationFailure: 400,
    SubscriptionLimitExceeded: 403,
    NotFound: 404,
    ExtractionFailure: 422,
    AdmissionDenied: 503,
}


def to_http_error(error: PipelineError) -> HTTPException:
    status_code = next(
        (code for kind, code in ERROR_STATUS.items() if isinstance(error, kind)), 502
    )
    return HTTPException(status_code=status_code, detail=error.to_dict())


def _job_response(job) -> JobResponse:
    return JobResponse.model_validate(serialize_job(job))


@app.get("/health")
async def health_check():
    """Health check endpoint for the script pipeline service."""
    decision = orchestrator.admission.check_admission()
    return APIResponse(
        message="Script Pipeline Service is healthy",
        data={
            "execution_mode": orchestrator.mode.value,
            "active_jobs": orchestrator.active_tasks,
            "memory": AdmissionStatsResponse(
                allowed=decision.allowed, level=decision.level, stats=decision.stats
            ).model_dump(mode="json"),
        },
    )


@app.post("/jobs", response_model=JobResponse, status_code=202)
async def create_job(
    request: ScriptJobCreate, current_user: User = Depends(get_current_user)
) -> JobResponse:
    """Create a script job from a text brief.

    Returns immediately with the job in ``pending``; poll the status endpoint
    for progress.
    """
    try:
        job = await orchestrator.submit(current_user, request)
        return _job_response(job)
    except PipelineError as e:
        logger.error(f"Rejected text job for user {current_user.id}: {e}")
        raise to_http_error(e) from e


@app.post("/jobs/upload", response_model=JobResponse, status_code=202)
async def create_job_from_upload(
    file: UploadFile = File(...),
    title: str = Form(..., min_length=1, max_length=200),
    input_kind: InputKind = Form(...),
    platform: Platform = Form(...),
    target_duration: TargetDuration = Form(TargetDuration.SECONDS_60),
    custom_duration: int | None = Form(None),
    granularity: Granularity = Form(Granularity.DETAILED),
    style_notes: str | None = Form(None, max_length=2000),
    language: str | None = Form(None, max_length=10),
    tags: str | None = Form(None, description="Comma-separated tags"),
    current_user: User = Depends(get_current_user),
) -> JobResponse:
    """Create a script job from an uploaded document or video."""
    if input_kind == InputKind.TEXT:
        raise HTTPException(status_code=400, detail="Use POST /jobs for text briefs")

    request = ScriptJobCreate(
        title=title,
        platform=platform,
        target_duration=target_duration,
        custom_duration=custom_duration,
        granularity=granularity,
        style_notes=style_notes,
        language=language,
        tags=[tag.strip() for tag in (tags or "").split(",") if tag.strip()],
    )
    try:
        job = await orchestrator.submit(current_user, request, upload=file, input_kind=input_kind)
        return _job_response(job)
    except PipelineError as e:
        logger.error(f"Rejected {input_kind.value} upload for user {current_user.id}: {e}")
        raise to_http_error(e) from e
    finally:
        await file.close()


@app.get("/jobs", response_model=JobListResponse)
async def list_jobs(
    status: GenerationStatus | None = Query(None, description="Filter by generation status"),
    platform: Platform | None = Query(None, description="Filter by platform"),
    input_kind: InputKind | None = Query(None, description="Filter by input kind"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
) -> JobListResponse:
    jobs, total = orchestrator.list_jobs(
        current_user, status=status, platform=platform, input_kind=input_kind, page=page, page_size=page_size
    )
    return JobListResponse(
        jobs=[JobStatusResponse.model_validate(status_view(job)) for job in jobs],
        total=total,
        page=page,
        page_size=page_size,
    )


@app.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job(job_id: str, current_user: User = Depends(get_current_user)) -> JobResponse:
    try:
        return _job_response(orchestrator.get_job(job_id, current_user))
    except PipelineError as e:
        raise to_http_error(e) from e


@app.get("/jobs/{job_id}/status", response_model=JobStatusResponse)
async def get_job_status(
    job_id: str, current_user: User = Depends(get_current_user)
) -> JobStatusResponse:
    try:
        return JobStatusResponse.model_validate(status_view(orchestrator.get_job(job_id, current_user)))
    except PipelineError as e:
        raise to_http_error(e) from e


@app.post("/jobs/{job_id}/regenerate", response_model=JobResponse, status_code=202)
async def regenerate_job(
    job_id: str,
    overrides: RegenerateRequest | None = None,
    current_user: User = Depends(get_current_user),
) -> JobResponse:
    """Run generation again, optionally with new style, granularity, platform or duration."""
    try:
        return _job_response(orchestrator.regenerate(job_id, current_user, overrides))
    except PipelineError as e:
        raise to_http_error(e) from e


@app.post("/jobs/{job_id}/variations", response_model=JobResponse)
async def create_variation(
    job_id: str, request: VariationRequest, current_user: User = Depends(get_current_user)
) -> JobResponse:
    try:
        return _job_response(orchestrator.create_variation(job_id, current_user, request))
    except PipelineError as e:
        raise to_http_error(e) from e


@app.get("/jobs/{job_id}/export")
async def export_script(
    job_id: str,
    format: ExportFormat = Query(ExportFormat.JSON, description="json or text"),
    current_user: User = Depends(get_current_user),
):
    """Export a completed script as a JSON document or as plain text."""
    try:
        job = orchestrator.get_job(job_id, current_user)
        exported = export_job(job, format)
    except PipelineError as e:
        raise to_http_error(e) from e

    if format == ExportFormat.TEXT:
        return PlainTextResponse(
            exported,
            headers={"Content-Disposition": f'attachment; filename="{job.job_id}_script.txt"'},
        )
    return APIResponse(message="Script content exported", data={"export": exported})


@app.put("/jobs/{job_id}/deal", response_model=JobResponse)
async def link_deal(
    job_id: str, request: DealLinkRequest, current_user: User = Depends(get_current_user)
) -> JobResponse:
    try:
        return _job_response(await orchestrator.link_deal(job_id, current_user, request.deal_id))
    except PipelineError as e:
        raise to_http_error(e) from e


@app.delete("/jobs/{job_id}/deal", response_model=JobResponse)
async def unlink_deal(job_id: str, current_user: User = Depends(get_current_user)) -> JobResponse:
    try:
        return _job_response(orchestrator.unlink_deal(job_id, current_user))
    except PipelineError as e:
        raise to_http_error(e) from e


@app.delete("/jobs/{job_id}")
async def delete_job(job_id: str, current_user: User = Depends(get_current_user)):
    try:
        orchestrator.delete(job_id, current_user)
    except PipelineError as e:
        raise to_http_error(e) from e
    return APIResponse(message="Script job deleted", data={"job_id": job_id})


@app.get("/usage", response_model=UsageResponse)
async def get_usage(current_user: User = Depends(get_current_user)) -> UsageResponse:
    """Monthly usage against the caller's subscription tier."""
    return UsageResponse(**orchestrator.subscriptions.usage(current_user))
