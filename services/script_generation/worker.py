"""Generation worker: brief in, structured script out."""

import time
from dataclasses import dataclass, field
from typing import Any

from services.pipeline import state
from services.pipeline.repository import JobRepository
from services.resource_monitor import AdmissionController
from shared.config import config
from shared.enums import GenerationStatus, Granularity, Platform
from shared.errors import GenerationFailure, JobNoLongerActive, PipelineError
from shared.logging_utils import setup_logging
from shared.retry import RetryPolicy, Sleeper, default_sleep

from .drivers import CompletionDriver, CompletionResult
from .postprocessor import GenerationParseError, normalize, parse_generation
from .prompts import SYSTEM_PROMPT, build_generation_prompt
from .quality import quality_score

logger = setup_logging("generation-worker")


@dataclass
class GenerationResult:
    content: dict[str, Any]
    quality_score: int
    retry_count: int
    tokens_used: int
    processing_time: float
    model: str | None = None
    placeholder_fields: list[str] = field(default_factory=list)


class GenerationWorker:
    """Generates a script for one job with bounded retries.

    A job ends ``completed`` whenever the model produced any text at all;
    unusable text is repaired by the post-processor. It ends ``failed`` only
    when no completion could be obtained within the retry budget.
    """

    def __init__(
        self,
        repository: JobRepository,
        admission: AdmissionController,
        driver: CompletionDriver | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Sleeper = default_sleep,
    ) -> None:
        self.repository = repository
        self.admission = admission
        self._driver = driver
        self.retry_policy = retry_policy or RetryPolicy.from_config(
            config.get_pipeline_value("generation.retry", {}),
            max_retries=2,
            base_delay=1.0,
            factor=2.0,
        )
        self.sleep = sleep
        self.params = {
            "model": config.get_pipeline_value("generation.model", "gpt-4o"),
            "temperature": config.get_pipeline_value("generation.temperature", 0.7),
            "max_tokens": config.get_pipeline_value("generation.max_tokens", 4000),
        }

    @property
    def driver(self) -> CompletionDriver:
        """Lazy load the completion driver selected by configuration."""
        if self._driver is None:
            timeout = config.get_pipeline_value("generation.timeout_seconds", 120)
            if config.get("use_azure_openai"):
                from .drivers import AzureOpenAICompletionDriver

                self._driver = AzureOpenAICompletionDriver(timeout=timeout)
            else:
                from .drivers import OpenAICompletionDriver

                self._driver = OpenAICompletionDriver(timeout=timeout)
        return self._driver

    @driver.setter
    def driver(self, driver: CompletionDriver) -> None:
        self._driver = driver

    async def generate(self, job_id: str) -> GenerationResult:
        job = self.repository.get(job_id)
        if job is None:
            raise GenerationFailure(f"Job {job_id} not found")

        try:
            if not job.brief_text:
                raise GenerationFailure("Job has no brief text to generate from")
            self.admission.ensure_admission()
        except PipelineError as error:
            logger.error(f"Generation for job {job_id} could not start: {error}")
            self.repository.mutate(job_id, lambda row: state.record_failure(row, error, 0))
            raise

        if not state.is_processing(self.repository.mutate(job_id, state.start_processing)):
            raise JobNoLongerActive(f"Job {job_id} cannot start generation", job_id=job_id)

        platform = Platform(job.platform)
        duration = job.duration_seconds
        prompt = build_generation_prompt(
            job.brief_text, job.style_notes, platform, Granularity(job.granularity), duration
        )

        started = time.monotonic()
        policy = self.retry_policy
        attempt = 0
        tokens_used = 0
        parsed: dict[str, Any] | None = None
        last_completion: CompletionResult | None = None
        last_error: str | None = None

        while attempt < policy.max_attempts:
            attempt += 1
            if attempt > 1:
                self._heartbeat(job_id)
            try:
                completion = await self.driver.complete(SYSTEM_PROMPT, prompt, self.params)
                last_completion = completion
                tokens_used += completion.tokens_used
                parsed = parse_generation(completion.text)
                break
            except (GenerationFailure, GenerationParseError) as exc:
                last_error = str(exc)
                logger.warning(
                    f"Generation attempt {attempt}/{policy.max_attempts} for job {job_id} failed: {exc}"
                )
                if attempt < policy.max_attempts:
                    await self.sleep(policy.delay_for(attempt))

        retry_count = attempt - 1
        if last_completion is None:
            error = GenerationFailure(last_error or "Completion service returned no response")
            logger.error(f"Generation failed for job {job_id} after {retry_count} retries: {error}")
            self.repository.mutate(job_id, lambda row: state.record_failure(row, error, retry_count))
            raise error

        if parsed is None:
            logger.warning(
                f"No parseable completion for job {job_id}; normalizing the last response into fallbacks"
            )

        normalized = normalize(parsed or {}, platform, duration)
        score = quality_score(normalized.content, normalized.placeholder_fields)
        elapsed = round(time.monotonic() - started, 3)
        metadata = {
            "model": last_completion.model or self.params["model"],
            "tokens_used": tokens_used,
            "processing_time": elapsed,
            "confidence_score": score,
            "retry_count": retry_count,
            "last_error": last_error if parsed is None else None,
            "error_type": None,
            "placeholder_fields": normalized.placeholder_fields,
        }
        stored = self.repository.mutate(
            job_id, lambda row: state.record_generation(row, normalized.content, metadata)
        )
        if stored is None or stored.status != GenerationStatus.COMPLETED.value:
            logger.warning(f"Job {job_id} left processing before its script was stored; discarding it")
            raise JobNoLongerActive(f"Job {job_id} is no longer processing", job_id=job_id)

        logger.info(
            f"Generated script for job {job_id}: {len(normalized.content['scenes'])} scenes, "
            f"quality {score}, {retry_count} retries, {elapsed}s"
        )
        return GenerationResult(
            content=normalized.content,
            quality_score=score,
            retry_count=retry_count,
            tokens_used=tokens_used,
            processing_time=elapsed,
            model=metadata["model"],
            placeholder_fields=normalized.placeholder_fields,
        )

    def _heartbeat(self, job_id: str) -> None:
        """Refresh ``updated_at`` between attempts so the sweeper sees progress."""
        if not state.is_processing(self.repository.mutate(job_id, state.heartbeat)):
            raise JobNoLongerActive(f"Job {job_id} is no longer processing", job_id=job_id)
