"""Transcription worker: video reference in, transcription record out."""

import time
from pathlib import Path

from services.pipeline import state
from services.pipeline.repository import JobRepository
from services.resource_monitor import AdmissionController
from shared.config import config
from shared.enums import PipelineStage
from shared.errors import ExtractionFailure, JobNoLongerActive, PipelineError, TranscriptionFailure
from shared.logging_utils import setup_logging
from shared.models import MediaReference, TranscriptionRecord
from shared.retry import RetryPolicy, Sleeper, default_sleep

from .drivers import RawTranscript, TranscriptionDriver
from .text_analysis import clean_transcript, estimate_confidence, estimate_speaker_count

logger = setup_logging("transcription-worker")


class TranscriptionWorker:
    """Runs one job's transcription with retries and guaranteed media cleanup.

    Exactly one outcome is persisted per call: a transcription record with the
    brief text, or a failed job carrying the reason and retry count.
    """

    def __init__(
        self,
        repository: JobRepository,
        admission: AdmissionController,
        driver: TranscriptionDriver | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Sleeper = default_sleep,
    ) -> None:
        self.repository = repository
        self.admission = admission
        self._driver = driver
        self.retry_policy = retry_policy or RetryPolicy.from_config(
            config.get_pipeline_value("transcription.retry", {}),
            max_retries=2,
            base_delay=2.0,
            factor=2.0,
        )
        self.sleep = sleep

    @property
    def driver(self) -> TranscriptionDriver:
        """Lazy load the speech-to-text driver."""
        if self._driver is None:
            from .drivers import OpenAIWhisperDriver

            self._driver = OpenAIWhisperDriver()
        return self._driver

    @driver.setter
    def driver(self, driver: TranscriptionDriver) -> None:
        self._driver = driver

    async def transcribe(self, job_id: str) -> TranscriptionRecord:
        job = self.repository.get(job_id)
        if job is None:
            raise ExtractionFailure(f"Job {job_id} not found")
        if not job.video:
            error = ExtractionFailure("Job has no video reference to transcribe")
            self._persist_failure(job_id, error, 0)
            raise error

        media = MediaReference(**job.video)
        media_path = Path(media.path)
        attempts = 0
        try:
            if not media_path.is_file():
                raise ExtractionFailure(f"Video file is missing or unreadable: {media.filename}")

            self.admission.ensure_size(media_path.stat().st_size)
            if not state.is_processing(self.repository.mutate(job_id, state.start_processing)):
                raise JobNoLongerActive(f"Job {job_id} cannot start transcription", job_id=job_id)

            started = time.monotonic()
            raw, attempts = await self._transcribe_with_retries(job_id, media_path, media, job.language)
            record = self._build_record(raw, time.monotonic() - started)
            if not record.cleaned_text:
                raise ExtractionFailure("No speech was detected in the video")

            stored = self.repository.mutate(
                job_id,
                lambda row: state.record_transcription(
                    row, record.model_dump(mode="json"), record.cleaned_text
                ),
            )
            if stored is None or stored.pipeline_stage != PipelineStage.GENERATION.value:
                raise JobNoLongerActive(f"Job {job_id} is no longer processing", job_id=job_id)
            logger.info(
                f"Transcribed job {job_id}: {len(record.cleaned_text)} characters, "
                f"{record.segment_count} segments, confidence {record.confidence}"
            )
            return record
        except JobNoLongerActive:
            logger.warning(f"Job {job_id} left processing during transcription; result discarded")
            raise
        except (PipelineError, OSError) as error:
            retries = max(getattr(error, "attempts", attempts) - 1, 0)
            logger.error(f"Transcription failed for job {job_id} after {retries} retries: {error}")
            self._persist_failure(job_id, error, retries)
            raise
        finally:
            self._delete_media(media_path)
            self.admission.after_large_operation(media.size)

    async def _transcribe_with_retries(
        self, job_id: str, path: Path, media: MediaReference, language: str | None
    ) -> tuple[RawTranscript, int]:
        policy = self.retry_policy
        attempt = 0
        while True:
            attempt += 1
            if attempt > 1 and not state.is_processing(self.repository.mutate(job_id, state.heartbeat)):
                raise JobNoLongerActive(f"Job {job_id} is no longer processing", job_id=job_id)
            try:
                raw = await self.driver.transcribe(path, media.mime_type, language)
                return raw, attempt
            except TranscriptionFailure as failure:
                failure.attempts = attempt
                if not failure.retryable or attempt >= policy.max_attempts:
                    raise
                delay = policy.delay_for(attempt)
                logger.warning(
                    f"Transcription attempt {attempt} for job {job_id} failed "
                    f"({failure.kind.value}); retrying in {delay:.1f}s"
                )
                self.admission.request_reclamation()
                await self.sleep(delay)

    @staticmethod
    def _build_record(raw: RawTranscript, elapsed: float) -> TranscriptionRecord:
        cleaned = clean_transcript(raw.text)
        return TranscriptionRecord(
            raw_text=raw.text,
            cleaned_text=cleaned,
            speaker_count=estimate_speaker_count(cleaned),
            language=raw.language,
            confidence=estimate_confidence(raw.segments),
            processing_time=round(elapsed, 3),
            segment_count=len(raw.segments),
        )

    def _persist_failure(self, job_id: str, error: Exception, retries: int) -> None:
        self.repository.mutate(job_id, lambda row: state.record_failure(row, error, retries))

    @staticmethod
    def _delete_media(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
            logger.info(f"Deleted source media {path.name}")
        except OSError as exc:
            logger.error(f"Could not delete source media {path}: {exc}")
