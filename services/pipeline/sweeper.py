"""Periodic sweep of jobs stuck in processing."""

import asyncio
import contextlib
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from models.database import ScriptJob
from shared.config import config
from shared.enums import GenerationStatus
from shared.errors import JobTimeout
from shared.logging_utils import setup_logging

from . import state
from .repository import JobRepository

logger = setup_logging("stuck-job-sweeper")


class StuckJobSweeper:
    def __init__(
        self,
        repository: JobRepository,
        timeout_minutes: float | None = None,
        interval_seconds: float | None = None,
    ) -> None:
        self.repository = repository
        self.timeout = timedelta(
            minutes=timeout_minutes or config.get_pipeline_value("sweeper.timeout_minutes", 15)
        )
        self.interval_seconds = interval_seconds or config.get_pipeline_value(
            "sweeper.interval_seconds", 300
        )
        self._task: asyncio.Task | None = None

    def sweep(self) -> list[str]:
        """Fail every job whose processing has not advanced within the timeout."""
        swept = []
        for job_id in self.repository.find_stuck(self.timeout):
            job = self.repository.mutate(job_id, self._expire)
            if job is not None and job.status == GenerationStatus.FAILED.value:
                swept.append(job_id)
        if swept:
            logger.warning(f"Marked {len(swept)} stuck jobs as failed: {', '.join(swept)}")
        return swept

    def _expire(self, job: ScriptJob) -> None:
        # Re-checked inside the session; the job may have finished meanwhile.
        if job.status != GenerationStatus.PROCESSING.value:
            return
        minutes = int(self.timeout.total_seconds() // 60)
        error = JobTimeout(f"Job exceeded the {minutes} minute processing timeout")
        state.record_failure(job, error, job.retry_count)

    async def run_forever(self) -> None:
        logger.info(
            f"Stuck job sweeper started (timeout {self.timeout}, every {self.interval_seconds}s)"
        )
        while True:
            try:
                self.sweep()
            except SQLAlchemyError as exc:
                logger.error(f"Stuck job sweep failed: {exc}")
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_forever(), name="stuck-job-sweeper")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
