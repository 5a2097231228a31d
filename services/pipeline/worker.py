"""Queue consumer that runs pipeline jobs pushed by the API in queue mode.

Run with ``python -m services.pipeline.worker``.
"""

import asyncio

from shared.config import config
from shared.logging_utils import setup_logging

from .orchestrator import PipelineOrchestrator

logger = setup_logging("pipeline-worker")


class QueueWorker:
    def __init__(
        self,
        orchestrator: PipelineOrchestrator,
        poll_interval: float | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.poll_interval = poll_interval or config.get_pipeline_value(
            "execution.poll_interval_seconds", 1.0
        )
        self.max_concurrency = max_concurrency or config.get_pipeline_value(
            "execution.worker_concurrency", 4
        )
        self._running: set[asyncio.Task] = set()
        self._stopped = asyncio.Event()

    def poll_once(self) -> str | None:
        """Start the next queued job, if any and if a slot is free."""
        if len(self._running) >= self.max_concurrency:
            return None
        message = self.orchestrator.queue.dequeue_message(self.orchestrator.queue_name)
        if message is None:
            return None
        job_id = message.get("job_id")
        if not job_id:
            logger.error(f"Ignoring queue message without job_id: {message}")
            return None

        task = asyncio.create_task(self.orchestrator.run(job_id), name=f"pipeline-{job_id}")
        self._running.add(task)
        task.add_done_callback(self._running.discard)
        logger.info(f"Picked up job {job_id}")
        return job_id

    async def run_forever(self) -> None:
        logger.info(f"Pipeline worker consuming '{self.orchestrator.queue_name}'")
        while not self._stopped.is_set():
            job_id = self.poll_once()
            if job_id is None:
                await asyncio.sleep(self.poll_interval)
        if self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)

    def stop(self) -> None:
        self._stopped.set()


async def main() -> None:
    from database import SessionLocal, init_database
    from shared.enums import ExecutionMode

    from .repository import JobRepository
    from .sweeper import StuckJobSweeper

    init_database()
    repository = JobRepository(SessionLocal)
    orchestrator = PipelineOrchestrator(repository, mode=ExecutionMode.QUEUE)
    sweeper = StuckJobSweeper(repository)
    if config.get_pipeline_value("sweeper.enabled", True):
        sweeper.start()
    try:
        await QueueWorker(orchestrator).run_forever()
    finally:
        await sweeper.stop()


if __name__ == "__main__":
    asyncio.run(main())
