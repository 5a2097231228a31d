import json
import os
import sys
import tempfile
import uuid
from datetime import timedelta
from pathlib import Path
from typing import Any, Generator

import pytest
from fastapi import HTTPException, Request

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# The engine is created at import time, so point it at a throwaway database first.
_DB_DIR = tempfile.mkdtemp(prefix="script-pipeline-db-")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR}/test.db"

from database import Base, SessionLocal, engine, get_db  # noqa: E402
from models.database import ScriptJob, User  # noqa: E402
from models.database.script_job import empty_processing_metadata, empty_trend_snapshot  # noqa: E402
from services.auth import create_access_token, oauth2_scheme  # noqa: E402
from services.pipeline import app as pipeline_module  # noqa: E402
from services.pipeline.orchestrator import PipelineOrchestrator  # noqa: E402
from services.pipeline import state  # noqa: E402
from services.pipeline.repository import JobRepository  # noqa: E402
from services.queue import QueueManager, redis as redis_module  # noqa: E402
from services.resource_monitor import AdmissionController, MemoryMonitor, MemorySample  # noqa: E402
from services.script_generation import GenerationWorker  # noqa: E402
from services.script_generation.drivers import CompletionDriver, CompletionResult  # noqa: E402
from services.transcription import TranscriptionWorker  # noqa: E402
from services.transcription.drivers import RawTranscript, TranscriptionDriver, TranscriptSegment  # noqa: E402
from services.trends import StaticTrendSource, TrendAugmenter  # noqa: E402
from services.ingestion import IngestionService  # noqa: E402
from shared.enums import ExecutionMode  # noqa: E402
from shared.retry import RetryPolicy  # noqa: E402
from shared.utils import utcnow  # noqa: E402

MB = 1024 * 1024

TEST_USERS = {
    "testuser": "pro",
    "starteruser": "starter",
    "eliteuser": "elite",
}

VALID_BRIEF = (
    "Launch video for our new reusable water bottle. Highlight the leak-proof lid, "
    "the 24 hour cold retention and the recycled steel body. Friendly, upbeat tone."
)


def sample_generation(**overrides: Any) -> dict[str, Any]:
    content: dict[str, Any] = {
        "hook": {"text": "Stop buying plastic bottles today", "visual_cue": "Bottle slam", "duration": "0-3 seconds"},
        "scenes": [
            {
                "scene_number": number,
                "title": f"Beat {number}",
                "timeframe": f"{(number - 1) * 10}-{number * 10} seconds",
                "dialogue": f"Line {number} about the bottle",
                "visual_description": f"Shot {number} of the bottle",
            }
            for number in (1, 2, 3)
        ],
        "brand_mentions": [{"timing": "at 15 seconds", "content": "Check out AquaSteel bottles"}],
        "call_to_action": {"primary": "Grab yours today", "secondary": "Link in bio"},
        "hashtags": {"primary": ["#hydration"], "secondary": ["#eco"], "trending": []},
        "mentions": [{"handle": "@aquasteel", "purpose": "Brand mention"}],
    }
    content.update(overrides)
    return content


class FakeMemoryMonitor(MemoryMonitor):
    """Memory figures set directly by tests."""

    def __init__(self, used: int = 200 * MB, total: int = 4096 * MB, available: int | None = None) -> None:
        self.used = used
        self.total = total
        self.available = available if available is not None else total - used

    def sample(self) -> MemorySample:
        return MemorySample(used=self.used, total=self.total, available=self.available)


class ScriptedCompletionDriver(CompletionDriver):
    """Replays a list of responses; exceptions in the list are raised."""

    def __init__(self, responses: list[Any] | None = None) -> None:
        self.responses = list(responses if responses is not None else [json.dumps(sample_generation())])
        self.calls: list[dict[str, Any]] = []

    async def complete(self, system_prompt: str, user_prompt: str, params: dict[str, Any], **kwargs: Any) -> CompletionResult:
        self.calls.append({"system": system_prompt, "user": user_prompt, "params": params})
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return CompletionResult(text=response, tokens_used=120, model="gpt-4o")


class ScriptedTranscriptionDriver(TranscriptionDriver):
    def __init__(self, responses: list[Any] | None = None) -> None:
        self.responses = list(
            responses
            if responses is not None
            else [
                RawTranscript(
                    text="Hi everyone, today I am showing you our new bottle.  It keeps water cold all day!",
                    segments=[
                        TranscriptSegment(0.0, 3.5, "Hi everyone, today I am showing you"),
                        TranscriptSegment(3.6, 6.0, "our new bottle."),
                        TranscriptSegment(6.1, 9.0, "It keeps water cold all day!"),
                    ],
                    language="en",
                    duration=9.0,
                )
            ]
        )
        self.calls: list[Path] = []

    async def transcribe(self, path: Path, mime_type: str, language: str | None = None) -> RawTranscript:
        self.calls.append(path)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class FakeUpload:
    """Minimal stand-in for starlette's UploadFile."""

    def __init__(self, filename: str, content: bytes, content_type: str) -> None:
        self.filename = filename
        self.content_type = content_type
        self._content = content
        self._offset = 0

    async def read(self, size: int = -1) -> bytes:
        if size < 0:
            size = len(self._content) - self._offset
        chunk = self._content[self._offset : self._offset + size]
        self._offset += len(chunk)
        return chunk


async def no_sleep(_: float) -> None:
    return None


@pytest.fixture(scope="session", autouse=True)
def fake_redis() -> Generator[None, None, None]:
    """Patch redis client to use in-memory storage for tests."""
    original_from_url = redis_module.Redis.from_url

    class DummyRedis:
        def __init__(self) -> None:
            self._store: dict[str, list[str]] = {}

        def ping(self) -> bool:
            return True

        def rpush(self, key: str, value: str) -> None:
            self._store.setdefault(key, []).append(value)

        def lpop(self, key: str):
            queue = self._store.get(key)
            if not queue:
                return None
            value = queue.pop(0)
            if not queue:
                self._store.pop(key, None)
            return value

        def llen(self, key: str) -> int:
            return len(self._store.get(key, []))

    def fake_from_url(cls, url: str, *args, **kwargs):  # type: ignore[unused-argument]
        return DummyRedis()

    redis_module.Redis.from_url = classmethod(fake_from_url)  # type: ignore[assignment]
    try:
        yield
    finally:
        redis_module.Redis.from_url = original_from_url  # type: ignore[assignment]


@pytest.fixture(scope="session")
def session_factory():
    """Create the schema and seed one user per tier."""
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        for username, tier in TEST_USERS.items():
            if not session.query(User).filter(User.username == username).first():
                session.add(User(username=username, email=f"{username}@example.com", subscription_tier=tier))
        session.commit()
    return SessionLocal


@pytest.fixture(autouse=True)
def clean_jobs(session_factory) -> Generator[None, None, None]:
    yield
    with session_factory() as session:
        session.query(ScriptJob).delete()
        session.commit()


@pytest.fixture
def repository(session_factory) -> JobRepository:
    return JobRepository(session_factory)


@pytest.fixture
def users(repository: JobRepository) -> dict[str, User]:
    return {username: repository.get_user_by_username(username) for username in TEST_USERS}


@pytest.fixture
def memory_monitor() -> FakeMemoryMonitor:
    return FakeMemoryMonitor()


@pytest.fixture
def admission(memory_monitor: FakeMemoryMonitor) -> AdmissionController:
    return AdmissionController(
        monitor=memory_monitor,
        high_fraction=0.75,
        critical_fraction=0.90,
        critical_floor_bytes=500 * MB,
        size_multiplier=3,
        large_operation_bytes=50 * MB,
    )


@pytest.fixture
def completion_driver() -> ScriptedCompletionDriver:
    return ScriptedCompletionDriver()


@pytest.fixture
def transcription_driver() -> ScriptedTranscriptionDriver:
    return ScriptedTranscriptionDriver()


@pytest.fixture
def media_root(tmp_path: Path) -> Path:
    root = tmp_path / "media"
    root.mkdir()
    return root


@pytest.fixture
def orchestrator(
    repository: JobRepository,
    admission: AdmissionController,
    completion_driver: ScriptedCompletionDriver,
    transcription_driver: ScriptedTranscriptionDriver,
    media_root: Path,
) -> PipelineOrchestrator:
    retry = RetryPolicy(max_retries=2, base_delay=1.0, factor=2.0)
    pipeline = PipelineOrchestrator(
        repository,
        admission=admission,
        ingestion=IngestionService(admission, media_root=media_root),
        transcription=TranscriptionWorker(
            repository, admission, driver=transcription_driver, retry_policy=retry, sleep=no_sleep
        ),
        generation=GenerationWorker(
            repository, admission, driver=completion_driver, retry_policy=retry, sleep=no_sleep
        ),
        trends=TrendAugmenter(StaticTrendSource()),
        mode=ExecutionMode.QUEUE,
    )
    pipeline.queue = QueueManager()
    return pipeline


@pytest.fixture
def api_app(orchestrator: PipelineOrchestrator, monkeypatch: pytest.MonkeyPatch):
    """Pipeline service app wired to the test orchestrator and database."""
    monkeypatch.setattr(pipeline_module, "orchestrator", orchestrator)

    def _get_test_db():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    async def fake_oauth2(request: Request) -> str:
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.lower().startswith("bearer "):
            raise HTTPException(status_code=401, detail="Not authenticated")
        return auth_header.split(" ", 1)[1]

    service_app = pipeline_module.app
    service_app.dependency_overrides[get_db] = _get_test_db
    service_app.dependency_overrides[oauth2_scheme] = fake_oauth2
    try:
        yield service_app
    finally:
        service_app.dependency_overrides.pop(get_db, None)
        service_app.dependency_overrides.pop(oauth2_scheme, None)


def auth_headers_for(username: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': username})}"}


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return auth_headers_for("testuser")


def create_text_job(repository: JobRepository, owner_id: int, **fields: Any) -> ScriptJob:
    """Persist a pending text job ready for the generation stage."""
    values: dict[str, Any] = {
        "job_id": str(uuid.uuid4()),
        "owner_id": owner_id,
        "title": "Bottle launch",
        "input_kind": "text",
        "platform": "instagram_reel",
        "target_duration": "60_seconds",
        "granularity": "detailed",
        "source_text": VALID_BRIEF,
        "brief_text": VALID_BRIEF,
        "pipeline_stage": "generation",
        "processing_metadata": empty_processing_metadata(),
        "trend_snapshot": empty_trend_snapshot(),
        "variations": [],
        "tags": [],
    }
    values.update(fields)
    job = ScriptJob(**values)
    state.seed_placeholder_content(job)
    return repository.create(job)


def backdate_job(job_id: str, minutes: int = 60) -> None:
    """Push ``updated_at`` into the past so the stuck-job sweeper picks the job up."""
    with SessionLocal() as db:
        db.query(ScriptJob).filter(ScriptJob.job_id == job_id).update(
            {ScriptJob.updated_at: utcnow() - timedelta(minutes=minutes)},
            synchronize_session=False,
        )
        db.commit()
