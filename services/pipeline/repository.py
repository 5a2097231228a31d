"""Persistence helpers for script jobs.

Pipeline stages run outside any request, so each call opens its own
short-lived session from the configured factory and returns detached rows.
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.database import ScriptJob, User
from shared.enums import GenerationStatus, InputKind, PipelineStage
from shared.utils import utcnow

SessionFactory = Callable[[], Session]


class JobRepository:
    def __init__(self, session_factory: SessionFactory) -> None:
        self.session_factory = session_factory

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    @staticmethod
    def _detach(db: Session, job: ScriptJob) -> ScriptJob:
        db.refresh(job)
        db.expunge(job)
        return job

    def create(self, job: ScriptJob) -> ScriptJob:
        with self.session() as db:
            db.add(job)
            db.commit()
            return self._detach(db, job)

    def get(
        self, job_id: str, owner_id: int | None = None, include_deleted: bool = False
    ) -> ScriptJob | None:
        with self.session() as db:
            query = db.query(ScriptJob).filter(ScriptJob.job_id == job_id)
            if owner_id is not None:
                query = query.filter(ScriptJob.owner_id == owner_id)
            if not include_deleted:
                query = query.filter(ScriptJob.is_deleted.is_(False))
            job = query.first()
            if job is None:
                return None
            db.expunge(job)
            return job

    def mutate(self, job_id: str, mutation: Callable[[ScriptJob], None]) -> ScriptJob | None:
        """Apply ``mutation`` to the job and commit it as one unit."""
        with self.session() as db:
            job = db.query(ScriptJob).filter(ScriptJob.job_id == job_id).first()
            if job is None:
                return None
            mutation(job)
            job.updated_at = utcnow()
            db.commit()
            return self._detach(db, job)

    def update(self, job_id: str, **fields: Any) -> ScriptJob | None:
        def apply(job: ScriptJob) -> None:
            for name, value in fields.items():
                setattr(job, name, value)

        return self.mutate(job_id, apply)

    def list_for_owner(
        self,
        owner_id: int,
        status: GenerationStatus | None = None,
        platform: str | None = None,
        input_kind: InputKind | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[ScriptJob], int]:
        with self.session() as db:
            query = db.query(ScriptJob).filter(
                ScriptJob.owner_id == owner_id, ScriptJob.is_deleted.is_(False)
            )
            if status is not None:
                query = query.filter(ScriptJob.status == status.value)
            if platform is not None:
                query = query.filter(ScriptJob.platform == platform)
            if input_kind is not None:
                query = query.filter(ScriptJob.input_kind == input_kind.value)
            total = query.count()
            jobs = (
                query.order_by(ScriptJob.created_at.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
                .all()
            )
            for job in jobs:
                db.expunge(job)
            return jobs, total

    def count_since(self, owner_id: int, since: datetime, input_kind: InputKind | None = None) -> int:
        """Jobs created since ``since``; soft-deleted jobs still count against quotas."""
        with self.session() as db:
            query = db.query(func.count(ScriptJob.id)).filter(
                ScriptJob.owner_id == owner_id, ScriptJob.created_at >= since
            )
            if input_kind is not None:
                query = query.filter(ScriptJob.input_kind == input_kind.value)
            return int(query.scalar() or 0)

    def find_stuck(self, older_than: timedelta) -> list[str]:
        cutoff = utcnow() - older_than
        with self.session() as db:
            rows = (
                db.query(ScriptJob.job_id)
                .filter(
                    ScriptJob.status == GenerationStatus.PROCESSING.value,
                    ScriptJob.updated_at < cutoff,
                )
                .all()
            )
            return [row.job_id for row in rows]

    def find_resumable(self) -> list[str]:
        """Pending jobs whose next stage has not run yet."""
        with self.session() as db:
            rows = (
                db.query(ScriptJob.job_id)
                .filter(
                    ScriptJob.status == GenerationStatus.PENDING.value,
                    ScriptJob.pipeline_stage != PipelineStage.DONE.value,
                    ScriptJob.is_deleted.is_(False),
                )
                .order_by(ScriptJob.created_at)
                .all()
            )
            return [row.job_id for row in rows]

    def get_user(self, user_id: int) -> User | None:
        with self.session() as db:
            user = db.query(User).filter(User.id == user_id).first()
            if user is not None:
                db.expunge(user)
            return user

    def get_user_by_username(self, username: str) -> User | None:
        with self.session() as db:
            user = db.query(User).filter(User.username == username).first()
            if user is not None:
                db.expunge(user)
            return user
