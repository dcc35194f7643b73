# pycronqueue/storage/sql_storage.py
from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy import (
    DateTime,
    Engine,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    func,
    or_,
    select,
    update,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from pycronqueue.common.job import Job
from pycronqueue.storage.base import JobStorage

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class JobModel(Base):
    __tablename__ = "pycronqueue_jobs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[str] = mapped_column(Text)
    schedule: Mapped[Optional[str]] = mapped_column(String(120))
    priority: Mapped[int] = mapped_column(Integer, default=0, index=True)
    queue: Mapped[str] = mapped_column(String(100), index=True, default="default")
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    last_error: Mapped[Optional[str]] = mapped_column(Text)
    run_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    locked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    locked_by: Mapped[Optional[str]] = mapped_column(String(255))
    failed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; every stored value is UTC.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class SqlStorage(JobStorage):
    def __init__(
        self,
        connection_url: Optional[str] = None,
        engine: Optional[Engine] = None,
        create_tables: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if engine is None and connection_url is None:
            raise ValueError("connection_url or engine is required")
        self.engine = engine or create_engine(connection_url)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        self._clock = clock
        if create_tables:
            Base.metadata.create_all(self.engine)

        self._supports_skip_locked = self.engine.dialect.name in {
            "postgresql",
            "mysql",
            "mariadb",
        }

    def db_time_now(self) -> datetime:
        if self._clock is not None:
            return self._clock()
        if self.engine.dialect.name == "sqlite":
            return datetime.now(UTC)
        with self._session_factory() as session:
            return _as_utc(session.execute(select(func.now())).scalar_one())

    def _job_from_model(self, model: JobModel) -> Job:
        return Job(
            id=model.id,
            payload=model.payload,
            schedule=model.schedule,
            priority=model.priority,
            queue=model.queue,
            attempts=model.attempts,
            last_error=model.last_error,
            run_at=_as_utc(model.run_at),
            locked_at=_as_utc(model.locked_at),
            locked_by=model.locked_by,
            failed_at=_as_utc(model.failed_at),
            created_at=_as_utc(model.created_at),
        )

    def create(self, job: Job) -> str:
        with self._session_factory.begin() as session:
            session.add(
                JobModel(
                    id=job.id,
                    payload=job.payload,
                    schedule=job.schedule,
                    priority=job.priority,
                    queue=job.queue,
                    attempts=job.attempts,
                    last_error=job.last_error,
                    run_at=job.run_at,
                    locked_at=job.locked_at,
                    locked_by=job.locked_by,
                    failed_at=job.failed_at,
                    created_at=job.created_at,
                )
            )
        return job.id

    def reserve(
        self,
        worker_name: str,
        max_run_time: timedelta,
        queues: Optional[List[str]] = None,
        read_ahead: int = 5,
    ) -> Optional[Job]:
        now = self.db_time_now()
        expiry = now - max_run_time
        ready = or_(JobModel.locked_at.is_(None), JobModel.locked_at < expiry)

        with self._session_factory.begin() as session:
            query = (
                select(JobModel.id)
                .where(
                    JobModel.run_at <= now,
                    JobModel.failed_at.is_(None),
                    ready,
                )
                .order_by(JobModel.priority, JobModel.run_at)
                .limit(read_ahead)
            )
            if queues:
                query = query.where(JobModel.queue.in_(queues))
            if self._supports_skip_locked:
                query = query.with_for_update(skip_locked=True)

            for job_id in session.execute(query).scalars().all():
                # Another worker may have claimed the row since it was read.
                claimed = session.execute(
                    update(JobModel)
                    .where(JobModel.id == job_id, ready)
                    .values(locked_by=worker_name, locked_at=now)
                )
                if claimed.rowcount == 1:
                    model = session.get(JobModel, job_id, populate_existing=True)
                    return self._job_from_model(model)
        return None

    def save(self, job: Job) -> None:
        with self._session_factory.begin() as session:
            result = session.execute(
                update(JobModel)
                .where(JobModel.id == job.id)
                .values(
                    run_at=job.run_at,
                    attempts=job.attempts,
                    last_error=job.last_error,
                    failed_at=job.failed_at,
                    locked_by=job.locked_by,
                    locked_at=job.locked_at,
                )
            )
            if result.rowcount != 1:
                raise KeyError(f"Job {job.id} does not exist")

    def delete(self, job_id: str) -> None:
        with self._session_factory.begin() as session:
            session.execute(delete(JobModel).where(JobModel.id == job_id))

    def get_job_data(self, job_id: str) -> Optional[Job]:
        with self._session_factory() as session:
            model = session.get(JobModel, job_id)
            return self._job_from_model(model) if model else None

    def count(self) -> int:
        with self._session_factory() as session:
            result = session.execute(select(func.count(JobModel.id))).scalar_one()
            return int(result or 0)

    def clear_locks(self, worker_name: str) -> None:
        with self._session_factory.begin() as session:
            session.execute(
                update(JobModel)
                .where(JobModel.locked_by == worker_name)
                .values(locked_by=None, locked_at=None)
            )

    def recover_stuck_jobs(self, max_age_seconds: int, limit: int = 100) -> List[str]:
        cutoff = self.db_time_now() - timedelta(seconds=max_age_seconds)
        recovered: List[str] = []
        with self._session_factory.begin() as session:
            query = (
                select(JobModel)
                .where(
                    JobModel.locked_at.is_not(None),
                    JobModel.locked_at <= cutoff,
                )
                .order_by(JobModel.locked_at)
                .limit(limit)
            )
            if self._supports_skip_locked:
                query = query.with_for_update(skip_locked=True)

            for job in session.execute(query).scalars().all():
                logger.info(f"Releasing stale lock of {job.locked_by} on job {job.id}")
                job.locked_by = None
                job.locked_at = None
                recovered.append(job.id)

        return recovered
