# pycronqueue/storage/memory_storage.py
import dataclasses
from datetime import datetime, timedelta, UTC
from threading import RLock
from typing import Callable, Optional, List, Dict

from pycronqueue.storage.base import JobStorage
from pycronqueue.common.job import Job


class MemoryStorage(JobStorage):
    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._jobs: Dict[str, Job] = {}
        self._lock = RLock()
        self._clock = clock or (lambda: datetime.now(UTC))

    def db_time_now(self) -> datetime:
        return self._clock()

    def create(self, job: Job) -> str:
        with self._lock:
            self._jobs[job.id] = dataclasses.replace(job)
        return job.id

    def _is_ready(self, job: Job, now: datetime, expiry: datetime, queues) -> bool:
        if job.failed_at is not None or job.run_at > now:
            return False
        if queues and job.queue not in queues:
            return False
        return job.locked_at is None or job.locked_at < expiry

    def reserve(
        self,
        worker_name: str,
        max_run_time: timedelta,
        queues: Optional[List[str]] = None,
    ) -> Optional[Job]:
        with self._lock:
            now = self.db_time_now()
            expiry = now - max_run_time
            ready = [
                job
                for job in self._jobs.values()
                if self._is_ready(job, now, expiry, queues)
            ]
            if not ready:
                return None

            job = min(ready, key=lambda j: (j.priority, j.run_at))
            job.locked_by = worker_name
            job.locked_at = now
            return dataclasses.replace(job)

    def save(self, job: Job) -> None:
        with self._lock:
            stored = self._jobs.get(job.id)
            if stored is None:
                raise KeyError(f"Job {job.id} does not exist")
            stored.run_at = job.run_at
            stored.attempts = job.attempts
            stored.last_error = job.last_error
            stored.failed_at = job.failed_at
            stored.locked_by = job.locked_by
            stored.locked_at = job.locked_at

    def delete(self, job_id: str) -> None:
        with self._lock:
            self._jobs.pop(job_id, None)

    def get_job_data(self, job_id: str) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
            return dataclasses.replace(job) if job else None

    def count(self) -> int:
        with self._lock:
            return len(self._jobs)

    def clear_locks(self, worker_name: str) -> None:
        with self._lock:
            for job in self._jobs.values():
                if job.locked_by == worker_name:
                    job.locked_by = None
                    job.locked_at = None

    def recover_stuck_jobs(self, max_age_seconds: int, limit: int = 100) -> List[str]:
        with self._lock:
            cutoff = self.db_time_now() - timedelta(seconds=max_age_seconds)
            stuck = sorted(
                (
                    job
                    for job in self._jobs.values()
                    if job.locked_at is not None and job.locked_at <= cutoff
                ),
                key=lambda j: j.locked_at,
            )[:limit]
            for job in stuck:
                job.locked_by = None
                job.locked_at = None
            return [job.id for job in stuck]
