# pycronqueue/storage/base.py
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Optional, List

from pycronqueue.common.job import Job


class JobStorage(ABC):
    @abstractmethod
    def db_time_now(self) -> datetime:
        """The queue's authoritative clock (UTC, timezone-aware)."""

    @abstractmethod
    def create(self, job: Job) -> str: ...

    @abstractmethod
    def reserve(
        self,
        worker_name: str,
        max_run_time: timedelta,
        queues: Optional[List[str]] = None,
    ) -> Optional[Job]:
        """Locks and returns the next due job, or None.

        A job is due when ``run_at <= now``, it has not permanently failed and
        it is either unlocked or its lock is older than ``max_run_time``.
        """

    @abstractmethod
    def save(self, job: Job) -> None:
        """Persists the mutable fields of an existing row in place."""

    @abstractmethod
    def delete(self, job_id: str) -> None: ...

    @abstractmethod
    def get_job_data(self, job_id: str) -> Optional[Job]: ...

    @abstractmethod
    def count(self) -> int: ...

    @abstractmethod
    def clear_locks(self, worker_name: str) -> None: ...

    @abstractmethod
    def recover_stuck_jobs(self, max_age_seconds: int, limit: int = 100) -> List[str]: ...
