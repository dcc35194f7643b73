# pycronqueue/client.py
import logging
from datetime import datetime
from typing import Any, Optional, Union

from .common.job import Job
from .scheduling.cron import next_fire_time
from .scheduling.expression import (
    DynamicSchedule,
    ScheduleExpression,
    StaticSchedule,
    parse_schedule,
)
from .scheduling.resolver import Resolved, ScheduleResolver
from .serialization.base import BaseSerializer
from .serialization.json_serializer import JsonSerializer
from .storage.base import JobStorage

logger = logging.getLogger(__name__)


class JobClient:
    """
    Enqueues payload objects, optionally on a recurring schedule.

    A payload is any importable object with a ``perform()`` method.
    """

    def __init__(self, storage: JobStorage, serializer: Optional[BaseSerializer] = None):
        self.storage = storage
        self.serializer = serializer or JsonSerializer()
        self.resolver = ScheduleResolver(self.serializer)

    def enqueue(
        self,
        payload: Any,
        schedule: Union[ScheduleExpression, str, None] = None,
        run_at: Optional[datetime] = None,
        queue: str = "default",
        priority: int = 0,
    ) -> Job:
        """Creates a job row and returns it.

        ``schedule`` may be a cron expression, ``"dynamic:<hook>"`` or a
        ``ScheduleExpression``. A recurring schedule determines the first
        ``run_at``; an explicit ``run_at`` is only used when the schedule does
        not produce one.

        Raises:
            InvalidScheduleError: if a static schedule is malformed. Nothing
                is stored in that case.
        """
        expression = parse_schedule(schedule)
        now = self.storage.db_time_now()

        job = Job(
            payload=self.serializer.serialize_payload(payload),
            schedule=expression.to_storage(),
            created_at=now,
            run_at=run_at or now,
            queue=queue,
            priority=priority,
        )

        first_run = self._first_run_at(expression, job, now)
        if first_run is not None:
            job.run_at = first_run

        self.storage.create(job)
        logger.debug(f"Enqueued job {job.id} ({job.schedule or 'one-shot'}) to run at {job.run_at.isoformat()}")
        return job

    def _first_run_at(
        self, expression: ScheduleExpression, job: Job, now: datetime
    ) -> Optional[datetime]:
        if isinstance(expression, StaticSchedule):
            return next_fire_time(expression.expression, now)
        if isinstance(expression, DynamicSchedule):
            result = self.resolver.resolve(expression, job)
            if isinstance(result, Resolved) and result.schedule is not None:
                return next_fire_time(result.schedule.expression, now)
        return None

    def get_job(self, job_id: str) -> Optional[Job]:
        return self.storage.get_job_data(job_id)

    def count(self) -> int:
        return self.storage.count()
