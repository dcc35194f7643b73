# pycronqueue/server/processor.py
import logging
from typing import Optional

from pycronqueue.common.decisions import Delete, PermanentlyFailed
from pycronqueue.common.exceptions import DeserializationError, JobTimeoutError
from pycronqueue.common.job import Job
from pycronqueue.common.outcomes import (
    BaseOutcome,
    DeserializationFailed,
    Failed,
    Succeeded,
    TimedOut,
)
from pycronqueue.config import WorkerSettings
from pycronqueue.execution.performer import perform_job
from pycronqueue.filters.builtin import RetryFilter
from pycronqueue.scheduling.decision import decide
from pycronqueue.scheduling.resolver import ScheduleResolver
from pycronqueue.serialization.base import BaseSerializer
from pycronqueue.storage.base import JobStorage

logger = logging.getLogger(__name__)


class JobProcessor:
    """Runs one attempt of a job the worker has already locked."""

    def __init__(
        self,
        job: Job,
        storage: JobStorage,
        serializer: BaseSerializer,
        settings: Optional[WorkerSettings] = None,
    ):
        self.job = job
        self.storage = storage
        self.serializer = serializer
        self.settings = settings or WorkerSettings()
        self.resolver = ScheduleResolver(serializer)
        self.filters = [RetryFilter(max_attempts=self.settings.max_attempts)]

    def execute(self) -> BaseOutcome:
        try:
            # 1. Deserialize the payload
            payload = self.serializer.deserialize_payload(self.job.payload)

            # 2. Perform the job
            perform_job(payload, self.settings.max_run_time)
            return Succeeded()
        except DeserializationError as e:
            logger.error(f"Job {self.job.id} could not be deserialized.", exc_info=True)
            return DeserializationFailed.from_exception(e)
        except JobTimeoutError as e:
            logger.error(
                f"Job {self.job.id} exceeded max run time of {self.settings.max_run_time}."
            )
            return TimedOut.from_exception(e)
        except Exception as e:
            logger.error(f"Job {self.job.id} failed.", exc_info=True)
            return Failed.from_exception(e)

    def process(self) -> BaseOutcome:
        outcome = self.execute()

        # 3. Decide the next state using the time the attempt concluded
        now = self.storage.db_time_now()
        decision = decide(
            self.job,
            outcome,
            now,
            resolver=self.resolver,
            filters=self.filters,
        )
        logger.debug(f"Job {self.job.id}: {outcome.name} -> {decision.name}")

        # 4. Apply it while the row is still locked by this worker
        if isinstance(decision, Delete):
            self.storage.delete(self.job.id)
        elif isinstance(decision, PermanentlyFailed) and self.settings.destroy_failed_jobs:
            logger.warning(
                f"Job {self.job.id} failed {decision.attempts} times. Destroying it."
            )
            self.storage.delete(self.job.id)
        else:
            if isinstance(decision, PermanentlyFailed):
                logger.warning(
                    f"Job {self.job.id} failed {decision.attempts} times. Marking it as failed."
                )
            self.job = decision.apply(self.job)
            self.storage.save(self.job)

        return outcome
