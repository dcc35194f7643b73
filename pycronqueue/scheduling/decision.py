# pycronqueue/scheduling/decision.py
"""
The recurrence decision procedure.

``decide`` maps a job, the outcome of one execution attempt and the queue's
authoritative "now" to the job's next persisted state. It performs no I/O of
its own: the caller applies the returned decision while it still holds the
row lock.
"""

import dataclasses
import logging
from datetime import datetime
from typing import Iterable, Optional

from pycronqueue.common.decisions import (
    BaseDecision,
    Delete,
    PermanentlyFailed,
    Reschedule,
)
from pycronqueue.common.exceptions import InvalidScheduleError
from pycronqueue.common.job import Job
from pycronqueue.common.outcomes import BaseOutcome
from pycronqueue.filters.base import JobFilter
from pycronqueue.filters.builtin import RetryFilter
from pycronqueue.scheduling.cron import next_fire_time
from pycronqueue.scheduling.expression import (
    DynamicSchedule,
    StaticSchedule,
    parse_schedule,
)
from pycronqueue.scheduling.resolver import (
    ResolutionFailed,
    ResolutionResult,
    Resolved,
    ScheduleResolver,
)
from pycronqueue.server.context import ElectDecisionContext

logger = logging.getLogger(__name__)


def effective_schedule(
    job: Job, resolver: Optional[ScheduleResolver]
) -> Optional[ResolutionResult]:
    """How ``job`` recurs this cycle.

    Returns None for a one-shot job, ``Resolved(StaticSchedule)`` for a job
    that recurs, ``Resolved(None)`` for a dynamic job that asked to stop and
    ``ResolutionFailed`` when its schedule could not be worked out.
    """
    try:
        schedule = parse_schedule(job.schedule)
    except InvalidScheduleError as e:
        logger.warning(f"Job {job.id} has an unusable stored schedule: {e}")
        return ResolutionFailed(str(e))

    if isinstance(schedule, StaticSchedule):
        return Resolved(schedule)
    if isinstance(schedule, DynamicSchedule):
        if resolver is None:
            logger.warning(
                f"Job {job.id} has a dynamic schedule but no resolver is available"
            )
            return ResolutionFailed("no resolver available")
        return resolver.resolve(schedule, job)
    return None


def decide(
    job: Job,
    outcome: BaseOutcome,
    now: datetime,
    *,
    resolver: Optional[ScheduleResolver] = None,
    filters: Optional[Iterable[JobFilter]] = None,
) -> BaseDecision:
    attempts = job.attempts + 1
    last_error = outcome.message if outcome.is_error else None
    attempted = dataclasses.replace(job, attempts=attempts, last_error=last_error)

    resolution = effective_schedule(attempted, resolver)
    if isinstance(resolution, Resolved):
        if resolution.schedule is None:
            logger.debug(f"Job {job.id}: {outcome.name}, schedule asked to stop recurring")
            return Delete(attempts)

        run_at = next_fire_time(resolution.schedule.expression, now)
        logger.debug(
            f"Job {job.id}: {outcome.name}, recurring on {resolution.schedule.expression!r}, next run at {run_at.isoformat()}"
        )
        return Reschedule(run_at, attempts, last_error)

    # One-shot job, or a recurring one whose schedule failed this cycle.
    if not outcome.is_error:
        return Delete(attempts)

    context = ElectDecisionContext(
        job=attempted,
        candidate_decision=PermanentlyFailed(now, attempts, last_error),
        now=now,
    )
    for f in filters if filters is not None else [RetryFilter()]:
        f.on_decision_election(context)

    logger.debug(
        f"Job {job.id}: {outcome.name}, not recurring, decision={context.candidate_decision.name}"
    )
    return context.candidate_decision
