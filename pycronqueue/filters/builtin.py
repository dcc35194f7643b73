# pycronqueue/filters/builtin.py
from datetime import timedelta
import logging

from pycronqueue.common.decisions import PermanentlyFailed, RetryLater
from pycronqueue.filters.base import JobFilter
from pycronqueue.server.context import ElectDecisionContext

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 25


def backoff_delay(attempts: int) -> timedelta:
    """Delay before the next retry of a one-shot job: attempts**4 + 5 seconds."""
    return timedelta(seconds=attempts**4 + 5)


class RetryFilter(JobFilter):
    """
    The queue's ordinary policy for failed one-shot jobs: retry with
    polynomial backoff until ``max_attempts`` attempts have been made.
    """

    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        self.max_attempts = max_attempts

    def on_decision_election(self, elect_decision_context: ElectDecisionContext):
        job = elect_decision_context.job
        candidate = elect_decision_context.candidate_decision

        if not isinstance(candidate, PermanentlyFailed):
            return

        logger.debug(
            f"RetryFilter: Job {job.id} failed. Attempts: {candidate.attempts}, Max attempts: {self.max_attempts}"
        )
        if candidate.attempts < self.max_attempts:
            run_at = elect_decision_context.now + backoff_delay(candidate.attempts)
            logger.debug(f"RetryFilter: Retrying job {job.id} at {run_at.isoformat()}")
            elect_decision_context.candidate_decision = RetryLater(
                run_at, candidate.attempts, candidate.last_error
            )
        else:
            logger.debug(
                f"RetryFilter: Job {job.id} reached {self.max_attempts} attempts. Giving up."
            )
