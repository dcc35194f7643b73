# pycronqueue/scheduling/resolver.py
"""Resolution of dynamic schedules against a job's own payload."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Union, runtime_checkable

from pycronqueue.common.exceptions import (
    DeserializationError,
    InvalidScheduleError,
    ResolutionError,
)
from pycronqueue.common.job import Job
from pycronqueue.scheduling.expression import (
    DEFAULT_HOOK,
    DynamicSchedule,
    StaticSchedule,
)
from pycronqueue.serialization.base import BaseSerializer

logger = logging.getLogger(__name__)


@runtime_checkable
class ScheduleProvider(Protocol):
    """A payload that decides its own schedule.

    Returning None (or an empty string) stops the job from recurring.
    """

    def resolve_schedule(self, job: Job) -> Optional[str]: ...


@dataclass(frozen=True)
class Resolved:
    schedule: Optional[StaticSchedule]


@dataclass(frozen=True)
class ResolutionFailed:
    reason: str


ResolutionResult = Union[Resolved, ResolutionFailed]


class ScheduleResolver:
    def __init__(self, serializer: BaseSerializer):
        self.serializer = serializer

    def resolve(self, schedule: DynamicSchedule, job: Job) -> ResolutionResult:
        """Invokes the schedule hook on the job's payload.

        Never raises: every failure is logged and reported as
        ``ResolutionFailed``.
        """
        try:
            return Resolved(self._resolve(schedule, job))
        except DeserializationError as e:
            reason = f"payload could not be deserialized: {e}"
        except ResolutionError as e:
            reason = str(e)
        except Exception as e:
            reason = f"schedule hook {schedule.hook!r} raised {type(e).__name__}: {e}"

        logger.warning(
            f"Could not resolve dynamic schedule for job {job.id}: {reason}"
        )
        return ResolutionFailed(reason)

    def _hook_for(self, schedule: DynamicSchedule, payload) -> Callable[[Job], Optional[str]]:
        if schedule.hook == DEFAULT_HOOK:
            if not isinstance(payload, ScheduleProvider):
                raise ResolutionError(
                    f"payload {type(payload).__name__} does not implement ScheduleProvider"
                )
            return payload.resolve_schedule

        hook = getattr(payload, schedule.hook, None)
        if not callable(hook):
            raise ResolutionError(
                f"payload {type(payload).__name__} has no schedule hook {schedule.hook!r}"
            )
        return hook

    def _resolve(self, schedule: DynamicSchedule, job: Job) -> Optional[StaticSchedule]:
        payload = self.serializer.deserialize_payload(job.payload)
        expression = self._hook_for(schedule, payload)(job)
        if expression is None or expression == "":
            return None
        try:
            return StaticSchedule(expression)
        except InvalidScheduleError as e:
            raise ResolutionError(f"schedule hook returned {e}") from e
