# pycronqueue/scheduling/expression.py
from typing import Optional, Union

from pycronqueue.common.exceptions import InvalidScheduleError
from pycronqueue.scheduling.cron import validate_cron

DYNAMIC_PREFIX = "dynamic:"
DEFAULT_HOOK = "resolve_schedule"


class ScheduleExpression:
    """Base for the three kinds of schedule a job can carry."""

    is_recurring = False

    def to_storage(self) -> Optional[str]:
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.to_storage() == other.to_storage()

    def __hash__(self) -> int:
        return hash((type(self), self.to_storage()))


class NoSchedule(ScheduleExpression):
    """The job runs once and follows the ordinary retry policy."""

    def to_storage(self) -> Optional[str]:
        return None

    def __repr__(self) -> str:
        return "NoSchedule()"


class StaticSchedule(ScheduleExpression):
    is_recurring = True

    def __init__(self, expression: str):
        self.expression = validate_cron(expression)

    def to_storage(self) -> Optional[str]:
        return self.expression

    def __repr__(self) -> str:
        return f"StaticSchedule({self.expression!r})"


class DynamicSchedule(ScheduleExpression):
    """
    Asks the job's payload for its schedule on every cycle.

    ``hook`` names a method on the payload object that receives the job and
    returns a cron expression, or None to stop recurring.
    """

    is_recurring = True

    def __init__(self, hook: str = DEFAULT_HOOK):
        if not isinstance(hook, str) or not hook.isidentifier():
            raise InvalidScheduleError(f"Invalid schedule hook name: {hook!r}")
        self.hook = hook

    def to_storage(self) -> Optional[str]:
        return f"{DYNAMIC_PREFIX}{self.hook}"

    def __repr__(self) -> str:
        return f"DynamicSchedule({self.hook!r})"


def parse_schedule(
    value: Union[ScheduleExpression, str, None],
) -> ScheduleExpression:
    """Builds a schedule from user input or from its persisted text form.

    Raises:
        InvalidScheduleError: if a static expression is malformed.
    """
    if value is None:
        return NoSchedule()
    if isinstance(value, ScheduleExpression):
        return value
    if not isinstance(value, str):
        raise InvalidScheduleError(f"Unsupported schedule value: {value!r}")
    if value.startswith(DYNAMIC_PREFIX):
        return DynamicSchedule(value[len(DYNAMIC_PREFIX):])
    return StaticSchedule(value)
