# pycronqueue/scheduling/cron.py
"""Cron expression validation and next-fire-time evaluation."""

from datetime import datetime, UTC

from cronsim import CronSim, CronSimError

from pycronqueue.common.exceptions import InvalidScheduleError

CRON_FIELDS = ("minute", "hour", "day-of-month", "month", "day-of-week")

# Reference point used only to let cronsim parse an expression.
_PARSE_ANCHOR = datetime(2000, 1, 1, tzinfo=UTC)


def validate_cron(expression: str) -> str:
    """Validates a 5-field cron expression and returns it normalized.

    Raises:
        InvalidScheduleError: if the expression is not a string, does not have
            exactly five fields or any field cannot be parsed.
    """
    if not isinstance(expression, str):
        raise InvalidScheduleError(f"Invalid cron expression: {expression!r}")

    fields = expression.split()
    if len(fields) != len(CRON_FIELDS):
        raise InvalidScheduleError(
            f"Invalid cron expression {expression!r}: expected "
            f"{len(CRON_FIELDS)} fields ({' '.join(CRON_FIELDS)}), got {len(fields)}"
        )

    normalized = " ".join(fields)
    try:
        CronSim(normalized, _PARSE_ANCHOR)
    except CronSimError as e:
        raise InvalidScheduleError(f"Invalid cron expression {expression!r}: {e}") from e
    return normalized


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def next_fire_time(expression: str, after: datetime) -> datetime:
    """Returns the first minute strictly after ``after`` matching ``expression``.

    ``after`` is the queue's authoritative "now"; naive values are taken to be
    UTC. The expression must already have been validated.
    """
    after = _as_utc(after)
    it = CronSim(expression, after)
    candidate = next(it)
    while candidate <= after:
        candidate = next(it)
    return candidate.replace(second=0, microsecond=0)
