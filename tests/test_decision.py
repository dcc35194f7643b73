from datetime import UTC, datetime, timedelta

import pytest

from pycronqueue.common.decisions import (
    Delete,
    PermanentlyFailed,
    Reschedule,
    RetryLater,
)
from pycronqueue.common.job import Job
from pycronqueue.common.outcomes import (
    DeserializationFailed,
    Failed,
    Succeeded,
    TimedOut,
)
from pycronqueue.filters.builtin import RetryFilter
from pycronqueue.scheduling.decision import decide
from pycronqueue.scheduling.resolver import ScheduleResolver
from tests.conftest import NOW
from tests.test_tasks import AlternatingTask, BrokenHookTask, CronTask, SelfScheduledTask

NEXT_RUN = datetime(2024, 3, 11, 1, 5, tzinfo=UTC)


@pytest.fixture
def resolver(json_serializer):
    return ScheduleResolver(json_serializer)


@pytest.fixture
def filters():
    return [RetryFilter(max_attempts=3)]


def make_job(serializer, payload=None, schedule=None, attempts=0, last_error=None):
    return Job(
        payload=serializer.serialize_payload(payload or CronTask()),
        schedule=schedule,
        attempts=attempts,
        last_error=last_error,
        run_at=NOW,
    )


def test_static_success_reschedules(json_serializer, resolver, filters):
    job = make_job(json_serializer, schedule="5 1 * * *", last_error="Last error")
    decision = decide(job, Succeeded(), NOW, resolver=resolver, filters=filters)
    assert decision == Reschedule(NEXT_RUN, 1, None)


@pytest.mark.parametrize(
    "outcome",
    [Failed("Fail!"), TimedOut("execution expired"), DeserializationFailed("DeserializationError")],
)
def test_static_errors_reschedule_with_last_error(json_serializer, resolver, filters, outcome):
    job = make_job(json_serializer, schedule="5 1 * * *", attempts=3)
    decision = decide(job, outcome, NOW, resolver=resolver, filters=filters)
    assert decision == Reschedule(NEXT_RUN, 4, outcome.message)


def test_static_failure_ignores_max_attempts(json_serializer, resolver, filters):
    job = make_job(json_serializer, schedule="5 1 * * *", attempts=4)
    decision = decide(job, Failed("Fail!"), NOW, resolver=resolver, filters=filters)
    assert isinstance(decision, Reschedule)
    assert not isinstance(decision, RetryLater)
    assert decision.attempts == 5


def test_one_shot_success_deletes(json_serializer, resolver, filters):
    job = make_job(json_serializer)
    assert decide(job, Succeeded(), NOW, resolver=resolver, filters=filters) == Delete(1)


def test_one_shot_failure_retries_with_backoff(json_serializer, resolver, filters):
    job = make_job(json_serializer, attempts=1)
    decision = decide(job, Failed("Fail!"), NOW, resolver=resolver, filters=filters)
    assert decision == RetryLater(NOW + timedelta(seconds=2**4 + 5), 2, "Fail!")


def test_one_shot_failure_at_max_attempts_fails_permanently(json_serializer, resolver, filters):
    job = make_job(json_serializer, attempts=2)
    decision = decide(job, Failed("Fail!"), NOW, resolver=resolver, filters=filters)
    assert decision == PermanentlyFailed(NOW, 3, "Fail!")


def test_default_retry_policy_is_used_without_filters(json_serializer, resolver):
    job = make_job(json_serializer, attempts=3)
    decision = decide(job, Failed("Fail!"), NOW, resolver=resolver)
    assert isinstance(decision, RetryLater)


def test_dynamic_schedule_sees_post_increment_attempts(json_serializer, resolver, filters):
    job = make_job(json_serializer, AlternatingTask(), schedule="dynamic:cron_method", attempts=0)
    decision = decide(job, Succeeded(), NOW, resolver=resolver, filters=filters)
    # attempts becomes 1 (odd): January
    assert decision == Reschedule(datetime(2025, 1, 1, tzinfo=UTC), 1, None)

    job = make_job(json_serializer, AlternatingTask(), schedule="dynamic:cron_method", attempts=1)
    decision = decide(job, Succeeded(), NOW, resolver=resolver, filters=filters)
    assert decision == Reschedule(datetime(2025, 2, 1, tzinfo=UTC), 2, None)


def test_dynamic_stop_deletes_on_success(json_serializer, resolver, filters):
    job = make_job(json_serializer, AlternatingTask(), schedule="dynamic:cron_method", attempts=10)
    assert decide(job, Succeeded(), NOW, resolver=resolver, filters=filters) == Delete(11)


@pytest.mark.parametrize(
    "outcome",
    [Failed("Fail!"), TimedOut("execution expired"), DeserializationFailed("DeserializationError")],
)
def test_dynamic_stop_deletes_whatever_the_outcome(json_serializer, resolver, filters, outcome):
    job = make_job(json_serializer, AlternatingTask(), schedule="dynamic:cron_method", attempts=10)
    assert decide(job, outcome, NOW, resolver=resolver, filters=filters) == Delete(11)


def test_empty_dynamic_schedule_deletes_failed_job(json_serializer, resolver, filters):
    job = make_job(json_serializer, SelfScheduledTask(expression=""), schedule="dynamic:resolve_schedule")
    assert decide(job, Failed("Fail!"), NOW, resolver=resolver, filters=filters) == Delete(1)


def test_resolution_failure_stops_recurring_without_touching_last_error(json_serializer, resolver, filters):
    job = make_job(json_serializer, BrokenHookTask(), schedule="dynamic:resolve_schedule")
    assert decide(job, Succeeded(), NOW, resolver=resolver, filters=filters) == Delete(1)

    decision = decide(job, Failed("Fail!"), NOW, resolver=resolver, filters=filters)
    assert decision == RetryLater(NOW + timedelta(seconds=6), 1, "Fail!")


def test_dynamic_schedule_without_resolver_stops_recurring(json_serializer):
    job = make_job(json_serializer, AlternatingTask(), schedule="dynamic:cron_method")
    assert decide(job, Succeeded(), NOW) == Delete(1)


@pytest.mark.parametrize("schedule", ["dynamic:bad-name", "no valid cron"])
def test_corrupt_stored_schedule_is_treated_as_one_shot(json_serializer, resolver, filters, schedule):
    job = make_job(json_serializer, schedule=schedule)
    assert decide(job, Succeeded(), NOW, resolver=resolver, filters=filters) == Delete(1)

    decision = decide(job, Failed("Fail!"), NOW, resolver=resolver, filters=filters)
    assert decision == RetryLater(NOW + timedelta(seconds=6), 1, "Fail!")


def test_decide_is_pure(json_serializer, resolver, filters):
    job = make_job(json_serializer, AlternatingTask(), schedule="dynamic:cron_method", attempts=4)
    first = decide(job, Failed("Fail!"), NOW, resolver=resolver, filters=filters)
    second = decide(job, Failed("Fail!"), NOW, resolver=resolver, filters=filters)
    assert first == second
    assert job.attempts == 4
    assert job.last_error is None


def test_reschedule_apply_updates_row_in_place(json_serializer):
    job = make_job(json_serializer, schedule="5 1 * * *", last_error="Last error")
    job.locked_by, job.locked_at = "worker-test", NOW

    updated = Reschedule(NEXT_RUN, 1, None).apply(job)

    assert updated.id == job.id
    assert updated.created_at == job.created_at
    assert updated.schedule == job.schedule
    assert updated.run_at == NEXT_RUN
    assert updated.attempts == 1
    assert updated.last_error is None
    assert updated.locked_by is None and updated.locked_at is None


def test_permanently_failed_apply_sets_failed_at(json_serializer):
    job = make_job(json_serializer, attempts=2)
    updated = PermanentlyFailed(NOW, 3, "Fail!").apply(job)
    assert updated.failed_at == NOW
    assert updated.attempts == 3
    assert updated.last_error == "Fail!"


def test_delete_has_nothing_to_apply(json_serializer):
    with pytest.raises(TypeError):
        Delete(1).apply(make_job(json_serializer))
