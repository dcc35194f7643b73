# tests/test_tasks.py
import time


class CronTask:
    """A payload that always succeeds."""

    def perform(self):
        return None


class FailingTask:
    def perform(self):
        raise RuntimeError("Fail!")


class SlowTask:
    def __init__(self, seconds=0.5):
        self.seconds = seconds

    def perform(self):
        time.sleep(self.seconds)


class AlternatingTask:
    """Decides its own schedule from the number of attempts made so far."""

    def __init__(self, fail=False):
        self.fail = fail

    def perform(self):
        if self.fail:
            raise RuntimeError("Fail!")

    def cron_method(self, job):
        if job.attempts > 10:
            return None
        return "0 0 1 2 *" if job.attempts % 2 == 0 else "0 0 1 1 *"


class SelfScheduledTask:
    """Implements the default ``resolve_schedule`` hook."""

    def __init__(self, expression="30 6 * * *"):
        self.expression = expression

    def perform(self):
        return None

    def resolve_schedule(self, job):
        return self.expression


class BrokenHookTask:
    def perform(self):
        return None

    def resolve_schedule(self, job):
        raise LookupError("no schedule today")
