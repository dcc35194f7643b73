# pycronqueue/common/decisions.py

import dataclasses
from datetime import datetime
from typing import Dict, Any, Optional

from pycronqueue.common.job import Job


class BaseDecision:
    """The next persisted state of a job after one attempt."""

    NAME = "base"

    def __init__(self, attempts: int, last_error: Optional[str] = None):
        self.attempts = attempts
        self.last_error = last_error

    @property
    def name(self) -> str:
        return self.NAME

    def serialize_data(self) -> Dict[str, Any]:
        return {"attempts": self.attempts, "last_error": self.last_error}

    def apply(self, job: Job) -> Job:
        """Returns an updated copy of ``job`` with the worker lock released."""
        return dataclasses.replace(
            job,
            attempts=self.attempts,
            last_error=self.last_error,
            locked_by=None,
            locked_at=None,
            **self._changes(),
        )

    def _changes(self) -> Dict[str, Any]:
        return {}

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and vars(self) == vars(other)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.serialize_data()!r})"


class Reschedule(BaseDecision):
    NAME = "Reschedule"

    def __init__(self, run_at: datetime, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.run_at = run_at

    def serialize_data(self) -> Dict[str, Any]:
        data = super().serialize_data()
        data["run_at"] = self.run_at.isoformat()
        return data

    def _changes(self) -> Dict[str, Any]:
        return {"run_at": self.run_at}


class RetryLater(Reschedule):
    NAME = "RetryLater"


class Delete(BaseDecision):
    NAME = "Delete"

    def __init__(self, attempts: int):
        super().__init__(attempts, None)

    def apply(self, job: Job) -> Job:
        raise TypeError("A deleted job has no next state to persist")


class PermanentlyFailed(BaseDecision):
    NAME = "PermanentlyFailed"

    def __init__(self, failed_at: datetime, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.failed_at = failed_at

    def serialize_data(self) -> Dict[str, Any]:
        data = super().serialize_data()
        data["failed_at"] = self.failed_at.isoformat()
        return data

    def _changes(self) -> Dict[str, Any]:
        return {"failed_at": self.failed_at}
