# pycronqueue/common/outcomes.py
"""Results of a single execution attempt, as reported by the processor."""

import traceback
from typing import Optional


class BaseOutcome:
    NAME = "base"
    is_error = False

    def __init__(self, message: Optional[str] = None):
        self.message = message

    @property
    def name(self) -> str:
        return self.NAME

    @classmethod
    def from_exception(cls, exc: BaseException) -> "BaseOutcome":
        details = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
        return cls(f"{type(exc).__name__}: {exc}\n{details}")

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.message == other.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class Succeeded(BaseOutcome):
    NAME = "Succeeded"

    def __init__(self):
        super().__init__(None)


class Failed(BaseOutcome):
    NAME = "Failed"
    is_error = True


class TimedOut(BaseOutcome):
    NAME = "TimedOut"
    is_error = True


class DeserializationFailed(BaseOutcome):
    NAME = "DeserializationFailed"
    is_error = True
