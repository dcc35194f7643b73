# pycronqueue/common/exceptions.py


class PyCronQueueException(Exception):
    """Base exception for the PyCronQueue library."""

    pass


class InvalidScheduleError(PyCronQueueException, ValueError):
    """Raised when a static schedule is not a valid 5-field cron expression."""

    pass


class DeserializationError(PyCronQueueException):
    """Raised when a job's payload cannot be reconstructed."""

    pass


class JobTimeoutError(PyCronQueueException):
    """Raised when a job exceeds the worker's run-time budget."""

    pass


class ResolutionError(PyCronQueueException):
    """Describes why a dynamic schedule could not be resolved."""

    pass
