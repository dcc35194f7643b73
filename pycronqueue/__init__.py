from .client import JobClient
from .common.exceptions import InvalidScheduleError
from .config import WorkerSettings, configure as _configure, get_settings, get_storage
from .scheduling.expression import DynamicSchedule, NoSchedule, StaticSchedule
from .serialization.base import BaseSerializer
from .serialization.json_serializer import JsonSerializer

_client: JobClient | None = None


def configure(storage, settings: WorkerSettings | None = None) -> None:
    _configure(storage, settings)
    global _client
    _client = None


def get_client(serializer: BaseSerializer | None = None) -> JobClient:
    if serializer is not None:
        return JobClient(get_storage(), serializer)

    global _client
    if _client is None:
        _client = JobClient(get_storage(), JsonSerializer())
    return _client


def enqueue(payload, schedule=None, **kwargs):
    return get_client().enqueue(payload, schedule, **kwargs)


__all__ = [
    "DynamicSchedule",
    "InvalidScheduleError",
    "JobClient",
    "NoSchedule",
    "StaticSchedule",
    "WorkerSettings",
    "configure",
    "enqueue",
    "get_client",
    "get_settings",
    "get_storage",
]
