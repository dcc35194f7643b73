# pycronqueue/config.py
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from pycronqueue.filters.builtin import DEFAULT_MAX_ATTEMPTS
from pycronqueue.storage.base import JobStorage


@dataclass
class WorkerSettings:
    # Only applies to jobs that do not recur.
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    max_run_time: timedelta = timedelta(hours=4)
    sleep_delay: float = 5.0
    destroy_failed_jobs: bool = False


class _GlobalConfig:
    def __init__(self):
        self.storage: Optional[JobStorage] = None
        self.settings: WorkerSettings = WorkerSettings()

_GLOBAL_CONFIG = _GlobalConfig()

def configure(storage: JobStorage, settings: Optional[WorkerSettings] = None) -> None:
    _GLOBAL_CONFIG.storage = storage
    _GLOBAL_CONFIG.settings = settings or WorkerSettings()

def get_storage() -> JobStorage:
    if not _GLOBAL_CONFIG.storage:
        raise RuntimeError("PyCronQueue has not been configured. Call pycronqueue.configure() first.")
    return _GLOBAL_CONFIG.storage

def get_settings() -> WorkerSettings:
    return _GLOBAL_CONFIG.settings
