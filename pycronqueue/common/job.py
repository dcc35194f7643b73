# pycronqueue/common/job.py
import uuid
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Optional


@dataclass
class Job:
    """
    A persisted unit of recurring or one-shot work.

    A recurring job keeps the same row (and therefore the same ``id`` and
    ``created_at``) for its whole lifetime; rescheduling only touches
    ``run_at``, ``attempts`` and ``last_error``.
    """

    # Serialized handler object
    payload: str

    # Persisted schedule text: None, a cron expression or "dynamic:<hook>"
    schedule: Optional[str] = None

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    run_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    attempts: int = 0
    last_error: Optional[str] = None
    failed_at: Optional[datetime] = None

    # Worker lock
    locked_by: Optional[str] = None
    locked_at: Optional[datetime] = None

    # Job metadata
    queue: str = "default"
    priority: int = 0
