# pycronqueue/server/worker.py
import logging
import os
import socket
import time
from typing import List, Optional, Tuple

from pycronqueue.config import WorkerSettings
from pycronqueue.serialization.base import BaseSerializer
from pycronqueue.serialization.json_serializer import JsonSerializer
from pycronqueue.server.processor import JobProcessor
from pycronqueue.storage.base import JobStorage

logger = logging.getLogger(__name__)


class Worker:
    def __init__(
        self,
        storage: JobStorage,
        serializer: BaseSerializer = None,
        settings: Optional[WorkerSettings] = None,
        queues: Optional[List[str]] = None,
        name: Optional[str] = None,
    ):
        self.storage = storage
        self.serializer = serializer or JsonSerializer()
        self.settings = settings or WorkerSettings()
        self.queues = queues
        self.name = name or f"host:{socket.gethostname()} pid:{os.getpid()}"
        self._shutdown_requested = False

    def reserve_and_run_one_job(self) -> Optional[bool]:
        """Processes a single due job. Returns None when nothing was due."""
        job = self.storage.reserve(self.name, self.settings.max_run_time, self.queues)
        if job is None:
            return None

        logger.info(f"[{self.name}] Picked up job {job.id} (attempt {job.attempts + 1})")
        outcome = JobProcessor(job, self.storage, self.serializer, self.settings).process()
        logger.info(f"[{self.name}] Finished job {job.id}: {outcome.name}")
        return not outcome.is_error

    def work_off(self, num: int = 100) -> Tuple[int, int]:
        """Processes up to ``num`` due jobs. Returns (successes, failures)."""
        success, failure = 0, 0
        for _ in range(num):
            if self._shutdown_requested:
                break
            result = self.reserve_and_run_one_job()
            if result is None:
                break
            if result:
                success += 1
            else:
                failure += 1
        return success, failure

    def run(self, burst: bool = False):
        """Starts the worker's processing loop."""
        logger.info(f"[{self.name}] Starting worker for queues: {', '.join(self.queues or ['*'])}")
        try:
            while not self._shutdown_requested:
                try:
                    success, failure = self.work_off()
                    if success or failure:
                        logger.info(
                            f"[{self.name}] {success + failure} jobs processed: {success} succeeded, {failure} failed"
                        )
                    elif burst:
                        break
                    else:
                        time.sleep(self.settings.sleep_delay)
                except KeyboardInterrupt:
                    logger.info(f"[{self.name}] Shutdown requested...")
                    self._shutdown_requested = True
                except Exception:
                    logger.exception(f"[{self.name}] Unhandled exception in worker loop")
                    time.sleep(self.settings.sleep_delay)  # Cooldown period after a major failure
        finally:
            self.storage.clear_locks(self.name)
        logger.info(f"[{self.name}] Worker has stopped.")
