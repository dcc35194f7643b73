# pycronqueue/execution/performer.py
import threading
from datetime import timedelta
from typing import Any, Optional

from pycronqueue.common.exceptions import JobTimeoutError


def perform_job(payload: Any, max_run_time: Optional[timedelta] = None) -> Any:
    """Runs the payload's ``perform()``, enforcing ``max_run_time`` if given.

    A timed-out payload keeps running on its daemon thread; its result is
    discarded.
    """
    if max_run_time is None:
        return payload.perform()

    result: dict = {}

    def target():
        try:
            result["value"] = payload.perform()
        except BaseException as e:
            result["error"] = e

    thread = threading.Thread(target=target, daemon=True, name="pycronqueue-perform")
    thread.start()
    thread.join(max_run_time.total_seconds())
    if thread.is_alive():
        raise JobTimeoutError("execution expired")
    if "error" in result:
        raise result["error"]
    return result.get("value")
