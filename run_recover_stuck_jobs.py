"""Release worker locks left behind by crashed or killed PyCronQueue workers.

A locked row is skipped by every other worker until its lock expires. Running
this after a worker dies makes its jobs eligible again right away; the jobs
keep their ``run_at``, ``attempts`` and ``last_error``.
"""
from __future__ import annotations

import argparse
import logging
import os
from typing import List, Optional

from pycronqueue.config import WorkerSettings
from pycronqueue.storage.sql_storage import SqlStorage

logger = logging.getLogger("pycronqueue.recover")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Release stale PyCronQueue worker locks"
    )
    parser.add_argument(
        "--connection-url",
        default=os.getenv("PYCRONQUEUE_DATABASE_URL"),
        help="SQLAlchemy connection URL (env: PYCRONQUEUE_DATABASE_URL).",
    )
    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--worker-name",
        help="Release every lock held by this worker, however recent.",
    )
    target.add_argument(
        "--max-age-seconds",
        type=int,
        default=int(WorkerSettings.max_run_time.total_seconds()),
        help="Release locks older than this many seconds (default: the worker max run time).",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=100,
        help="Maximum number of stale locks to release.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if not args.connection_url:
        parser.error("--connection-url or PYCRONQUEUE_DATABASE_URL is required")

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    storage = SqlStorage(connection_url=args.connection_url, create_tables=False)

    if args.worker_name:
        storage.clear_locks(args.worker_name)
        logger.info(f"Released all locks held by {args.worker_name}")
        return 0

    released = storage.recover_stuck_jobs(
        max_age_seconds=args.max_age_seconds,
        limit=args.limit,
    )
    logger.info(
        f"Released {len(released)} lock(s) older than {args.max_age_seconds}s"
    )
    for job_id in released:
        job = storage.get_job_data(job_id)
        if job is not None:
            logger.info(
                f"  {job_id}: attempts={job.attempts} next run at {job.run_at.isoformat()}"
            )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
