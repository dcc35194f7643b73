"""CLI utility to run a PyCronQueue worker against SQL storage."""
from __future__ import annotations

import argparse
import logging
import os
from datetime import timedelta

from pycronqueue.config import WorkerSettings
from pycronqueue.server.worker import Worker
from pycronqueue.storage.sql_storage import SqlStorage


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a PyCronQueue worker")
    parser.add_argument(
        "--connection-url",
        default=os.getenv("PYCRONQUEUE_DATABASE_URL"),
        help="SQLAlchemy connection URL (env: PYCRONQUEUE_DATABASE_URL).",
    )
    parser.add_argument(
        "--queues",
        nargs="*",
        default=None,
        help="Only work off jobs from these queues (default: all queues).",
    )
    parser.add_argument(
        "--max-attempts",
        type=int,
        default=WorkerSettings.max_attempts,
        help="Attempts before a non-recurring job is marked as failed.",
    )
    parser.add_argument(
        "--max-run-time",
        type=float,
        default=WorkerSettings.max_run_time.total_seconds(),
        help="Seconds a single attempt may run before it times out.",
    )
    parser.add_argument(
        "--sleep-delay",
        type=float,
        default=WorkerSettings.sleep_delay,
        help="Seconds to sleep when no job is due.",
    )
    parser.add_argument(
        "--destroy-failed-jobs",
        action="store_true",
        help="Delete non-recurring jobs once they run out of attempts.",
    )
    parser.add_argument(
        "--burst",
        action="store_true",
        help="Exit once no job is due instead of polling forever.",
    )
    parser.add_argument("--log-level", default="INFO")
    return parser


def main() -> None:
    parser = build_arg_parser()
    args = parser.parse_args()
    if not args.connection_url:
        parser.error("--connection-url or PYCRONQUEUE_DATABASE_URL is required")

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = WorkerSettings(
        max_attempts=args.max_attempts,
        max_run_time=timedelta(seconds=args.max_run_time),
        sleep_delay=args.sleep_delay,
        destroy_failed_jobs=args.destroy_failed_jobs,
    )
    storage = SqlStorage(connection_url=args.connection_url)
    Worker(storage, settings=settings, queues=args.queues).run(burst=args.burst)


if __name__ == "__main__":
    main()
