# main.py
import logging
import time

from pycronqueue.client import JobClient
from pycronqueue.config import configure
from pycronqueue.storage.memory_storage import MemoryStorage
from pycronqueue.server.worker import Worker


class Heartbeat:
    def __init__(self, name):
        self.name = name

    def perform(self):
        print(f"Heartbeat from {self.name}")


class Countdown:
    def __init__(self, runs):
        self.runs = runs

    def perform(self):
        print("Countdown tick")

    def resolve_schedule(self, job):
        # Every minute until the job has run `runs` times, then stop.
        return None if job.attempts >= self.runs else "* * * * *"


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    # 1. Configure PyCronQueue
    storage = MemoryStorage()
    configure(storage)

    # 2. Create a client
    client = JobClient(storage)

    # 3. Enqueue a recurring job, a dynamic one and a one-shot job
    job = client.enqueue(Heartbeat("demo"), schedule="*/5 * * * *")
    print(f"Enqueued recurring job {job.id}, first run at {job.run_at}")
    job = client.enqueue(Countdown(3), schedule="dynamic:resolve_schedule")
    print(f"Enqueued dynamic job {job.id}, first run at {job.run_at}")
    job = client.enqueue(Heartbeat("once"))
    print(f"Enqueued one-shot job {job.id}")

    # 4. Work off whatever is due right now
    worker = Worker(storage)
    successes, failures = worker.work_off()
    time.sleep(0.1)

    print(f"\n{successes} succeeded, {failures} failed, {storage.count()} jobs left")
    print("\nDemonstration finished.")
