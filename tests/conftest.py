from datetime import UTC, datetime

import pytest

from pycronqueue.client import JobClient
from pycronqueue.config import WorkerSettings
from pycronqueue.serialization.json_serializer import JsonSerializer
from pycronqueue.server.worker import Worker
from pycronqueue.storage.memory_storage import MemoryStorage

# The queue clock used throughout the tests: 2024-03-10 02:00 UTC.
NOW = datetime(2024, 3, 10, 2, 0, tzinfo=UTC)


@pytest.fixture
def json_serializer():
    return JsonSerializer()


@pytest.fixture
def memory_storage():
    return MemoryStorage(clock=lambda: NOW)


@pytest.fixture
def settings():
    return WorkerSettings(max_attempts=3)


@pytest.fixture
def client(memory_storage, json_serializer):
    return JobClient(memory_storage, json_serializer)


@pytest.fixture
def worker(memory_storage, json_serializer, settings):
    return Worker(memory_storage, json_serializer, settings=settings, name="worker-test")
