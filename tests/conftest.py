"""
Shared pytest fixtures for the soak harness test suite.

Two kinds of targets are provided:

- :class:`InMemoryTaskApi` -- a dict-backed stand-in for
  :class:`~tasksoak.client.ApiClient` with switchable defects, used by the
  unit tests to provoke every consistency violation deterministically.
- ``live_target`` -- the reference Flask task API served from a background
  thread, used by the integration tests to run real HTTP round trips.

Key Concepts Demonstrated:
- Fixture scopes (function, session)
- Fault-injecting fakes for negative-path testing
- Test data factories built on Faker
- Live server fixture with per-test database cleanup
"""

import logging
import os
import random
from collections.abc import Generator
from datetime import date

import pytest
from faker import Faker

# Set testing environment before importing the reference app
os.environ["FLASK_ENV"] = "testing"

from reference_api import create_app, db
from reference_api.models import Task as TaskRow
from shared.live_stack import live_target_url
from tasksoak.client import ApiClient
from tasksoak.config import SoakSettings
from tasksoak.generators import RandomValueGenerator
from tasksoak.models import Priority, Task, TaskModel


# Initialize Faker for generating test data
fake = Faker()

FIXED_TODAY = date(2026, 10, 18)


# -----------------------------------------------------------------------------
# In-memory target
# -----------------------------------------------------------------------------

class InMemoryTaskApi:
    """
    Dict-backed task resource with the :class:`ApiClient` interface.

    Args:
        ignore_deletes: Acknowledge deletes without removing anything.
        ignore_updates: Acknowledge completion updates without applying them.
        sort_by_priority: List tasks grouped high, medium, low (insertion
            order otherwise).
        shuffle_reads: Return tasks in a random order on every listing.
    """

    base_url = "memory://api/tasks"

    def __init__(
        self,
        *,
        ignore_deletes: bool = False,
        ignore_updates: bool = False,
        sort_by_priority: bool = True,
        shuffle_reads: bool = False,
    ):
        self.ignore_deletes = ignore_deletes
        self.ignore_updates = ignore_updates
        self.sort_by_priority = sort_by_priority
        self.shuffle_reads = shuffle_reads
        self.tasks: dict[int, Task] = {}
        self.calls: list[tuple[str, int | None]] = []
        self._shuffler = random.Random(99)

    def list_all(self) -> list[Task]:
        self.calls.append(("GET", None))
        tasks = [task.snapshot() for task in self.tasks.values()]
        if self.sort_by_priority:
            tasks.sort(key=lambda task: task.priority.rank)
        if self.shuffle_reads:
            self._shuffler.shuffle(tasks)
        return tasks

    def create(self, task: Task) -> None:
        self.calls.append(("POST", task.id))
        self.tasks[task.id] = task.snapshot()

    def remove(self, task_id: int) -> None:
        self.calls.append(("DELETE", task_id))
        if not self.ignore_deletes:
            self.tasks.pop(task_id, None)

    def update_completed(self, task_id: int, value: bool) -> None:
        self.calls.append(("PUT", task_id))
        if not self.ignore_updates:
            self.tasks[task_id].completed = value

    def close(self) -> None:
        pass

    def count(self, method: str) -> int:
        return sum(1 for call, _ in self.calls if call == method)


@pytest.fixture
def memory_api() -> InMemoryTaskApi:
    """Provide a well-behaved in-memory task resource."""
    return InMemoryTaskApi()


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo configure_logging() calls made by CLI tests."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# -----------------------------------------------------------------------------
# Oracle Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def rng() -> random.Random:
    """Provide a seeded random source so failures are reproducible."""
    return random.Random(1234)


@pytest.fixture
def generator(rng) -> RandomValueGenerator:
    """Provide a value generator pinned to a fixed 'today'."""
    return RandomValueGenerator(rng, today=lambda: FIXED_TODAY)


@pytest.fixture
def model(generator) -> TaskModel:
    """Provide an empty oracle."""
    return TaskModel(generator)


@pytest.fixture
def task_factory():
    """
    Factory fixture for creating Task records.

    Example:
        def test_something(task_factory):
            task = task_factory(priority="high")
            assert task.priority is Priority.HIGH
    """
    ids = iter(range(1000, 100000))

    def _create_task(
        task_id: int | None = None,
        title: str | None = None,
        priority: Priority | str = Priority.MEDIUM,
        completed: bool = False,
        due_date: str = "01/02/2027",
    ) -> Task:
        return Task(
            id=task_id if task_id is not None else next(ids),
            title=title or fake.word()[:20] or "task",
            description=fake.sentence()[:50],
            priority=Priority(priority),
            completed=completed,
            due_date=due_date,
        )

    return _create_task


# -----------------------------------------------------------------------------
# Reference Target Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture(scope="session")
def reference_app():
    """Create the reference Task API once for the test session."""
    return create_app("testing")


@pytest.fixture(scope="function")
def client(reference_app):
    """Provide a Flask test client for direct contract tests."""
    with reference_app.test_client() as test_client:
        yield test_client


@pytest.fixture(scope="function")
def clean_db(reference_app):
    """
    Ensure an empty task table before and after each test.

    Rows are deleted rather than the schema dropped, because the live
    server thread shares the same in-memory database.
    """
    with reference_app.app_context():
        db.session.query(TaskRow).delete()
        db.session.commit()
    yield db
    with reference_app.app_context():
        db.session.query(TaskRow).delete()
        db.session.commit()


@pytest.fixture(scope="session")
def live_target(reference_app) -> Generator[str, None, None]:
    """Serve the reference API over real HTTP and yield its base URL."""
    yield from live_target_url(lambda: reference_app)


@pytest.fixture
def tasks_url(live_target, clean_db) -> str:
    """Collection URL of an empty live task resource."""
    return f"{live_target}/api/tasks"


@pytest.fixture
def api_client(tasks_url) -> Generator[ApiClient, None, None]:
    """Provide an ApiClient bound to the live reference resource."""
    with ApiClient(tasks_url, timeout=5) as api:
        yield api


@pytest.fixture
def soak_settings():
    """
    Factory for small, fast, seeded run settings.

    Returns:
        Function accepting SoakSettings field overrides.
    """

    def _settings(**overrides) -> SoakSettings:
        values = {
            "base_url": InMemoryTaskApi.base_url,
            "rounds": 1,
            "steps_per_round": 40,
            "log_path": None,
            "seed": 7,
            "request_timeout": 5.0,
            "round_timeout": 60.0,
        }
        values.update(overrides)
        return SoakSettings(**values).validate()

    return _settings
