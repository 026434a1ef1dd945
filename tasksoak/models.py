"""
Task records and the in-memory oracle.

:class:`TaskModel` mirrors what the system under test *should* contain.
The runner mutates the model first and then issues the matching request,
so after every step the model is the prediction and the server response
is the observation that :class:`~tasksoak.checks.InvariantChecker`
compares against it.

Key Concepts Demonstrated:
- ``str, Enum`` priorities that serialise straight to JSON
- Counters owned by the model instead of loose module state
- Monotonic client-side id allocation that never reuses an id
"""

from __future__ import annotations

import dataclasses
import itertools
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from tasksoak.errors import DuplicateTaskError, MalformedResponseError, NotFoundError

if TYPE_CHECKING:
    from tasksoak.generators import RandomValueGenerator


TITLE_LENGTH = (1, 20)
DESCRIPTION_LENGTH = (0, 50)


class Priority(str, Enum):
    """Task priority labels; :attr:`rank` gives the listing order."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return PRIORITY_RANK[self]


PRIORITY_RANK = {Priority.HIGH: 1, Priority.MEDIUM: 2, Priority.LOW: 3}


@dataclass
class Task:
    """
    One task record as exchanged with the task resource.

    Attributes:
        id: Client-assigned identifier, unique among live tasks.
        title: Non-empty title.
        description: Free text, may be empty.
        priority: Priority label.
        completed: Completion flag.
        due_date: ``DD/MM/YYYY`` string, sent and compared verbatim.
    """

    id: int
    title: str
    description: str
    priority: Priority
    completed: bool = False
    due_date: str = ""

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body used to create this task."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "completed": self.completed,
            "dueDate": self.due_date,
        }

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Task:
        """
        Build a task from a decoded response item.

        Raises:
            MalformedResponseError: If a required key is missing, the
                priority label is unknown or ``completed`` is not a boolean.
        """
        try:
            completed = data.get("completed", False)
            if not isinstance(completed, bool):
                raise TypeError(f"'completed' must be a boolean, got {completed!r}")
            return cls(
                id=data["id"],
                title=data["title"],
                description=data.get("description") or "",
                priority=Priority(data["priority"]),
                completed=completed,
                due_date=data.get("dueDate") or "",
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise MalformedResponseError(f"Invalid task object {data!r}: {exc}") from exc

    def snapshot(self) -> Task:
        """Return a detached copy, unaffected by later mutations."""
        return dataclasses.replace(self)


class TaskModel:
    """
    Oracle of the expected server state.

    Args:
        generator: Source of random field values for :meth:`synthesize`.
        first_id: First id handed out by :meth:`synthesize`.
    """

    def __init__(self, generator: RandomValueGenerator, first_id: int = 1):
        self.generator = generator
        self._first_id = first_id
        self.reset()

    def reset(self) -> None:
        """Forget every task, zero all counters and restart id allocation."""
        self._ids = itertools.count(self._first_id)
        self._highest_id = self._first_id - 1
        self.clear()

    def clear(self) -> None:
        """
        Forget every task and zero the counters, keeping id allocation.

        Used between rounds: ids handed out earlier are never reused
        against the same server.
        """
        self._tasks: list[Task] = []
        self.inserted_total = 0
        self.deleted_total = 0
        self.completed_count = 0
        self.active_count = 0

    # -- views -----------------------------------------------------------

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    @property
    def live_count(self) -> int:
        return len(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return any(task.id == task_id for task in self._tasks)

    def get(self, task_id: int) -> Task:
        for task in self._tasks:
            if task.id == task_id:
                return task
        raise NotFoundError(task_id)

    def active_tasks(self) -> list[Task]:
        return [task for task in self._tasks if not task.completed]

    def completed_tasks(self) -> list[Task]:
        return [task for task in self._tasks if task.completed]

    def expected_ordered_view(self) -> list[Task]:
        """Tasks stably sorted by priority rank (high first)."""
        return sorted(self._tasks, key=lambda task: task.priority.rank)

    # -- mutations -------------------------------------------------------

    def next_id(self) -> int:
        """Allocate an id that has never been handed out or observed."""
        task_id = next(self._ids)
        while task_id <= self._highest_id:
            task_id = next(self._ids)
        self._highest_id = task_id
        return task_id

    def synthesize(self, priority: Priority | None = None) -> Task:
        """
        Build a new random active task without adding it to the model.

        Args:
            priority: Fixed priority, or ``None`` for a random one.

        Returns:
            A task with a fresh monotonic id.
        """
        gen = self.generator
        return Task(
            id=self.next_id(),
            title=gen.random_string(*TITLE_LENGTH),
            description=gen.random_string(*DESCRIPTION_LENGTH),
            priority=priority or gen.random_priority(),
            completed=False,
            due_date=gen.random_date(),
        )

    def insert(self, task: Task) -> None:
        if task.id in self:
            raise DuplicateTaskError(task.id)
        self._tasks.append(task)
        self._highest_id = max(self._highest_id, task.id)
        self.inserted_total += 1
        if task.completed:
            self.completed_count += 1
        else:
            self.active_count += 1

    def delete(self, task_id: int) -> Task:
        """Remove and return the task with ``task_id``."""
        task = self.get(task_id)
        self._tasks.remove(task)
        if task.completed:
            self.completed_count -= 1
        else:
            self.active_count -= 1
        self.deleted_total += 1
        return task

    def set_completed(self, task_id: int, value: bool) -> Task:
        """Set the completion flag, moving the task between the counters."""
        task = self.get(task_id)
        if task.completed != value:
            task.completed = value
            if value:
                self.completed_count += 1
                self.active_count -= 1
            else:
                self.completed_count -= 1
                self.active_count += 1
        return task

    def seed_from(self, tasks: Iterable[Task]) -> None:
        """
        Adopt tasks already present on the server as the baseline.

        Each adopted task counts as an insertion so the ledger invariant
        (live == inserted - deleted) holds from the first check on.
        """
        for task in tasks:
            self.insert(task.snapshot())
