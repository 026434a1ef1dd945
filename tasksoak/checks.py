"""
Invariant checks comparing the oracle with the live resource.

After every effective step the checker lists the server state once and
asserts, in this order:

1. ``total_count`` -- number of listed tasks equals the model's live count.
2. ``ledger_count`` -- it also equals ``inserted_total - deleted_total``.
3. ``completed_count`` / ``active_count`` -- the split by completion flag
   matches the model's counters.
4. ``unique_ids`` -- no id is listed twice.
5. ``priority_order`` (when enabled) -- no task is directly followed by a
   task of higher priority.
6. ``priority_groups`` (with ordering) -- the listed priority sequence and
   each listed task's priority match the model.
7. ``read_stability`` (when enabled) -- a second, back-to-back listing
   returns the same id sequence.

The first failing property raises :class:`ConsistencyViolation` carrying
the actions applied since the last passing check.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence

from tasksoak.actions import Action
from tasksoak.client import ApiClient
from tasksoak.errors import ConsistencyViolation
from tasksoak.models import Task, TaskModel

logger = logging.getLogger(__name__)


def find_priority_inversion(tasks: Sequence[Task]) -> int | None:
    """
    Return the index of the first task listed after a lower-priority one.

    Only adjacent pairs are compared, which is enough to prove the list is
    grouped high, medium, low.  Returns ``None`` for a correctly ordered
    list.
    """
    for index in range(1, len(tasks)):
        if tasks[index - 1].priority.rank > tasks[index].priority.rank:
            return index
    return None


class InvariantChecker:
    """
    Verifies server state against a :class:`TaskModel` after each step.

    Args:
        client: Client used to read the authoritative state.
        check_order: Enable the priority grouping check.
        check_read_stability: Re-list and compare id order on every check.
    """

    def __init__(
        self,
        client: ApiClient,
        *,
        check_order: bool = False,
        check_read_stability: bool = False,
    ):
        self.client = client
        self.check_order = check_order
        self.check_read_stability = check_read_stability
        self.checks_passed = 0
        self._pending: list[Action] = []
        self.round_number: int | None = None
        self.step: int | None = None

    @property
    def history(self) -> tuple[Action, ...]:
        """Actions applied since the last successful check."""
        return tuple(self._pending)

    def record(self, action: Action) -> None:
        self._pending.append(action)

    def clear(self) -> None:
        self._pending.clear()

    def verify(self, model: TaskModel) -> list[Task]:
        """
        Run every enabled check against a fresh listing.

        Returns:
            The tasks the server listed.

        Raises:
            ConsistencyViolation: On the first property that does not hold.
        """
        observed = self.client.list_all()

        self._expect("total_count", model.live_count, len(observed), observed)
        self._expect(
            "ledger_count",
            model.inserted_total - model.deleted_total,
            len(observed),
            observed,
        )

        completed = sum(1 for task in observed if task.completed)
        self._expect("completed_count", model.completed_count, completed, observed)
        self._expect("active_count", model.active_count, len(observed) - completed, observed)

        duplicates = sorted(
            task_id for task_id, count in Counter(task.id for task in observed).items() if count > 1
        )
        self._expect("unique_ids", [], duplicates, observed)

        if self.check_order:
            index = find_priority_inversion(observed)
            if index is not None:
                before, after = observed[index - 1], observed[index]
                self._fail(
                    "priority_order",
                    "tasks grouped high, medium, low",
                    f"{before.priority.value} task {before.id} listed before "
                    f"{after.priority.value} task {after.id} at position {index}",
                    observed,
                )

            self._expect(
                "priority_groups",
                [task.priority.value for task in model.expected_ordered_view()],
                [task.priority.value for task in observed],
                observed,
            )
            for task in observed:
                if task.id in model and model.get(task.id).priority is not task.priority:
                    self._fail(
                        "priority_groups",
                        f"task {task.id} listed as {model.get(task.id).priority.value}",
                        f"task {task.id} listed as {task.priority.value}",
                        observed,
                    )

        if self.check_read_stability:
            again = self.client.list_all()
            self._expect(
                "read_stability",
                [task.id for task in observed],
                [task.id for task in again],
                again,
            )

        self.checks_passed += 1
        self._pending.clear()
        logger.debug("Check %d passed with %d tasks", self.checks_passed, len(observed))
        return observed

    def _expect(self, name: str, expected, actual, observed: Sequence[Task]) -> None:
        if expected != actual:
            self._fail(name, expected, actual, observed)

    def _fail(self, name: str, expected, actual, observed: Sequence[Task]) -> None:
        raise ConsistencyViolation(
            name,
            expected,
            actual,
            history=self.history,
            observed=tuple(observed),
            round_number=self.round_number,
            step=self.step,
        )
