"""
Error taxonomy of the soak harness.

Every failure the harness can raise derives from :class:`HarnessError` so a
caller can tell harness outcomes from programming errors.  The hierarchy
separates three kinds of trouble:

- **Transport / protocol** -- the system under test could not be reached
  or answered with something unusable (:class:`TransportError`,
  :class:`UnexpectedStatusError`, :class:`MalformedResponseError`).
- **Oracle defects** -- the local model was asked to do something
  impossible (:class:`NotFoundError`, :class:`DuplicateTaskError`).  These
  point at a bug in the harness itself.
- **System-under-test defects** -- :class:`ConsistencyViolation`, the
  finding the harness exists to produce.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tasksoak.actions import Action
    from tasksoak.models import Task


class HarnessError(Exception):
    """Base class for every error raised by the harness."""


class ConfigurationError(HarnessError):
    """Settings failed validation."""


class TransportError(HarnessError):
    """The system under test could not be reached (connection, DNS, timeout)."""

    def __init__(self, method: str, url: str, reason: str):
        self.method = method
        self.url = url
        self.reason = reason
        super().__init__(f"{method} {url} failed: {reason}")


class UnexpectedStatusError(HarnessError):
    """The system under test answered with a non-2xx status code."""

    def __init__(self, method: str, url: str, status_code: int, body: str = ""):
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body = body
        detail = f": {body[:200]}" if body else ""
        super().__init__(f"{method} {url} returned {status_code}{detail}")


class MalformedResponseError(HarnessError):
    """A response body was not the JSON shape the task contract promises."""


class OracleError(HarnessError):
    """The local model was asked for an impossible mutation."""


class NotFoundError(OracleError, KeyError):
    """The model does not track a task with the requested id."""

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task {task_id} is not tracked by the model")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class DuplicateTaskError(OracleError):
    """A task with the same id is already live in the model."""

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task {task_id} is already tracked by the model")


class SelectionStalledError(HarnessError):
    """No action with a positive weight can be executed in the current state."""


class RoundBudgetExceeded(HarnessError):
    """A round ran past its wall-clock budget."""

    def __init__(self, round_number: int, budget: float, steps_done: int):
        self.round_number = round_number
        self.budget = budget
        self.steps_done = steps_done
        super().__init__(
            f"Round {round_number} exceeded its {budget:g}s budget "
            f"after {steps_done} steps"
        )


class ConsistencyViolation(HarnessError):
    """
    Observed server state diverged from the oracle's prediction.

    Attributes:
        property_name: Invariant that failed (``total_count``,
            ``completed_count``, ``priority_order`` ...).
        expected: Value predicted by the model.
        actual: Value derived from the server response.
        history: Actions applied since the last successful check.
        observed: Task list the server returned for the failing check.
        round_number: Round in which the violation was detected.
        step: Effective step count reached when it was detected.
    """

    def __init__(
        self,
        property_name: str,
        expected: Any,
        actual: Any,
        history: tuple[Action, ...] = (),
        observed: tuple[Task, ...] = (),
        round_number: int | None = None,
        step: int | None = None,
    ):
        self.property_name = property_name
        self.expected = expected
        self.actual = actual
        self.history = tuple(history)
        self.observed = tuple(observed)
        self.round_number = round_number
        self.step = step
        super().__init__(
            f"{property_name} mismatch. Expected: {expected}, Found: {actual}"
        )

    def report_lines(self) -> list[str]:
        """Render the violation as the multi-line diagnostic written to the run log."""
        where = []
        if self.round_number is not None:
            where.append(f"round {self.round_number}")
        if self.step is not None:
            where.append(f"step {self.step}")
        lines = [str(self) + (f" ({', '.join(where)})" if where else "")]
        lines.append(f"Actions since last successful check: {len(self.history)}")
        lines.extend(f"  {action.describe()}" for action in self.history)
        if self.observed:
            lines.append("Observed tasks:")
            lines.extend(
                f"  Task ID: {task.id}, Title: {task.title}, "
                f"Priority: {task.priority.value}, Completed: {task.completed}"
                for task in self.observed
            )
        return lines
