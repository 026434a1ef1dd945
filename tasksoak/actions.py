"""
Action selection for randomized soak steps.

The selector turns a weight table into concrete actions against the
current oracle state.  A draw that cannot be executed (deleting from an
empty model, completing when nothing is active, ...) is thrown away and
re-drawn; it never counts as a step, so every round performs exactly the
configured number of effective mutations.

Two selection modes exist:

- ``single`` -- each step is one action whose kind is drawn from the
  weights.
- ``layered`` -- one uniform draw decides both a structural effect
  (insert, delete or nothing) and a status effect (complete or
  reactivate), so a step may carry two actions.  The bands are laid out
  cumulatively: ``insert | delete | complete | reactivate``; any draw
  below ``insert + delete + complete`` completes a task, the rest
  reactivates one.

Key Concepts Demonstrated:
- Weighted sampling with ``random.Random.choices``
- Retry-on-infeasible as explicit policy instead of loop-counter tricks
- Planning a whole step against a hypothetical state before executing it
"""

from __future__ import annotations

import random
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from tasksoak.errors import ConfigurationError, SelectionStalledError
from tasksoak.models import Task, TaskModel


class ActionKind(str, Enum):
    """Mutation kinds a soak step can perform."""

    INSERT = "insert"
    DELETE = "delete"
    COMPLETE = "complete"
    REACTIVATE = "reactivate"


class SelectionMode(str, Enum):
    SINGLE = "single"
    LAYERED = "layered"


@dataclass(frozen=True)
class Action:
    """
    One planned mutation.

    ``task`` is a snapshot taken at planning time; for status changes it
    shows the task before the flag flips.
    """

    kind: ActionKind
    task: Task

    def describe(self) -> str:
        """Human-readable line used by the run log and violation reports."""
        task = self.task
        if self.kind is ActionKind.INSERT:
            return f"Inserted task: {task.title} (ID: {task.id}) priority: {task.priority.value}"
        if self.kind is ActionKind.DELETE:
            return f"Deleted task: {task.title} (ID: {task.id}) completed: {task.completed}"
        if self.kind is ActionKind.COMPLETE:
            return f"Completed task: {task.title} (ID: {task.id})"
        return f"Activated task: {task.title} (ID: {task.id})"


@dataclass(frozen=True)
class ActionWeights:
    """Relative weights per action kind; they need not sum to 1."""

    insert: float = 0.25
    delete: float = 0.25
    complete: float = 0.25
    reactivate: float = 0.25

    def __post_init__(self) -> None:
        for kind in ActionKind:
            value = self.weight(kind)
            if value < 0:
                raise ConfigurationError(f"Weight for '{kind.value}' must be >= 0, got {value}")
        if self.total <= 0:
            raise ConfigurationError("At least one action weight must be positive")

    @classmethod
    def from_mapping(cls, weights: Mapping[str, float]) -> ActionWeights:
        """
        Build weights from a ``{action name: weight}`` mapping.

        Missing actions get weight 0.

        Raises:
            ConfigurationError: For unknown action names or bad values.
        """
        known = {kind.value for kind in ActionKind}
        unknown = set(weights) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown action(s) {sorted(unknown)}; expected some of {sorted(known)}"
            )
        try:
            values = {name: float(weights.get(name, 0.0)) for name in known}
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Action weights must be numbers: {exc}") from exc
        return cls(**values)

    def weight(self, kind: ActionKind) -> float:
        return getattr(self, kind.value)

    @property
    def total(self) -> float:
        return sum(self.weight(kind) for kind in ActionKind)

    def as_dict(self) -> dict[str, float]:
        return {kind.value: self.weight(kind) for kind in ActionKind}


class ActionSelector:
    """
    Chooses the next step's actions according to weights and model state.

    Args:
        weights: Relative action weights.
        rng: Random source shared with the rest of the run.
        mode: ``single`` or ``layered`` selection.

    Attributes:
        skipped: Number of infeasible draws thrown away so far.
    """

    def __init__(
        self,
        weights: ActionWeights,
        rng: random.Random | None = None,
        mode: SelectionMode | str = SelectionMode.SINGLE,
    ):
        self.weights = weights
        self.rng = rng or random.Random()
        self.mode = SelectionMode(mode)
        self.skipped = 0

    @staticmethod
    def is_feasible(kind: ActionKind, model: TaskModel) -> bool:
        if kind is ActionKind.DELETE:
            return model.live_count > 0
        if kind is ActionKind.COMPLETE:
            return model.active_count > 0
        if kind is ActionKind.REACTIVATE:
            return model.completed_count > 0
        return True

    def next_step(self, model: TaskModel) -> tuple[Action, ...]:
        """
        Plan the actions of the next effective step.

        The model is not mutated, apart from insert actions consuming a
        fresh id.

        Raises:
            SelectionStalledError: If no draw can ever be feasible.
        """
        if self.mode is SelectionMode.LAYERED:
            return self._next_layered(model)
        return (self._next_single(model),)

    # -- single ----------------------------------------------------------

    def _next_single(self, model: TaskModel) -> Action:
        kinds = [kind for kind in ActionKind if self.weights.weight(kind) > 0]
        if not any(self.is_feasible(kind, model) for kind in kinds):
            raise SelectionStalledError(
                f"No feasible action for weights {self.weights.as_dict()} "
                f"with {model.live_count} live tasks"
            )

        population = list(ActionKind)
        weights = [self.weights.weight(kind) for kind in population]
        while True:
            kind = self.rng.choices(population, weights=weights)[0]
            if self.is_feasible(kind, model):
                return self._plan(kind, model.tasks, model)
            self.skipped += 1

    # -- layered ---------------------------------------------------------

    def _next_layered(self, model: TaskModel) -> tuple[Action, ...]:
        w = self.weights
        structural_end = w.insert + w.delete
        complete_end = structural_end + w.complete

        if not self._layered_can_progress(model):
            raise SelectionStalledError(
                f"No feasible layered step for weights {w.as_dict()} "
                f"with {model.live_count} live tasks"
            )

        while True:
            draw = self.rng.random() * w.total
            if draw < w.insert:
                structural = ActionKind.INSERT
            elif draw < structural_end:
                structural = ActionKind.DELETE
            else:
                structural = None
            status = ActionKind.COMPLETE if draw < complete_end else ActionKind.REACTIVATE

            if structural is ActionKind.DELETE and model.live_count == 0:
                self.skipped += 1
                continue

            actions: list[Action] = []
            pool = list(model.tasks)
            if structural is not None:
                first = self._plan(structural, pool, model)
                actions.append(first)
                if structural is ActionKind.INSERT:
                    pool.append(first.task)
                else:
                    pool = [task for task in pool if task.id != first.task.id]

            wanted = status is ActionKind.REACTIVATE
            if not any(task.completed == wanted for task in pool):
                self.skipped += 1
                continue

            actions.append(self._plan(status, pool, model))
            return tuple(actions)

    def _layered_can_progress(self, model: TaskModel) -> bool:
        w = self.weights
        # an insert draw is always followed by completing some active task
        if w.insert > 0:
            return True
        if w.complete > 0 and model.active_count > 0:
            return True
        if w.reactivate > 0 and model.completed_count > 0:
            return True
        # a delete draw also completes a task, so an active one must survive it
        return w.delete > 0 and model.active_count > 0 and model.live_count >= 2

    # -- helpers ---------------------------------------------------------

    def _plan(self, kind: ActionKind, pool: list[Task] | tuple[Task, ...], model: TaskModel) -> Action:
        """Bind ``kind`` to a concrete task drawn uniformly from the eligible pool."""
        if kind is ActionKind.INSERT:
            return Action(kind, model.synthesize())
        if kind is ActionKind.DELETE:
            eligible = list(pool)
        elif kind is ActionKind.COMPLETE:
            eligible = [task for task in pool if not task.completed]
        else:
            eligible = [task for task in pool if task.completed]
        return Action(kind, self.rng.choice(eligible).snapshot())
