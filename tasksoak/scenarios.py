"""
Soak scenarios.

A scenario decides what a round looks like beyond the shared
reset / act / verify loop: the default action weights, the selection mode,
which ordering checks are on, and what (if anything) is inserted before
the first step.

Available scenarios:

- ``completion`` -- completion tracking; starts empty, all four actions
  with equal weight, layered selection (a step may insert or delete *and*
  complete or reactivate).
- ``insert-delete`` -- insertions and deletions only; each round draws a
  fresh insertion probability, so rounds range from shrinking to growing
  task lists.
- ``priority`` -- seeds ten tasks with random priorities, verifies the
  listing is grouped high/medium/low, then keeps checking the grouping
  after every insert or delete.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from typing import TYPE_CHECKING

from tasksoak.actions import Action, ActionKind, ActionWeights, SelectionMode
from tasksoak.errors import ConfigurationError
from tasksoak.models import Priority, TaskModel
from tasksoak.runlog import RunLog

if TYPE_CHECKING:
    from tasksoak.runner import SoakRunner

MIN_INSERTION_PROBABILITY = 0.01


class Scenario:
    """Base scenario: equal weights, single selection, count checks only."""

    name = "base"
    default_weights = ActionWeights()
    default_mode = SelectionMode.SINGLE
    check_order = False
    check_read_stability = False

    def round_weights(
        self,
        configured: ActionWeights | None,
        rng: random.Random,
        run_log: RunLog,
    ) -> ActionWeights:
        """Weights for one round; configured weights win over the defaults."""
        return configured or self.default_weights

    def seed(self, runner: SoakRunner, model: TaskModel) -> None:
        """Populate the resource before the first step (no-op by default)."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class CompletionTrackingScenario(Scenario):
    name = "completion"
    default_mode = SelectionMode.LAYERED


class InsertionsAndDeletionsScenario(Scenario):
    """Insert/delete only; completed count must stay at zero."""

    name = "insert-delete"
    default_weights = ActionWeights(insert=0.5, delete=0.5, complete=0.0, reactivate=0.0)

    def round_weights(self, configured, rng, run_log):
        if configured is not None:
            return configured
        probability = rng.uniform(MIN_INSERTION_PROBABILITY, 1.0)
        run_log.raw(f"Insertion Probability: {probability:.4f}")
        return ActionWeights(
            insert=probability,
            delete=1.0 - probability,
            complete=0.0,
            reactivate=0.0,
        )


class PriorityOrderScenario(Scenario):
    """
    Seeded priority-grouping scenario.

    Args:
        seed_count: Tasks inserted before the first step.
        priorities: Explicit priorities for the seeded tasks; overrides
            ``seed_count`` when given.
    """

    name = "priority"
    default_weights = ActionWeights(insert=0.5, delete=0.5, complete=0.0, reactivate=0.0)
    check_order = True

    def __init__(self, seed_count: int = 10, priorities: Sequence[Priority | str] | None = None):
        self.priorities = [Priority(p) for p in priorities] if priorities is not None else None
        self.seed_count = len(self.priorities) if self.priorities is not None else seed_count

    def seed(self, runner, model):
        planned = self.priorities or [None] * self.seed_count
        for priority in planned:
            runner.apply(Action(ActionKind.INSERT, model.synthesize(priority)), model)
        runner.checker.verify(model)
        runner.run_log.action(f"{model.live_count} seeded tasks are sorted by priority.")


SCENARIOS: dict[str, type[Scenario]] = {
    CompletionTrackingScenario.name: CompletionTrackingScenario,
    InsertionsAndDeletionsScenario.name: InsertionsAndDeletionsScenario,
    PriorityOrderScenario.name: PriorityOrderScenario,
}


def get_scenario(name: str) -> Scenario:
    """Instantiate a scenario by name."""
    try:
        return SCENARIOS[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown scenario '{name}'; expected one of {sorted(SCENARIOS)}"
        ) from None
