"""
Soak run orchestration.

Every round walks the same state machine::

    Reset -> Seed -> (Act -> Verify) x steps_per_round -> RoundComplete

*Reset* deletes everything the resource lists and clears the oracle (its
id counter keeps running, so no id is ever sent twice to one server);
*Seed* is scenario specific; each *Act* applies one planned step (model
first, then the matching request) and each *Verify* compares a fresh
listing with the oracle.  Requests are issued strictly one at a time.

A :class:`~tasksoak.errors.ConsistencyViolation` ends the whole run: it
is written to the run log with its action history and returned on the
:class:`RunReport`.  Every other harness error (transport, unexpected
status, oracle defect, exhausted budget) is logged and propagates.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from tasksoak.actions import Action, ActionKind, ActionSelector
from tasksoak.checks import InvariantChecker
from tasksoak.client import ApiClient
from tasksoak.config import SoakSettings
from tasksoak.errors import (
    ConsistencyViolation,
    HarnessError,
    OracleError,
    RoundBudgetExceeded,
)
from tasksoak.generators import RandomValueGenerator
from tasksoak.models import Task, TaskModel
from tasksoak.runlog import RunLog
from tasksoak.scenarios import Scenario, get_scenario

logger = logging.getLogger(__name__)


@dataclass
class RoundResult:
    """Outcome of one completed round."""

    number: int
    steps: int
    skipped_selections: int
    inserted: int
    deleted: int
    completed: int
    active: int
    duration: float


@dataclass
class RunReport:
    """Outcome of a whole run: completed rounds and the violation, if any."""

    scenario: str
    rounds: list[RoundResult] = field(default_factory=list)
    violation: ConsistencyViolation | None = None

    @property
    def passed(self) -> bool:
        return self.violation is None

    @property
    def total_steps(self) -> int:
        return sum(result.steps for result in self.rounds)

    def raise_for_violation(self) -> None:
        if self.violation is not None:
            raise self.violation


class SoakRunner:
    """
    Drives one scenario against the task resource.

    Args:
        client: Transport to the system under test.
        scenario: Round layout (weights, mode, checks, seeding).
        settings: Run length, weights and budget.
        run_log: Action/error sink; discards entries when omitted.
        rng: Random source for every draw; seeded from ``settings.seed``
            when omitted.
        clock: Monotonic clock used for the round budget.
    """

    def __init__(
        self,
        client: ApiClient,
        scenario: Scenario,
        settings: SoakSettings,
        *,
        run_log: RunLog | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.scenario = scenario
        self.settings = settings
        self.run_log = run_log or RunLog(None)
        self.rng = rng or random.Random(settings.seed)
        self.clock = clock
        self.generator = RandomValueGenerator(self.rng)
        self.checker = InvariantChecker(
            client,
            check_order=scenario.check_order,
            check_read_stability=scenario.check_read_stability or settings.check_read_stability,
        )
        self.model = TaskModel(self.generator)

    @classmethod
    def from_settings(cls, settings: SoakSettings) -> SoakRunner:
        """Wire client, run log and scenario from settings alone."""
        client = ApiClient(
            settings.base_url,
            timeout=settings.request_timeout,
            tolerate_missing_delete=settings.tolerate_missing_delete,
        )
        return cls(
            client,
            get_scenario(settings.scenario),
            settings,
            run_log=RunLog(settings.log_path),
        )

    # -- run / round -----------------------------------------------------

    def run(self) -> RunReport:
        """Run every configured round, stopping at the first violation."""
        report = RunReport(scenario=self.scenario.name)
        logger.info(
            "Starting %s soak: %d rounds x %d steps against %s",
            self.scenario.name,
            self.settings.rounds,
            self.settings.steps_per_round,
            self.client.base_url,
        )

        for number in range(1, self.settings.rounds + 1):
            if self.settings.log_reset == "round" and number > 1:
                self.run_log.reset()
            try:
                result = self.run_round(number)
            except ConsistencyViolation as violation:
                for line in violation.report_lines():
                    self.run_log.error(line)
                logger.error("Round %d failed: %s", number, violation)
                report.violation = violation
                break
            except OracleError as exc:
                self.run_log.error(f"Oracle defect in round {number}: {exc}")
                logger.critical("Oracle defect in round %d: %s", number, exc)
                raise
            except HarnessError as exc:
                self.run_log.error(f"Round {number} aborted: {exc}")
                logger.error("Round %d aborted: %s", number, exc)
                raise

            report.rounds.append(result)
            logger.info(
                "Round %d passed: %d steps, %d skipped selections, %.1fs",
                number,
                result.steps,
                result.skipped_selections,
                result.duration,
            )
        return report

    def run_round(self, number: int) -> RoundResult:
        started = self.clock()
        self.run_log.section(f"Round {number}")
        self.checker.round_number = number
        self.checker.step = 0
        self.checker.clear()

        self.reset_resource()
        model = self.model
        model.clear()
        baseline = self.client.list_all()
        if baseline:
            self._adopt_baseline(baseline, model, number)

        weights = self.scenario.round_weights(self.settings.weights(), self.rng, self.run_log)
        selector = ActionSelector(
            weights,
            self.rng,
            mode=self.settings.selection_mode or self.scenario.default_mode,
        )

        self.scenario.seed(self, model)

        steps = 0
        while steps < self.settings.steps_per_round:
            self._check_budget(number, started, steps)
            for action in selector.next_step(model):
                self.apply(action, model)
            steps += 1
            self.checker.step = steps
            self.checker.verify(model)

        return RoundResult(
            number=number,
            steps=steps,
            skipped_selections=selector.skipped,
            inserted=model.inserted_total,
            deleted=model.deleted_total,
            completed=model.completed_count,
            active=model.active_count,
            duration=self.clock() - started,
        )

    # -- primitives ------------------------------------------------------

    def reset_resource(self) -> int:
        """
        Delete every task the resource currently lists.

        Returns:
            Number of tasks deleted.
        """
        try:
            tasks = self.client.list_all()
            for task in tasks:
                self.client.remove(task.id)
        except HarnessError:
            self.run_log.error("Failed to reset tasks.")
            raise
        self.run_log.action(f"All tasks deleted, resource reset ({len(tasks)} removed).")
        return len(tasks)

    def apply(self, action: Action, model: TaskModel) -> None:
        """Apply one action to the oracle, then send the matching request."""
        task = action.task
        if action.kind is ActionKind.INSERT:
            model.insert(task.snapshot())
        elif action.kind is ActionKind.DELETE:
            model.delete(task.id)
        else:
            model.set_completed(task.id, action.kind is ActionKind.COMPLETE)

        self.checker.record(action)
        self.run_log.action(action.describe())

        if action.kind is ActionKind.INSERT:
            self.client.create(task)
        elif action.kind is ActionKind.DELETE:
            self.client.remove(task.id)
        else:
            self.client.update_completed(task.id, action.kind is ActionKind.COMPLETE)

    def _adopt_baseline(self, baseline: list[Task], model: TaskModel, number: int) -> None:
        """
        Handle tasks that are still listed right after a reset.

        Raises:
            ConsistencyViolation: When ``strict_reset`` is set.
        """
        message = f"{len(baseline)} tasks still listed after reset"
        if self.settings.strict_reset:
            raise ConsistencyViolation(
                "reset_leftovers", 0, len(baseline), observed=tuple(baseline), round_number=number, step=0
            )
        self.run_log.error(f"{message}; adopting them as baseline.")
        logger.warning("%s; adopting them as baseline", message)
        model.seed_from(baseline)

    def _check_budget(self, number: int, started: float, steps: int) -> None:
        budget = self.settings.round_timeout
        if budget is not None and self.clock() - started > budget:
            raise RoundBudgetExceeded(number, budget, steps)
