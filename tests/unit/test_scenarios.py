"""
Unit tests for scenario defaults, per-round weights and seeding.
"""

import random

import pytest

from tasksoak.actions import ActionWeights, SelectionMode
from tasksoak.errors import ConfigurationError
from tasksoak.models import Priority
from tasksoak.runlog import RunLog
from tasksoak.runner import SoakRunner
from tasksoak.scenarios import (
    MIN_INSERTION_PROBABILITY,
    SCENARIOS,
    CompletionTrackingScenario,
    InsertionsAndDeletionsScenario,
    PriorityOrderScenario,
    get_scenario,
)


pytestmark = pytest.mark.unit


class TestRegistry:

    @pytest.mark.parametrize("name, scenario_class", [
        ("completion", CompletionTrackingScenario),
        ("insert-delete", InsertionsAndDeletionsScenario),
        ("priority", PriorityOrderScenario),
    ])
    def test_get_scenario(self, name, scenario_class):
        scenario = get_scenario(name)

        assert isinstance(scenario, scenario_class)
        assert scenario.name == name

    def test_unknown_scenario(self):
        with pytest.raises(ConfigurationError, match="Unknown scenario"):
            get_scenario("chaos")

    def test_registry_names(self):
        assert sorted(SCENARIOS) == ["completion", "insert-delete", "priority"]


class TestDefaults:

    def test_completion_uses_layered_equal_weights(self):
        scenario = CompletionTrackingScenario()

        assert scenario.default_mode is SelectionMode.LAYERED
        assert scenario.default_weights == ActionWeights()
        assert scenario.check_order is False

    def test_priority_checks_order(self):
        scenario = PriorityOrderScenario()

        assert scenario.check_order is True
        assert scenario.default_weights.complete == 0
        assert scenario.seed_count == 10

    def test_configured_weights_win(self):
        configured = ActionWeights(insert=1, delete=0, complete=0, reactivate=0)

        weights = InsertionsAndDeletionsScenario().round_weights(
            configured, random.Random(1), RunLog(None)
        )

        assert weights is configured


class TestInsertionProbability:

    def test_each_round_draws_a_new_probability(self):
        scenario = InsertionsAndDeletionsScenario()
        rng = random.Random(8)

        drawn = [scenario.round_weights(None, rng, RunLog(None)) for _ in range(50)]

        assert len({weights.insert for weights in drawn}) == 50
        for weights in drawn:
            assert MIN_INSERTION_PROBABILITY <= weights.insert <= 1.0
            assert weights.insert + weights.delete == pytest.approx(1.0)
            assert weights.complete == weights.reactivate == 0

    def test_probability_is_written_to_run_log(self, tmp_path):
        path = tmp_path / "log.txt"

        with RunLog(path) as run_log:
            weights = InsertionsAndDeletionsScenario().round_weights(None, random.Random(4), run_log)

        assert f"Insertion Probability: {weights.insert:.4f}" in path.read_text(encoding="utf-8")


class TestPrioritySeeding:

    def test_explicit_priorities(self, memory_api, soak_settings):
        """
        Test that explicit priorities are inserted in order and listed grouped.

        Arrange: Ten explicit priorities (4 high, 3 medium, 3 low)
        Act: Seed a fresh round
        Assert: The resource lists them grouped with stable ids inside a group
        """
        # Arrange
        priorities = ["high", "low", "medium", "high", "high",
                      "low", "medium", "low", "medium", "high"]
        scenario = PriorityOrderScenario(priorities=priorities)
        runner = SoakRunner(memory_api, scenario, soak_settings(scenario="priority"))

        # Act
        scenario.seed(runner, runner.model)

        # Assert
        listed = memory_api.list_all()
        assert [task.priority for task in listed] == (
            [Priority.HIGH] * 4 + [Priority.MEDIUM] * 3 + [Priority.LOW] * 3
        )
        assert [task.id for task in listed[:4]] == [1, 4, 5, 10]
        assert runner.checker.checks_passed == 1

    def test_seed_count(self, memory_api, soak_settings):
        scenario = PriorityOrderScenario(seed_count=4)
        runner = SoakRunner(memory_api, scenario, soak_settings(scenario="priority"))

        scenario.seed(runner, runner.model)

        assert runner.model.live_count == 4
        assert memory_api.count("POST") == 4
