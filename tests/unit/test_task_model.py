"""
Unit tests for the task oracle (TaskModel) and the Task record.
"""

import pytest

from tasksoak.errors import DuplicateTaskError, MalformedResponseError, NotFoundError
from tasksoak.models import Priority, Task


pytestmark = pytest.mark.unit


# =============================================================================
# Task record
# =============================================================================

class TestTaskRecord:
    """Tests for Task payload conversion."""

    def test_to_payload_uses_wire_keys(self, task_factory):
        task = task_factory(task_id=3, priority="high", due_date="05/06/2027")

        payload = task.to_payload()

        assert payload["id"] == 3
        assert payload["priority"] == "high"
        assert payload["completed"] is False
        assert payload["dueDate"] == "05/06/2027"
        assert "due_date" not in payload

    def test_from_payload_parses_server_item(self):
        task = Task.from_payload({
            "id": 9,
            "title": "Write report",
            "description": None,
            "priority": "low",
            "completed": True,
            "dueDate": "28/02/2024",
        })

        assert task == Task(9, "Write report", "", Priority.LOW, True, "28/02/2024")

    @pytest.mark.parametrize("item", [
        {"title": "no id", "priority": "low"},
        {"id": 1, "title": "bad priority", "priority": "urgent"},
        {"id": 1, "title": "x", "priority": "low", "completed": "false"},
        {"id": 1, "title": "x", "priority": "low", "completed": 1},
        "not an object",
    ])
    def test_from_payload_rejects_malformed_items(self, item):
        with pytest.raises(MalformedResponseError):
            Task.from_payload(item)

    def test_priority_rank_order(self):
        assert Priority.HIGH.rank < Priority.MEDIUM.rank < Priority.LOW.rank


# =============================================================================
# TaskModel
# =============================================================================

class TestSynthesize:
    """Tests for task synthesis and id allocation."""

    def test_synthesized_task_fields(self, model):
        task = model.synthesize()

        assert 1 <= len(task.title) <= 20
        assert 0 <= len(task.description) <= 50
        assert task.completed is False
        assert isinstance(task.priority, Priority)

    def test_synthesize_with_fixed_priority(self, model):
        assert model.synthesize(Priority.LOW).priority is Priority.LOW

    def test_ids_are_never_reused_after_deletes(self, model):
        """
        Test that ids keep increasing after deletions.

        Deriving ids from the live count (count + 1) would hand out an id
        that is still in use once a task has been deleted.
        """
        # Arrange
        for _ in range(3):
            model.insert(model.synthesize())
        model.delete(2)

        # Act
        task = model.synthesize()

        # Assert
        assert task.id == 4
        assert task.id not in model

    def test_ids_skip_past_seeded_baseline(self, model, task_factory):
        model.seed_from([task_factory(task_id=50), task_factory(task_id=12)])

        assert model.synthesize().id == 51


class TestCounters:
    """Tests for insert/delete/set_completed bookkeeping."""

    def test_insert_counts_active_task(self, model):
        model.insert(model.synthesize())

        assert model.inserted_total == 1
        assert model.active_count == 1
        assert model.completed_count == 0
        assert model.live_count == 1

    def test_insert_duplicate_id_raises(self, model, task_factory):
        model.insert(task_factory(task_id=1))

        with pytest.raises(DuplicateTaskError):
            model.insert(task_factory(task_id=1))

    def test_delete_completed_task_decrements_completed(self, model):
        task = model.synthesize()
        model.insert(task)
        model.set_completed(task.id, True)

        removed = model.delete(task.id)

        assert removed.id == task.id
        assert model.completed_count == 0
        assert model.active_count == 0
        assert model.deleted_total == 1

    def test_delete_unknown_id_raises_not_found(self, model):
        with pytest.raises(NotFoundError) as exc_info:
            model.delete(404)

        assert exc_info.value.task_id == 404
        assert "404" in str(exc_info.value)

    def test_set_completed_unknown_id_raises_not_found(self, model):
        with pytest.raises(NotFoundError):
            model.set_completed(1, True)

    def test_set_completed_moves_between_counters(self, model):
        task = model.synthesize()
        model.insert(task)

        model.set_completed(task.id, True)
        assert (model.completed_count, model.active_count) == (1, 0)

        model.set_completed(task.id, False)
        assert (model.completed_count, model.active_count) == (0, 1)

    def test_set_completed_to_same_value_keeps_counters(self, model):
        task = model.synthesize()
        model.insert(task)

        model.set_completed(task.id, False)

        assert (model.completed_count, model.active_count) == (0, 1)

    def test_counters_stay_consistent_over_random_mutations(self, model, rng):
        for _ in range(500):
            roll = rng.random()
            if roll < 0.4 or not model.tasks:
                model.insert(model.synthesize())
            elif roll < 0.6:
                model.delete(rng.choice(model.tasks).id)
            else:
                model.set_completed(rng.choice(model.tasks).id, rng.random() < 0.5)

            assert model.completed_count + model.active_count == model.live_count
            assert model.live_count == model.inserted_total - model.deleted_total
            assert model.completed_count == len(model.completed_tasks())

    def test_seed_from_counts_completed_and_active(self, model, task_factory):
        model.seed_from([
            task_factory(completed=True),
            task_factory(),
            task_factory(),
        ])

        assert model.inserted_total == 3
        assert model.completed_count == 1
        assert model.active_count == 2

    def test_reset_clears_everything(self, model):
        model.insert(model.synthesize())

        model.reset()

        assert model.tasks == ()
        assert model.inserted_total == 0
        assert model.synthesize().id == 1

    def test_clear_keeps_id_allocation(self, model):
        for _ in range(3):
            model.insert(model.synthesize())
        model.delete(2)

        model.clear()

        assert model.tasks == ()
        assert model.inserted_total == 0
        assert model.deleted_total == 0
        assert model.active_count == 0
        assert model.synthesize().id == 4


def test_expected_ordered_view_is_stable_priority_sort(model, task_factory):
    tasks = [
        task_factory(task_id=1, priority="low"),
        task_factory(task_id=2, priority="high"),
        task_factory(task_id=3, priority="medium"),
        task_factory(task_id=4, priority="high"),
        task_factory(task_id=5, priority="low"),
    ]
    for task in tasks:
        model.insert(task)

    ordered = model.expected_ordered_view()

    assert [task.id for task in ordered] == [2, 4, 3, 1, 5]
    # The model's own order is untouched
    assert [task.id for task in model.tasks] == [1, 2, 3, 4, 5]
