"""
Task resource endpoints of the reference API.

Endpoints:
    GET    /api/health         - Liveness probe used by the live test server
    GET    /api/tasks          - Bare array of tasks, high before medium before low
    POST   /api/tasks          - Create a task with a client-chosen id
    PUT    /api/tasks/<id>     - Change any subset of a task's fields
    DELETE /api/tasks/<id>     - Remove a task
"""

import logging

from flask import Blueprint, Response, jsonify, request
from sqlalchemy import func, select

from reference_api import db
from reference_api.models import Task, TaskPriority

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)

PRIORITY_VALUES = [priority.value for priority in TaskPriority]


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_optional_str(value) -> bool:
    return value is None or isinstance(value, str)


# field -> (check, message)
FIELD_RULES = {
    "id": (_is_int, "'id' must be an integer"),
    "title": (lambda value: isinstance(value, str) and value != "", "'title' must be a non-empty string"),
    "description": (_is_optional_str, "'description' must be a string"),
    "priority": (lambda value: value in PRIORITY_VALUES, f"'priority' must be one of {PRIORITY_VALUES}"),
    "completed": (lambda value: isinstance(value, bool), "'completed' must be a boolean"),
    "dueDate": (_is_optional_str, "'dueDate' must be a string"),
}


def _error(message: str, status: int) -> tuple[Response, int]:
    return jsonify({"error": message}), status


def validate_task_data(data: dict, creating: bool = False) -> str | None:
    """
    Check a request body against the task contract.

    Whitespace-only titles are valid; only the empty string is rejected.

    Args:
        data: Decoded JSON body.
        creating: Whether ``title`` is mandatory.

    Returns:
        An error message, or ``None`` when the body is acceptable.
    """
    if creating and "title" not in data:
        return "'title' is required"
    for field, (check, message) in FIELD_RULES.items():
        if field in data and not check(data[field]):
            return message
    return None


def _json_body() -> dict | None:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def next_free_id() -> int:
    """Id for clients that leave the choice to the server."""
    highest = db.session.scalar(select(func.max(Task.id)))
    return (highest or 0) + 1


@api_bp.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    return jsonify({"status": "healthy"}), 200


@api_bp.route("/tasks", methods=["GET"])
def list_tasks() -> tuple[Response, int]:
    """List every task grouped by priority, ids ascending inside a group."""
    tasks = db.session.scalars(select(Task).order_by(Task.priority_rank(), Task.id)).all()
    return jsonify([task.to_dict() for task in tasks]), 200


@api_bp.route("/tasks", methods=["POST"])
def create_task() -> tuple[Response, int]:
    """
    Create a task.

    Request Body (JSON):
        id: Task id (optional, next free id when omitted)
        title: Task title (required, non-empty)
        description, priority, completed, dueDate: optional

    Returns:
        The stored task with 201, 400 for an invalid body or 409 when the
        id is already taken.
    """
    data = _json_body()
    if data is None:
        return _error("Request body must be a JSON object", 400)

    problem = validate_task_data(data, creating=True)
    if problem:
        logger.warning(f"Rejected task: {problem}")
        return _error(problem, 400)

    task_id = data["id"] if "id" in data else next_free_id()
    if db.session.get(Task, task_id) is not None:
        logger.warning(f"Duplicate task id {task_id}")
        return _error("Task id already exists", 409)

    task = Task(
        id=task_id,
        title=data["title"],
        description=data.get("description") or "",
        priority=data.get("priority", TaskPriority.MEDIUM.value),
        completed=data.get("completed", False),
        due_date=data.get("dueDate"),
    )
    db.session.add(task)
    db.session.commit()
    return jsonify(task.to_dict()), 201


@api_bp.route("/tasks/<int:task_id>", methods=["PUT"])
def update_task(task_id: int) -> tuple[Response, int]:
    """Apply the fields present in the body; the id itself never changes."""
    task = db.session.get(Task, task_id)
    if task is None:
        return _error("Task not found", 404)

    data = _json_body()
    if data is None:
        return _error("Request body must be a JSON object", 400)

    problem = validate_task_data(data)
    if problem:
        logger.warning(f"Rejected update of task {task_id}: {problem}")
        return _error(problem, 400)

    if "title" in data:
        task.title = data["title"]
    if "description" in data:
        task.description = data["description"] or ""
    if "priority" in data:
        task.priority = data["priority"]
    if "completed" in data:
        task.completed = data["completed"]
    if "dueDate" in data:
        task.due_date = data["dueDate"]
    db.session.commit()
    return jsonify(task.to_dict()), 200


@api_bp.route("/tasks/<int:task_id>", methods=["DELETE"])
def delete_task(task_id: int) -> tuple[Response, int]:
    task = db.session.get(Task, task_id)
    if task is None:
        return _error("Task not found", 404)

    db.session.delete(task)
    db.session.commit()
    return jsonify({"message": "Task deleted"}), 200


@api_bp.errorhandler(500)
def internal_error(error: Exception) -> tuple[Response, int]:
    logger.error(f"Internal server error: {error}")
    return _error("Internal server error", 500)
