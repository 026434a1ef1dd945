"""
Database models for the reference Task API.

The row layout follows the wire contract the soak harness speaks:
client-assigned integer ids, a boolean ``completed`` flag and a
``dueDate`` string kept exactly as the client sent it.
"""

from enum import Enum
from typing import Any

from sqlalchemy import case

from reference_api import db


class TaskPriority(str, Enum):
    """Priority labels accepted on the wire."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Listing order: high before medium before low
PRIORITY_RANK = {
    TaskPriority.HIGH.value: 1,
    TaskPriority.MEDIUM.value: 2,
    TaskPriority.LOW.value: 3,
}


class Task(db.Model):
    """
    One row of the task resource.

    Attributes:
        id: Identifier chosen by the client on creation.
        title: Non-empty title (whitespace allowed).
        description: Optional free text, may be empty.
        priority: Task priority level (high, medium, low).
        completed: Whether the task has been completed.
        due_date: Due date string (DD/MM/YYYY), stored verbatim.
    """

    __tablename__ = "tasks"

    id: int = db.Column(db.Integer, primary_key=True, autoincrement=False)
    title: str = db.Column(db.String(200), nullable=False)
    description: str = db.Column(db.Text, nullable=False, default="")
    priority: str = db.Column(
        db.String(20),
        nullable=False,
        default=TaskPriority.MEDIUM.value
    )
    completed: bool = db.Column(db.Boolean, nullable=False, default=False)
    due_date: str | None = db.Column(db.String(32), nullable=True)

    @classmethod
    def priority_rank(cls):
        """SQL expression ranking rows by priority for ORDER BY."""
        return case(PRIORITY_RANK, value=cls.priority, else_=len(PRIORITY_RANK) + 1)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the task to its wire representation.

        Returns:
            Dictionary using the camelCase keys of the task contract.
        """
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "completed": self.completed,
            "dueDate": self.due_date,
        }

    def __repr__(self) -> str:
        """Return string representation of the task."""
        return f"<Task {self.id} {self.priority} completed={self.completed}>"
