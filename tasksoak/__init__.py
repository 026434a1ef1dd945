"""
Randomized stateful soak harness for task-management HTTP APIs.

The harness keeps a local oracle of the expected task list, drives the
remote ``/api/tasks`` resource with random insert / delete / complete /
reactivate steps and, after every step, checks counts and priority
ordering against what the server actually returns.

Typical use::

    from tasksoak import SoakRunner, load_settings

    settings = load_settings(base_url="http://localhost:3000/api/tasks", rounds=2)
    report = SoakRunner.from_settings(settings).run()
    report.raise_for_violation()
"""

import logging

from tasksoak.config import SoakSettings, load_settings
from tasksoak.errors import ConsistencyViolation, HarnessError
from tasksoak.runner import RunReport, SoakRunner

__version__ = "1.0.0"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

__all__ = [
    "ConsistencyViolation",
    "HarnessError",
    "RunReport",
    "SoakRunner",
    "SoakSettings",
    "configure_logging",
    "load_settings",
]


def configure_logging(level: str | int = logging.INFO) -> None:
    """Install the console log format used by the CLI."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unsupported log level: {level}")
        level = resolved
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
