"""
Profiles for the reference task API.

``FLASK_ENV`` picks the profile; the harness test-suite always uses
``testing`` (a throw-away in-memory database).
"""

import os
from pathlib import Path

INSTANCE_DIR = Path(__file__).resolve().parent.parent / "instance"


class Config:
    """Defaults shared by every profile."""

    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "REFERENCE_DATABASE_URL",
        f"sqlite:///{INSTANCE_DIR / 'reference_tasks.db'}",
    )
    # Task payloads keep the key order of Task.to_dict()
    JSON_SORT_KEYS: bool = False


class DevelopmentConfig(Config):
    """File-backed database for poking at the target by hand."""

    DEBUG: bool = True


class TestingConfig(Config):
    """
    In-memory profile used by the live test server.

    Flask-SQLAlchemy gives in-memory SQLite a StaticPool with
    ``check_same_thread`` off, so the server threads share one database.
    """

    TESTING: bool = True
    SQLALCHEMY_DATABASE_URI: str = os.environ.get("TEST_DATABASE_URL", "sqlite://")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """Return the profile for ``env`` (default: ``FLASK_ENV``)."""
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
