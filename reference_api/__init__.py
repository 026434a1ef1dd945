"""
Reference task API.

A small Flask implementation of the task resource contract the soak
harness drives (``GET/POST /api/tasks``, ``PUT/DELETE /api/tasks/<id>``).
The harness's own test-suite serves it from a background thread and
points :class:`tasksoak.client.ApiClient` at it, so every scenario runs
end to end without an external deployment.
"""

import logging

from flask import Flask
from flask_sqlalchemy import SQLAlchemy

from reference_api.config import INSTANCE_DIR, get_config

db = SQLAlchemy()

logger = logging.getLogger(__name__)


def create_app(config_name: str | None = None) -> Flask:
    """
    Build the reference task API.

    Args:
        config_name: Profile name; ``FLASK_ENV`` decides when omitted.

    Returns:
        Flask application with its tables created.
    """
    profile = get_config(config_name)
    app = Flask(__name__, instance_path=str(INSTANCE_DIR))
    app.config.from_object(profile)
    app.json.sort_keys = app.config["JSON_SORT_KEYS"]

    # File-backed SQLite needs its directory; in-memory databases do not
    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///"):
        INSTANCE_DIR.mkdir(parents=True, exist_ok=True)

    db.init_app(app)

    from reference_api.routes.api import api_bp

    app.register_blueprint(api_bp, url_prefix="/api")

    with app.app_context():
        db.create_all()

    logger.info(f"Reference task API ready ({profile.__name__})")
    return app
