"""Live-target helpers for the harness's end-to-end test suites."""

from __future__ import annotations

import os
import threading
import time
from collections.abc import Generator
from contextlib import contextmanager

import requests
from flask import Flask
from werkzeug.serving import make_server


def is_target_ready(url: str, timeout: int = 2) -> bool:
    """Return True when the target's health endpoint responds with 200."""
    try:
        response = requests.get(f"{url}/api/health", timeout=timeout)
    except requests.RequestException:
        return False
    return response.status_code == 200


def wait_for_target_healthy(url: str, timeout: int = 30, interval: float = 0.2) -> None:
    """Poll the target's health endpoint until ready or timeout."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if is_target_ready(url):
            return
        time.sleep(interval)
    raise RuntimeError(f"Task API at {url} not healthy after {timeout}s")


@contextmanager
def serve_in_thread(app: Flask, host: str = "127.0.0.1") -> Generator[str, None, None]:
    """
    Serve ``app`` from a daemon thread on a free port.

    Yields:
        Base URL of the running server, e.g. ``http://127.0.0.1:53211``.
    """
    server = make_server(host, 0, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    base_url = f"http://{host}:{server.server_port}"
    try:
        wait_for_target_healthy(base_url)
        yield base_url
    finally:
        server.shutdown()
        thread.join(timeout=5)


def live_target_url(
    app_factory,
    *,
    base_url_env: str = "TEST_BASE_URL",
) -> Generator[str, None, None]:
    """
    Yield the base URL of a healthy task API.

    Priority:
    1. Use the explicit base URL from ``base_url_env`` (and wait for health).
    2. Otherwise build an app with ``app_factory`` and serve it in-process.
    """
    provided_base_url = os.getenv(base_url_env)
    if provided_base_url:
        provided_base_url = provided_base_url.rstrip("/")
        wait_for_target_healthy(provided_base_url)
        yield provided_base_url
        return

    with serve_in_thread(app_factory()) as base_url:
        yield base_url
