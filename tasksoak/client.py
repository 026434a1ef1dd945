"""
HTTP adapter for the task resource under test.

:class:`ApiClient` issues exactly one request per call and returns only
after the response arrived, which keeps every consistency check tied to a
known prefix of actions.  Failures are translated into the harness error
taxonomy and never retried: a flaky backend is a finding, not noise to
smooth over.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from tasksoak.errors import MalformedResponseError, TransportError, UnexpectedStatusError
from tasksoak.models import Task

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class ApiClient:
    """
    Thin client for ``GET/POST {base_url}`` and ``PUT/DELETE {base_url}/<id>``.

    Args:
        base_url: URL of the task collection, e.g.
            ``http://localhost:3000/api/tasks``.
        session: Optional pre-configured ``requests.Session``; the client
            only closes sessions it created itself.
        timeout: Per-request timeout in seconds, ``None`` to wait forever.
        tolerate_missing_delete: Accept ``404`` on delete (already gone).
    """

    def __init__(
        self,
        base_url: str,
        *,
        session: requests.Session | None = None,
        timeout: float | None = 30.0,
        tolerate_missing_delete: bool = False,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.tolerate_missing_delete = tolerate_missing_delete
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def _task_url(self, task_id: int) -> str:
        return f"{self.base_url}/{task_id}"

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """
        Send one request and map failures onto harness errors.

        Raises:
            TransportError: Connection, DNS or timeout failure.
            UnexpectedStatusError: Any non-2xx status code.
        """
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise TransportError(method, url, str(exc)) from exc

        if not 200 <= response.status_code < 300:
            raise UnexpectedStatusError(method, url, response.status_code, response.text)
        return response

    def list_all(self) -> list[Task]:
        """
        Fetch every task currently stored by the server, in server order.

        Both a bare JSON array and an object with a ``tasks`` array are
        accepted as the collection body.
        """
        response = self._request("GET", self.base_url)
        try:
            body = response.json()
        except ValueError as exc:
            raise MalformedResponseError(f"GET {self.base_url} did not return JSON") from exc

        if isinstance(body, dict) and isinstance(body.get("tasks"), list):
            body = body["tasks"]
        if not isinstance(body, list):
            raise MalformedResponseError(
                f"GET {self.base_url} returned {type(body).__name__}, expected a task list"
            )
        return [Task.from_payload(item) for item in body]

    def create(self, task: Task) -> None:
        self._request("POST", self.base_url, json=task.to_payload())

    def remove(self, task_id: int) -> None:
        """Delete a task; a 404 passes only when ``tolerate_missing_delete`` is set."""
        try:
            self._request("DELETE", self._task_url(task_id))
        except UnexpectedStatusError as exc:
            if exc.status_code == 404 and self.tolerate_missing_delete:
                logger.warning("Task %s was already absent on delete", task_id)
                return
            raise

    def update_completed(self, task_id: int, value: bool) -> None:
        self._request("PUT", self._task_url(task_id), json={"completed": value})
