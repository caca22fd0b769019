"""Backends the Gantt adapter talks to.

Both expose the same calls; `ServiceBackend` runs the scheduling protocol
in process, `HttpBackend` goes through the REST API.
"""

import logging
import os
from typing import Any, Callable, Dict, Optional

import requests
from dotenv import load_dotenv
from sqlalchemy.orm import Session

from ganttdeck.errors import SchedulingError, error_for_status
from ganttdeck.models.dependency import TaskDependency
from ganttdeck.models.schedule import ProjectSchedule
from ganttdeck.models.task import TaskDetail
from ganttdeck.engine.protocol import SchedulingProtocol

load_dotenv()

logger = logging.getLogger(__name__)

HTTP_TIMEOUT_SEC = float(os.getenv("GANTTDECK_HTTP_TIMEOUT_SEC", "10"))


class GanttBackend:
    """Interface shared by the adapter backends."""

    def load_schedule(self, project_id: int) -> ProjectSchedule:
        raise NotImplementedError

    def create_task(self, project_id: int, fields: Dict[str, Any]) -> TaskDetail:
        raise NotImplementedError

    def update_task(self, task_id: int, fields: Dict[str, Any]) -> TaskDetail:
        raise NotImplementedError

    def delete_task(self, task_id: int) -> None:
        raise NotImplementedError

    def add_dependency(self, task_id: int, depends_on_task_id: int, dependency_type: str, lag_time: int) -> TaskDependency:
        raise NotImplementedError

    def remove_dependency(self, dependency_id: int, task_id: int) -> None:
        raise NotImplementedError


class ServiceBackend(GanttBackend):
    """In-process backend; opens one session per call."""

    def __init__(self, session_factory: Callable[[], Session], user_id: int):
        self.session_factory = session_factory
        self.user_id = user_id

    def _call(self, method: str, *args):
        db = self.session_factory()
        try:
            return getattr(SchedulingProtocol(db), method)(self.user_id, *args)
        finally:
            db.close()

    def load_schedule(self, project_id: int) -> ProjectSchedule:
        return self._call("gantt_snapshot", project_id)

    def create_task(self, project_id: int, fields: Dict[str, Any]) -> TaskDetail:
        return self._call("create_task", project_id, fields)

    def update_task(self, task_id: int, fields: Dict[str, Any]) -> TaskDetail:
        return self._call("update_task", task_id, fields)

    def delete_task(self, task_id: int) -> None:
        self._call("delete_task", task_id)

    def add_dependency(self, task_id: int, depends_on_task_id: int, dependency_type: str, lag_time: int) -> TaskDependency:
        return self._call("add_dependency", task_id, depends_on_task_id, dependency_type, lag_time)

    def remove_dependency(self, dependency_id: int, task_id: int) -> None:
        self._call("remove_dependency", dependency_id, task_id)


class HttpBackend(GanttBackend):
    """REST backend using bearer-token auth."""

    def __init__(self, base_url: str, token: str, timeout: Optional[float] = None):
        """Initialize the HTTP backend.

        Args:
            base_url: API root, e.g. "http://localhost:8000"
            token: JWT access token sent as a bearer credential
            timeout: Per-request timeout in seconds. If None, reads GANTTDECK_HTTP_TIMEOUT_SEC.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = HTTP_TIMEOUT_SEC if timeout is None else timeout
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, json: Optional[dict] = None) -> Optional[dict]:
        """Send a request and map error statuses onto the scheduling error taxonomy.

        Raises:
            SchedulingError: The matching subclass for 400/403/404/409, the base class otherwise
        """
        url = f"{self.base_url}{path}"
        try:
            response = requests.request(method, url, headers=self.headers, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            raise SchedulingError(f"Failed to reach {url}: {e}") from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            logger.debug(f"{method} {path} failed with {response.status_code}: {detail}")
            raise error_for_status(response.status_code, str(detail))

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def load_schedule(self, project_id: int) -> ProjectSchedule:
        return ProjectSchedule.model_validate(self._request("GET", f"/projects/{project_id}/schedule"))

    def create_task(self, project_id: int, fields: Dict[str, Any]) -> TaskDetail:
        data = self._request("POST", f"/projects/{project_id}/tasks", json=_jsonable(fields))
        return TaskDetail.model_validate(data["task"])

    def update_task(self, task_id: int, fields: Dict[str, Any]) -> TaskDetail:
        data = self._request("PUT", f"/tasks/{task_id}", json=_jsonable(fields))
        return TaskDetail.model_validate(data["task"])

    def delete_task(self, task_id: int) -> None:
        self._request("DELETE", f"/tasks/{task_id}")

    def add_dependency(self, task_id: int, depends_on_task_id: int, dependency_type: str, lag_time: int) -> TaskDependency:
        data = self._request(
            "POST",
            f"/tasks/{task_id}/dependencies",
            json={"depends_on_task_id": depends_on_task_id, "dependency_type": dependency_type, "lag_time": lag_time},
        )
        return TaskDependency.model_validate(data["dependency"])

    def remove_dependency(self, dependency_id: int, task_id: int) -> None:
        self._request("DELETE", f"/tasks/{task_id}/dependencies/{dependency_id}")


def _jsonable(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Dates go over the wire as ISO strings."""
    return {key: value.isoformat() if hasattr(value, "isoformat") else value for key, value in fields.items()}
