"""Gantt presentation adapter.

Translates between the scheduling model and a Gantt widget's bar/link format
and turns widget gestures into protocol calls. The adapter never computes
dates; every successful or failed mutation is followed by a full reload from
the backend, which is the only reconciliation mechanism.

Widget conventions:
- progress is a 0-1 fraction (stored progress is 0-100)
- link types are the codes "0".."3"
- a bar whose task has children is a "project" (summary) bar
- root bars have parent 0
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional

from ganttdeck.errors import SchedulingError
from ganttdeck.models.dependency import DependencyType, TaskDependency
from ganttdeck.models.schedule import ProjectSchedule
from ganttdeck.models.task import TaskDetail
from ganttdeck.models.constants import (
    DEFAULT_BAR_DURATION_DAYS,
    DEFAULT_LAG_TIME,
    LEAF_BAR_TYPE,
    MAX_PROGRESS,
    MIN_PROGRESS,
    SUMMARY_BAR_TYPE,
)
from ganttdeck.gantt.backends import GanttBackend

logger = logging.getLogger(__name__)

LINK_CODE_BY_TYPE = {
    DependencyType.FINISH_TO_START.value: "0",
    DependencyType.START_TO_START.value: "1",
    DependencyType.FINISH_TO_FINISH.value: "2",
    DependencyType.START_TO_FINISH.value: "3",
}
TYPE_BY_LINK_CODE = {code: dependency_type for dependency_type, code in LINK_CODE_BY_TYPE.items()}

# Bar keys the adapter forwards on add/update, mapped to task fields.
BAR_FIELDS = {
    "text": "title",
    "description": "description",
    "start_date": "start_date",
    "end_date": "end_date",
    "duration": "duration",
    "progress": "progress",
    "status": "status",
    "priority": "priority",
    "assigned_to": "assigned_to",
    "parent": "parent_task_id",
}


def to_widget_progress(progress: Optional[int]) -> float:
    return (progress or 0) / MAX_PROGRESS


def to_stored_progress(fraction: Optional[float]) -> int:
    """Widget fraction (0-1) to stored percentage (0-100), clamped."""
    if fraction is None:
        return MIN_PROGRESS
    return max(MIN_PROGRESS, min(MAX_PROGRESS, int(round(float(fraction) * MAX_PROGRESS))))


def to_link_code(dependency_type: str) -> str:
    return LINK_CODE_BY_TYPE.get(dependency_type, LINK_CODE_BY_TYPE[DependencyType.FINISH_TO_START.value])


def from_link_code(code: Any) -> str:
    """Widget link code to dependency type; unknown codes fall back to finish_to_start."""
    return TYPE_BY_LINK_CODE.get(str(code), DependencyType.FINISH_TO_START.value)


def _bar_date(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value.isoformat()
    # "YYYY-MM-DD HH:MM" from the widget keeps only the day.
    return str(value)[:10]


def to_gantt_task(task: TaskDetail, has_children: bool, visible_ids: Iterable[int] = (), today: Optional[date] = None) -> Dict[str, Any]:
    """Map a task onto a widget bar.

    Args:
        task: Task with display fields
        has_children: Whether any visible task names this one as parent
        visible_ids: Ids of tasks on the chart; a parent outside it renders as root
        today: Start date used for bars without one

    Returns:
        Bar dictionary in widget format
    """
    start = task.start_date or today or date.today()
    duration = task.duration if task.duration else DEFAULT_BAR_DURATION_DAYS
    parent = task.parent_task_id if task.parent_task_id in set(visible_ids) else 0
    bar = {
        "id": task.id,
        "text": task.title,
        "start_date": start.isoformat(),
        "duration": duration,
        "progress": to_widget_progress(task.progress),
        "parent": parent,
        "type": SUMMARY_BAR_TYPE if has_children else LEAF_BAR_TYPE,
        "open": True,
        "status": task.status,
        "priority": task.priority,
        "assigned_to": task.assigned_to,
        "assignee": task.display_assignee,
        "color": task.color or task.assigned_group_color,
    }
    if task.end_date is not None:
        bar["end_date"] = task.end_date.isoformat()
    return bar


def to_gantt_link(dependency: TaskDependency) -> Dict[str, Any]:
    """Edge to widget link: source is the predecessor, target the successor."""
    return {
        "id": dependency.id,
        "source": dependency.depends_on_task_id,
        "target": dependency.task_id,
        "type": to_link_code(dependency.dependency_type),
        "lag": dependency.lag_time or DEFAULT_LAG_TIME,
    }


def bar_to_fields(bar: Dict[str, Any]) -> Dict[str, Any]:
    """Extract task fields from a widget bar; keys the bar lacks are left out."""
    fields = {}
    for bar_key, field in BAR_FIELDS.items():
        if bar_key not in bar:
            continue
        value = bar[bar_key]
        if field in ("start_date", "end_date"):
            value = _bar_date(value)
        elif field == "progress":
            value = to_stored_progress(value)
        elif field == "parent_task_id":
            value = value or None
        fields[field] = value
    return fields


def build_gantt_payload(schedule: ProjectSchedule, today: Optional[date] = None) -> Dict[str, Any]:
    """Widget payload `{data, links, auto_scheduling}` for a project snapshot."""
    visible_ids = {task.id for task in schedule.tasks}
    parents = {task.parent_task_id for task in schedule.tasks if task.parent_task_id in visible_ids}
    data = [
        to_gantt_task(task, task.id in parents, visible_ids, today)
        for task in schedule.tasks
    ]
    links = [
        to_gantt_link(dependency)
        for task in schedule.tasks
        for dependency in task.dependencies
        if dependency.depends_on_task_id in visible_ids
    ]
    return {"data": data, "links": links, "auto_scheduling": schedule.auto_scheduling}


class GanttAdapter:
    """Binds a Gantt widget for one project to a scheduling backend.

    `tasks` and `links` hold the last authoritative state, keyed by server id.
    They are replaced wholesale on every reload and never patched locally.
    """

    def __init__(
        self,
        backend: GanttBackend,
        project_id: int,
        on_select: Optional[Callable[[Optional[int]], None]] = None,
        on_change: Optional[Callable[[], None]] = None,
        on_message: Optional[Callable[[str, str], None]] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.backend = backend
        self.project_id = project_id
        self.on_select = on_select
        self.on_change = on_change
        self.on_message = on_message
        self.today = today or date.today
        self.tasks: Dict[int, Dict[str, Any]] = {}
        self.links: Dict[int, Dict[str, Any]] = {}
        self.auto_scheduling = False
        self.selected_task_id: Optional[int] = None

    # -- state -------------------------------------------------------------

    def reload(self) -> None:
        """Replace cached bars and links with the backend's current state."""
        payload = build_gantt_payload(self.backend.load_schedule(self.project_id), self.today())
        self.tasks = {bar["id"]: bar for bar in payload["data"]}
        self.links = {link["id"]: link for link in payload["links"]}
        self.auto_scheduling = payload["auto_scheduling"]
        if self.selected_task_id not in self.tasks:
            self.selected_task_id = None

    def recalculate(self) -> None:
        """Refresh from the server; no dates are computed client side."""
        self.reload()

    def _message(self, kind: str, text: str) -> None:
        if self.on_message:
            self.on_message(kind, text)

    def _succeeded(self, text: str) -> None:
        self.reload()
        self._message("success", text)
        if self.on_change:
            self.on_change()

    def _failed(self, action: str, error: SchedulingError) -> None:
        logger.warning(f"Failed to {action} in project {self.project_id}: {error.message}; reloading")
        self._message("error", error.message)
        self.reload()

    # -- gestures ----------------------------------------------------------

    def on_task_add(self, temp_id: Any, bar: Dict[str, Any]) -> Optional[int]:
        """Persist a bar drawn in the widget.

        Returns:
            The server id that replaces `temp_id`, or None if the bar was discarded
        """
        fields = bar_to_fields(bar)
        # New tasks always start at 0% progress.
        fields.pop("progress", None)
        try:
            task = self.backend.create_task(self.project_id, fields)
        except SchedulingError as e:
            self._failed("create task", e)
            return None
        logger.debug(f"Bar {temp_id} persisted as task {task.id}")
        self._succeeded("Task created")
        return task.id

    def _changed_fields(self, task_id: int, bar: Dict[str, Any]) -> Dict[str, Any]:
        """Task fields the bar changes relative to the cached bar.

        Display fill-ins (root parent 0 for a hidden parent, today as the start
        of an undated task, the default duration) match the cache and are not sent.
        """
        fields = bar_to_fields(bar)
        cached = self.tasks.get(task_id)
        if cached is None:
            return fields
        cached_fields = bar_to_fields(cached)
        return {
            field: value for field, value in fields.items()
            if field not in cached_fields or cached_fields[field] != value
        }

    def on_task_update(self, task_id: int, bar: Dict[str, Any]) -> bool:
        """Persist a moved, resized or edited bar. Dependents are not shifted."""
        fields = self._changed_fields(task_id, bar)
        if not fields:
            logger.debug(f"Bar {task_id} unchanged; nothing to persist")
            return True
        try:
            self.backend.update_task(task_id, fields)
        except SchedulingError as e:
            self._failed(f"update task {task_id}", e)
            return False
        self._succeeded("Task updated")
        return True

    def on_task_delete(self, task_id: int) -> bool:
        try:
            self.backend.delete_task(task_id)
        except SchedulingError as e:
            self._failed(f"delete task {task_id}", e)
            return False
        self._succeeded("Task deleted")
        return True

    def on_link_add(self, temp_id: Any, link: Dict[str, Any]) -> Optional[int]:
        """Persist a link drawn from `source` (predecessor) to `target` (successor)."""
        try:
            dependency = self.backend.add_dependency(
                int(link["target"]),
                int(link["source"]),
                from_link_code(link.get("type")),
                int(link.get("lag") or DEFAULT_LAG_TIME),
            )
        except SchedulingError as e:
            self._failed("add dependency", e)
            return None
        logger.debug(f"Link {temp_id} persisted as dependency {dependency.id}")
        self._succeeded("Dependency added")
        return dependency.id

    def on_link_delete(self, link_id: int) -> bool:
        link = self.links.get(link_id)
        try:
            if link is None:
                raise SchedulingError(f"Unknown link {link_id}")
            self.backend.remove_dependency(link_id, link["target"])
        except SchedulingError as e:
            self._failed(f"remove dependency {link_id}", e)
            return False
        self._succeeded("Dependency removed")
        return True

    def on_task_selected(self, task_id: Optional[int]) -> None:
        self.selected_task_id = task_id
        if self.on_select:
            self.on_select(task_id)

    def add_new_task(self, title: str = "New task", **bar: Any) -> Optional[int]:
        """Add a task under the selected bar (or at the root)."""
        new_bar = {"text": title, **bar}
        if self.selected_task_id is not None:
            new_bar.setdefault("parent", self.selected_task_id)
        return self.on_task_add(None, new_bar)

    def bars(self) -> List[Dict[str, Any]]:
        return list(self.tasks.values())
