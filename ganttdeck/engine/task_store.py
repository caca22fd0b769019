"""Task store: validated task CRUD scoped to a project.

Works inside the caller's session and never commits; the scheduling protocol
owns the transaction boundary.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ganttdeck.errors import NotFoundError, ValidationError
from ganttdeck.models.task import TaskDetail, TaskStatus, TaskPriority
from ganttdeck.models.constants import DEFAULT_TASK_STATUS, DEFAULT_TASK_PRIORITY
from ganttdeck.database.task_repository import TaskRepository, BULK_UPDATABLE_FIELDS
from ganttdeck.database.dependency_repository import DependencyRepository
from ganttdeck.database.project_repository import ProjectRepository
from ganttdeck.engine.validation import (
    coerce_date,
    coerce_enum,
    validate_title,
    validate_date_order,
    validate_progress,
    validate_duration,
    validate_not_self_parent,
)

logger = logging.getLogger(__name__)

CREATE_FIELDS = {
    "title",
    "description",
    "start_date",
    "end_date",
    "duration",
    "status",
    "priority",
    "assigned_to",
    "assigned_group_id",
    "parent_task_id",
    "color",
}
UPDATE_FIELDS = CREATE_FIELDS | {"progress"}
LIST_FILTERS = {"status", "priority", "assigned_to", "parent_task_id", "search"}


def _reject_unknown(fields: Dict[str, Any], allowed: set) -> None:
    unknown = set(fields) - allowed
    if unknown:
        raise ValidationError(f"Unknown task fields: {', '.join(sorted(unknown))}")


class TaskStore:
    """Task operations with the checks a write must pass before it is persisted."""

    def __init__(self, db: Session):
        self.db = db
        self.tasks = TaskRepository(db)
        self.dependencies = DependencyRepository(db)
        self.projects = ProjectRepository(db)

    def _check_parent(self, project_id: int, parent_task_id: Optional[int]) -> None:
        if parent_task_id is None:
            return
        if self.tasks.get_row(parent_task_id, project_id=project_id) is None:
            raise NotFoundError("Parent task not found in this project")

    def _check_assignee(self, project_id: int, assigned_to: Optional[int]) -> None:
        if assigned_to is not None and not self.projects.is_member(project_id, assigned_to):
            raise ValidationError("Assigned user is not a project member")

    def _check_group(self, project_id: int, group_id: Optional[int]) -> None:
        if group_id is not None and not self.projects.group_exists(project_id, group_id):
            raise NotFoundError("Assigned group not found in this project")

    def _normalize(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Coerce supplied values to their stored representation."""
        values = dict(fields)
        if "title" in values:
            values["title"] = validate_title(values["title"])
        for field in ("start_date", "end_date"):
            if field in values:
                values[field] = coerce_date(values[field], field)
        if "duration" in values:
            values["duration"] = validate_duration(values["duration"])
        if "progress" in values:
            values["progress"] = validate_progress(values["progress"])
        if values.get("status") is not None:
            values["status"] = coerce_enum(values["status"], TaskStatus, "task status")
        if values.get("priority") is not None:
            values["priority"] = coerce_enum(values["priority"], TaskPriority, "task priority")
        return values

    def create_task(self, project_id: int, author_id: int, fields: Dict[str, Any]) -> TaskDetail:
        """Create a task in a project and return it with display fields."""
        _reject_unknown(fields, CREATE_FIELDS)
        if "title" not in fields:
            raise ValidationError("Task title is required")
        values = self._normalize(fields)

        validate_date_order(values.get("start_date"), values.get("end_date"))
        self._check_parent(project_id, values.get("parent_task_id"))
        self._check_assignee(project_id, values.get("assigned_to"))
        self._check_group(project_id, values.get("assigned_group_id"))

        values["status"] = values.get("status") or DEFAULT_TASK_STATUS.value
        values["priority"] = values.get("priority") or DEFAULT_TASK_PRIORITY.value
        if values["status"] == TaskStatus.COMPLETED.value:
            values["completed_at"] = datetime.utcnow()

        task_db = self.tasks.create({**values, "project_id": project_id, "created_by": author_id})
        return self.tasks.get_detail(task_db.id)

    def list_tasks(
        self,
        project_id: int,
        filters: Optional[Dict[str, Any]] = None,
        include_dependencies: bool = False,
    ) -> List[TaskDetail]:
        """List live tasks of a project.

        A filter key that is present with value None means "IS NULL" for
        `assigned_to` and `parent_task_id`.
        """
        filters = dict(filters or {})
        _reject_unknown(filters, LIST_FILTERS)
        tasks = self.tasks.list_details(project_id, **filters)
        if include_dependencies and tasks:
            by_task = self.dependencies.list_outgoing_for_tasks(task.id for task in tasks)
            for task in tasks:
                task.dependencies = by_task.get(task.id, [])
        return tasks

    def get_task(self, task_id: int) -> TaskDetail:
        """Get a live task with its outgoing dependencies."""
        task = self.tasks.get_detail(task_id)
        if task is None:
            raise NotFoundError("Task not found or access denied")
        task.dependencies = self.dependencies.list_outgoing(task_id)
        return task

    def update_task(self, task_id: int, fields: Dict[str, Any]) -> TaskDetail:
        """Partially update a task, validating the prospective state."""
        task_db = self.tasks.get_row(task_id)
        if task_db is None:
            raise NotFoundError("Task not found or access denied")
        if not fields:
            raise ValidationError("No fields to update")
        _reject_unknown(fields, UPDATE_FIELDS)
        values = self._normalize(fields)

        if "progress" in values and values["progress"] is None:
            raise ValidationError("Progress must be a number")
        for field in ("status", "priority"):
            if field in values and values[field] is None:
                raise ValidationError(f"Task {field} cannot be empty")

        start_date = values["start_date"] if "start_date" in values else task_db.start_date
        end_date = values["end_date"] if "end_date" in values else task_db.end_date
        validate_date_order(start_date, end_date)

        if "parent_task_id" in values:
            validate_not_self_parent(task_id, values["parent_task_id"])
            self._check_parent(task_db.project_id, values["parent_task_id"])
        if "assigned_to" in values:
            self._check_assignee(task_db.project_id, values["assigned_to"])
        if "assigned_group_id" in values:
            self._check_group(task_db.project_id, values["assigned_group_id"])

        if "status" in values and values["status"] != task_db.status:
            values["completed_at"] = datetime.utcnow() if values["status"] == TaskStatus.COMPLETED.value else None

        self.tasks.update(task_db, values)
        return self.get_task(task_id)

    def delete_task(self, task_id: int) -> None:
        """Tombstone a task; children and edges are not cascaded."""
        task_db = self.tasks.get_row(task_id)
        if task_db is None:
            raise NotFoundError("Task not found or access denied")
        self.tasks.soft_delete(task_db)

    def bulk_update_tasks(self, project_id: int, updates: List[Dict[str, Any]]) -> int:
        """Apply per-task schedule patches in the current transaction.

        Each patch is validated on its own, with its dates merged over the
        stored ones; no cross-task consistency is checked. Ids that are not
        live tasks of the project are left for the repository to skip.
        """
        patches = []
        for update in updates:
            if not isinstance(update.get("id"), int) or isinstance(update.get("id"), bool):
                raise ValidationError("Each update must have a valid task ID")
            _reject_unknown(update, {"id", *BULK_UPDATABLE_FIELDS})
            values = self._normalize({k: v for k, v in update.items() if k != "id"})
            if "progress" in values and values["progress"] is None:
                raise ValidationError("Progress must be a number")

            start_date = values.get("start_date")
            end_date = values.get("end_date")
            if ("start_date" in values) != ("end_date" in values):
                task_db = self.tasks.get_row(update["id"], project_id=project_id)
                if task_db is not None:
                    start_date = values["start_date"] if "start_date" in values else task_db.start_date
                    end_date = values["end_date"] if "end_date" in values else task_db.end_date
            validate_date_order(start_date, end_date)
            patches.append({"id": update["id"], **values})
        return self.tasks.bulk_update(project_id, patches)

    def project_id_of(self, task_id: int) -> int:
        """Project of a live task (NotFoundError when missing or deleted)."""
        task_db = self.tasks.get_row(task_id)
        if task_db is None:
            raise NotFoundError("Task not found or access denied")
        return task_db.project_id
