"""Scheduling mutation protocol.

Every mutation runs as one transaction:
1. resolve the caller's project role (viewers may not mutate)
2. validate the prospective state
3. persist
4. append one activity record
5. return the refreshed entity

Any failure rolls back all of it. Reads only require project membership.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ganttdeck.errors import NotFoundError, PermissionDeniedError
from ganttdeck.models.activity import ActivityLog, ActivityEntityType, ActivityAction
from ganttdeck.models.constants import DEFAULT_ACTIVITY_LIMIT, DEFAULT_DEPENDENCY_TYPE, DEFAULT_LAG_TIME
from ganttdeck.models.dependency import TaskDependency, TaskDependencyDetail
from ganttdeck.models.project import ProjectRole
from ganttdeck.models.schedule import ProjectSchedule
from ganttdeck.models.task import TaskDetail
from ganttdeck.database.database import transaction
from ganttdeck.database.activity_repository import ActivityRepository
from ganttdeck.database.project_repository import ProjectRepository
from ganttdeck.engine.task_store import TaskStore
from ganttdeck.engine.dependency_graph import DependencyGraphManager
from ganttdeck.engine.validation import validate_not_self_dependency

logger = logging.getLogger(__name__)

PROJECT_ACCESS_DENIED = "Project not found or access denied"
TASK_ACCESS_DENIED = "Task not found or access denied"


class SchedulingProtocol:
    """Entry point for callers (API handlers, Gantt backends) of the scheduling core."""

    def __init__(self, db: Session, enforce_acyclic: Optional[bool] = None):
        self.db = db
        self.projects = ProjectRepository(db)
        self.activity = ActivityRepository(db)
        self.tasks = TaskStore(db)
        self.graph = DependencyGraphManager(db, enforce_acyclic=enforce_acyclic)

    # -- authorization -----------------------------------------------------

    def _require_member(self, project_id: int, user_id: int, not_found: str = PROJECT_ACCESS_DENIED) -> ProjectRole:
        role = self.projects.get_role(project_id, user_id)
        if role is None:
            raise NotFoundError(not_found)
        return role

    def _require_editor(self, project_id: int, user_id: int, denied: str, not_found: str = PROJECT_ACCESS_DENIED) -> ProjectRole:
        role = self._require_member(project_id, user_id, not_found)
        if role == ProjectRole.VIEWER:
            raise PermissionDeniedError(denied)
        return role

    def _task_project(self, task_id: int, user_id: int) -> int:
        """Project of a live task the user can see."""
        try:
            project_id = self.tasks.project_id_of(task_id)
        except NotFoundError:
            raise NotFoundError(TASK_ACCESS_DENIED)
        self._require_member(project_id, user_id, TASK_ACCESS_DENIED)
        return project_id

    # -- tasks -------------------------------------------------------------

    def create_task(self, user_id: int, project_id: int, fields: Dict[str, Any]) -> TaskDetail:
        with transaction(self.db, "create task"):
            self._require_editor(project_id, user_id, "Viewers cannot create tasks")
            task = self.tasks.create_task(project_id, user_id, fields)
            self.activity.append(
                project_id, user_id, ActivityEntityType.TASK, task.id, ActivityAction.CREATED,
                {"title": task.title},
            )
        logger.info(f"User {user_id} created task {task.id} in project {project_id}")
        return task

    def list_tasks(self, user_id: int, project_id: int, filters: Optional[Dict[str, Any]] = None) -> List[TaskDetail]:
        self._require_member(project_id, user_id)
        return self.tasks.list_tasks(project_id, filters)

    def get_task(self, user_id: int, task_id: int) -> TaskDetail:
        self._task_project(task_id, user_id)
        return self.tasks.get_task(task_id)

    def update_task(self, user_id: int, task_id: int, fields: Dict[str, Any]) -> TaskDetail:
        with transaction(self.db, f"update task {task_id}"):
            project_id = self.tasks.project_id_of(task_id)
            self._require_editor(project_id, user_id, "Viewers cannot update tasks", TASK_ACCESS_DENIED)
            task = self.tasks.update_task(task_id, fields)
            self.activity.append(
                project_id, user_id, ActivityEntityType.TASK, task_id, ActivityAction.UPDATED, dict(fields),
            )
        return task

    def delete_task(self, user_id: int, task_id: int) -> None:
        with transaction(self.db, f"delete task {task_id}"):
            project_id = self.tasks.project_id_of(task_id)
            self._require_editor(project_id, user_id, "Viewers cannot delete tasks", TASK_ACCESS_DENIED)
            self.tasks.delete_task(task_id)
            self.activity.append(project_id, user_id, ActivityEntityType.TASK, task_id, ActivityAction.DELETED)
        logger.info(f"User {user_id} deleted task {task_id}")

    def bulk_update_tasks(self, user_id: int, project_id: int, updates: List[Dict[str, Any]]) -> int:
        """Apply Gantt drag patches; ids outside the project are skipped silently."""
        with transaction(self.db, f"bulk update tasks in project {project_id}"):
            self._require_editor(project_id, user_id, "Viewers cannot update tasks")
            updated = self.tasks.bulk_update_tasks(project_id, updates)
            if updates:
                self.activity.append(
                    project_id, user_id, ActivityEntityType.TASK, updates[0]["id"], ActivityAction.UPDATED,
                    {"count": len(updates)},
                )
        return updated

    # -- dependencies ------------------------------------------------------

    def add_dependency(
        self,
        user_id: int,
        task_id: int,
        depends_on_task_id: int,
        dependency_type=DEFAULT_DEPENDENCY_TYPE,
        lag_time: Optional[int] = DEFAULT_LAG_TIME,
    ) -> TaskDependency:
        with transaction(self.db, f"add dependency {depends_on_task_id} -> {task_id}"):
            # Self-reference is a validation error even when the task does not exist.
            validate_not_self_dependency(task_id, depends_on_task_id)
            project_id = self.tasks.project_id_of(task_id)
            self._require_editor(project_id, user_id, "Viewers cannot add dependencies", TASK_ACCESS_DENIED)
            dependency = self.graph.add_dependency(task_id, depends_on_task_id, dependency_type, lag_time)
            self.activity.append(
                project_id, user_id, ActivityEntityType.TASK_DEPENDENCY, dependency.id, ActivityAction.CREATED,
                {
                    "task_id": task_id,
                    "depends_on_task_id": depends_on_task_id,
                    "type": dependency.dependency_type,
                },
            )
        return dependency

    def remove_dependency(self, user_id: int, dependency_id: int, task_id: Optional[int] = None) -> None:
        with transaction(self.db, f"remove dependency {dependency_id}"):
            dep_db, project_id = self.graph.locate(dependency_id, task_id)
            self._require_editor(
                project_id, user_id, "Viewers cannot remove dependencies", "Dependency not found or access denied",
            )
            self.graph.remove_dependency(dep_db)
            self.activity.append(
                project_id, user_id, ActivityEntityType.TASK_DEPENDENCY, dependency_id, ActivityAction.DELETED,
            )

    def list_dependencies(self, user_id: int, task_id: int) -> List[TaskDependencyDetail]:
        self._task_project(task_id, user_id)
        return self.graph.list_outgoing(task_id)

    # -- views -------------------------------------------------------------

    def list_activity(self, user_id: int, project_id: int, limit: int = DEFAULT_ACTIVITY_LIMIT) -> List[ActivityLog]:
        self._require_member(project_id, user_id)
        return self.activity.list_for_project(project_id, limit)

    def gantt_snapshot(self, user_id: int, project_id: int) -> ProjectSchedule:
        """Everything the Gantt view needs, read in one pass."""
        self._require_member(project_id, user_id)
        project = self.projects.get(project_id)
        if project is None:
            raise NotFoundError(PROJECT_ACCESS_DENIED)
        return ProjectSchedule(
            project_id=project_id,
            auto_scheduling=project.auto_scheduling,
            tasks=self.tasks.list_tasks(project_id, include_dependencies=True),
        )
