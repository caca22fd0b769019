"""Dependency graph manager: owns task dependency edges and their invariants.

Enforced on every new edge:
- no self-dependency
- both endpoints are live tasks of the same project
- at most one edge per ordered (task, depends_on) pair

Cycles are not checked unless ENFORCE_ACYCLIC_DEPENDENCIES is enabled.
"""

import logging
import os
from typing import List, Optional, Tuple

from dotenv import load_dotenv
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ganttdeck.errors import ConflictError, NotFoundError, ValidationError
from ganttdeck.models.dependency import DependencyType, TaskDependency, TaskDependencyDetail
from ganttdeck.models.constants import DEFAULT_DEPENDENCY_TYPE, DEFAULT_LAG_TIME
from ganttdeck.database.models import TaskDependencyDB
from ganttdeck.database.task_repository import TaskRepository
from ganttdeck.database.dependency_repository import DependencyRepository
from ganttdeck.engine.graph import DependencyGraph
from ganttdeck.engine.validation import coerce_enum, validate_lag_time, validate_not_self_dependency

load_dotenv()

logger = logging.getLogger(__name__)

ENFORCE_ACYCLIC_DEPENDENCIES = os.getenv("ENFORCE_ACYCLIC_DEPENDENCIES", "False").lower() == "true"


class DependencyGraphManager:
    """Validated create/remove/query operations over dependency edges."""

    def __init__(self, db: Session, enforce_acyclic: Optional[bool] = None):
        self.db = db
        self.tasks = TaskRepository(db)
        self.dependencies = DependencyRepository(db)
        self.enforce_acyclic = ENFORCE_ACYCLIC_DEPENDENCIES if enforce_acyclic is None else enforce_acyclic

    def add_dependency(
        self,
        task_id: int,
        depends_on_task_id: int,
        dependency_type=DEFAULT_DEPENDENCY_TYPE,
        lag_time: Optional[int] = DEFAULT_LAG_TIME,
    ) -> TaskDependency:
        """Create the edge `task_id` depends on `depends_on_task_id`."""
        validate_not_self_dependency(task_id, depends_on_task_id)
        type_value = coerce_enum(dependency_type or DEFAULT_DEPENDENCY_TYPE, DependencyType, "dependency type")
        lag = validate_lag_time(DEFAULT_LAG_TIME if lag_time is None else lag_time)

        task_db = self.tasks.get_row(task_id)
        if task_db is None:
            raise NotFoundError("Task not found or access denied")
        if self.tasks.get_row(depends_on_task_id, project_id=task_db.project_id) is None:
            raise NotFoundError("Dependent task not found in this project")

        if self.dependencies.find_pair(task_id, depends_on_task_id) is not None:
            raise ConflictError("Dependency already exists")

        if self.enforce_acyclic:
            graph = self.graph_for_project(task_db.project_id)
            if graph.would_create_cycle(task_id, depends_on_task_id):
                raise ValidationError("Dependency would create a circular dependency")

        try:
            return self.dependencies.create(task_id, depends_on_task_id, type_value, lag)
        except IntegrityError:
            # A concurrent request inserted the same pair first.
            raise ConflictError("Dependency already exists")

    def locate(self, dependency_id: int, task_id: Optional[int] = None) -> Tuple[TaskDependencyDB, int]:
        """Find an edge (and its project) for removal.

        When `task_id` is given the edge must belong to that successor task.
        """
        found = self.dependencies.get_with_project(dependency_id)
        if found is None or (task_id is not None and found[0].task_id != task_id):
            raise NotFoundError("Dependency not found or access denied")
        return found

    def remove_dependency(self, dep_db: TaskDependencyDB) -> None:
        """Delete an edge unconditionally (authorization is the caller's job)."""
        self.dependencies.delete(dep_db)

    def list_outgoing(self, task_id: int) -> List[TaskDependencyDetail]:
        """What blocks `task_id`, with predecessor title/status/progress."""
        return self.dependencies.list_outgoing(task_id)

    def list_project_edges(self, project_id: int) -> List[TaskDependency]:
        """Edges between live tasks of a project."""
        return self.dependencies.list_for_project(project_id)

    def graph_for_project(self, project_id: int) -> DependencyGraph:
        return DependencyGraph.from_edges(self.list_project_edges(project_id))
