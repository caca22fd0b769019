"""Repository for task dependency (edge) database operations."""

import logging
from typing import Dict, Iterable, List, Optional, Tuple
from sqlalchemy.orm import Session, aliased

from ganttdeck.models.dependency import TaskDependency, TaskDependencyDetail
from ganttdeck.database.models import TaskDB, TaskDependencyDB

logger = logging.getLogger(__name__)


class DependencyRepository:
    """Repository for TaskDependency database operations.

    Soft-deleted tasks are excluded at read time by joining against
    `tasks.deleted_at`; edges are never cascaded away when a task is deleted.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, task_id: int, depends_on_task_id: int, dependency_type: str, lag_time: int) -> TaskDependency:
        """Insert an edge and flush (raises IntegrityError on a duplicate pair)."""
        dep_db = TaskDependencyDB(
            task_id=task_id,
            depends_on_task_id=depends_on_task_id,
            dependency_type=dependency_type,
            lag_time=lag_time,
        )
        self.db.add(dep_db)
        self.db.flush()
        logger.debug(f"Created dependency {dep_db.id}: {depends_on_task_id} -> {task_id} ({dependency_type})")
        return dep_db.to_pydantic()

    def find_pair(self, task_id: int, depends_on_task_id: int) -> Optional[TaskDependency]:
        """Get the edge for an ordered (successor, predecessor) pair, if any."""
        dep_db = self.db.query(TaskDependencyDB).filter(
            TaskDependencyDB.task_id == task_id,
            TaskDependencyDB.depends_on_task_id == depends_on_task_id,
        ).first()
        return dep_db.to_pydantic() if dep_db else None

    def get_with_project(self, dependency_id: int) -> Optional[Tuple[TaskDependencyDB, int]]:
        """Get an edge whose successor task is live, together with that task's project id."""
        row = (
            self.db.query(TaskDependencyDB, TaskDB.project_id)
            .join(TaskDB, TaskDependencyDB.task_id == TaskDB.id)
            .filter(TaskDependencyDB.id == dependency_id, TaskDB.deleted_at.is_(None))
            .first()
        )
        return (row[0], row[1]) if row else None

    def delete(self, dep_db: TaskDependencyDB) -> None:
        """Physically delete an edge."""
        dependency_id = dep_db.id
        self.db.delete(dep_db)
        self.db.flush()
        logger.debug(f"Deleted dependency {dependency_id}")

    def list_outgoing(self, task_id: int) -> List[TaskDependencyDetail]:
        """Edges where `task_id` is the successor, joined with predecessor display fields."""
        return self.list_outgoing_for_tasks([task_id]).get(task_id, [])

    def list_outgoing_for_tasks(self, task_ids: Iterable[int]) -> Dict[int, List[TaskDependencyDetail]]:
        """Outgoing edges for several successors at once, keyed by successor id."""
        ids = list(task_ids)
        if not ids:
            return {}
        predecessor = aliased(TaskDB)
        rows = (
            self.db.query(TaskDependencyDB, predecessor.title, predecessor.status, predecessor.progress)
            .join(predecessor, TaskDependencyDB.depends_on_task_id == predecessor.id)
            .filter(
                TaskDependencyDB.task_id.in_(ids),
                predecessor.deleted_at.is_(None),
            )
            .order_by(TaskDependencyDB.created_at, TaskDependencyDB.id)
            .all()
        )
        out: Dict[int, List[TaskDependencyDetail]] = {}
        for dep_db, title, status, progress in rows:
            detail = TaskDependencyDetail(
                **dep_db.to_pydantic().model_dump(),
                depends_on_title=title,
                depends_on_status=status,
                depends_on_progress=progress,
            )
            out.setdefault(dep_db.task_id, []).append(detail)
        return out

    def list_for_project(self, project_id: int) -> List[TaskDependency]:
        """All edges whose two endpoints are live tasks of the project."""
        successor = aliased(TaskDB)
        predecessor = aliased(TaskDB)
        rows = (
            self.db.query(TaskDependencyDB)
            .join(successor, TaskDependencyDB.task_id == successor.id)
            .join(predecessor, TaskDependencyDB.depends_on_task_id == predecessor.id)
            .filter(
                successor.project_id == project_id,
                successor.deleted_at.is_(None),
                predecessor.deleted_at.is_(None),
            )
            .order_by(TaskDependencyDB.id)
            .all()
        )
        return [dep_db.to_pydantic() for dep_db in rows]
