"""Repository for Task database operations.

Methods only flush; committing is left to the caller's transaction so that a
task write and its activity record land (or fail) together.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import and_, or_, func, select
from sqlalchemy.orm import Session, aliased

from ganttdeck.models.task import TaskDetail
from ganttdeck.database.models import TaskDB, TaskDependencyDB, UserDB, GroupDB, full_name

logger = logging.getLogger(__name__)
_UNSET = object()

# Fields a bulk (Gantt drag) patch may touch.
BULK_UPDATABLE_FIELDS = ("start_date", "end_date", "duration", "progress")


class TaskRepository:
    """Repository for Task database operations."""

    def __init__(self, db: Session):
        self.db = db

    def _detail_query(self):
        """Tasks joined with assignee/creator/group names and live child/edge counts."""
        assignee = aliased(UserDB)
        creator = aliased(UserDB)
        child = aliased(TaskDB)
        predecessor = aliased(TaskDB)

        subtask_count = (
            select(func.count(child.id))
            .where(child.parent_task_id == TaskDB.id, child.deleted_at.is_(None))
            .correlate(TaskDB)
            .scalar_subquery()
        )
        dependency_count = (
            select(func.count(TaskDependencyDB.id))
            .join(predecessor, TaskDependencyDB.depends_on_task_id == predecessor.id)
            .where(TaskDependencyDB.task_id == TaskDB.id, predecessor.deleted_at.is_(None))
            .correlate(TaskDB)
            .scalar_subquery()
        )

        return (
            self.db.query(
                TaskDB,
                assignee,
                creator,
                GroupDB,
                subtask_count.label("subtask_count"),
                dependency_count.label("dependency_count"),
            )
            .outerjoin(assignee, TaskDB.assigned_to == assignee.id)
            .outerjoin(creator, TaskDB.created_by == creator.id)
            .outerjoin(GroupDB, and_(TaskDB.assigned_group_id == GroupDB.id, GroupDB.deleted_at.is_(None)))
            .filter(TaskDB.deleted_at.is_(None))
        )

    @staticmethod
    def _to_detail(row) -> TaskDetail:
        task_db, assignee, creator, group, subtask_count, dependency_count = row
        return TaskDetail(
            **task_db._pydantic_fields(),
            assigned_user_name=full_name(assignee.first_name, assignee.last_name) if assignee else None,
            assigned_user_email=assignee.email if assignee else None,
            created_user_name=full_name(creator.first_name, creator.last_name) if creator else None,
            assigned_group_name=group.name if group else None,
            assigned_group_color=group.color if group else None,
            subtask_count=int(subtask_count or 0),
            dependency_count=int(dependency_count or 0),
        )

    def create(self, fields: Dict[str, Any]) -> TaskDB:
        """Insert a task row and flush to obtain its id."""
        task_db = TaskDB(**fields)
        self.db.add(task_db)
        self.db.flush()
        logger.debug(f"Created task {task_db.id}: {task_db.title[:50]}")
        return task_db

    def get_row(self, task_id: int, project_id: Optional[int] = None) -> Optional[TaskDB]:
        """Get a live (non-deleted) task row, optionally scoped to a project."""
        query = self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.deleted_at.is_(None),
        )
        if project_id is not None:
            query = query.filter(TaskDB.project_id == project_id)
        return query.first()

    def get_detail(self, task_id: int) -> Optional[TaskDetail]:
        """Get a live task with display fields (dependencies not attached)."""
        row = self._detail_query().filter(TaskDB.id == task_id).first()
        return self._to_detail(row) if row else None

    def list_details(
        self,
        project_id: int,
        *,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        assigned_to=_UNSET,
        parent_task_id=_UNSET,
        search: Optional[str] = None,
    ) -> List[TaskDetail]:
        """List live tasks of a project.

        `assigned_to` / `parent_task_id` use an UNSET sentinel so callers can
        filter explicitly on NULL by passing None.

        Ordered by start date (undated last), then newest first.
        """
        query = self._detail_query().filter(TaskDB.project_id == project_id)

        if status:
            query = query.filter(TaskDB.status == status)
        if priority:
            query = query.filter(TaskDB.priority == priority)
        if assigned_to is not _UNSET:
            if assigned_to is None:
                query = query.filter(TaskDB.assigned_to.is_(None))
            else:
                query = query.filter(TaskDB.assigned_to == assigned_to)
        if parent_task_id is not _UNSET:
            if parent_task_id is None:
                query = query.filter(TaskDB.parent_task_id.is_(None))
            else:
                query = query.filter(TaskDB.parent_task_id == parent_task_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(TaskDB.title.ilike(pattern), TaskDB.description.ilike(pattern)))

        rows = query.order_by(
            TaskDB.start_date.is_(None),
            TaskDB.start_date.asc(),
            TaskDB.created_at.desc(),
            TaskDB.id.desc(),
        ).all()
        return [self._to_detail(row) for row in rows]

    def update(self, task_db: TaskDB, changes: Dict[str, Any]) -> TaskDB:
        """Apply a partial set of column changes to a loaded row."""
        for field, value in changes.items():
            setattr(task_db, field, value)
        task_db.updated_at = datetime.utcnow()
        self.db.flush()
        logger.debug(f"Updated task {task_db.id}: {sorted(changes)}")
        return task_db

    def soft_delete(self, task_db: TaskDB) -> None:
        """Tombstone a task. Children and dependency edges are left in place."""
        now = datetime.utcnow()
        task_db.deleted_at = now
        task_db.updated_at = now
        self.db.flush()
        logger.debug(f"Soft-deleted task {task_db.id}")

    def bulk_update(self, project_id: int, updates: List[Dict[str, Any]]) -> int:
        """Apply schedule patches, each scoped to the project and to live rows.

        Patches for ids outside the project match nothing and are skipped
        silently. Returns the number of rows actually changed.
        """
        affected = 0
        now = datetime.utcnow()
        for update in updates:
            values = {field: update[field] for field in BULK_UPDATABLE_FIELDS if field in update}
            if not values:
                continue
            values["updated_at"] = now
            affected += (
                self.db.query(TaskDB)
                .filter(
                    TaskDB.id == update["id"],
                    TaskDB.project_id == project_id,
                    TaskDB.deleted_at.is_(None),
                )
                .update(values, synchronize_session=False)
            )
        self.db.flush()
        logger.debug(f"Bulk-updated {affected} tasks in project {project_id}")
        return int(affected)
