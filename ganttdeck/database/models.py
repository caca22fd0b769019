"""SQLAlchemy database models for ganttdeck."""

from datetime import datetime
from typing import Union, TypeVar, Type
from sqlalchemy import (
    Column,
    String,
    Integer,
    Boolean,
    Date,
    DateTime,
    JSON,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
)

from ganttdeck.database.database import Base
from ganttdeck.models.task import TaskStatus, TaskPriority
from ganttdeck.models.dependency import DependencyType
from ganttdeck.models.project import ProjectRole

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).

    Args:
        enum_obj: Enum instance or string value

    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default.

    Args:
        value: String value to convert
        enum_class: Enum class to convert to
        default: Default enum value if conversion fails

    Returns:
        Enum instance, or default if conversion fails
    """
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


def full_name(first_name, last_name):
    """Join name parts the way list views display them ("First Last")."""
    parts = [p for p in (first_name, last_name) if p]
    return " ".join(parts) if parts else None


class UserDB(Base):
    """Database model for User."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False, unique=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from ganttdeck.models.user import User
        return User(
            id=self.id,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class ProjectDB(Base):
    """Database model for Project."""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    auto_scheduling = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True, index=True)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from ganttdeck.models.project import Project
        return Project(
            id=self.id,
            name=self.name,
            owner_id=self.owner_id,
            auto_scheduling=bool(self.auto_scheduling),
            created_at=self.created_at,
            deleted_at=self.deleted_at,
        )


class ProjectMemberDB(Base):
    """Database model for project membership (the role source for permission checks)."""

    __tablename__ = "project_members"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_member"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String, nullable=False, default=ProjectRole.MEMBER.value)

    joined_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class GroupDB(Base):
    """Database model for an assignable group of project members."""

    __tablename__ = "project_groups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    color = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True, index=True)


class TaskDB(Base):
    """Database model for Task."""

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)

    # Basic fields
    title = Column(String(500), nullable=False)
    description = Column(String, nullable=True)
    status = Column(String, nullable=False, default=TaskStatus.NOT_STARTED.value, index=True)
    priority = Column(String, nullable=False, default=TaskPriority.MEDIUM.value)
    color = Column(String, nullable=True)

    # Scheduling fields
    start_date = Column(Date, nullable=True, index=True)
    end_date = Column(Date, nullable=True)
    duration = Column(Integer, nullable=True)
    progress = Column(Integer, nullable=False, default=0)

    # Ownership
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    assigned_group_id = Column(Integer, ForeignKey("project_groups.id", ondelete="SET NULL"), nullable=True)

    # Hierarchy (a task with children renders as a summary bar)
    parent_task_id = Column(Integer, ForeignKey("tasks.id"), nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True, index=True)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from ganttdeck.models.task import Task
        return Task(**self._pydantic_fields())

    def _pydantic_fields(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "title": self.title,
            "description": self.description,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "duration": self.duration,
            "progress": self.progress if self.progress is not None else 0,
            "status": value_to_enum(self.status, TaskStatus, TaskStatus.NOT_STARTED),
            "priority": value_to_enum(self.priority, TaskPriority, TaskPriority.MEDIUM),
            "assigned_to": self.assigned_to,
            "assigned_group_id": self.assigned_group_id,
            "created_by": self.created_by,
            "parent_task_id": self.parent_task_id,
            "color": self.color,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "completed_at": self.completed_at,
            "deleted_at": self.deleted_at,
        }


class TaskDependencyDB(Base):
    """Database model for a dependency edge between two tasks."""

    __tablename__ = "task_dependencies"
    __table_args__ = (
        # At most one edge per ordered pair; type/lag changes are delete + recreate.
        UniqueConstraint("task_id", "depends_on_task_id", name="uq_task_dependency_pair"),
        CheckConstraint("task_id != depends_on_task_id", name="ck_task_dependency_no_self"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    depends_on_task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    dependency_type = Column(String, nullable=False, default=DependencyType.FINISH_TO_START.value)
    lag_time = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from ganttdeck.models.dependency import TaskDependency
        return TaskDependency(
            id=self.id,
            task_id=self.task_id,
            depends_on_task_id=self.depends_on_task_id,
            dependency_type=value_to_enum(self.dependency_type, DependencyType, DependencyType.FINISH_TO_START),
            lag_time=self.lag_time or 0,
            created_at=self.created_at,
        )


class ActivityLogDB(Base):
    """Database model for the project activity feed."""

    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    entity_type = Column(String, nullable=False)
    entity_id = Column(Integer, nullable=False)
    action = Column(String, nullable=False)
    changes = Column(JSON, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from ganttdeck.models.activity import ActivityLog
        return ActivityLog(
            id=self.id,
            project_id=self.project_id,
            user_id=self.user_id,
            entity_type=self.entity_type,
            entity_id=self.entity_id,
            action=self.action,
            changes=self.changes,
            created_at=self.created_at,
        )
