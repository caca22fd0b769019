"""Task data model for ganttdeck."""

from datetime import date, datetime
from typing import List, Optional
from enum import Enum
from pydantic import BaseModel, Field

from ganttdeck.models.dependency import TaskDependencyDetail


class TaskStatus(str, Enum):
    """Task status enumeration."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    """Task priority enumeration."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Task(BaseModel):
    """Canonical Task model (one row of the task store)."""

    id: int = Field(..., description="Unique task identifier")
    project_id: int = Field(..., description="Project this task belongs to")
    title: str = Field(..., description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    start_date: Optional[date] = Field(None, description="Planned start date")
    end_date: Optional[date] = Field(None, description="Planned end date")
    duration: Optional[int] = Field(None, ge=0, description="Planned duration in days")
    progress: int = Field(0, ge=0, le=100, description="Completion percentage (0-100)")
    status: TaskStatus = Field(TaskStatus.NOT_STARTED, description="Task status")
    priority: TaskPriority = Field(TaskPriority.MEDIUM, description="Task priority")
    assigned_to: Optional[int] = Field(None, description="Assigned user ID")
    assigned_group_id: Optional[int] = Field(None, description="Assigned group ID")
    created_by: int = Field(..., description="User ID of the task author")
    parent_task_id: Optional[int] = Field(None, description="Parent task ID (summary task)")
    color: Optional[str] = Field(None, description="Custom bar color")
    created_at: datetime = Field(..., description="Task creation timestamp")
    updated_at: datetime = Field(..., description="Task last update timestamp")
    completed_at: Optional[datetime] = Field(None, description="When status last became completed")
    deleted_at: Optional[datetime] = Field(None, description="Soft-delete timestamp (null if active)")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class TaskDetail(Task):
    """Task enriched with display fields for list/detail views and the Gantt chart."""

    assigned_user_name: Optional[str] = None
    assigned_user_email: Optional[str] = None
    created_user_name: Optional[str] = None
    assigned_group_name: Optional[str] = None
    assigned_group_color: Optional[str] = None
    subtask_count: int = 0
    dependency_count: int = 0
    dependencies: List[TaskDependencyDetail] = Field(
        default_factory=list,
        description="Outgoing dependencies (what blocks this task)",
    )

    @property
    def display_assignee(self) -> Optional[str]:
        """Group name wins over the user name when both are set."""
        return self.assigned_group_name or self.assigned_user_name
