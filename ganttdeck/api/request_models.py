"""Request/response models for the task and dependency endpoints."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ganttdeck.models.dependency import DependencyType, TaskDependency, TaskDependencyDetail
from ganttdeck.models.task import TaskDetail, TaskStatus, TaskPriority
from ganttdeck.models.activity import ActivityLog
from ganttdeck.models.constants import MAX_TITLE_LENGTH, DEFAULT_DEPENDENCY_TYPE, DEFAULT_LAG_TIME
from ganttdeck.engine.validation import normalize_progress


class TaskCreateRequest(BaseModel):
    """Request model for creating a task."""
    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH, description="Task title")
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration: Optional[int] = Field(None, ge=0, description="Duration in days")
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assigned_to: Optional[int] = None
    assigned_group_id: Optional[int] = None
    parent_task_id: Optional[int] = None
    color: Optional[str] = None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class TaskUpdateRequest(BaseModel):
    """Request model for updating a task (all fields optional).

    Only fields the client actually sent are applied; see `model_dump(exclude_unset=True)`.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=MAX_TITLE_LENGTH)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration: Optional[int] = Field(None, ge=0)
    progress: Optional[float] = Field(None, description="Percentage 0-100; a fraction in (0, 1) is rescaled")
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assigned_to: Optional[int] = None
    assigned_group_id: Optional[int] = None
    parent_task_id: Optional[int] = None
    color: Optional[str] = None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @field_validator("progress")
    @classmethod
    def _normalize_progress(cls, value):
        if value is None:
            return value
        value = normalize_progress(value)
        return int(value) if float(value).is_integer() else value


class BulkTaskUpdate(BaseModel):
    """One schedule patch produced by a Gantt drag."""
    id: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration: Optional[int] = Field(None, ge=0)
    progress: Optional[int] = None


class BulkUpdateRequest(BaseModel):
    """Request model for bulk schedule updates."""
    updates: List[BulkTaskUpdate] = Field(..., min_length=1)


class DependencyCreateRequest(BaseModel):
    """Request model for adding a dependency to a task."""
    depends_on_task_id: int
    dependency_type: DependencyType = DEFAULT_DEPENDENCY_TYPE
    lag_time: int = DEFAULT_LAG_TIME

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class TaskResponse(BaseModel):
    task: TaskDetail


class TaskListResponse(BaseModel):
    tasks: List[TaskDetail]
    count: int


class BulkUpdateResponse(BaseModel):
    updated_count: int
    message: str


class DependencyResponse(BaseModel):
    dependency: TaskDependency


class DependencyListResponse(BaseModel):
    dependencies: List[TaskDependencyDetail]
    count: int


class ActivityListResponse(BaseModel):
    activities: List[ActivityLog]
    count: int
