"""Task dependency (Gantt link) data model for ganttdeck."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class DependencyType(str, Enum):
    """Which endpoint of the predecessor constrains which endpoint of the successor."""
    FINISH_TO_START = "finish_to_start"
    START_TO_START = "start_to_start"
    FINISH_TO_FINISH = "finish_to_finish"
    START_TO_FINISH = "start_to_finish"


class TaskDependency(BaseModel):
    """A directed edge: `task_id` is constrained by `depends_on_task_id`."""

    id: int = Field(..., description="Unique dependency identifier")
    task_id: int = Field(..., description="Successor (dependent) task ID")
    depends_on_task_id: int = Field(..., description="Predecessor task ID")
    dependency_type: DependencyType = Field(DependencyType.FINISH_TO_START, description="Dependency type")
    lag_time: int = Field(0, description="Signed offset in days applied after the constraining date")
    created_at: datetime = Field(..., description="Dependency creation timestamp")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class TaskDependencyDetail(TaskDependency):
    """Dependency joined with the predecessor's current display fields."""

    depends_on_title: Optional[str] = None
    depends_on_status: Optional[str] = None
    depends_on_progress: Optional[int] = None
