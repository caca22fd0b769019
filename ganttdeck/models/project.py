"""Project and membership data models for ganttdeck."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class ProjectRole(str, Enum):
    """Role of a user inside a project."""
    OWNER = "owner"
    MANAGER = "manager"
    MEMBER = "member"
    VIEWER = "viewer"


class Project(BaseModel):
    """Project that owns tasks."""

    id: int = Field(..., description="Unique project identifier")
    name: str = Field(..., description="Project name")
    owner_id: int = Field(..., description="User ID of the project owner")
    auto_scheduling: bool = Field(
        False,
        description="Auto-scheduling toggle shown in the Gantt view (no recalculation engine behind it)",
    )
    created_at: datetime = Field(..., description="Project creation timestamp")
    deleted_at: Optional[datetime] = Field(None, description="Soft-delete timestamp (null if active)")


class ProjectMember(BaseModel):
    """Membership of a user in a project."""

    project_id: int
    user_id: int
    role: ProjectRole = ProjectRole.MEMBER

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
