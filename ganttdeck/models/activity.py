"""ActivityLog data model for ganttdeck."""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field


class ActivityEntityType(str, Enum):
    """Entity kinds recorded by the scheduling core."""
    TASK = "task"
    TASK_DEPENDENCY = "task_dependency"


class ActivityAction(str, Enum):
    """Activity action enumeration."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class ActivityLog(BaseModel):
    """One project activity record, written in the same transaction as its mutation."""

    id: int = Field(..., description="Unique activity identifier")
    project_id: int = Field(..., description="Project the activity belongs to")
    user_id: int = Field(..., description="Acting user ID")
    entity_type: ActivityEntityType = Field(..., description="Type of entity changed")
    entity_id: int = Field(..., description="ID of the entity this activity relates to")
    action: ActivityAction = Field(..., description="What happened to the entity")
    changes: Optional[Dict[str, Any]] = Field(None, description="Changed fields payload")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Activity timestamp")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
