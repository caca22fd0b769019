"""Project schedule snapshot consumed by the Gantt view."""

from typing import List
from pydantic import BaseModel, Field

from ganttdeck.models.task import TaskDetail


class ProjectSchedule(BaseModel):
    """Authoritative task/dependency state of one project at read time."""

    project_id: int
    auto_scheduling: bool = Field(False, description="Stored toggle only; nothing recomputes dates")
    tasks: List[TaskDetail] = Field(default_factory=list, description="Tasks with outgoing dependencies")
