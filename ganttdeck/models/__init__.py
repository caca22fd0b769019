"""Data models for ganttdeck."""

from ganttdeck.models.dependency import DependencyType, TaskDependency, TaskDependencyDetail
from ganttdeck.models.task import Task, TaskDetail, TaskStatus, TaskPriority
from ganttdeck.models.project import Project, ProjectMember, ProjectRole
from ganttdeck.models.activity import ActivityLog, ActivityEntityType, ActivityAction
from ganttdeck.models.schedule import ProjectSchedule
from ganttdeck.models.user import User

__all__ = [
    "DependencyType",
    "TaskDependency",
    "TaskDependencyDetail",
    "Task",
    "TaskDetail",
    "TaskStatus",
    "TaskPriority",
    "Project",
    "ProjectMember",
    "ProjectRole",
    "ActivityLog",
    "ActivityEntityType",
    "ActivityAction",
    "User",
    "ProjectSchedule",
]
