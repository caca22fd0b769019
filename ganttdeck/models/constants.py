"""Constants for ganttdeck.

This module centralizes all magic numbers and default values used throughout the application.
"""

from ganttdeck.models.dependency import DependencyType
from ganttdeck.models.task import TaskStatus, TaskPriority


# Task defaults
DEFAULT_TASK_STATUS = TaskStatus.NOT_STARTED
DEFAULT_TASK_PRIORITY = TaskPriority.MEDIUM
DEFAULT_PROGRESS = 0
MAX_TITLE_LENGTH = 500

# Progress bounds (canonical scale is an integer percentage)
MIN_PROGRESS = 0
MAX_PROGRESS = 100

# Dependency defaults
DEFAULT_DEPENDENCY_TYPE = DependencyType.FINISH_TO_START
DEFAULT_LAG_TIME = 0

# Gantt presentation
DEFAULT_BAR_DURATION_DAYS = 1
SUMMARY_BAR_TYPE = "project"
LEAF_BAR_TYPE = "task"

# Activity feed
DEFAULT_ACTIVITY_LIMIT = 50
