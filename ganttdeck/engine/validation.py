"""Field-level validation rules shared by the task store and dependency manager.

All rules raise `ValidationError` and never touch the database.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Type

from ganttdeck.errors import ValidationError
from ganttdeck.models.constants import MAX_TITLE_LENGTH, MIN_PROGRESS, MAX_PROGRESS


def coerce_date(value: Any, field: str) -> Optional[date]:
    """Accept a date, a datetime or an ISO-8601 string; None passes through."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            # Gantt widgets send "YYYY-MM-DD" or "YYYY-MM-DD HH:MM".
            return datetime.fromisoformat(value.strip()).date()
        except ValueError:
            pass
    raise ValidationError(f"{field} must be a valid date")


def coerce_enum(value: Any, enum_class: Type[Enum], field: str) -> str:
    """Return the enum's string value or raise ValidationError."""
    try:
        return enum_class(value.value if isinstance(value, Enum) else value).value
    except ValueError:
        raise ValidationError(f"Invalid {field}: {value}")


def validate_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("Task title is required")
    title = title.strip()
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Task title must be less than {MAX_TITLE_LENGTH} characters")
    return title


def validate_date_order(start_date: Optional[date], end_date: Optional[date]) -> None:
    """Start may not fall after end when both are known."""
    if start_date is not None and end_date is not None and start_date > end_date:
        raise ValidationError("Start date cannot be after end date")


def validate_progress(progress: Any) -> int:
    """Progress is an integer percentage in [0, 100]; no rescaling happens here."""
    if isinstance(progress, bool) or not isinstance(progress, (int, float)):
        raise ValidationError("Progress must be a number")
    if progress < MIN_PROGRESS or progress > MAX_PROGRESS:
        raise ValidationError(f"Progress must be between {MIN_PROGRESS} and {MAX_PROGRESS}")
    return int(round(progress))


def normalize_progress(value: Any) -> Any:
    """Map a fractional progress value onto the canonical 0-100 scale.

    Only non-integral floats strictly between 0 and 1 are read as fractions
    (0.25 -> 25). Integers, including 0 and 1, are already percentages.
    Everything else is returned untouched so `validate_progress` can reject it.
    Call this once, where input enters the system.
    """
    if isinstance(value, float) and 0 < value < 1:
        return int(round(value * 100))
    return value


def validate_duration(duration: Any) -> Optional[int]:
    if duration is None:
        return None
    if isinstance(duration, bool) or not isinstance(duration, int) or duration < 0:
        raise ValidationError("Duration must be a positive integer")
    return duration


def validate_lag_time(lag_time: Any) -> int:
    if isinstance(lag_time, bool) or not isinstance(lag_time, int):
        raise ValidationError("Lag time must be an integer")
    return lag_time


def validate_not_self_parent(task_id: int, parent_task_id: Optional[int]) -> None:
    if parent_task_id is not None and parent_task_id == task_id:
        raise ValidationError("Task cannot be its own parent")


def validate_not_self_dependency(task_id: int, depends_on_task_id: int) -> None:
    if task_id == depends_on_task_id:
        raise ValidationError("Task cannot depend on itself")
