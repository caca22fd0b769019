"""Repository for the project activity log."""

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from sqlalchemy import desc
from sqlalchemy.orm import Session

from ganttdeck.models.activity import ActivityLog, ActivityEntityType, ActivityAction
from ganttdeck.database.models import ActivityLogDB, enum_to_value

logger = logging.getLogger(__name__)


def _json_safe(value: Any) -> Any:
    """Make a change payload storable in a JSON column."""
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


class ActivityRepository:
    """Repository for ActivityLog database operations.

    `append` only flushes: the record commits with the mutation it describes.
    """

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        project_id: int,
        user_id: int,
        entity_type: ActivityEntityType,
        entity_id: int,
        action: ActivityAction,
        changes: Optional[Dict[str, Any]] = None,
    ) -> ActivityLog:
        """Record one activity entry in the current transaction."""
        activity_db = ActivityLogDB(
            project_id=project_id,
            user_id=user_id,
            entity_type=enum_to_value(entity_type),
            entity_id=entity_id,
            action=enum_to_value(action),
            changes=_json_safe(changes) if changes is not None else None,
        )
        self.db.add(activity_db)
        self.db.flush()
        logger.debug(
            f"Logged {activity_db.action} {activity_db.entity_type} {entity_id} in project {project_id}"
        )
        return activity_db.to_pydantic()

    def list_for_project(self, project_id: int, limit: int = 50) -> List[ActivityLog]:
        """Most recent activity first."""
        rows = (
            self.db.query(ActivityLogDB)
            .filter(ActivityLogDB.project_id == project_id)
            .order_by(desc(ActivityLogDB.created_at), desc(ActivityLogDB.id))
            .limit(limit)
            .all()
        )
        return [row.to_pydantic() for row in rows]
