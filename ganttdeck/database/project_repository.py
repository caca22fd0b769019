"""Repository for project, membership and group lookups.

These back the permission, member and group checks the scheduling core
consumes; project/membership management itself lives outside this package.
"""

import logging
from typing import Optional
from sqlalchemy.orm import Session

from ganttdeck.models.project import Project, ProjectRole
from ganttdeck.database.models import ProjectDB, ProjectMemberDB, GroupDB, value_to_enum

logger = logging.getLogger(__name__)


class ProjectRepository:
    """Repository for Project database operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, project_id: int) -> Optional[Project]:
        """Get a live project by ID."""
        project_db = self.db.query(ProjectDB).filter(
            ProjectDB.id == project_id,
            ProjectDB.deleted_at.is_(None),
        ).first()
        return project_db.to_pydantic() if project_db else None

    def get_role(self, project_id: int, user_id: int) -> Optional[ProjectRole]:
        """Get the user's role in a live project, or None if not a member."""
        role = (
            self.db.query(ProjectMemberDB.role)
            .join(ProjectDB, ProjectMemberDB.project_id == ProjectDB.id)
            .filter(
                ProjectMemberDB.project_id == project_id,
                ProjectMemberDB.user_id == user_id,
                ProjectDB.deleted_at.is_(None),
            )
            .scalar()
        )
        if role is None:
            return None
        return value_to_enum(role, ProjectRole, ProjectRole.VIEWER)

    def is_member(self, project_id: int, user_id: int) -> bool:
        """Whether the user belongs to the project (any role)."""
        return self.db.query(ProjectMemberDB.id).filter(
            ProjectMemberDB.project_id == project_id,
            ProjectMemberDB.user_id == user_id,
        ).first() is not None

    def group_exists(self, project_id: int, group_id: int) -> bool:
        """Whether a live group with this ID belongs to the project."""
        return self.db.query(GroupDB.id).filter(
            GroupDB.id == group_id,
            GroupDB.project_id == project_id,
            GroupDB.deleted_at.is_(None),
        ).first() is not None
