"""Project service — CRUD for projects.

Learn: nothing here checks who is asking. Routes call AccessPolicy first
and only hand an already-authorized Project to update/delete.
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.db.models import Project

logger = structlog.get_logger()


class ProjectService:
    """Business logic for projects."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_project(
        self, title: str, owner_id: int, description: Optional[str] = None
    ) -> Project:
        project = Project(title=title, description=description, owner_id=owner_id)
        self.db.add(project)
        await self.db.commit()
        logger.info("project.created", project_id=project.id, owner_id=owner_id)
        return project

    async def list_projects(self, owner_id: int) -> list[Project]:
        """Projects owned by owner_id, oldest first."""
        result = await self.db.execute(
            select(Project).where(Project.owner_id == owner_id).order_by(Project.id)
        )
        return list(result.scalars().all())

    async def update_project(
        self,
        project: Project,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Project:
        """Partial update — only non-None fields are applied."""
        if title is not None:
            project.title = title
        if description is not None:
            project.description = description
        await self.db.commit()
        logger.info("project.updated", project_id=project.id)
        return project

    async def delete_project(self, project: Project) -> Project:
        """Delete the project. Its tasks go with it (ON DELETE CASCADE)."""
        await self.db.delete(project)
        await self.db.commit()
        logger.info("project.deleted", project_id=project.id)
        return project
