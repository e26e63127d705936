"""Task service — CRUD for tasks.

Learn: like ProjectService, this trusts its caller. Authorization (who
may create in which project, who may touch which task) happened in
AccessPolicy before any of these methods run. What stays here is
referential integrity: an assignee must be a real user.
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.db.models import Project, Task, User
from taskhub.errors import NotFoundError

logger = structlog.get_logger()


class TaskService:
    """Business logic for tasks."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Create ──────────────────────────────────────────

    async def create_task(
        self,
        title: str,
        project_id: int,
        created_by_id: int,
        description: Optional[str] = None,
        assigned_to_id: Optional[int] = None,
    ) -> Task:
        if assigned_to_id is not None:
            await self._ensure_user(assigned_to_id)

        task = Task(
            title=title,
            description=description,
            project_id=project_id,
            assigned_to_id=assigned_to_id,
            created_by_id=created_by_id,
        )
        self.db.add(task)
        await self.db.commit()

        logger.info(
            "task.created",
            task_id=task.id,
            project_id=project_id,
            assigned_to_id=assigned_to_id,
        )
        return task

    # ─── Read ────────────────────────────────────────────

    async def list_tasks(
        self,
        project_owner_id: Optional[int] = None,
        assigned_to_id: Optional[int] = None,
    ) -> list[Task]:
        """List tasks with optional filters.

        Learn: Query filters are applied conditionally — only when the
        caller provides them. Routes always pass one, derived from the
        principal's role, so nobody sees the whole table.
        """
        query = select(Task).order_by(Task.id)
        if project_owner_id is not None:
            query = query.join(Project, Task.project_id == Project.id).where(
                Project.owner_id == project_owner_id
            )
        if assigned_to_id is not None:
            query = query.where(Task.assigned_to_id == assigned_to_id)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ─── Update / delete ─────────────────────────────────

    async def update_task(
        self,
        task: Task,
        title: Optional[str] = None,
        description: Optional[str] = None,
        assigned_to_id: Optional[int] = None,
    ) -> Task:
        """Partial update — only non-None fields are applied."""
        if assigned_to_id is not None:
            await self._ensure_user(assigned_to_id)
            task.assigned_to_id = assigned_to_id
        if title is not None:
            task.title = title
        if description is not None:
            task.description = description

        await self.db.commit()
        logger.info("task.updated", task_id=task.id)
        return task

    async def delete_task(self, task: Task) -> Task:
        await self.db.delete(task)
        await self.db.commit()
        logger.info("task.deleted", task_id=task.id)
        return task

    async def _ensure_user(self, user_id: int) -> None:
        if await self.db.get(User, user_id) is None:
            raise NotFoundError(f"User with ID {user_id} not found")
