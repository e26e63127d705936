"""Task API routes.

Learn: tasks have no ACL of their own — AccessPolicy derives access from
the task's project owner (managers) and its assignee (developers).

Key patterns:
- POST /tasks checks ownership of the *referenced* project
- GET /tasks is scoped by role: managers see their projects' tasks,
  developers see what's assigned to them
- PUT is a partial update; projectId can't change
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.auth.context import Principal
from taskhub.auth.dependencies import get_current_principal
from taskhub.auth.permissions import AccessPolicy, Action
from taskhub.db.engine import get_db
from taskhub.db.models import Role
from taskhub.schemas.task import TaskCreate, TaskDeleted, TaskRead, TaskUpdate
from taskhub.services.task_service import TaskService

router = APIRouter(prefix="/tasks")


def _svc(db: AsyncSession = Depends(get_db)) -> TaskService:
    return TaskService(db)


def _policy(db: AsyncSession = Depends(get_db)) -> AccessPolicy:
    return AccessPolicy(db)


@router.post("", response_model=TaskRead, status_code=201)
async def create_task(
    body: TaskCreate,
    principal: Principal = Depends(get_current_principal),
    policy: AccessPolicy = Depends(_policy),
    svc: TaskService = Depends(_svc),
):
    """Create a task in a project the caller owns."""
    project = await policy.task_create(principal, body.project_id)
    return await svc.create_task(
        title=body.title,
        description=body.description,
        project_id=project.id,
        assigned_to_id=body.assigned_to_id,
        created_by_id=principal.id,
    )


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    principal: Principal = Depends(get_current_principal),
    policy: AccessPolicy = Depends(_policy),
    svc: TaskService = Depends(_svc),
):
    """Tasks visible to the caller."""
    policy.require(principal, Action.TASK_LIST)
    if principal.role is Role.MANAGER:
        return await svc.list_tasks(project_owner_id=principal.id)
    return await svc.list_tasks(assigned_to_id=principal.id)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    policy: AccessPolicy = Depends(_policy),
):
    return await policy.task(principal, Action.TASK_READ, task_id)


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    body: TaskUpdate,
    task_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    policy: AccessPolicy = Depends(_policy),
    svc: TaskService = Depends(_svc),
):
    task = await policy.task(principal, Action.TASK_UPDATE, task_id)
    return await svc.update_task(
        task,
        title=body.title,
        description=body.description,
        assigned_to_id=body.assigned_to_id,
    )


@router.delete("/{task_id}", response_model=TaskDeleted)
async def delete_task(
    task_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    policy: AccessPolicy = Depends(_policy),
    svc: TaskService = Depends(_svc),
):
    task = await policy.task(principal, Action.TASK_DELETE, task_id)
    deleted = await svc.delete_task(task)
    return TaskDeleted(deleted=deleted)
