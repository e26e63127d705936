"""Project API routes.

Learn: every handler follows the same two-step shape:
1. ask AccessPolicy (which raises 403/404 on its own)
2. hand the authorized object to ProjectService

GET /projects/{id} is owner-only, same as update and delete.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.auth.context import Principal
from taskhub.auth.dependencies import get_current_principal
from taskhub.auth.permissions import AccessPolicy, Action
from taskhub.db.engine import get_db
from taskhub.schemas.project import (
    ProjectCreate,
    ProjectDeleted,
    ProjectRead,
    ProjectUpdate,
)
from taskhub.services.project_service import ProjectService

router = APIRouter(prefix="/projects")


def _svc(db: AsyncSession = Depends(get_db)) -> ProjectService:
    return ProjectService(db)


def _policy(db: AsyncSession = Depends(get_db)) -> AccessPolicy:
    return AccessPolicy(db)


@router.post("", response_model=ProjectRead, status_code=201)
async def create_project(
    body: ProjectCreate,
    principal: Principal = Depends(get_current_principal),
    policy: AccessPolicy = Depends(_policy),
    svc: ProjectService = Depends(_svc),
):
    """Create a project owned by the caller. Managers only."""
    policy.require(principal, Action.PROJECT_CREATE)
    return await svc.create_project(
        title=body.title, description=body.description, owner_id=principal.id
    )


@router.get("", response_model=list[ProjectRead])
async def list_projects(
    principal: Principal = Depends(get_current_principal),
    policy: AccessPolicy = Depends(_policy),
    svc: ProjectService = Depends(_svc),
):
    """The caller's own projects."""
    policy.require(principal, Action.PROJECT_LIST)
    return await svc.list_projects(owner_id=principal.id)


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(
    project_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    policy: AccessPolicy = Depends(_policy),
):
    return await policy.project(principal, Action.PROJECT_READ, project_id)


@router.put("/{project_id}", response_model=ProjectRead)
async def update_project(
    body: ProjectUpdate,
    project_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    policy: AccessPolicy = Depends(_policy),
    svc: ProjectService = Depends(_svc),
):
    project = await policy.project(principal, Action.PROJECT_UPDATE, project_id)
    return await svc.update_project(
        project, title=body.title, description=body.description
    )


@router.delete("/{project_id}", response_model=ProjectDeleted)
async def delete_project(
    project_id: int = Path(..., ge=1),
    principal: Principal = Depends(get_current_principal),
    policy: AccessPolicy = Depends(_policy),
    svc: ProjectService = Depends(_svc),
):
    """Delete a project and, through the FK cascade, its tasks."""
    project = await policy.project(principal, Action.PROJECT_DELETE, project_id)
    deleted = await svc.delete_project(project)
    return ProjectDeleted(deleted=deleted)
