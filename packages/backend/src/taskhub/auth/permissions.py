"""Authorization engine — role + ownership + assignment rules.

Learn: every allow/deny rule in the system lives in this file.
Routes never compare role strings themselves; they ask AccessPolicy,
which runs three steps in a fixed order:

1. Role check (no DB access). Principals that could never be allowed
   are turned away before we reveal whether the resource exists.
2. Resolve the target (task + its project, or the referenced project).
   Missing → NotFoundError (404).
3. Ownership / assignment decision. Mismatch → ForbiddenError (403).

The check_* functions are pure: (principal, resource) -> Decision.
Unknown roles fall through every dispatch to a final deny (fail-closed).
"""

import enum
from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskhub.auth.context import Principal
from taskhub.db.models import Project, Role, Task
from taskhub.errors import ForbiddenError, NotFoundError

logger = structlog.get_logger()


class Action(str, enum.Enum):
    PROJECT_CREATE = "project.create"
    PROJECT_LIST = "project.list"
    PROJECT_READ = "project.read"
    PROJECT_UPDATE = "project.update"
    PROJECT_DELETE = "project.delete"
    TASK_CREATE = "task.create"
    TASK_LIST = "task.list"
    TASK_READ = "task.read"
    TASK_UPDATE = "task.update"
    TASK_DELETE = "task.delete"
    USER_LIST = "user.list"


_MANAGER = frozenset({Role.MANAGER})
_MANAGER_OR_DEVELOPER = frozenset({Role.MANAGER, Role.DEVELOPER})

# Which roles may even attempt an action. Ownership is checked afterwards.
ROLE_GRANTS: dict[Action, frozenset[Role]] = {
    Action.PROJECT_CREATE: _MANAGER,
    Action.PROJECT_LIST: _MANAGER,
    Action.PROJECT_READ: _MANAGER,
    Action.PROJECT_UPDATE: _MANAGER,
    Action.PROJECT_DELETE: _MANAGER,
    Action.TASK_CREATE: _MANAGER,
    Action.TASK_LIST: _MANAGER_OR_DEVELOPER,
    Action.TASK_READ: _MANAGER_OR_DEVELOPER,
    Action.TASK_UPDATE: _MANAGER_OR_DEVELOPER,
    Action.TASK_DELETE: _MANAGER_OR_DEVELOPER,
    Action.USER_LIST: _MANAGER,
}

PROJECT_ACTIONS = frozenset({
    Action.PROJECT_READ,
    Action.PROJECT_UPDATE,
    Action.PROJECT_DELETE,
})
TASK_ACTIONS = frozenset({
    Action.TASK_READ,
    Action.TASK_UPDATE,
    Action.TASK_DELETE,
})

ACCESS_DENIED = "Access denied"
INSUFFICIENT_ROLE = "Access denied: insufficient role"
NOT_YOUR_PROJECT = "Access denied: not your project"
NOT_YOUR_TASK = "Access denied: not your task"

_ROLE_DENY_REASONS: dict[tuple[Action, Optional[Role]], str] = {
    (Action.PROJECT_CREATE, Role.DEVELOPER): "Only managers can create projects",
    (Action.PROJECT_CREATE, Role.USER): "Only managers can create projects",
    (Action.TASK_CREATE, Role.DEVELOPER): "Developers cannot create tasks",
}


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""


ALLOW = Decision(True)


def deny(reason: str) -> Decision:
    return Decision(False, reason)


# ═══════════════════════════════════════════════════════════
# Pure decisions
# ═══════════════════════════════════════════════════════════


def check_role(principal: Principal, action: Action) -> Decision:
    """Role-only gate. Needs no lookup."""
    role = principal.role
    if role is None:
        return deny(ACCESS_DENIED)
    if role in ROLE_GRANTS.get(action, frozenset()):
        return ALLOW
    return deny(_ROLE_DENY_REASONS.get((action, role), INSUFFICIENT_ROLE))


def check_project(principal: Principal, action: Action, project: Project) -> Decision:
    """Managers act only on projects they own."""
    decision = check_role(principal, action)
    if not decision.allowed:
        return decision

    if action in PROJECT_ACTIONS or action is Action.TASK_CREATE:
        if principal.role is Role.MANAGER:
            if project.owner_id != principal.id:
                return deny(NOT_YOUR_PROJECT)
            return ALLOW

    return deny(ACCESS_DENIED)


def check_task(principal: Principal, action: Action, task: Task) -> Decision:
    """Managers via project ownership, developers via assignment.

    `task.project` must be loaded.
    """
    decision = check_role(principal, action)
    if not decision.allowed:
        return decision

    if action in TASK_ACTIONS:
        if principal.role is Role.MANAGER:
            if task.project.owner_id != principal.id:
                return deny(NOT_YOUR_PROJECT)
            return ALLOW

        if principal.role is Role.DEVELOPER:
            if task.assigned_to_id != principal.id:
                return deny(NOT_YOUR_TASK)
            return ALLOW

    return deny(ACCESS_DENIED)


# ═══════════════════════════════════════════════════════════
# Gate used by routes
# ═══════════════════════════════════════════════════════════


class AccessPolicy:
    """Runs the decisions above against the store and raises on deny."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def require(self, principal: Principal, action: Action) -> None:
        """Role-only actions (create project, list users, list tasks...)."""
        self._enforce(check_role(principal, action), principal, action)

    async def project(
        self, principal: Principal, action: Action, project_id: int
    ) -> Project:
        """Authorize a project-scoped action and return the project."""
        self._enforce(check_role(principal, action), principal, action, project_id)

        project = await self._get_project(project_id)
        self._enforce(
            check_project(principal, action, project), principal, action, project_id
        )
        return project

    async def task_create(self, principal: Principal, project_id: int) -> Project:
        """Authorize task creation inside the referenced project.

        Learn: the task doesn't exist yet, so ownership is judged on the
        project it will belong to. A missing project is a 404 even for a
        manager who wouldn't own it anyway — existence is checked first.
        """
        action = Action.TASK_CREATE
        self._enforce(check_role(principal, action), principal, action, project_id)

        project = await self._get_project(project_id)
        self._enforce(
            check_project(principal, action, project), principal, action, project_id
        )
        return project

    async def task(self, principal: Principal, action: Action, task_id: int) -> Task:
        """Authorize a task-scoped action and return the task (project loaded)."""
        self._enforce(check_role(principal, action), principal, action, task_id)

        result = await self.db.execute(
            select(Task).where(Task.id == task_id).options(selectinload(Task.project))
        )
        task = result.scalars().first()
        if not task:
            raise NotFoundError(f"Task with ID {task_id} not found")

        self._enforce(check_task(principal, action, task), principal, action, task_id)
        return task

    # ─── Internals ───────────────────────────────────────

    async def _get_project(self, project_id: int) -> Project:
        project = await self.db.get(Project, project_id)
        if not project:
            raise NotFoundError(f"Project with ID {project_id} not found")
        return project

    def _enforce(
        self,
        decision: Decision,
        principal: Principal,
        action: Action,
        resource_id: Optional[int] = None,
    ) -> None:
        if decision.allowed:
            return
        logger.warning(
            "authz.denied",
            principal_id=principal.id,
            role=principal.role_claim,
            action=action.value,
            resource_id=resource_id,
            reason=decision.reason,
        )
        raise ForbiddenError(decision.reason)
