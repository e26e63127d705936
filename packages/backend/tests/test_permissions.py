"""Permission engine tests — pure decisions, no database.

Learn: check_role / check_project / check_task take plain objects, so
the whole grant table can be walked without HTTP or a store. The API
tests then confirm routes actually go through AccessPolicy.
"""

import pytest

from taskhub.auth.context import Principal
from taskhub.auth.permissions import (
    ROLE_GRANTS,
    Action,
    check_project,
    check_role,
    check_task,
)
from taskhub.db.models import Project, Role, Task

MANAGER = Principal(id=1, email="m@test.com", role_claim="manager")
OTHER_MANAGER = Principal(id=2, email="m2@test.com", role_claim="manager")
DEVELOPER = Principal(id=3, email="d@test.com", role_claim="developer")
USER = Principal(id=4, email="u@test.com", role_claim="user")
GUEST = Principal(id=5, email="g@test.com", role_claim="guest")


def _project(owner_id=1):
    return Project(id=10, title="P", owner_id=owner_id)


def _task(owner_id=1, assigned_to_id=None):
    return Task(
        id=20,
        title="T",
        project_id=10,
        created_by_id=owner_id,
        assigned_to_id=assigned_to_id,
        project=_project(owner_id),
    )


# ─── Role gate ───────────────────────────────────────────


def test_every_action_has_a_grant():
    assert set(ROLE_GRANTS) == set(Action)


def test_user_role_gets_nothing():
    for action in Action:
        assert not check_role(USER, action).allowed


@pytest.mark.parametrize("action", list(Action))
def test_unknown_role_denied_everywhere(action):
    decision = check_role(GUEST, action)
    assert not decision.allowed
    assert decision.reason == "Access denied"


@pytest.mark.parametrize(
    "principal,reason",
    [
        (DEVELOPER, "Only managers can create projects"),
        (USER, "Only managers can create projects"),
    ],
)
def test_project_create_denial_reason(principal, reason):
    assert check_role(principal, Action.PROJECT_CREATE).reason == reason


def test_developer_task_create_reason():
    decision = check_role(DEVELOPER, Action.TASK_CREATE)
    assert not decision.allowed
    assert decision.reason == "Developers cannot create tasks"


def test_generic_insufficient_role():
    decision = check_role(DEVELOPER, Action.USER_LIST)
    assert decision.reason == "Access denied: insufficient role"


def test_manager_may_attempt_everything():
    for action in Action:
        assert check_role(MANAGER, action).allowed


# ─── Projects ────────────────────────────────────────────


@pytest.mark.parametrize(
    "action", [Action.PROJECT_READ, Action.PROJECT_UPDATE, Action.PROJECT_DELETE]
)
def test_project_owner_only(action):
    project = _project(owner_id=MANAGER.id)
    assert check_project(MANAGER, action, project).allowed

    decision = check_project(OTHER_MANAGER, action, project)
    assert not decision.allowed
    assert decision.reason == "Access denied: not your project"


def test_developer_cannot_touch_projects():
    decision = check_project(DEVELOPER, Action.PROJECT_READ, _project())
    assert not decision.allowed
    assert decision.reason == "Access denied: insufficient role"


def test_task_create_needs_project_ownership():
    project = _project(owner_id=MANAGER.id)
    assert check_project(MANAGER, Action.TASK_CREATE, project).allowed
    assert not check_project(OTHER_MANAGER, Action.TASK_CREATE, project).allowed


def test_project_check_with_task_action_denied():
    assert not check_project(MANAGER, Action.TASK_READ, _project()).allowed


# ─── Tasks ───────────────────────────────────────────────


@pytest.mark.parametrize(
    "action", [Action.TASK_READ, Action.TASK_UPDATE, Action.TASK_DELETE]
)
def test_manager_task_access_via_project_owner(action):
    task = _task(owner_id=MANAGER.id)
    assert check_task(MANAGER, action, task).allowed

    decision = check_task(OTHER_MANAGER, action, task)
    assert not decision.allowed
    assert decision.reason == "Access denied: not your project"


@pytest.mark.parametrize(
    "action", [Action.TASK_READ, Action.TASK_UPDATE, Action.TASK_DELETE]
)
def test_developer_task_access_via_assignment(action):
    assert check_task(DEVELOPER, action, _task(assigned_to_id=DEVELOPER.id)).allowed

    decision = check_task(DEVELOPER, action, _task(assigned_to_id=99))
    assert not decision.allowed
    assert decision.reason == "Access denied: not your task"


def test_unassigned_task_hidden_from_developer():
    assert not check_task(DEVELOPER, Action.TASK_READ, _task(assigned_to_id=None)).allowed


def test_user_role_never_reaches_tasks():
    task = _task(assigned_to_id=USER.id)
    for action in (Action.TASK_READ, Action.TASK_UPDATE, Action.TASK_DELETE):
        assert not check_task(USER, action, task).allowed


def test_role_claim_kept_for_audit():
    assert GUEST.role is None
    assert GUEST.role_claim == "guest"
    assert MANAGER.role is Role.MANAGER
