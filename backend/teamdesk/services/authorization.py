"""Role-based permission and visibility rules.

Every read and write in the service layer goes through this module. Two
families of checks live here:

* instance checks, :func:`can_view` and :func:`can_mutate`, evaluated against
  a loaded record (or a not-yet-saved one for ``create``) wrapped in a small
  target object carrying the relationship facts the rule needs;
* list filters, :func:`visibility_filter`, which return a SQL predicate
  selecting exactly the rows :func:`can_view` would accept.

Nothing here touches the database. Relationship sets (direct reports, led
teams, joined teams) are resolved once per request into an
:class:`AccessScope` by :func:`teamdesk.services.directory.resolve_scope`.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeAlias
from uuid import UUID

from sqlalchemy import and_, false, or_, true
from sqlalchemy.sql.elements import ColumnElement
from sqlmodel import SQLModel, col, select

from teamdesk.core.auth import Principal, Role
from teamdesk.core.errors import AccessDenied
from teamdesk.core.logging import get_logger
from teamdesk.models.org import User
from teamdesk.models.projects import Project, TeamProject
from teamdesk.models.teams import Team, TeamUpdate
from teamdesk.models.work import Issue, Task, TeamTask

logger = get_logger(__name__)


class Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class AccessScope:
    principal: Principal
    employee_ids: frozenset[UUID] = frozenset()
    led_team_ids: frozenset[UUID] = frozenset()
    # Includes led teams.
    member_team_ids: frozenset[UUID] = frozenset()

    @property
    def user_id(self) -> UUID:
        return self.principal.id

    @property
    def role(self) -> Role:
        return self.principal.role

    def manages(self, user_id: UUID | None) -> bool:
        return user_id is not None and user_id in self.employee_ids

    def leads_any(self, team_ids: Iterable[UUID]) -> bool:
        return not self.led_team_ids.isdisjoint(team_ids)

    def member_of_any(self, team_ids: Iterable[UUID]) -> bool:
        return not self.member_team_ids.isdisjoint(team_ids)


@dataclass(frozen=True, slots=True)
class ProjectTarget:
    project: Project
    team_ids: frozenset[UUID] = frozenset()


@dataclass(frozen=True, slots=True)
class TeamTarget:
    team: Team


@dataclass(frozen=True, slots=True)
class TaskTarget:
    task: Task
    team_ids: frozenset[UUID] = frozenset()


@dataclass(frozen=True, slots=True)
class IssueTarget:
    issue: Issue


@dataclass(frozen=True, slots=True)
class TeamUpdateTarget:
    update: TeamUpdate
    author_id: UUID
    team_leader_id: UUID | None = None
    # Whether the author holds a membership row in update.team_id.
    author_is_member: bool = False


@dataclass(frozen=True, slots=True)
class UserTarget:
    user: User


Target: TypeAlias = (
    ProjectTarget | TeamTarget | TaskTarget | IssueTarget | TeamUpdateTarget | UserTarget
)
Changes: TypeAlias = Mapping[str, Any]


# ---------------------------------------------------------------------------
# View rules
# ---------------------------------------------------------------------------


def _view_project(scope: AccessScope, target: ProjectTarget) -> bool:
    if scope.role in (Role.HEAD, Role.MANAGER):
        return True
    return scope.member_of_any(target.team_ids)


def _view_team(scope: AccessScope, target: TeamTarget) -> bool:
    if scope.role in (Role.HEAD, Role.MANAGER):
        return True
    return target.team.id in scope.member_team_ids


def _view_task(scope: AccessScope, target: TaskTarget) -> bool:
    task = target.task
    if scope.role == Role.HEAD:
        return True
    if scope.role == Role.MANAGER:
        return (
            task.creator_id == scope.user_id
            or task.assignee_id == scope.user_id
            or scope.manages(task.assignee_id)
            or scope.leads_any(target.team_ids)
        )
    return task.assignee_id == scope.user_id or scope.member_of_any(target.team_ids)


def _view_issue(scope: AccessScope, target: IssueTarget) -> bool:
    issue = target.issue
    if scope.role == Role.HEAD or issue.creator_id == scope.user_id:
        return True
    # Issues have no team-based visibility, unlike tasks.
    return scope.role == Role.MANAGER and scope.manages(issue.creator_id)


def _view_team_update(scope: AccessScope, target: TeamUpdateTarget) -> bool:
    if scope.role in (Role.HEAD, Role.MANAGER):
        return True
    return target.update.team_id in scope.member_team_ids


def _view_user(scope: AccessScope, target: UserTarget) -> bool:
    if scope.role == Role.HEAD or target.user.id == scope.user_id:
        return True
    return scope.role == Role.MANAGER and scope.manages(target.user.id)


_VIEW_RULES: dict[type, Callable[[AccessScope, Any], bool]] = {
    ProjectTarget: _view_project,
    TeamTarget: _view_team,
    TaskTarget: _view_task,
    IssueTarget: _view_issue,
    TeamUpdateTarget: _view_team_update,
    UserTarget: _view_user,
}


# ---------------------------------------------------------------------------
# Mutation rules
# ---------------------------------------------------------------------------


def _mutate_project(scope: AccessScope, target: ProjectTarget, action: Action, changes: Changes) -> bool:
    return scope.role == Role.HEAD


def _mutate_team(scope: AccessScope, target: TeamTarget, action: Action, changes: Changes) -> bool:
    if scope.role == Role.HEAD:
        return True
    if action is not Action.UPDATE:
        return False
    if "leader_id" in changes:
        # Even the current leader cannot hand over leadership.
        return False
    return target.team.leader_id == scope.user_id


def _can_assign_task(scope: AccessScope, assignee_id: UUID | None, team_ids: Collection[UUID]) -> bool:
    """MANAGER assignment limits: own reports (or self) and teams they lead."""
    if assignee_id is not None and assignee_id != scope.user_id and not scope.manages(assignee_id):
        return False
    return all(team_id in scope.led_team_ids for team_id in team_ids)


def _mutate_task(scope: AccessScope, target: TaskTarget, action: Action, changes: Changes) -> bool:
    task = target.task
    if action is Action.CREATE:
        if scope.role == Role.HEAD:
            return True
        if scope.role != Role.MANAGER:
            return False
        return _can_assign_task(scope, task.assignee_id, target.team_ids)

    if action is Action.DELETE:
        if scope.role == Role.HEAD:
            return True
        if scope.role == Role.MANAGER:
            return (
                task.creator_id == scope.user_id
                or task.assignee_id == scope.user_id
                or scope.manages(task.assignee_id)
            )
        return task.assignee_id == scope.user_id

    if scope.role == Role.HEAD:
        return True
    if not _view_task(scope, target):
        return False
    if scope.role != Role.MANAGER:
        return set(changes) <= {"status"}

    new_assignee = changes.get("assignee_id")
    if new_assignee is not None and new_assignee != task.assignee_id:
        if not _can_assign_task(scope, new_assignee, ()):
            return False
    new_team = changes.get("team_id")
    if new_team is not None and new_team not in target.team_ids:
        if not _can_assign_task(scope, None, (new_team,)):
            return False
    return True


def _mutate_issue(scope: AccessScope, target: IssueTarget, action: Action, changes: Changes) -> bool:
    if action is Action.CREATE:
        return True
    if action is Action.DELETE:
        return scope.role == Role.HEAD
    if set(changes) - {"status"}:
        return target.issue.creator_id == scope.user_id
    return _view_issue(scope, target)


def _mutate_team_update(
    scope: AccessScope, target: TeamUpdateTarget, action: Action, changes: Changes
) -> bool:
    if action is Action.CREATE:
        # HEAD scopes carry no team sets, so membership comes from the target.
        return target.author_is_member or target.update.team_id in scope.member_team_ids
    if action is Action.UPDATE:
        return target.author_id == scope.user_id and set(changes) <= {"content"}
    return (
        scope.role == Role.HEAD
        or target.team_leader_id == scope.user_id
        or target.author_id == scope.user_id
    )


def _mutate_user(scope: AccessScope, target: UserTarget, action: Action, changes: Changes) -> bool:
    if scope.role == Role.HEAD:
        return True
    if action is Action.CREATE and scope.role == Role.MANAGER:
        return target.user.role == Role.EMPLOYEE and target.user.manager_id in (None, scope.user_id)
    return False


_MUTATE_RULES: dict[type, Callable[[AccessScope, Any, Action, Changes], bool]] = {
    ProjectTarget: _mutate_project,
    TeamTarget: _mutate_team,
    TaskTarget: _mutate_task,
    IssueTarget: _mutate_issue,
    TeamUpdateTarget: _mutate_team_update,
    UserTarget: _mutate_user,
}


def can_view(scope: AccessScope, target: Target) -> bool:
    return _VIEW_RULES[type(target)](scope, target)


def can_mutate(
    scope: AccessScope,
    target: Target,
    action: Action,
    changes: Changes | None = None,
) -> bool:
    """Return whether ``scope`` may apply ``action`` to ``target``.

    For updates, ``changes`` holds the fields the caller explicitly sent
    (``model_dump(exclude_unset=True)``); several rules depend on which fields
    are present, not only on their values.
    """
    return _MUTATE_RULES[type(target)](scope, target, Action(action), changes or {})


def require_view(scope: AccessScope, target: Target, message: str = "Access denied") -> None:
    if not can_view(scope, target):
        logger.info(
            "authz.view.denied",
            extra={"user_id": str(scope.user_id), "target": type(target).__name__},
        )
        raise AccessDenied(message)


def require_mutate(
    scope: AccessScope,
    target: Target,
    action: Action,
    changes: Changes | None = None,
    message: str = "Access denied",
) -> None:
    if not can_mutate(scope, target, action, changes):
        logger.info(
            "authz.mutate.denied",
            extra={
                "user_id": str(scope.user_id),
                "target": type(target).__name__,
                "action": Action(action).value,
            },
        )
        raise AccessDenied(message)


def can_request_team_updates(scope: AccessScope, team: Team) -> bool:
    return scope.role == Role.HEAD or team.leader_id == scope.user_id


def can_view_update_requests(scope: AccessScope, team: Team) -> bool:
    return scope.role == Role.HEAD or team.id in scope.member_team_ids


# ---------------------------------------------------------------------------
# List filters
# ---------------------------------------------------------------------------


def _ids(values: Iterable[UUID]) -> list[UUID]:
    return sorted(values)


def _tasks_of_teams(team_ids: Iterable[UUID]):  # type: ignore[no-untyped-def]
    return select(TeamTask.task_id).where(col(TeamTask.team_id).in_(_ids(team_ids)))


def _task_filter(scope: AccessScope) -> ColumnElement[bool]:
    if scope.role == Role.HEAD:
        return true()
    if scope.role == Role.MANAGER:
        return or_(
            col(Task.creator_id) == scope.user_id,
            col(Task.assignee_id) == scope.user_id,
            col(Task.assignee_id).in_(_ids(scope.employee_ids)),
            col(Task.id).in_(_tasks_of_teams(scope.led_team_ids)),
        )
    return or_(
        col(Task.assignee_id) == scope.user_id,
        col(Task.id).in_(_tasks_of_teams(scope.member_team_ids)),
    )


def _issue_filter(scope: AccessScope) -> ColumnElement[bool]:
    if scope.role == Role.HEAD:
        return true()
    if scope.role == Role.MANAGER:
        return or_(
            col(Issue.creator_id) == scope.user_id,
            col(Issue.creator_id).in_(_ids(scope.employee_ids)),
        )
    return col(Issue.creator_id) == scope.user_id


def _team_filter(scope: AccessScope) -> ColumnElement[bool]:
    if scope.role in (Role.HEAD, Role.MANAGER):
        return true()
    return col(Team.id).in_(_ids(scope.member_team_ids))


def _team_update_filter(scope: AccessScope) -> ColumnElement[bool]:
    if scope.role in (Role.HEAD, Role.MANAGER):
        return true()
    return col(TeamUpdate.team_id).in_(_ids(scope.member_team_ids))


def _project_filter(scope: AccessScope) -> ColumnElement[bool]:
    if scope.role in (Role.HEAD, Role.MANAGER):
        return true()
    if not scope.member_team_ids:
        return false()
    linked = select(TeamProject.project_id).where(
        col(TeamProject.team_id).in_(_ids(scope.member_team_ids))
    )
    return col(Project.id).in_(linked)


def _user_filter(scope: AccessScope) -> ColumnElement[bool]:
    if scope.role == Role.HEAD:
        return true()
    if scope.role == Role.MANAGER:
        return or_(col(User.id) == scope.user_id, col(User.manager_id) == scope.user_id)
    return col(User.id) == scope.user_id


_FILTERS: dict[type[SQLModel], Callable[[AccessScope], ColumnElement[bool]]] = {
    Task: _task_filter,
    Issue: _issue_filter,
    Team: _team_filter,
    TeamUpdate: _team_update_filter,
    Project: _project_filter,
    User: _user_filter,
}


def visibility_filter(
    scope: AccessScope,
    entity_type: type[SQLModel],
    *,
    status: Any | None = None,
) -> ColumnElement[bool]:
    """Return the WHERE clause restricting ``entity_type`` to visible rows.

    An explicit ``status`` is ANDed in for every role, HEAD included.
    """
    try:
        builder = _FILTERS[entity_type]
    except KeyError:
        raise ValueError(f"No visibility rules for {entity_type.__name__}") from None
    clause = builder(scope)
    if status is not None:
        clause = and_(clause, col(entity_type.status) == status)  # type: ignore[attr-defined]
    return clause
