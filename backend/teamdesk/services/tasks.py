from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, update
from sqlmodel import Session, col, select

from teamdesk.core.auth import Principal
from teamdesk.core.errors import NotFound, ValidationError
from teamdesk.core.logging import get_logger
from teamdesk.core.time import utcnow
from teamdesk.db.crud import apply_updates, commit, write_step
from teamdesk.models.org import User
from teamdesk.models.teams import Team, TeamUpdate
from teamdesk.models.work import (
    ACTIVE_TASK_STATUSES,
    Issue,
    Task,
    TaskStatus,
    TaskType,
    TeamTask,
)
from teamdesk.schemas.work import TaskCreate, TaskRead, TaskUpdate
from teamdesk.services import directory
from teamdesk.services.activity_log import record_activity
from teamdesk.services.authorization import (
    Action,
    TaskTarget,
    UserTarget,
    require_mutate,
    require_view,
    visibility_filter,
)
from teamdesk.services.projections import task_reads, task_team_ids

logger = get_logger(__name__)


def _get_task_or_404(session: Session, task_id: UUID) -> Task:
    task = session.get(Task, task_id)
    if task is None:
        raise NotFound("Task not found")
    return task


def _require_user(session: Session, user_id: UUID, message: str = "User not found") -> User:
    user = directory.find_user(session, user_id)
    if user is None:
        raise NotFound(message)
    return user


def _require_team(session: Session, team_id: UUID) -> Team:
    team = directory.find_team(session, team_id)
    if team is None:
        raise NotFound("Team not found")
    return team


def _target(session: Session, task: Task) -> TaskTarget:
    return TaskTarget(task, task_team_ids(session, [task.id]).get(task.id, frozenset()))


def list_tasks(
    session: Session,
    principal: Principal,
    *,
    status: TaskStatus | None = None,
    user_id: UUID | None = None,
) -> list[TaskRead]:
    """List tasks visible to ``principal``.

    With ``user_id`` the caller must be allowed to see that user (self, a
    direct report, or anyone for HEAD); the result is then the user's assigned
    tasks, restricted to active statuses unless ``status`` is given.
    """
    scope = directory.resolve_scope(session, principal)
    statement = select(Task).where(visibility_filter(scope, Task, status=status))
    if user_id is not None:
        target_user = _require_user(session, user_id)
        require_view(
            scope,
            UserTarget(target_user),
            message="You can only view tasks of yourself or your employees",
        )
        statement = statement.where(col(Task.assignee_id) == user_id)
        if status is None:
            statement = statement.where(col(Task.status).in_(ACTIVE_TASK_STATUSES))
    statement = statement.order_by(col(Task.created_at).desc())
    return task_reads(session, session.exec(statement).all())


def list_active_for_user(session: Session, principal: Principal, user_id: UUID) -> list[TaskRead]:
    return list_tasks(session, principal, user_id=user_id)


def get_task(session: Session, principal: Principal, task_id: UUID) -> TaskRead:
    task = _get_task_or_404(session, task_id)
    scope = directory.resolve_scope(session, principal)
    require_view(scope, _target(session, task))
    return task_reads(session, [task])[0]


def create_task(session: Session, principal: Principal, payload: TaskCreate) -> TaskRead:
    if payload.assignee_id is not None:
        _require_user(session, payload.assignee_id, "Assignee not found")
    if payload.team_id is not None:
        _require_team(session, payload.team_id)

    scope = directory.resolve_scope(session, principal)
    data = payload.model_dump(exclude={"team_id"})
    task = Task(**data, creator_id=principal.id)
    team_ids = frozenset({payload.team_id}) if payload.team_id is not None else frozenset()
    require_mutate(
        scope,
        TaskTarget(task, team_ids),
        Action.CREATE,
        message=(
            "Employees cannot create tasks"
            if principal.is_employee
            else "You can only assign tasks to your employees or teams you lead"
        ),
    )
    if not task.title.strip():
        raise ValidationError("Task title is required")
    task.title = task.title.strip()
    if payload.team_id is not None:
        task.task_type = TaskType.TEAM

    with write_step(session, "creating task"):
        session.add(task)
    if payload.team_id is not None:
        with write_step(session, "assigning task to team"):
            session.add(TeamTask(task_id=task.id, team_id=payload.team_id))
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="task",
        entity_id=task.id,
        verb="created",
        payload={"title": task.title, "assignee_id": task.assignee_id, "team_id": payload.team_id},
    )
    commit(session, "creating task")
    logger.info(
        "task.created",
        extra={"task_id": str(task.id), "team_id": str(payload.team_id) if payload.team_id else None},
    )
    session.refresh(task)
    return task_reads(session, [task])[0]


def update_task(session: Session, principal: Principal, task_id: UUID, payload: TaskUpdate) -> TaskRead:
    """Apply a partial update.

    Only the fields present in the request count; an EMPLOYEE sending
    anything besides ``status`` is refused outright, nothing applied.
    """
    task = _get_task_or_404(session, task_id)
    updates = payload.model_dump(exclude_unset=True)
    if updates.get("assignee_id") is not None:
        _require_user(session, updates["assignee_id"], "Assignee not found")
    if updates.get("team_id") is not None:
        _require_team(session, updates["team_id"])

    scope = directory.resolve_scope(session, principal)
    target = _target(session, task)
    require_mutate(
        scope,
        target,
        Action.UPDATE,
        updates,
        message=(
            "Employees can only update task status"
            if principal.is_employee
            else "You cannot update this task"
        ),
    )
    for required in ("title", "status", "priority"):
        if required in updates and updates[required] is None:
            raise ValidationError(f"{required} cannot be null")
    if "title" in updates:
        if not updates["title"].strip():
            raise ValidationError("Task title is required")
        updates["title"] = updates["title"].strip()

    new_team_id = updates.pop("team_id", None)
    apply_updates(task, updates)
    task.updated_at = utcnow()
    with write_step(session, "updating task"):
        session.add(task)
    if new_team_id is not None and target.team_ids != {new_team_id}:
        # A task belongs to at most one team; reassignment moves the link.
        with write_step(session, "reassigning task team"):
            session.exec(delete(TeamTask).where(col(TeamTask.task_id) == task.id))  # type: ignore[call-overload]
            session.add(TeamTask(task_id=task.id, team_id=new_team_id))
            task.task_type = TaskType.TEAM
            session.add(task)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="task",
        entity_id=task.id,
        verb="updated",
        payload={**updates, **({"team_id": new_team_id} if new_team_id is not None else {})},
    )
    commit(session, "updating task")
    session.refresh(task)
    return task_reads(session, [task])[0]


def delete_task(session: Session, principal: Principal, task_id: UUID) -> None:
    task = _get_task_or_404(session, task_id)
    scope = directory.resolve_scope(session, principal)
    require_mutate(scope, _target(session, task), Action.DELETE, message="You cannot delete this task")

    with write_step(session, "removing task dependents"):
        session.exec(delete(TeamUpdate).where(col(TeamUpdate.task_id) == task.id))  # type: ignore[call-overload]
        session.exec(delete(TeamTask).where(col(TeamTask.task_id) == task.id))  # type: ignore[call-overload]
        session.exec(
            update(Issue).where(col(Issue.task_id) == task.id).values(task_id=None)  # type: ignore[call-overload]
        )
    with write_step(session, "deleting task"):
        session.delete(task)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="task",
        entity_id=task_id,
        verb="deleted",
    )
    commit(session, "deleting task")
    logger.info("task.deleted", extra={"task_id": str(task_id)})
