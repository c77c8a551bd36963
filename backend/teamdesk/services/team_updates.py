from __future__ import annotations

from uuid import UUID

from sqlmodel import Session, col, select

from teamdesk.core.auth import Principal
from teamdesk.core.errors import AccessDenied, NotFound, ValidationError
from teamdesk.core.logging import get_logger
from teamdesk.core.time import utcnow
from teamdesk.db.crud import commit, write_step
from teamdesk.models.teams import TeamMember, TeamUpdate
from teamdesk.models.work import TeamTask
from teamdesk.schemas.teams import TeamUpdateCreate, TeamUpdateEdit, TeamUpdateRead
from teamdesk.services import directory
from teamdesk.services.activity_log import record_activity
from teamdesk.services.authorization import (
    Action,
    TeamTarget,
    TeamUpdateTarget,
    require_mutate,
    require_view,
    visibility_filter,
)
from teamdesk.services.projections import team_update_reads
from teamdesk.services.team_members import get_team_or_404

logger = get_logger(__name__)


def _get_update_or_404(session: Session, update_id: UUID) -> TeamUpdate:
    update = session.get(TeamUpdate, update_id)
    if update is None:
        raise NotFound("Team update not found")
    return update


def _target(session: Session, update: TeamUpdate) -> TeamUpdateTarget:
    member = session.get(TeamMember, update.member_id)
    team = directory.find_team(session, update.team_id)
    return TeamUpdateTarget(
        update,
        author_id=member.user_id if member else None,  # type: ignore[arg-type]
        team_leader_id=team.leader_id if team else None,
    )


def list_team_updates(
    session: Session,
    principal: Principal,
    *,
    team_id: UUID | None = None,
    task_id: UUID | None = None,
    user_id: UUID | None = None,
) -> list[TeamUpdateRead]:
    """List visible updates, newest first, optionally narrowed by team, task or author."""
    scope = directory.resolve_scope(session, principal)
    statement = select(TeamUpdate).where(visibility_filter(scope, TeamUpdate))
    if team_id is not None:
        team = get_team_or_404(session, team_id)
        require_view(scope, TeamTarget(team), message="You are not a member of this team")
        statement = statement.where(col(TeamUpdate.team_id) == team_id)
    if task_id is not None:
        statement = statement.where(col(TeamUpdate.task_id) == task_id)
    if user_id is not None:
        authored = select(TeamMember.id).where(col(TeamMember.user_id) == user_id)
        statement = statement.where(col(TeamUpdate.member_id).in_(authored))
    statement = statement.order_by(col(TeamUpdate.created_at).desc())
    return team_update_reads(session, session.exec(statement).all())


def get_team_update(session: Session, principal: Principal, update_id: UUID) -> TeamUpdateRead:
    update = _get_update_or_404(session, update_id)
    scope = directory.resolve_scope(session, principal)
    require_view(scope, _target(session, update))
    return team_update_reads(session, [update])[0]


def create_team_update(
    session: Session,
    principal: Principal,
    payload: TeamUpdateCreate,
) -> TeamUpdateRead:
    """Post an update to a team the caller belongs to.

    The update is always filed under ``payload.team_id``. A referenced team
    task must be assigned to that same team.
    """
    team = get_team_or_404(session, payload.team_id)
    team_task: TeamTask | None = None
    if payload.team_task_id is not None:
        team_task = session.get(TeamTask, payload.team_task_id)
        if team_task is None:
            raise NotFound("Team task not found")

    scope = directory.resolve_scope(session, principal)
    member = directory.find_team_member(session, principal.id, team.id)
    update = TeamUpdate(
        content=payload.content.strip(),
        member_id=member.id if member else None,  # type: ignore[arg-type]
        team_id=team.id,
        task_id=team_task.task_id if team_task else None,
    )
    message = "You must be a member of this team to post updates"
    require_mutate(
        scope,
        TeamUpdateTarget(
            update,
            author_id=principal.id,
            team_leader_id=team.leader_id,
            author_is_member=member is not None,
        ),
        Action.CREATE,
        message=message,
    )
    if member is None:
        raise AccessDenied(message)
    if team_task is not None and team_task.team_id != team.id:
        raise ValidationError("Team task does not belong to this team")
    if not update.content:
        raise ValidationError("Update content is required")

    with write_step(session, "posting team update"):
        session.add(update)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="team_update",
        entity_id=update.id,
        verb="created",
        payload={"team_id": team.id, "task_id": update.task_id},
    )
    commit(session, "posting team update")
    logger.info("team.update.posted", extra={"team_id": str(team.id), "update_id": str(update.id)})
    session.refresh(update)
    return team_update_reads(session, [update])[0]


def edit_team_update(
    session: Session,
    principal: Principal,
    update_id: UUID,
    payload: TeamUpdateEdit,
) -> TeamUpdateRead:
    update = _get_update_or_404(session, update_id)
    changes = payload.model_dump(exclude_unset=True)
    scope = directory.resolve_scope(session, principal)
    require_mutate(
        scope,
        _target(session, update),
        Action.UPDATE,
        changes,
        message="Only the author can edit this update",
    )
    content = (changes.get("content") or "").strip()
    if not content:
        raise ValidationError("Update content is required")

    update.content = content
    update.updated_at = utcnow()
    session.add(update)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="team_update",
        entity_id=update.id,
        verb="updated",
    )
    commit(session, "editing team update")
    session.refresh(update)
    return team_update_reads(session, [update])[0]


def delete_team_update(session: Session, principal: Principal, update_id: UUID) -> None:
    update = _get_update_or_404(session, update_id)
    scope = directory.resolve_scope(session, principal)
    require_mutate(
        scope,
        _target(session, update),
        Action.DELETE,
        message="Only HEAD, the team leader or the author can delete this update",
    )
    session.delete(update)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="team_update",
        entity_id=update_id,
        verb="deleted",
    )
    commit(session, "deleting team update")
    logger.info("team.update.deleted", extra={"update_id": str(update_id)})

