from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete
from sqlmodel import Session, col, select

from teamdesk.core.auth import Principal
from teamdesk.core.errors import NotFound, ValidationError
from teamdesk.core.logging import get_logger
from teamdesk.db.crud import commit, write_step
from teamdesk.models.org import User
from teamdesk.models.teams import Team, TeamMember, TeamUpdate
from teamdesk.schemas.teams import TeamMemberRead
from teamdesk.services import directory
from teamdesk.services.activity_log import record_activity
from teamdesk.services.authorization import Action, TeamTarget, require_mutate, require_view
from teamdesk.services.projections import team_member_reads

logger = get_logger(__name__)


def get_team_or_404(session: Session, team_id: UUID) -> Team:
    team = directory.find_team(session, team_id)
    if team is None:
        raise NotFound("Team not found")
    return team


def upsert_member(session: Session, team_id: UUID, user_id: UUID) -> TeamMember:
    """Return the membership row for ``(user_id, team_id)``, staging it if missing."""
    member = directory.find_team_member(session, user_id, team_id)
    if member is None:
        member = TeamMember(team_id=team_id, user_id=user_id)
        session.add(member)
    return member


def list_members(session: Session, principal: Principal, team_id: UUID) -> list[TeamMemberRead]:
    team = get_team_or_404(session, team_id)
    scope = directory.resolve_scope(session, principal)
    require_view(scope, TeamTarget(team), message="You are not a member of this team")
    members = session.exec(
        select(TeamMember)
        .where(col(TeamMember.team_id) == team.id)
        .order_by(col(TeamMember.joined_at).asc())
    ).all()
    return team_member_reads(session, members)


def add_member(session: Session, principal: Principal, team_id: UUID, user_id: UUID) -> TeamMemberRead:
    team = get_team_or_404(session, team_id)
    if session.get(User, user_id) is None:
        raise NotFound("User not found")
    scope = directory.resolve_scope(session, principal)
    require_mutate(
        scope,
        TeamTarget(team),
        Action.UPDATE,
        {"members": user_id},
        message="Only HEAD or the team leader can add members",
    )
    if directory.find_team_member(session, user_id, team.id) is not None:
        raise ValidationError("User is already a member of this team")

    member = TeamMember(team_id=team.id, user_id=user_id)
    with write_step(session, "adding team member"):
        session.add(member)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="team_member",
        entity_id=member.id,
        verb="created",
        payload={"team_id": team.id, "user_id": user_id},
    )
    commit(session, "adding team member")
    logger.info("team.member.added", extra={"team_id": str(team.id), "user_id": str(user_id)})
    session.refresh(member)
    return team_member_reads(session, [member])[0]


def remove_member(session: Session, principal: Principal, team_id: UUID, user_id: UUID) -> None:
    team = get_team_or_404(session, team_id)
    # Applies to every caller, HEAD included.
    if team.leader_id == user_id:
        raise ValidationError("Cannot remove the team leader. Assign a new leader first.")
    scope = directory.resolve_scope(session, principal)
    require_mutate(
        scope,
        TeamTarget(team),
        Action.UPDATE,
        {"members": user_id},
        message="Only HEAD or the team leader can remove members",
    )
    member = directory.find_team_member(session, user_id, team.id)
    if member is None:
        raise NotFound("User is not a member of this team")

    member_id = member.id
    session.exec(delete(TeamUpdate).where(col(TeamUpdate.member_id) == member_id))  # type: ignore[call-overload]
    session.delete(member)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="team_member",
        entity_id=member_id,
        verb="deleted",
        payload={"team_id": team.id, "user_id": user_id},
    )
    commit(session, "removing team member")
    logger.info("team.member.removed", extra={"team_id": str(team.id), "user_id": str(user_id)})
