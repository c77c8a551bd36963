"""Update requests: a team's leader (or HEAD) nudging members for status."""

from __future__ import annotations

from uuid import UUID

from sqlmodel import Session, col, select

from teamdesk.core.auth import Principal
from teamdesk.core.errors import AccessDenied, ValidationError
from teamdesk.core.logging import get_logger
from teamdesk.db.crud import commit, write_step
from teamdesk.models.notifications import TASK_UPDATE_REQUESTED, Notification
from teamdesk.models.teams import Team, TeamMember
from teamdesk.schemas.teams import NotificationRead, UpdateRequestCreate
from teamdesk.services import directory
from teamdesk.services.activity_log import record_activity
from teamdesk.services.authorization import can_request_team_updates, can_view_update_requests
from teamdesk.services.team_members import get_team_or_404

logger = get_logger(__name__)


def _notification_read(notification: Notification) -> NotificationRead:
    return NotificationRead.model_validate(notification, from_attributes=True)


def resolve_recipients(session: Session, team: Team, requester_id: UUID, member_id: UUID | None) -> set[UUID]:
    member_ids = set(
        session.exec(select(TeamMember.user_id).where(col(TeamMember.team_id) == team.id)).all()
    )
    if member_id is not None:
        if member_id not in member_ids:
            raise ValidationError("User is not a member of this team")
        return {member_id}
    member_ids.discard(requester_id)
    return member_ids


def request_team_updates(
    session: Session,
    principal: Principal,
    team_id: UUID,
    payload: UpdateRequestCreate,
) -> list[NotificationRead]:
    team = get_team_or_404(session, team_id)
    scope = directory.resolve_scope(session, principal)
    if not can_request_team_updates(scope, team):
        logger.info("authz.update_request.denied", extra={"user_id": str(principal.id)})
        raise AccessDenied("Only the team leader or HEAD can request updates")
    text = payload.message.strip()
    if not text:
        raise ValidationError("Update request message is required")

    recipients = resolve_recipients(session, team, principal.id, payload.member_id)
    notifications = [
        Notification(
            user_id=user_id,
            team_id=team.id,
            message=f"{principal.name or 'Your team leader'} requested an update: {text}",
            type=TASK_UPDATE_REQUESTED,
        )
        for user_id in sorted(recipients)
    ]
    with write_step(session, "requesting team updates"):
        session.add_all(notifications)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="team",
        entity_id=team.id,
        verb="updates_requested",
        payload={"recipients": sorted(recipients)},
    )
    commit(session, "requesting team updates")
    logger.info(
        "team.updates.requested",
        extra={"team_id": str(team.id), "recipients": len(notifications)},
    )
    for notification in notifications:
        session.refresh(notification)
    return [_notification_read(n) for n in notifications]


def list_update_requests(session: Session, principal: Principal, team_id: UUID) -> list[NotificationRead]:
    team = get_team_or_404(session, team_id)
    scope = directory.resolve_scope(session, principal)
    if not can_view_update_requests(scope, team):
        raise AccessDenied("You are not a member of this team")
    statement = (
        select(Notification)
        .where(col(Notification.team_id) == team.id)
        .where(col(Notification.type) == TASK_UPDATE_REQUESTED)
        .order_by(col(Notification.created_at).desc())
    )
    return [_notification_read(n) for n in session.exec(statement).all()]
