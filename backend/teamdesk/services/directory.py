"""Read-only lookups over users and team relationships.

The authorization engine never queries the store itself; it works from an
:class:`~teamdesk.services.authorization.AccessScope` built here once per
request by :func:`resolve_scope`.
"""

from __future__ import annotations

from uuid import UUID

from sqlmodel import Session, col, select

from teamdesk.core.auth import Principal, Role
from teamdesk.models.org import User
from teamdesk.models.teams import Team, TeamMember
from teamdesk.services.authorization import AccessScope


def principal_for_user(user: User) -> Principal:
    return Principal(id=user.id, role=Role(user.role), name=user.name, email=user.email)


def find_user(session: Session, user_id: UUID) -> User | None:
    return session.get(User, user_id)


def find_users_by_manager(session: Session, manager_id: UUID) -> list[User]:
    statement = select(User).where(col(User.manager_id) == manager_id).order_by(col(User.name))
    return list(session.exec(statement).all())


def find_team(session: Session, team_id: UUID) -> Team | None:
    return session.get(Team, team_id)


def find_team_member(session: Session, user_id: UUID, team_id: UUID) -> TeamMember | None:
    statement = select(TeamMember).where(
        col(TeamMember.user_id) == user_id,
        col(TeamMember.team_id) == team_id,
    )
    return session.exec(statement).first()


def find_teams_led_by(session: Session, user_id: UUID) -> list[Team]:
    return list(session.exec(select(Team).where(col(Team.leader_id) == user_id)).all())


def find_teams_joined_by(session: Session, user_id: UUID) -> list[Team]:
    statement = (
        select(Team)
        .join(TeamMember, col(TeamMember.team_id) == col(Team.id))
        .where(col(TeamMember.user_id) == user_id)
    )
    return list(session.exec(statement).all())


def manager_of(session: Session, user_id: UUID) -> User | None:
    user = find_user(session, user_id)
    if user is None or user.manager_id is None:
        return None
    return find_user(session, user.manager_id)


def is_manager_of(session: Session, manager_id: UUID, user_id: UUID) -> bool:
    user = find_user(session, user_id)
    return user is not None and user.manager_id == manager_id


def is_team_leader(session: Session, user_id: UUID, team_id: UUID) -> bool:
    team = find_team(session, team_id)
    return team is not None and team.leader_id == user_id


def is_team_member(session: Session, user_id: UUID, team_id: UUID) -> bool:
    return find_team_member(session, user_id, team_id) is not None


def resolve_scope(session: Session, principal: Principal) -> AccessScope:
    """Precompute the relationship sets every permission rule reads from.

    HEAD needs none of them. Leaders count as members of the teams they lead
    even if their membership row is missing.
    """
    if principal.is_head:
        return AccessScope(principal=principal)

    employee_ids: frozenset[UUID] = frozenset()
    if principal.is_manager:
        employee_ids = frozenset(
            session.exec(select(User.id).where(col(User.manager_id) == principal.id)).all()
        )

    led_team_ids = frozenset(
        session.exec(select(Team.id).where(col(Team.leader_id) == principal.id)).all()
    )
    joined_team_ids = frozenset(
        session.exec(select(TeamMember.team_id).where(col(TeamMember.user_id) == principal.id)).all()
    )
    return AccessScope(
        principal=principal,
        employee_ids=employee_ids,
        led_team_ids=led_team_ids,
        member_team_ids=joined_team_ids | led_team_ids,
    )
