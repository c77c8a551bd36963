from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, status
from sqlmodel import Session

from teamdesk.api.deps import PRINCIPAL_DEP, SESSION_DEP
from teamdesk.core.auth import Principal
from teamdesk.schemas.common import OkResponse
from teamdesk.schemas.teams import (
    NotificationRead,
    TeamCreate,
    TeamMemberCreate,
    TeamMemberRead,
    TeamOverview,
    TeamPatch,
    TeamPermissions,
    TeamRead,
    UpdateRequestCreate,
)
from teamdesk.services import notifications as notification_service
from teamdesk.services import team_members as member_service
from teamdesk.services import teams as team_service

router = APIRouter(prefix="/teams", tags=["teams"])

PROJECT_ID_QUERY = Query(default=None)
MINE_QUERY = Query(default=False)


@router.get("", response_model=list[TeamRead])
def list_teams(
    project_id: UUID | None = PROJECT_ID_QUERY,
    mine: bool = MINE_QUERY,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> list[TeamRead]:
    return team_service.list_teams(session, principal, project_id=project_id, mine=mine)


@router.post("", response_model=TeamRead, status_code=status.HTTP_201_CREATED)
def create_team(
    payload: TeamCreate,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> TeamRead:
    return team_service.create_team(session, principal, payload)


@router.get("/overview", response_model=TeamOverview)
def team_overview(
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> TeamOverview:
    return team_service.team_overview(session, principal)


@router.get("/{team_id}", response_model=TeamRead)
def get_team(
    team_id: UUID,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> TeamRead:
    return team_service.get_team(session, principal, team_id)


@router.patch("/{team_id}", response_model=TeamRead)
def update_team(
    team_id: UUID,
    payload: TeamPatch,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> TeamRead:
    return team_service.update_team(session, principal, team_id, payload)


@router.delete("/{team_id}", response_model=OkResponse)
def delete_team(
    team_id: UUID,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> OkResponse:
    team_service.delete_team(session, principal, team_id)
    return OkResponse(message="Team deleted")


@router.get("/{team_id}/permissions", response_model=TeamPermissions)
def team_permissions(
    team_id: UUID,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> TeamPermissions:
    return team_service.team_permissions(session, principal, team_id)


@router.get("/{team_id}/members", response_model=list[TeamMemberRead])
def list_members(
    team_id: UUID,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> list[TeamMemberRead]:
    return member_service.list_members(session, principal, team_id)


@router.post(
    "/{team_id}/members",
    response_model=TeamMemberRead,
    status_code=status.HTTP_201_CREATED,
)
def add_member(
    team_id: UUID,
    payload: TeamMemberCreate,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> TeamMemberRead:
    return member_service.add_member(session, principal, team_id, payload.user_id)


@router.delete("/{team_id}/members/{user_id}", response_model=OkResponse)
def remove_member(
    team_id: UUID,
    user_id: UUID,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> OkResponse:
    member_service.remove_member(session, principal, team_id, user_id)
    return OkResponse(message="Member removed")


@router.get("/{team_id}/update-requests", response_model=list[NotificationRead])
def list_update_requests(
    team_id: UUID,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> list[NotificationRead]:
    return notification_service.list_update_requests(session, principal, team_id)


@router.post(
    "/{team_id}/update-requests",
    response_model=list[NotificationRead],
    status_code=status.HTTP_201_CREATED,
)
def request_updates(
    team_id: UUID,
    payload: UpdateRequestCreate,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> list[NotificationRead]:
    return notification_service.request_team_updates(session, principal, team_id, payload)
