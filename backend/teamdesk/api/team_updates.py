from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, status
from sqlmodel import Session

from teamdesk.api.deps import PRINCIPAL_DEP, SESSION_DEP
from teamdesk.core.auth import Principal
from teamdesk.schemas.common import OkResponse
from teamdesk.schemas.teams import TeamUpdateCreate, TeamUpdateEdit, TeamUpdateRead
from teamdesk.services import team_updates as update_service

router = APIRouter(prefix="/team-updates", tags=["team-updates"])

TEAM_ID_QUERY = Query(default=None)
TASK_ID_QUERY = Query(default=None)
USER_ID_QUERY = Query(default=None)


@router.get("", response_model=list[TeamUpdateRead])
def list_team_updates(
    team_id: UUID | None = TEAM_ID_QUERY,
    task_id: UUID | None = TASK_ID_QUERY,
    user_id: UUID | None = USER_ID_QUERY,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> list[TeamUpdateRead]:
    return update_service.list_team_updates(
        session, principal, team_id=team_id, task_id=task_id, user_id=user_id
    )


@router.post("", response_model=TeamUpdateRead, status_code=status.HTTP_201_CREATED)
def create_team_update(
    payload: TeamUpdateCreate,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> TeamUpdateRead:
    return update_service.create_team_update(session, principal, payload)


@router.get("/{update_id}", response_model=TeamUpdateRead)
def get_team_update(
    update_id: UUID,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> TeamUpdateRead:
    return update_service.get_team_update(session, principal, update_id)


@router.patch("/{update_id}", response_model=TeamUpdateRead)
def edit_team_update(
    update_id: UUID,
    payload: TeamUpdateEdit,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> TeamUpdateRead:
    return update_service.edit_team_update(session, principal, update_id, payload)


@router.delete("/{update_id}", response_model=OkResponse)
def delete_team_update(
    update_id: UUID,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> OkResponse:
    update_service.delete_team_update(session, principal, update_id)
    return OkResponse(message="Update deleted")
