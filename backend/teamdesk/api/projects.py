from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, status
from sqlmodel import Session

from teamdesk.api.deps import PRINCIPAL_DEP, SESSION_DEP
from teamdesk.core.auth import Principal
from teamdesk.models.projects import ProjectStatus
from teamdesk.schemas.common import OkResponse
from teamdesk.schemas.projects import ProjectCreate, ProjectRead, ProjectUpdate
from teamdesk.services import projects as project_service

router = APIRouter(prefix="/projects", tags=["projects"])

STATUS_QUERY = Query(default=None, alias="status")


@router.get("", response_model=list[ProjectRead])
def list_projects(
    status_filter: ProjectStatus | None = STATUS_QUERY,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> list[ProjectRead]:
    return project_service.list_projects(session, principal, status=status_filter)


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreate,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> ProjectRead:
    return project_service.create_project(session, principal, payload)


@router.get("/{project_id}", response_model=ProjectRead)
def get_project(
    project_id: UUID,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> ProjectRead:
    return project_service.get_project(session, principal, project_id)


@router.patch("/{project_id}", response_model=ProjectRead)
def update_project(
    project_id: UUID,
    payload: ProjectUpdate,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> ProjectRead:
    return project_service.update_project(session, principal, project_id, payload)


@router.delete("/{project_id}", response_model=OkResponse)
def delete_project(
    project_id: UUID,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> OkResponse:
    project_service.delete_project(session, principal, project_id)
    return OkResponse(message="Project deleted")
