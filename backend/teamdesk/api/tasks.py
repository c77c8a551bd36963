from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, status
from sqlmodel import Session

from teamdesk.api.deps import PRINCIPAL_DEP, SESSION_DEP
from teamdesk.core.auth import Principal
from teamdesk.models.work import TaskStatus
from teamdesk.schemas.common import OkResponse
from teamdesk.schemas.work import TaskCreate, TaskRead, TaskUpdate
from teamdesk.services import tasks as task_service

router = APIRouter(prefix="/tasks", tags=["tasks"])

STATUS_QUERY = Query(default=None, alias="status")
USER_ID_QUERY = Query(default=None)


@router.get("", response_model=list[TaskRead])
def list_tasks(
    status_filter: TaskStatus | None = STATUS_QUERY,
    user_id: UUID | None = USER_ID_QUERY,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> list[TaskRead]:
    return task_service.list_tasks(session, principal, status=status_filter, user_id=user_id)


@router.post("", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> TaskRead:
    return task_service.create_task(session, principal, payload)


@router.get("/{task_id}", response_model=TaskRead)
def get_task(
    task_id: UUID,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> TaskRead:
    return task_service.get_task(session, principal, task_id)


@router.patch("/{task_id}", response_model=TaskRead)
def update_task(
    task_id: UUID,
    payload: TaskUpdate,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> TaskRead:
    return task_service.update_task(session, principal, task_id, payload)


@router.delete("/{task_id}", response_model=OkResponse)
def delete_task(
    task_id: UUID,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> OkResponse:
    task_service.delete_task(session, principal, task_id)
    return OkResponse(message="Task deleted successfully")
