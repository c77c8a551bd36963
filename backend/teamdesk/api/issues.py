from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, status
from sqlmodel import Session

from teamdesk.api.deps import PRINCIPAL_DEP, SESSION_DEP
from teamdesk.core.auth import Principal
from teamdesk.models.work import IssueStatus
from teamdesk.schemas.common import OkResponse
from teamdesk.schemas.work import IssueCreate, IssueRead, IssueUpdate
from teamdesk.services import issues as issue_service

router = APIRouter(prefix="/issues", tags=["issues"])

STATUS_QUERY = Query(default=None, alias="status")
USER_ID_QUERY = Query(default=None)


@router.get("", response_model=list[IssueRead])
def list_issues(
    status_filter: IssueStatus | None = STATUS_QUERY,
    user_id: UUID | None = USER_ID_QUERY,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> list[IssueRead]:
    return issue_service.list_issues(session, principal, status=status_filter, user_id=user_id)


@router.post("", response_model=IssueRead, status_code=status.HTTP_201_CREATED)
def create_issue(
    payload: IssueCreate,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> IssueRead:
    return issue_service.create_issue(session, principal, payload)


@router.get("/{issue_id}", response_model=IssueRead)
def get_issue(
    issue_id: UUID,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> IssueRead:
    return issue_service.get_issue(session, principal, issue_id)


@router.patch("/{issue_id}", response_model=IssueRead)
def update_issue(
    issue_id: UUID,
    payload: IssueUpdate,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> IssueRead:
    return issue_service.update_issue(session, principal, issue_id, payload)


@router.delete("/{issue_id}", response_model=OkResponse)
def delete_issue(
    issue_id: UUID,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> OkResponse:
    issue_service.delete_issue(session, principal, issue_id)
    return OkResponse(message="Issue deleted")
