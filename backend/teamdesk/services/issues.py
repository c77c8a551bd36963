from __future__ import annotations

from uuid import UUID

from sqlmodel import Session, col, select

from teamdesk.core.auth import Principal
from teamdesk.core.errors import NotFound, ValidationError
from teamdesk.core.logging import get_logger
from teamdesk.core.time import utcnow
from teamdesk.db.crud import apply_updates, commit, write_step
from teamdesk.models.work import ACTIVE_ISSUE_STATUSES, Issue, IssueStatus, Task
from teamdesk.schemas.work import IssueCreate, IssueRead, IssueUpdate
from teamdesk.services import directory
from teamdesk.services.activity_log import record_activity
from teamdesk.services.authorization import (
    Action,
    IssueTarget,
    UserTarget,
    require_mutate,
    require_view,
    visibility_filter,
)
from teamdesk.services.projections import issue_reads

logger = get_logger(__name__)


def _get_issue_or_404(session: Session, issue_id: UUID) -> Issue:
    issue = session.get(Issue, issue_id)
    if issue is None:
        raise NotFound("Issue not found")
    return issue


def list_issues(
    session: Session,
    principal: Principal,
    *,
    status: IssueStatus | None = None,
    user_id: UUID | None = None,
) -> list[IssueRead]:
    scope = directory.resolve_scope(session, principal)
    statement = select(Issue).where(visibility_filter(scope, Issue, status=status))
    if user_id is not None:
        target_user = directory.find_user(session, user_id)
        if target_user is None:
            raise NotFound("User not found")
        require_view(
            scope,
            UserTarget(target_user),
            message="You can only view issues of yourself or your employees",
        )
        statement = statement.where(col(Issue.creator_id) == user_id)
        if status is None:
            statement = statement.where(col(Issue.status).in_(ACTIVE_ISSUE_STATUSES))
    statement = statement.order_by(col(Issue.created_at).desc())
    return issue_reads(session, session.exec(statement).all())


def list_active_for_user(session: Session, principal: Principal, user_id: UUID) -> list[IssueRead]:
    return list_issues(session, principal, user_id=user_id)


def get_issue(session: Session, principal: Principal, issue_id: UUID) -> IssueRead:
    issue = _get_issue_or_404(session, issue_id)
    scope = directory.resolve_scope(session, principal)
    require_view(scope, IssueTarget(issue))
    return issue_reads(session, [issue])[0]


def create_issue(session: Session, principal: Principal, payload: IssueCreate) -> IssueRead:
    if payload.task_id is not None and session.get(Task, payload.task_id) is None:
        raise NotFound("Task not found")
    scope = directory.resolve_scope(session, principal)
    issue = Issue(**payload.model_dump(), creator_id=principal.id)
    require_mutate(scope, IssueTarget(issue), Action.CREATE)
    if not issue.title.strip():
        raise ValidationError("Issue title is required")
    if not issue.description.strip():
        raise ValidationError("Issue description is required")
    issue.title = issue.title.strip()

    with write_step(session, "creating issue"):
        session.add(issue)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="issue",
        entity_id=issue.id,
        verb="created",
        payload={"title": issue.title, "task_id": issue.task_id},
    )
    commit(session, "creating issue")
    logger.info("issue.created", extra={"issue_id": str(issue.id)})
    session.refresh(issue)
    return issue_reads(session, [issue])[0]


def update_issue(session: Session, principal: Principal, issue_id: UUID, payload: IssueUpdate) -> IssueRead:
    """Patch an issue.

    Anyone who can see the issue may move its status; title and description
    belong to the creator.
    """
    issue = _get_issue_or_404(session, issue_id)
    updates = payload.model_dump(exclude_unset=True)
    scope = directory.resolve_scope(session, principal)
    require_mutate(scope, IssueTarget(issue), Action.UPDATE, updates)
    for field, value in updates.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{field} cannot be empty")

    apply_updates(issue, updates)
    issue.updated_at = utcnow()
    session.add(issue)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="issue",
        entity_id=issue.id,
        verb="updated",
        payload=updates,
    )
    commit(session, "updating issue")
    session.refresh(issue)
    return issue_reads(session, [issue])[0]


def delete_issue(session: Session, principal: Principal, issue_id: UUID) -> None:
    issue = _get_issue_or_404(session, issue_id)
    scope = directory.resolve_scope(session, principal)
    require_mutate(scope, IssueTarget(issue), Action.DELETE, message="Only HEAD can delete issues")
    session.delete(issue)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="issue",
        entity_id=issue_id,
        verb="deleted",
    )
    commit(session, "deleting issue")
    logger.info("issue.deleted", extra={"issue_id": str(issue_id)})
