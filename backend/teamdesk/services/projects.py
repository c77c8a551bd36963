from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete
from sqlmodel import Session, col, select

from teamdesk.core.auth import Principal
from teamdesk.core.errors import NotFound, ValidationError
from teamdesk.core.logging import get_logger
from teamdesk.core.time import as_utc, utcnow
from teamdesk.db.crud import apply_updates, commit, write_step
from teamdesk.models.projects import Project, ProjectStatus, TeamProject
from teamdesk.schemas.projects import ProjectCreate, ProjectRead, ProjectUpdate
from teamdesk.services import directory
from teamdesk.services.activity_log import record_activity
from teamdesk.services.authorization import (
    Action,
    ProjectTarget,
    require_mutate,
    require_view,
    visibility_filter,
)
from teamdesk.services.projections import project_reads, project_team_ids

logger = get_logger(__name__)


def _get_project_or_404(session: Session, project_id: UUID) -> Project:
    project = session.get(Project, project_id)
    if project is None:
        raise NotFound("Project not found")
    return project


def _target(session: Session, project: Project) -> ProjectTarget:
    return ProjectTarget(project, project_team_ids(session, [project.id]).get(project.id, frozenset()))


def _check_dates(project: Project) -> None:
    if project.end_date is not None and as_utc(project.end_date) < as_utc(project.start_date):
        raise ValidationError("end_date must not be before start_date")


def list_projects(
    session: Session,
    principal: Principal,
    *,
    status: ProjectStatus | None = None,
) -> list[ProjectRead]:
    scope = directory.resolve_scope(session, principal)
    statement = (
        select(Project)
        .where(visibility_filter(scope, Project, status=status))
        .order_by(col(Project.created_at).desc())
    )
    return project_reads(session, session.exec(statement).all())


def get_project(session: Session, principal: Principal, project_id: UUID) -> ProjectRead:
    project = _get_project_or_404(session, project_id)
    scope = directory.resolve_scope(session, principal)
    require_view(scope, _target(session, project))
    return project_reads(session, [project])[0]


def create_project(session: Session, principal: Principal, payload: ProjectCreate) -> ProjectRead:
    scope = directory.resolve_scope(session, principal)
    project = Project(**payload.model_dump(), creator_id=principal.id)
    require_mutate(scope, ProjectTarget(project), Action.CREATE, message="Only HEAD can create projects")
    if not project.name.strip():
        raise ValidationError("Project name is required")
    project.name = project.name.strip()
    _check_dates(project)

    with write_step(session, "creating project"):
        session.add(project)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="project",
        entity_id=project.id,
        verb="created",
        payload={"name": project.name},
    )
    commit(session, "creating project")
    logger.info("project.created", extra={"project_id": str(project.id)})
    session.refresh(project)
    return project_reads(session, [project])[0]


def update_project(
    session: Session,
    principal: Principal,
    project_id: UUID,
    payload: ProjectUpdate,
) -> ProjectRead:
    project = _get_project_or_404(session, project_id)
    scope = directory.resolve_scope(session, principal)
    updates = payload.model_dump(exclude_unset=True)
    require_mutate(
        scope, _target(session, project), Action.UPDATE, updates, message="Only HEAD can update projects"
    )
    for required in ("name", "start_date", "status"):
        if required in updates and updates[required] is None:
            raise ValidationError(f"{required} cannot be null")
    if "name" in updates and not updates["name"].strip():
        raise ValidationError("Project name is required")

    apply_updates(project, updates)
    _check_dates(project)
    project.updated_at = utcnow()
    session.add(project)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="project",
        entity_id=project.id,
        verb="updated",
        payload=updates,
    )
    commit(session, "updating project")
    session.refresh(project)
    return project_reads(session, [project])[0]


def delete_project(session: Session, principal: Principal, project_id: UUID) -> None:
    project = _get_project_or_404(session, project_id)
    scope = directory.resolve_scope(session, principal)
    require_mutate(scope, _target(session, project), Action.DELETE, message="Only HEAD can delete projects")

    # Teams outlive the project; only the links go.
    session.exec(delete(TeamProject).where(col(TeamProject.project_id) == project.id))  # type: ignore[call-overload]
    session.delete(project)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="project",
        entity_id=project_id,
        verb="deleted",
    )
    commit(session, "deleting project")
    logger.info("project.deleted", extra={"project_id": str(project_id)})
