# ruff: noqa

from datetime import UTC, datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlmodel import select

from teamdesk.core.auth import Role
from teamdesk.core.errors import AccessDenied, NotFound, ValidationError
from teamdesk.core.time import as_utc, utcnow
from teamdesk.models.activity import ActivityEvent
from teamdesk.models.projects import Project, ProjectStatus, TeamProject
from teamdesk.models.teams import Team
from teamdesk.schemas.projects import ProjectCreate, ProjectUpdate
from teamdesk.services import projects as project_service

from factories import as_principal, make_project, make_team, make_user


def _payload(**overrides) -> ProjectCreate:
    data = {"name": "Apollo", "start_date": datetime(2026, 1, 5)}
    data.update(overrides)
    return ProjectCreate(**data)


def test_head_creates_project_and_logs_activity(session):
    head = make_user(session, Role.HEAD)
    created = project_service.create_project(session, as_principal(head), _payload())

    assert created.name == "Apollo"
    assert created.status == ProjectStatus.PLANNING
    assert created.creator is not None and created.creator.id == head.id
    events = session.exec(select(ActivityEvent).where(ActivityEvent.entity_id == created.id)).all()
    assert [e.verb for e in events] == ["created"]


@pytest.mark.parametrize("role", [Role.MANAGER, Role.EMPLOYEE])
def test_only_head_creates_projects(session, role):
    user = make_user(session, role)
    with pytest.raises(AccessDenied):
        project_service.create_project(session, as_principal(user), _payload())
    assert session.exec(select(Project)).all() == []


def test_create_project_rejects_blank_name_and_inverted_dates(session):
    head = make_user(session, Role.HEAD)
    with pytest.raises(ValidationError):
        project_service.create_project(session, as_principal(head), _payload(name="  "))
    with pytest.raises(ValidationError):
        project_service.create_project(
            session,
            as_principal(head),
            _payload(end_date=datetime(2026, 1, 1)),
        )


def test_dates_are_normalized_to_utc(session):
    head = make_user(session, Role.HEAD)
    start = datetime(2026, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    created = project_service.create_project(session, as_principal(head), _payload(start_date=start))
    assert as_utc(created.start_date) == datetime(2026, 3, 1, 10, 0, tzinfo=UTC)


def test_timestamps_are_written_timezone_aware(session):
    assert utcnow().tzinfo is UTC
    head = make_user(session, Role.HEAD)
    project = make_project(session, head)
    project.end_date = utcnow() + timedelta(days=30)
    session.add(project)
    session.commit()

    updated = project_service.update_project(
        session, as_principal(head), project.id, ProjectUpdate(status=ProjectStatus.ACTIVE)
    )
    assert updated.status == ProjectStatus.ACTIVE
    assert as_utc(updated.updated_at) >= as_utc(updated.created_at)


def test_employee_sees_only_projects_of_member_teams(session):
    head = make_user(session, Role.HEAD)
    employee = make_user(session)
    mine = make_project(session, head, name="mine")
    make_project(session, head, name="other")
    make_team(session, head, projects=(mine,), members=(employee,))

    listed = project_service.list_projects(session, as_principal(employee))
    assert [p.name for p in listed] == ["mine"]
    with pytest.raises(AccessDenied):
        other = session.exec(select(Project).where(Project.name == "other")).one()
        project_service.get_project(session, as_principal(employee), other.id)


def test_manager_sees_all_projects_filtered_by_status(session):
    head = make_user(session, Role.HEAD)
    manager = make_user(session, Role.MANAGER)
    active = make_project(session, head, name="active")
    active.status = ProjectStatus.ACTIVE
    session.add(active)
    session.commit()
    make_project(session, head, name="planning")

    assert len(project_service.list_projects(session, as_principal(manager))) == 2
    listed = project_service.list_projects(session, as_principal(manager), status=ProjectStatus.ACTIVE)
    assert [p.name for p in listed] == ["active"]


def test_update_project_applies_only_sent_fields(session):
    head = make_user(session, Role.HEAD)
    project = make_project(session, head)
    updated = project_service.update_project(
        session,
        as_principal(head),
        project.id,
        ProjectUpdate(status=ProjectStatus.ON_HOLD),
    )
    assert updated.status == ProjectStatus.ON_HOLD
    assert updated.name == "Apollo"


def test_update_missing_project_is_not_found(session):
    head = make_user(session, Role.HEAD)
    with pytest.raises(NotFound):
        project_service.update_project(session, as_principal(head), uuid4(), ProjectUpdate(name="x"))


def test_delete_project_keeps_teams(session):
    head = make_user(session, Role.HEAD)
    project = make_project(session, head)
    team = make_team(session, head, projects=(project,))

    project_service.delete_project(session, as_principal(head), project.id)

    assert session.get(Project, project.id) is None
    assert session.get(Team, team.id) is not None
    assert session.exec(select(TeamProject)).all() == []
