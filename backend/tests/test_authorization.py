# ruff: noqa

from uuid import uuid4

import pytest
from sqlmodel import select

from teamdesk.core.auth import Principal, Role
from teamdesk.core.errors import AccessDenied
from teamdesk.models.org import User
from teamdesk.models.projects import Project
from teamdesk.models.teams import Team, TeamUpdate
from teamdesk.models.work import Issue, IssueStatus, Task, TaskStatus
from teamdesk.services import directory
from teamdesk.services.authorization import (
    AccessScope,
    Action,
    IssueTarget,
    ProjectTarget,
    TaskTarget,
    TeamTarget,
    TeamUpdateTarget,
    UserTarget,
    can_mutate,
    can_view,
    require_mutate,
    visibility_filter,
)
from teamdesk.services.projections import project_team_ids, task_team_ids

from factories import make_issue, make_project, make_task, make_team, make_update, make_user


def _scope(role: Role, **kwargs) -> AccessScope:
    return AccessScope(principal=Principal(id=uuid4(), role=role), **kwargs)


def _task(**kwargs) -> Task:
    kwargs.setdefault("creator_id", uuid4())
    return Task(title="t", **kwargs)


def test_employee_may_only_change_task_status():
    scope = _scope(Role.EMPLOYEE)
    task = _task(assignee_id=scope.user_id)
    target = TaskTarget(task)

    assert can_mutate(scope, target, Action.UPDATE, {"status": TaskStatus.FINISHED}) is True
    assert can_mutate(scope, target, Action.UPDATE, {"status": TaskStatus.FINISHED, "priority": "HIGH"}) is False
    assert can_mutate(scope, target, Action.UPDATE, {"assignee_id": uuid4()}) is False


def test_employee_cannot_update_task_they_cannot_see():
    scope = _scope(Role.EMPLOYEE)
    assert can_mutate(scope, TaskTarget(_task(assignee_id=uuid4())), Action.UPDATE, {"status": "FINISHED"}) is False


def test_employee_team_member_can_move_team_task_status():
    team_id = uuid4()
    scope = _scope(Role.EMPLOYEE, member_team_ids=frozenset({team_id}))
    target = TaskTarget(_task(), frozenset({team_id}))
    assert can_view(scope, target) is True
    assert can_mutate(scope, target, Action.UPDATE, {"status": "ONGOING"}) is True


def test_employee_never_creates_tasks():
    scope = _scope(Role.EMPLOYEE)
    assert can_mutate(scope, TaskTarget(_task(assignee_id=scope.user_id)), Action.CREATE) is False


def test_manager_creates_tasks_only_for_reports_and_led_teams():
    report, stranger, led, other_team = uuid4(), uuid4(), uuid4(), uuid4()
    scope = _scope(Role.MANAGER, employee_ids=frozenset({report}), led_team_ids=frozenset({led}))

    assert can_mutate(scope, TaskTarget(_task(assignee_id=report)), Action.CREATE) is True
    assert can_mutate(scope, TaskTarget(_task(assignee_id=scope.user_id)), Action.CREATE) is True
    assert can_mutate(scope, TaskTarget(_task(assignee_id=stranger)), Action.CREATE) is False
    assert can_mutate(scope, TaskTarget(_task(), frozenset({led})), Action.CREATE) is True
    assert can_mutate(scope, TaskTarget(_task(), frozenset({other_team})), Action.CREATE) is False


def test_manager_owns_tasks_they_created_or_hold():
    scope = _scope(Role.MANAGER)
    created = TaskTarget(_task(creator_id=scope.user_id, assignee_id=uuid4()))
    held = TaskTarget(_task(assignee_id=scope.user_id))

    for target in (created, held):
        assert can_view(scope, target) is True
        assert can_mutate(scope, target, Action.UPDATE, {"title": "new"}) is True
        assert can_mutate(scope, target, Action.DELETE) is True


def test_manager_cannot_reassign_task_to_stranger():
    scope = _scope(Role.MANAGER)
    target = TaskTarget(_task(creator_id=scope.user_id))
    assert can_mutate(scope, target, Action.UPDATE, {"assignee_id": uuid4()}) is False
    assert can_mutate(scope, target, Action.UPDATE, {"team_id": uuid4()}) is False


def test_task_delete_rules():
    assignee = uuid4()
    task = _task(assignee_id=assignee)
    employee = AccessScope(principal=Principal(id=assignee, role=Role.EMPLOYEE))
    manager = _scope(Role.MANAGER, employee_ids=frozenset({assignee}))

    assert can_mutate(employee, TaskTarget(task), Action.DELETE) is True
    assert can_mutate(manager, TaskTarget(task), Action.DELETE) is True
    assert can_mutate(_scope(Role.EMPLOYEE), TaskTarget(task), Action.DELETE) is False
    assert can_mutate(_scope(Role.MANAGER), TaskTarget(task), Action.DELETE) is False
    assert can_mutate(_scope(Role.HEAD), TaskTarget(task), Action.DELETE) is True


def test_only_head_mutates_projects():
    project = Project(name="p", start_date=None, creator_id=uuid4())
    for action in Action:
        assert can_mutate(_scope(Role.HEAD), ProjectTarget(project), action) is True
        assert can_mutate(_scope(Role.MANAGER), ProjectTarget(project), action) is False
        assert can_mutate(_scope(Role.EMPLOYEE), ProjectTarget(project), action) is False


def test_team_leader_can_edit_details_but_not_hand_over():
    scope = _scope(Role.EMPLOYEE)
    team = Team(name="core", leader_id=scope.user_id, creator_id=uuid4())

    assert can_mutate(scope, TeamTarget(team), Action.UPDATE, {"name": "renamed"}) is True
    assert can_mutate(scope, TeamTarget(team), Action.UPDATE, {"leader_id": uuid4()}) is False
    assert can_mutate(scope, TeamTarget(team), Action.DELETE) is False
    assert can_mutate(_scope(Role.HEAD), TeamTarget(team), Action.UPDATE, {"leader_id": uuid4()}) is True


def test_issue_status_follows_view_rules_but_text_belongs_to_creator():
    creator = uuid4()
    issue = Issue(title="i", description="d", creator_id=creator)
    manager = _scope(Role.MANAGER, employee_ids=frozenset({creator}))

    assert can_mutate(manager, IssueTarget(issue), Action.UPDATE, {"status": IssueStatus.RESOLVED}) is True
    assert can_mutate(manager, IssueTarget(issue), Action.UPDATE, {"title": "x"}) is False
    assert can_mutate(_scope(Role.MANAGER), IssueTarget(issue), Action.UPDATE, {"status": "CLOSED"}) is False
    assert can_mutate(_scope(Role.EMPLOYEE), IssueTarget(issue), Action.CREATE) is True
    assert can_mutate(manager, IssueTarget(issue), Action.DELETE) is False


def test_issue_has_no_team_visibility():
    team_id = uuid4()
    scope = _scope(Role.EMPLOYEE, member_team_ids=frozenset({team_id}))
    issue = Issue(title="i", description="d", creator_id=uuid4())
    assert can_view(scope, IssueTarget(issue)) is False


def test_team_update_edit_and_delete_rules():
    author, leader = uuid4(), uuid4()
    update = TeamUpdate(content="c", member_id=uuid4(), team_id=uuid4())
    target = TeamUpdateTarget(update, author_id=author, team_leader_id=leader)
    author_scope = AccessScope(principal=Principal(id=author, role=Role.EMPLOYEE))
    leader_scope = AccessScope(principal=Principal(id=leader, role=Role.EMPLOYEE))

    assert can_mutate(author_scope, target, Action.UPDATE, {"content": "new"}) is True
    assert can_mutate(author_scope, target, Action.UPDATE, {"content": "new", "team_id": uuid4()}) is False
    assert can_mutate(leader_scope, target, Action.UPDATE, {"content": "new"}) is False
    assert can_mutate(_scope(Role.HEAD), target, Action.UPDATE, {"content": "new"}) is False
    assert can_mutate(leader_scope, target, Action.DELETE) is True
    assert can_mutate(_scope(Role.HEAD), target, Action.DELETE) is True
    assert can_mutate(_scope(Role.MANAGER), target, Action.DELETE) is False


def test_team_update_create_requires_membership():
    team_id = uuid4()
    update = TeamUpdate(content="c", member_id=uuid4(), team_id=team_id)
    member = _scope(Role.EMPLOYEE, member_team_ids=frozenset({team_id}))
    target = TeamUpdateTarget(update, author_id=member.user_id)

    assert can_mutate(member, target, Action.CREATE) is True
    assert can_mutate(_scope(Role.HEAD), target, Action.CREATE) is False
    enrolled = TeamUpdateTarget(update, author_id=uuid4(), author_is_member=True)
    assert can_mutate(_scope(Role.HEAD), enrolled, Action.CREATE) is True


def test_manager_creates_only_reporting_employees():
    manager = _scope(Role.MANAGER)
    employee = User(name="e", email="e@example.com", role=Role.EMPLOYEE)
    peer = User(name="m", email="m@example.com", role=Role.MANAGER)
    elsewhere = User(name="x", email="x@example.com", role=Role.EMPLOYEE, manager_id=uuid4())

    assert can_mutate(manager, UserTarget(employee), Action.CREATE) is True
    assert can_mutate(manager, UserTarget(peer), Action.CREATE) is False
    assert can_mutate(manager, UserTarget(elsewhere), Action.CREATE) is False
    assert can_mutate(_scope(Role.EMPLOYEE), UserTarget(employee), Action.CREATE) is False


def test_require_mutate_raises_access_denied_with_message():
    scope = _scope(Role.EMPLOYEE)
    with pytest.raises(AccessDenied) as excinfo:
        require_mutate(scope, TaskTarget(_task()), Action.CREATE, message="Employees cannot create tasks")
    assert excinfo.value.message == "Employees cannot create tasks"
    assert excinfo.value.status_code == 403


def test_visibility_filter_rejects_unknown_entity():
    with pytest.raises(ValueError):
        visibility_filter(_scope(Role.HEAD), TaskStatus)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Filter / instance-check equivalence
# ---------------------------------------------------------------------------


@pytest.fixture
def world(session):
    head = make_user(session, Role.HEAD, name="head")
    m1 = make_user(session, Role.MANAGER, name="m1")
    m2 = make_user(session, Role.MANAGER, name="m2")
    e1 = make_user(session, manager=m1, name="e1")
    e2 = make_user(session, manager=m1, name="e2")
    e3 = make_user(session, manager=m2, name="e3")
    e4 = make_user(session, name="e4")

    p1 = make_project(session, head, name="p1")
    p2 = make_project(session, head, name="p2")
    make_project(session, head, name="p3")

    t1 = make_team(session, head, leader=m1, projects=(p1,), members=(e1,), name="t1")
    t2 = make_team(session, head, leader=e3, projects=(p2,), members=(e2,), name="t2")
    t3 = make_team(session, head, projects=(p1, p2), members=(e4,), name="t3")

    make_task(session, head, assignee=e1)
    make_task(session, m1, team=t2)
    make_task(session, head, assignee=e3, team=t1)
    make_task(session, m2, assignee=m2, status=TaskStatus.ONGOING)
    make_task(session, head, team=t3, status=TaskStatus.FINISHED)
    make_task(session, m1, assignee=e4, status=TaskStatus.FINISHED)

    for user in (head, m1, m2, e1, e2, e3, e4):
        make_issue(session, user)
    make_issue(session, e1, status=IssueStatus.CLOSED)

    for team, user in ((t1, e1), (t2, e2), (t3, e4), (t2, e3)):
        make_update(session, directory.find_team_member(session, user.id, team.id))

    return [head, m1, m2, e1, e2, e3, e4]


def _targets(session, model):
    rows = session.exec(select(model)).all()
    if model is Task:
        team_ids = task_team_ids(session, [r.id for r in rows])
        return [(r, TaskTarget(r, team_ids.get(r.id, frozenset()))) for r in rows]
    if model is Project:
        team_ids = project_team_ids(session, [r.id for r in rows])
        return [(r, ProjectTarget(r, team_ids.get(r.id, frozenset()))) for r in rows]
    wrap = {
        Issue: IssueTarget,
        Team: TeamTarget,
        User: UserTarget,
        TeamUpdate: lambda r: TeamUpdateTarget(r, author_id=uuid4()),
    }[model]
    return [(r, wrap(r)) for r in rows]


@pytest.mark.parametrize("model", [Task, Issue, Team, TeamUpdate, Project, User])
def test_visibility_filter_matches_can_view_for_every_user(session, world, model):
    targets = _targets(session, model)
    assert targets
    for user in world:
        scope = directory.resolve_scope(session, directory.principal_for_user(user))
        listed = {r.id for r in session.exec(select(model).where(visibility_filter(scope, model))).all()}
        swept = {r.id for r, target in targets if can_view(scope, target)}
        assert listed == swept, (user.name, model.__name__)


@pytest.mark.parametrize(
    ("model", "status"),
    [(Task, TaskStatus.FINISHED), (Task, TaskStatus.BACKLOG), (Issue, IssueStatus.OPEN)],
)
def test_visibility_filter_ands_status_for_every_user(session, world, model, status):
    targets = _targets(session, model)
    for user in world:
        scope = directory.resolve_scope(session, directory.principal_for_user(user))
        statement = select(model).where(visibility_filter(scope, model, status=status))
        listed = {r.id for r in session.exec(statement).all()}
        swept = {r.id for r, target in targets if r.status == status and can_view(scope, target)}
        assert listed == swept, (user.name, model.__name__)


def test_leaders_count_as_members_of_led_teams(session, world):
    m1 = world[1]
    scope = directory.resolve_scope(session, directory.principal_for_user(m1))
    assert scope.led_team_ids <= scope.member_team_ids
    assert scope.employee_ids == {world[3].id, world[4].id}


def test_head_scope_skips_relationship_lookups(session, world):
    scope = directory.resolve_scope(session, directory.principal_for_user(world[0]))
    assert scope.employee_ids == frozenset()
    assert scope.member_team_ids == frozenset()
