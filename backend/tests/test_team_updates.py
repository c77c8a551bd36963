# ruff: noqa

from uuid import uuid4

import pytest
from sqlmodel import select

from teamdesk.core.auth import Role
from teamdesk.core.errors import AccessDenied, NotFound, ValidationError
from teamdesk.models.teams import TeamUpdate
from teamdesk.models.work import TeamTask
from teamdesk.schemas.teams import TeamUpdateCreate, TeamUpdateEdit
from teamdesk.services import directory
from teamdesk.services import team_updates as update_service

from factories import as_principal, make_task, make_team, make_update, make_user


def _team_task(session, task, team) -> TeamTask:
    return session.exec(
        select(TeamTask).where(TeamTask.task_id == task.id, TeamTask.team_id == team.id)
    ).one()


def test_member_posts_update_about_team_task(session):
    head = make_user(session, Role.HEAD)
    member = make_user(session)
    team = make_team(session, head, members=(member,))
    task = make_task(session, head, team=team)

    posted = update_service.create_team_update(
        session,
        as_principal(member),
        TeamUpdateCreate(content="halfway", team_id=team.id, team_task_id=_team_task(session, task, team).id),
    )

    assert posted.author is not None and posted.author.id == member.id
    assert posted.team is not None and posted.team.id == team.id
    assert posted.task is not None and posted.task.id == task.id


def test_team_task_from_another_team_is_rejected(session):
    head = make_user(session, Role.HEAD)
    member = make_user(session)
    team = make_team(session, head, members=(member,))
    elsewhere = make_team(session, head)
    task = make_task(session, head, team=elsewhere)

    with pytest.raises(ValidationError):
        update_service.create_team_update(
            session,
            as_principal(member),
            TeamUpdateCreate(content="x", team_id=team.id, team_task_id=_team_task(session, task, elsewhere).id),
        )
    assert session.exec(select(TeamUpdate)).all() == []


def test_unknown_team_task_is_not_found(session):
    head = make_user(session, Role.HEAD)
    member = make_user(session)
    team = make_team(session, head, members=(member,))
    with pytest.raises(NotFound):
        update_service.create_team_update(
            session,
            as_principal(member),
            TeamUpdateCreate(content="x", team_id=team.id, team_task_id=uuid4()),
        )


def test_head_enrolled_in_team_posts_update(session):
    head = make_user(session, Role.HEAD)
    team = make_team(session, head, leader=make_user(session), members=(head,))

    posted = update_service.create_team_update(
        session, as_principal(head), TeamUpdateCreate(content="status", team_id=team.id)
    )

    assert posted.author is not None and posted.author.id == head.id
    assert posted.member_id == directory.find_team_member(session, head.id, team.id).id


@pytest.mark.parametrize("role", [Role.HEAD, Role.MANAGER, Role.EMPLOYEE])
def test_non_members_cannot_post(session, role):
    head = make_user(session, Role.HEAD)
    team = make_team(session, head, leader=make_user(session))
    outsider = make_user(session, role)
    with pytest.raises(AccessDenied):
        update_service.create_team_update(
            session, as_principal(outsider), TeamUpdateCreate(content="x", team_id=team.id)
        )


def test_only_author_edits_update(session):
    head = make_user(session, Role.HEAD)
    leader = make_user(session)
    author = make_user(session)
    team = make_team(session, head, leader=leader, members=(author,))
    update = make_update(session, directory.find_team_member(session, author.id, team.id))

    edited = update_service.edit_team_update(
        session, as_principal(author), update.id, TeamUpdateEdit(content="done")
    )
    assert edited.content == "done"
    for other in (leader, head):
        with pytest.raises(AccessDenied):
            update_service.edit_team_update(session, as_principal(other), update.id, TeamUpdateEdit(content="x"))


def test_leader_deletes_member_update_but_peer_cannot(session):
    head = make_user(session, Role.HEAD)
    leader = make_user(session)
    author, peer = make_user(session), make_user(session)
    team = make_team(session, head, leader=leader, members=(author, peer))
    first = make_update(session, directory.find_team_member(session, author.id, team.id))

    with pytest.raises(AccessDenied):
        update_service.delete_team_update(session, as_principal(peer), first.id)
    update_service.delete_team_update(session, as_principal(leader), first.id)
    assert session.get(TeamUpdate, first.id) is None


def test_list_updates_is_scoped_to_member_teams(session):
    head = make_user(session, Role.HEAD)
    member = make_user(session)
    mine = make_team(session, head, members=(member,))
    other_member = make_user(session)
    other = make_team(session, head, members=(other_member,))
    make_update(session, directory.find_team_member(session, member.id, mine.id), content="mine")
    make_update(session, directory.find_team_member(session, other_member.id, other.id), content="other")

    assert [u.content for u in update_service.list_team_updates(session, as_principal(member))] == ["mine"]
    with pytest.raises(AccessDenied):
        update_service.list_team_updates(session, as_principal(member), team_id=other.id)
    by_author = update_service.list_team_updates(session, as_principal(head), user_id=other_member.id)
    assert [u.content for u in by_author] == ["other"]
    manager = make_user(session, Role.MANAGER)
    assert len(update_service.list_team_updates(session, as_principal(manager))) == 2
