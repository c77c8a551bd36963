"""Response shaping: join the minimal related fields onto records.

Related rows are fetched in bulk per call, never per record.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from uuid import UUID

from sqlalchemy import func
from sqlmodel import Session, col, select

from teamdesk.db.crud import get_many_by_id
from teamdesk.models.org import User
from teamdesk.models.projects import Project, TeamProject
from teamdesk.models.teams import Team, TeamMember, TeamUpdate
from teamdesk.models.work import Issue, Task, TeamTask
from teamdesk.schemas.common import ProjectSummary, TaskSummary, TeamSummary, UserSummary
from teamdesk.schemas.org import UserRead
from teamdesk.schemas.projects import ProjectRead
from teamdesk.schemas.teams import TeamMemberRead, TeamRead, TeamUpdateRead
from teamdesk.schemas.work import IssueRead, TaskRead


def user_summary(user: User | None) -> UserSummary | None:
    if user is None:
        return None
    return UserSummary(id=user.id, name=user.name, email=user.email, role=user.role)


def user_read(user: User) -> UserRead:
    return UserRead(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        manager_id=user.manager_id,
        created_at=user.created_at,
    )


def task_team_ids(session: Session, task_ids: Iterable[UUID]) -> dict[UUID, frozenset[UUID]]:
    wanted = sorted(set(task_ids))
    if not wanted:
        return {}
    rows = session.exec(
        select(TeamTask.task_id, TeamTask.team_id).where(col(TeamTask.task_id).in_(wanted))
    ).all()
    grouped: dict[UUID, set[UUID]] = defaultdict(set)
    for task_id, team_id in rows:
        grouped[task_id].add(team_id)
    return {task_id: frozenset(grouped.get(task_id, ())) for task_id in wanted}


def project_team_ids(session: Session, project_ids: Iterable[UUID]) -> dict[UUID, frozenset[UUID]]:
    wanted = sorted(set(project_ids))
    if not wanted:
        return {}
    rows = session.exec(
        select(TeamProject.project_id, TeamProject.team_id).where(
            col(TeamProject.project_id).in_(wanted)
        )
    ).all()
    grouped: dict[UUID, set[UUID]] = defaultdict(set)
    for project_id, team_id in rows:
        grouped[project_id].add(team_id)
    return {project_id: frozenset(grouped.get(project_id, ())) for project_id in wanted}


def _counts(session: Session, column, team_ids: Sequence[UUID]) -> dict[UUID, int]:  # type: ignore[no-untyped-def]
    if not team_ids:
        return {}
    rows = session.exec(
        select(column, func.count()).where(column.in_(team_ids)).group_by(column)
    ).all()
    return {team_id: int(count) for team_id, count in rows}


def task_reads(session: Session, tasks: Sequence[Task]) -> list[TaskRead]:
    team_ids_by_task = task_team_ids(session, [t.id for t in tasks])
    all_team_ids = {tid for ids in team_ids_by_task.values() for tid in ids}
    teams = get_many_by_id(session, Team, all_team_ids)
    users = get_many_by_id(
        session, User, [t.creator_id for t in tasks] + [t.assignee_id for t in tasks]
    )
    out: list[TaskRead] = []
    for task in tasks:
        task_teams = sorted(
            (teams[tid] for tid in team_ids_by_task.get(task.id, ()) if tid in teams),
            key=lambda team: team.name,
        )
        out.append(
            TaskRead(
                id=task.id,
                title=task.title,
                description=task.description,
                status=task.status,
                priority=task.priority,
                task_type=task.task_type,
                creator=user_summary(users.get(task.creator_id)),
                assignee=user_summary(users.get(task.assignee_id)) if task.assignee_id else None,
                teams=[TeamSummary(id=team.id, name=team.name) for team in task_teams],
                task_origin="TEAM" if task_teams else "HIERARCHY",
                due_date=task.due_date,
                created_at=task.created_at,
                updated_at=task.updated_at,
            )
        )
    return out


def issue_reads(session: Session, issues: Sequence[Issue]) -> list[IssueRead]:
    users = get_many_by_id(session, User, [i.creator_id for i in issues])
    tasks = get_many_by_id(session, Task, [i.task_id for i in issues])
    out: list[IssueRead] = []
    for issue in issues:
        task = tasks.get(issue.task_id) if issue.task_id else None
        out.append(
            IssueRead(
                id=issue.id,
                title=issue.title,
                description=issue.description,
                status=issue.status,
                creator=user_summary(users.get(issue.creator_id)),
                task=TaskSummary(id=task.id, title=task.title, status=task.status) if task else None,
                created_at=issue.created_at,
                updated_at=issue.updated_at,
            )
        )
    return out


def team_reads(session: Session, teams: Sequence[Team]) -> list[TeamRead]:
    team_ids = [t.id for t in teams]
    leaders = get_many_by_id(session, User, [t.leader_id for t in teams])
    member_counts = _counts(session, col(TeamMember.team_id), team_ids)
    task_counts = _counts(session, col(TeamTask.team_id), team_ids)

    projects_by_team: dict[UUID, list[ProjectSummary]] = defaultdict(list)
    if team_ids:
        rows = session.exec(
            select(TeamProject.team_id, Project)
            .join(Project, col(Project.id) == col(TeamProject.project_id))
            .where(col(TeamProject.team_id).in_(team_ids))
            .order_by(col(Project.name))
        ).all()
        for team_id, project in rows:
            projects_by_team[team_id].append(
                ProjectSummary(id=project.id, name=project.name, status=project.status)
            )

    return [
        TeamRead(
            id=team.id,
            name=team.name,
            description=team.description,
            leader_id=team.leader_id,
            leader=user_summary(leaders.get(team.leader_id)) if team.leader_id else None,
            projects=projects_by_team.get(team.id, []),
            member_count=member_counts.get(team.id, 0),
            task_count=task_counts.get(team.id, 0),
            created_at=team.created_at,
            updated_at=team.updated_at,
        )
        for team in teams
    ]


def project_reads(session: Session, projects: Sequence[Project]) -> list[ProjectRead]:
    creators = get_many_by_id(session, User, [p.creator_id for p in projects])
    team_ids_by_project = project_team_ids(session, [p.id for p in projects])
    teams = get_many_by_id(session, Team, {tid for ids in team_ids_by_project.values() for tid in ids})
    out: list[ProjectRead] = []
    for project in projects:
        project_teams = sorted(
            (teams[tid] for tid in team_ids_by_project.get(project.id, ()) if tid in teams),
            key=lambda team: team.name,
        )
        out.append(
            ProjectRead(
                id=project.id,
                name=project.name,
                description=project.description,
                start_date=project.start_date,
                end_date=project.end_date,
                status=project.status,
                creator=user_summary(creators.get(project.creator_id)),
                teams=[TeamSummary(id=team.id, name=team.name) for team in project_teams],
                created_at=project.created_at,
                updated_at=project.updated_at,
            )
        )
    return out


def team_member_reads(session: Session, members: Sequence[TeamMember]) -> list[TeamMemberRead]:
    users = get_many_by_id(session, User, [m.user_id for m in members])
    member_ids = [m.id for m in members]
    update_counts = _counts(session, col(TeamUpdate.member_id), member_ids)
    return [
        TeamMemberRead(
            id=member.id,
            team_id=member.team_id,
            user=user_summary(users[member.user_id]),
            joined_at=member.joined_at,
            update_count=update_counts.get(member.id, 0),
        )
        for member in members
        if member.user_id in users
    ]


def team_update_reads(session: Session, updates: Sequence[TeamUpdate]) -> list[TeamUpdateRead]:
    members = get_many_by_id(session, TeamMember, [u.member_id for u in updates])
    users = get_many_by_id(session, User, [m.user_id for m in members.values()])
    teams = get_many_by_id(session, Team, [u.team_id for u in updates])
    tasks = get_many_by_id(session, Task, [u.task_id for u in updates])
    out: list[TeamUpdateRead] = []
    for update in updates:
        member = members.get(update.member_id)
        team = teams.get(update.team_id)
        task = tasks.get(update.task_id) if update.task_id else None
        out.append(
            TeamUpdateRead(
                id=update.id,
                content=update.content,
                member_id=update.member_id,
                author=user_summary(users.get(member.user_id)) if member else None,
                team=TeamSummary(id=team.id, name=team.name) if team else None,
                task=TaskSummary(id=task.id, title=task.title, status=task.status) if task else None,
                created_at=update.created_at,
                updated_at=update.updated_at,
            )
        )
    return out
