from __future__ import annotations

from collections import Counter
from uuid import UUID

from sqlalchemy import delete, update
from sqlmodel import Session, col, select

from teamdesk.core.auth import Principal, Role
from teamdesk.core.errors import NotFound, ValidationError
from teamdesk.core.logging import get_logger
from teamdesk.core.time import as_utc, utcnow
from teamdesk.db.crud import apply_updates, commit, get_many_by_id, write_step
from teamdesk.models.notifications import Notification
from teamdesk.models.org import User
from teamdesk.models.projects import Project, TeamProject
from teamdesk.models.teams import Team, TeamMember, TeamUpdate
from teamdesk.models.work import Task, TaskPriority, TaskStatus, TaskType, TeamTask
from teamdesk.schemas.common import ProjectSummary
from teamdesk.schemas.teams import (
    TeamCreate,
    TeamOverview,
    TeamOverviewItem,
    TeamOverviewSummary,
    TeamPatch,
    TeamPermissions,
    TeamRead,
    TeamTaskStats,
)
from teamdesk.services import directory
from teamdesk.services.activity_log import record_activity
from teamdesk.services.authorization import (
    Action,
    TeamTarget,
    require_mutate,
    require_view,
    visibility_filter,
)
from teamdesk.services.projections import team_reads, user_summary
from teamdesk.services.team_members import get_team_or_404, upsert_member

logger = get_logger(__name__)

LEADER_ROLES = (Role.EMPLOYEE, Role.MANAGER)


def _require_leader_candidate(session: Session, leader_id: UUID) -> User:
    leader = session.get(User, leader_id)
    if leader is None:
        raise NotFound("Leader not found")
    if leader.role not in LEADER_ROLES:
        raise ValidationError("Leader must be an EMPLOYEE or MANAGER")
    return leader


def list_teams(
    session: Session,
    principal: Principal,
    *,
    project_id: UUID | None = None,
    mine: bool = False,
) -> list[TeamRead]:
    """List visible teams.

    ``mine`` narrows the list to teams the caller leads or belongs to (every
    team for HEAD).
    """
    scope = directory.resolve_scope(session, principal)
    statement = select(Team).where(visibility_filter(scope, Team))
    if project_id is not None:
        linked = select(TeamProject.team_id).where(col(TeamProject.project_id) == project_id)
        statement = statement.where(col(Team.id).in_(linked))
    if mine and not principal.is_head:
        statement = statement.where(col(Team.id).in_(sorted(scope.member_team_ids)))
    statement = statement.order_by(col(Team.created_at).desc())
    return team_reads(session, session.exec(statement).all())


def get_team(session: Session, principal: Principal, team_id: UUID) -> TeamRead:
    team = get_team_or_404(session, team_id)
    scope = directory.resolve_scope(session, principal)
    require_view(scope, TeamTarget(team), message="You are not a member of this team")
    return team_reads(session, [team])[0]


def create_team(session: Session, principal: Principal, payload: TeamCreate) -> TeamRead:
    """Create a team, link its projects and enroll its leader in one transaction."""
    scope = directory.resolve_scope(session, principal)
    project_ids = list(dict.fromkeys(payload.project_ids))
    if len(get_many_by_id(session, Project, project_ids)) != len(project_ids):
        raise NotFound("One or more projects not found")
    leader = session.get(User, payload.leader_id)
    if leader is None:
        raise NotFound("Leader not found")

    team = Team(
        name=payload.name.strip(),
        description=payload.description,
        leader_id=leader.id,
        creator_id=principal.id,
    )
    require_mutate(scope, TeamTarget(team), Action.CREATE, message="Only HEAD can create teams")
    if not team.name:
        raise ValidationError("Team name is required")
    if not project_ids:
        raise ValidationError("project_ids must contain at least one project")
    if leader.role not in LEADER_ROLES:
        raise ValidationError("Leader must be an EMPLOYEE or MANAGER")

    with write_step(session, "creating team"):
        session.add(team)
    with write_step(session, "linking team projects"):
        session.add_all(TeamProject(team_id=team.id, project_id=pid) for pid in project_ids)
    with write_step(session, "enrolling team leader"):
        session.add(TeamMember(team_id=team.id, user_id=leader.id))
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="team",
        entity_id=team.id,
        verb="created",
        payload={"name": team.name, "project_ids": project_ids, "leader_id": leader.id},
    )
    commit(session, "creating team")
    logger.info("team.created", extra={"team_id": str(team.id), "leader_id": str(leader.id)})
    session.refresh(team)
    return team_reads(session, [team])[0]


def update_team(session: Session, principal: Principal, team_id: UUID, payload: TeamPatch) -> TeamRead:
    team = get_team_or_404(session, team_id)
    updates = payload.model_dump(exclude_unset=True)
    new_leader_id = updates.get("leader_id")
    if new_leader_id is not None and session.get(User, new_leader_id) is None:
        raise NotFound("Leader not found")

    scope = directory.resolve_scope(session, principal)
    message = (
        "Only HEAD can change the team leader"
        if "leader_id" in updates
        else "Only HEAD or the team leader can update team details"
    )
    require_mutate(scope, TeamTarget(team), Action.UPDATE, updates, message=message)
    if "name" in updates:
        if updates["name"] is None or not updates["name"].strip():
            raise ValidationError("Team name is required")
        updates["name"] = updates["name"].strip()
    if new_leader_id is not None:
        _require_leader_candidate(session, new_leader_id)

    apply_updates(team, updates)
    team.updated_at = utcnow()
    with write_step(session, "updating team"):
        session.add(team)
        if new_leader_id is not None:
            # A leader is always a member too.
            upsert_member(session, team.id, new_leader_id)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="team",
        entity_id=team.id,
        verb="updated",
        payload=updates,
    )
    commit(session, "updating team")
    session.refresh(team)
    return team_reads(session, [team])[0]


def delete_team(session: Session, principal: Principal, team_id: UUID) -> None:
    team = get_team_or_404(session, team_id)
    scope = directory.resolve_scope(session, principal)
    require_mutate(scope, TeamTarget(team), Action.DELETE, message="Only HEAD can delete teams")

    affected_task_ids = list(
        session.exec(select(TeamTask.task_id).where(col(TeamTask.team_id) == team.id)).all()
    )
    session.exec(delete(TeamUpdate).where(col(TeamUpdate.team_id) == team.id))  # type: ignore[call-overload]
    session.exec(delete(TeamTask).where(col(TeamTask.team_id) == team.id))  # type: ignore[call-overload]
    session.exec(delete(TeamMember).where(col(TeamMember.team_id) == team.id))  # type: ignore[call-overload]
    session.exec(delete(TeamProject).where(col(TeamProject.team_id) == team.id))  # type: ignore[call-overload]
    session.exec(delete(Notification).where(col(Notification.team_id) == team.id))  # type: ignore[call-overload]
    if affected_task_ids:
        # Tasks left without any team fall back to individual assignment.
        still_linked = select(TeamTask.task_id)
        session.exec(
            update(Task)  # type: ignore[call-overload]
            .where(col(Task.id).in_(affected_task_ids))
            .where(col(Task.id).not_in(still_linked))
            .values(task_type=TaskType.INDIVIDUAL)
        )
    session.delete(team)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="team",
        entity_id=team_id,
        verb="deleted",
    )
    commit(session, "deleting team")
    logger.info("team.deleted", extra={"team_id": str(team_id)})


def team_permissions(session: Session, principal: Principal, team_id: UUID) -> TeamPermissions:
    team = get_team_or_404(session, team_id)
    scope = directory.resolve_scope(session, principal)
    require_view(scope, TeamTarget(team), message="You are not a member of this team")
    is_leader = team.leader_id == principal.id
    is_member = directory.is_team_member(session, principal.id, team.id)
    return TeamPermissions(
        is_leader=is_leader,
        is_head=principal.is_head,
        is_manager=principal.is_manager,
        is_member=is_member,
        can_manage_tasks=is_leader or principal.is_head or principal.is_manager,
    )


def team_overview(session: Session, principal: Principal) -> TeamOverview:
    """Per-team task statistics for the teams the caller leads or belongs to."""
    scope = directory.resolve_scope(session, principal)
    statement = select(Team)
    if not principal.is_head:
        statement = statement.where(col(Team.id).in_(sorted(scope.member_team_ids)))
    teams = session.exec(statement.order_by(col(Team.updated_at).desc())).all()
    team_ids = [team.id for team in teams]

    tasks_by_team: dict[UUID, list[Task]] = {tid: [] for tid in team_ids}
    members_by_team: dict[UUID, list[TeamMember]] = {tid: [] for tid in team_ids}
    projects_by_team: dict[UUID, list[ProjectSummary]] = {tid: [] for tid in team_ids}
    if team_ids:
        for team_id, task in session.exec(
            select(TeamTask.team_id, Task)
            .join(Task, col(Task.id) == col(TeamTask.task_id))
            .where(col(TeamTask.team_id).in_(team_ids))
        ).all():
            tasks_by_team[team_id].append(task)
        for member in session.exec(
            select(TeamMember).where(col(TeamMember.team_id).in_(team_ids))
        ).all():
            members_by_team[member.team_id].append(member)
        for team_id, project in session.exec(
            select(TeamProject.team_id, Project)
            .join(Project, col(Project.id) == col(TeamProject.project_id))
            .where(col(TeamProject.team_id).in_(team_ids))
        ).all():
            projects_by_team[team_id].append(
                ProjectSummary(id=project.id, name=project.name, status=project.status)
            )
    users = get_many_by_id(
        session,
        User,
        [m.user_id for ms in members_by_team.values() for m in ms] + [t.leader_id for t in teams],
    )

    now = utcnow()
    items: list[TeamOverviewItem] = []
    for team in teams:
        tasks = tasks_by_team[team.id]
        members = members_by_team[team.id]
        stats = TeamTaskStats(
            total=len(tasks),
            completed=sum(1 for t in tasks if t.status == TaskStatus.FINISHED),
            pending=sum(1 for t in tasks if t.status == TaskStatus.BACKLOG),
            in_progress=sum(1 for t in tasks if t.status == TaskStatus.ONGOING),
            overdue=sum(
                1
                for t in tasks
                if t.due_date is not None
                and as_utc(t.due_date) < now
                and t.status != TaskStatus.FINISHED
            ),
            high_priority=sum(
                1 for t in tasks if t.priority in (TaskPriority.HIGH, TaskPriority.URGENT)
            ),
        )
        roles = Counter(users[m.user_id].role.value for m in members if m.user_id in users)
        items.append(
            TeamOverviewItem(
                id=team.id,
                name=team.name,
                description=team.description,
                leader=user_summary(users.get(team.leader_id)) if team.leader_id else None,
                projects=projects_by_team[team.id],
                member_count=len(members),
                member_roles=dict(roles),
                task_stats=stats,
                completion_percentage=round(stats.completed * 100 / stats.total) if stats.total else 0,
                is_user_leader=team.leader_id == principal.id,
                is_user_member=any(m.user_id == principal.id for m in members),
            )
        )

    summary = TeamOverviewSummary(
        total_teams=len(items),
        teams_as_leader=sum(1 for i in items if i.is_user_leader),
        teams_as_member=sum(1 for i in items if i.is_user_member and not i.is_user_leader),
        total_tasks=sum(i.task_stats.total for i in items),
        total_completed_tasks=sum(i.task_stats.completed for i in items),
        total_overdue_tasks=sum(i.task_stats.overdue for i in items),
        average_completion_rate=(
            round(sum(i.completion_percentage for i in items) / len(items)) if items else 0
        ),
    )
    return TeamOverview(teams=items, summary=summary)
