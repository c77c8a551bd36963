from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import Field, SQLModel

from teamdesk.schemas.common import ProjectSummary, TaskSummary, TeamSummary, UserSummary


class TeamCreate(SQLModel):
    name: str
    description: str | None = None
    project_ids: list[UUID] = Field(default_factory=list)
    leader_id: UUID


class TeamPatch(SQLModel):
    name: str | None = None
    description: str | None = None
    leader_id: UUID | None = None


class TeamRead(SQLModel):
    id: UUID
    name: str
    description: str | None = None
    leader_id: UUID | None = None
    leader: UserSummary | None = None
    projects: list[ProjectSummary] = []
    member_count: int = 0
    task_count: int = 0
    created_at: datetime
    updated_at: datetime


class TeamMemberCreate(SQLModel):
    user_id: UUID


class TeamMemberRead(SQLModel):
    id: UUID
    team_id: UUID
    user: UserSummary
    joined_at: datetime
    update_count: int = 0


class TeamPermissions(SQLModel):
    is_leader: bool
    is_head: bool
    is_manager: bool
    is_member: bool
    can_manage_tasks: bool


class TeamTaskStats(SQLModel):
    total: int = 0
    completed: int = 0
    pending: int = 0
    in_progress: int = 0
    overdue: int = 0
    high_priority: int = 0


class TeamOverviewItem(SQLModel):
    id: UUID
    name: str
    description: str | None = None
    leader: UserSummary | None = None
    projects: list[ProjectSummary] = []
    member_count: int
    member_roles: dict[str, int] = {}
    task_stats: TeamTaskStats
    completion_percentage: int
    is_user_leader: bool
    is_user_member: bool


class TeamOverviewSummary(SQLModel):
    total_teams: int = 0
    teams_as_leader: int = 0
    teams_as_member: int = 0
    total_tasks: int = 0
    total_completed_tasks: int = 0
    total_overdue_tasks: int = 0
    average_completion_rate: int = 0


class TeamOverview(SQLModel):
    teams: list[TeamOverviewItem]
    summary: TeamOverviewSummary


class TeamUpdateCreate(SQLModel):
    content: str
    team_id: UUID
    team_task_id: UUID | None = None


class TeamUpdateEdit(SQLModel):
    content: str


class TeamUpdateRead(SQLModel):
    id: UUID
    content: str
    member_id: UUID
    author: UserSummary | None = None
    team: TeamSummary | None = None
    task: TaskSummary | None = None
    created_at: datetime
    updated_at: datetime


class UpdateRequestCreate(SQLModel):
    message: str
    member_id: UUID | None = None  # user id of a single member to ask


class NotificationRead(SQLModel):
    id: UUID
    user_id: UUID
    team_id: UUID | None = None
    message: str
    type: str
    read: bool
    created_at: datetime
