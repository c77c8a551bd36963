from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import field_validator
from sqlmodel import SQLModel

from teamdesk.core.time import as_utc
from teamdesk.models.work import IssueStatus, TaskPriority, TaskStatus, TaskType
from teamdesk.schemas.common import TaskSummary, TeamSummary, UserSummary


class TaskCreate(SQLModel):
    title: str
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.BACKLOG
    assignee_id: UUID | None = None
    team_id: UUID | None = None
    due_date: datetime | None = None

    @field_validator("due_date")
    @classmethod
    def utc_due_date(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None


class TaskUpdate(SQLModel):
    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee_id: UUID | None = None
    team_id: UUID | None = None
    due_date: datetime | None = None

    @field_validator("due_date")
    @classmethod
    def utc_due_date(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None


class TaskRead(SQLModel):
    id: UUID
    title: str
    description: str | None = None
    status: TaskStatus
    priority: TaskPriority
    task_type: TaskType
    creator: UserSummary | None = None
    assignee: UserSummary | None = None
    teams: list[TeamSummary] = []
    # TEAM when assigned through a team, HIERARCHY otherwise.
    task_origin: str = "HIERARCHY"
    due_date: datetime | None = None
    created_at: datetime
    updated_at: datetime


class IssueCreate(SQLModel):
    title: str
    description: str
    task_id: UUID | None = None


class IssueUpdate(SQLModel):
    title: str | None = None
    description: str | None = None
    status: IssueStatus | None = None


class IssueRead(SQLModel):
    id: UUID
    title: str
    description: str
    status: IssueStatus
    creator: UserSummary | None = None
    task: TaskSummary | None = None
    created_at: datetime
    updated_at: datetime
