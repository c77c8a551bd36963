from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from teamdesk.core.time import utcnow


class TaskStatus(str, Enum):
    ONGOING = "ONGOING"
    FINISHED = "FINISHED"
    BACKLOG = "BACKLOG"


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class TaskType(str, Enum):
    INDIVIDUAL = "INDIVIDUAL"
    TEAM = "TEAM"


class IssueStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


# "What's on someone's plate" views only ever show these.
ACTIVE_TASK_STATUSES = (TaskStatus.ONGOING, TaskStatus.BACKLOG)
ACTIVE_ISSUE_STATUSES = (IssueStatus.OPEN, IssueStatus.IN_PROGRESS)


class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str
    description: str | None = None
    status: TaskStatus = Field(default=TaskStatus.BACKLOG, index=True)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    task_type: TaskType = Field(default=TaskType.INDIVIDUAL)

    creator_id: UUID = Field(foreign_key="users.id", index=True)
    assignee_id: UUID | None = Field(default=None, foreign_key="users.id", index=True)
    due_date: datetime | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class TeamTask(SQLModel, table=True):
    __tablename__ = "team_tasks"
    __table_args__ = (
        UniqueConstraint("task_id", "team_id", name="uq_team_tasks_task_id_team_id"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    task_id: UUID = Field(foreign_key="tasks.id", index=True)
    team_id: UUID = Field(foreign_key="teams.id", index=True)
    assigned_at: datetime = Field(default_factory=utcnow)


class Issue(SQLModel, table=True):
    __tablename__ = "issues"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str
    description: str
    status: IssueStatus = Field(default=IssueStatus.OPEN, index=True)

    creator_id: UUID = Field(foreign_key="users.id", index=True)
    task_id: UUID | None = Field(default=None, foreign_key="tasks.id", index=True)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
