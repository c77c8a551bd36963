from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from teamdesk.core.time import utcnow


class ProjectStatus(str, Enum):
    PLANNING = "PLANNING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"


class Project(SQLModel, table=True):
    __tablename__ = "projects"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(index=True)
    description: str | None = None
    start_date: datetime
    end_date: datetime | None = None
    status: ProjectStatus = Field(default=ProjectStatus.PLANNING)

    creator_id: UUID = Field(foreign_key="users.id")

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class TeamProject(SQLModel, table=True):
    """Many-to-many link: a team works on one or more projects."""

    __tablename__ = "team_projects"

    team_id: UUID = Field(foreign_key="teams.id", primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", primary_key=True, index=True)
