from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import field_validator
from sqlmodel import SQLModel

from teamdesk.core.time import as_utc
from teamdesk.models.projects import ProjectStatus
from teamdesk.schemas.common import TeamSummary, UserSummary


class ProjectCreate(SQLModel):
    name: str
    description: str | None = None
    start_date: datetime
    end_date: datetime | None = None
    status: ProjectStatus = ProjectStatus.PLANNING

    @field_validator("start_date", "end_date")
    @classmethod
    def utc_dates(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None


class ProjectUpdate(SQLModel):
    name: str | None = None
    description: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    status: ProjectStatus | None = None

    @field_validator("start_date", "end_date")
    @classmethod
    def utc_dates(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None


class ProjectRead(SQLModel):
    id: UUID
    name: str
    description: str | None = None
    start_date: datetime
    end_date: datetime | None = None
    status: ProjectStatus
    creator: UserSummary | None = None
    teams: list[TeamSummary] = []
    created_at: datetime
    updated_at: datetime
