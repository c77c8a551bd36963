from __future__ import annotations

from uuid import UUID

from sqlmodel import SQLModel

from teamdesk.core.auth import Role


class OkResponse(SQLModel):
    ok: bool = True
    message: str | None = None


class UserSummary(SQLModel):
    id: UUID
    name: str
    email: str
    role: Role


class TeamSummary(SQLModel):
    id: UUID
    name: str


class ProjectSummary(SQLModel):
    id: UUID
    name: str
    status: str


class TaskSummary(SQLModel):
    id: UUID
    title: str
    status: str
