from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import SQLModel

from teamdesk.core.auth import Role


class UserCreate(SQLModel):
    name: str
    email: str
    role: Role = Role.EMPLOYEE
    manager_id: UUID | None = None


class UserManagerUpdate(SQLModel):
    manager_id: UUID | None = None


class UserRead(SQLModel):
    id: UUID
    name: str
    email: str
    role: Role
    manager_id: UUID | None = None
    created_at: datetime
