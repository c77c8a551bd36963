from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from teamdesk.core.auth import Role
from teamdesk.core.time import utcnow


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    role: Role = Field(default=Role.EMPLOYEE)

    # Only EMPLOYEE and MANAGER users report to someone.
    manager_id: UUID | None = Field(default=None, foreign_key="users.id", index=True)

    # Written by the external auth flow; never part of a response projection.
    password_hash: str | None = None

    created_at: datetime = Field(default_factory=utcnow)
