from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from teamdesk.core.time import utcnow


class Team(SQLModel, table=True):
    __tablename__ = "teams"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(index=True)
    description: str | None = None

    leader_id: UUID | None = Field(default=None, foreign_key="users.id", index=True)
    creator_id: UUID = Field(foreign_key="users.id")

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class TeamMember(SQLModel, table=True):
    __tablename__ = "team_members"
    __table_args__ = (
        UniqueConstraint("user_id", "team_id", name="uq_team_members_user_id_team_id"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    team_id: UUID = Field(foreign_key="teams.id", index=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    joined_at: datetime = Field(default_factory=utcnow)


class TeamUpdate(SQLModel, table=True):
    """A status note posted by a team member, optionally about a team task."""

    __tablename__ = "team_updates"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    content: str
    member_id: UUID = Field(foreign_key="team_members.id", index=True)
    team_id: UUID = Field(foreign_key="teams.id", index=True)
    task_id: UUID | None = Field(default=None, foreign_key="tasks.id", index=True)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
