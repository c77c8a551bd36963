from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from teamdesk.core.time import utcnow

TASK_UPDATE_REQUESTED = "TASK_UPDATE_REQUESTED"


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    team_id: UUID | None = Field(default=None, foreign_key="teams.id", index=True)
    message: str
    type: str = Field(default=TASK_UPDATE_REQUESTED, index=True)
    read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
