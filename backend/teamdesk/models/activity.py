from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from teamdesk.core.time import utcnow


class ActivityEvent(SQLModel, table=True):
    __tablename__ = "activity_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    actor_id: UUID = Field(foreign_key="users.id", index=True)
    entity_type: str = Field(index=True)  # project | team | team_member | task | issue | team_update | user
    entity_id: UUID = Field(index=True)
    verb: str  # created | updated | deleted | manager_changed | updates_requested
    payload: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)
