from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from sqlmodel import Session

from teamdesk.models.activity import ActivityEvent


def record_activity(
    session: Session,
    *,
    actor_id: UUID,
    entity_type: str,
    entity_id: UUID,
    verb: str,
    payload: dict[str, Any] | None = None,
) -> ActivityEvent:
    """Stage an activity row in the caller's transaction; the caller commits."""
    event = ActivityEvent(
        actor_id=actor_id,
        entity_type=entity_type,
        entity_id=entity_id,
        verb=verb,
        payload=jsonable_encoder(payload) if payload is not None else None,
    )
    session.add(event)
    return event
