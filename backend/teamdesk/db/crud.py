from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, col, select

from teamdesk.core.errors import Internal, ValidationError
from teamdesk.core.logging import get_logger

ModelT = TypeVar("ModelT", bound=SQLModel)

logger = get_logger(__name__)


def get_by_id(session: Session, model: type[ModelT], obj_id: UUID) -> ModelT | None:
    return session.get(model, obj_id)


def get_many_by_id(session: Session, model: type[ModelT], ids: Iterable[UUID | None]) -> dict[UUID, ModelT]:
    wanted = sorted({i for i in ids if i is not None})
    if not wanted:
        return {}
    rows = session.exec(select(model).where(col(model.id).in_(wanted))).all()  # type: ignore[attr-defined]
    return {row.id: row for row in rows}  # type: ignore[attr-defined]


def apply_updates(obj: ModelT, updates: dict[str, Any]) -> ModelT:
    for key, value in updates.items():
        setattr(obj, key, value)
    return obj


@contextmanager
def write_step(session: Session, step: str) -> Iterator[None]:
    """Run one sub-step of a write and flush it.

    On failure the whole transaction is rolled back. Constraint violations are
    the caller's fault (ValidationError); anything else is Internal and names
    the step that failed.
    """
    try:
        yield
        session.flush()
    except IntegrityError as exc:
        session.rollback()
        logger.info("db.write.constraint", extra={"step": step})
        raise ValidationError(f"{step} violates constraints") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("db.write.failed", extra={"step": step})
        raise Internal(f"Failed while {step}") from exc


def commit(session: Session, step: str) -> None:
    with write_step(session, step):
        session.commit()
