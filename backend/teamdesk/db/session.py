from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from teamdesk.core.config import settings


def _build_engine(url: str) -> Engine:
    connect_args: dict[str, object] = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(url, echo=settings.db_echo, connect_args=connect_args)


engine = _build_engine(settings.database_url)


def init_db(bind: Engine | None = None) -> None:
    """Create missing tables. Deployments run the Alembic migrations instead."""
    import teamdesk.models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


def get_session() -> Iterator[Session]:
    with Session(engine) as session:
        yield session
