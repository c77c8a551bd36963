from __future__ import annotations

from uuid import UUID

from sqlmodel import Session, col, select

from teamdesk.core.auth import Principal, Role
from teamdesk.core.errors import NotFound, ValidationError
from teamdesk.core.logging import get_logger
from teamdesk.db.crud import commit, write_step
from teamdesk.models.org import User
from teamdesk.schemas.org import UserCreate, UserManagerUpdate, UserRead
from teamdesk.services import directory
from teamdesk.services.activity_log import record_activity
from teamdesk.services.authorization import (
    Action,
    UserTarget,
    require_mutate,
    require_view,
    visibility_filter,
)
from teamdesk.services.projections import user_read

logger = get_logger(__name__)

REPORTING_ROLES = (Role.EMPLOYEE, Role.MANAGER)
MANAGING_ROLES = (Role.MANAGER, Role.HEAD)


def _get_user_or_404(session: Session, user_id: UUID, message: str = "User not found") -> User:
    user = directory.find_user(session, user_id)
    if user is None:
        raise NotFound(message)
    return user


def list_users(session: Session, principal: Principal) -> list[UserRead]:
    scope = directory.resolve_scope(session, principal)
    statement = select(User).where(visibility_filter(scope, User)).order_by(col(User.name))
    return [user_read(user) for user in session.exec(statement).all()]


def get_user(session: Session, principal: Principal, user_id: UUID) -> UserRead:
    user = _get_user_or_404(session, user_id)
    scope = directory.resolve_scope(session, principal)
    require_view(scope, UserTarget(user))
    return user_read(user)


def get_me(session: Session, principal: Principal) -> UserRead:
    return user_read(_get_user_or_404(session, principal.id))


def create_user(session: Session, principal: Principal, payload: UserCreate) -> UserRead:
    """Create a user account.

    A MANAGER may only create EMPLOYEEs, who then report to that manager.
    """
    if payload.manager_id is not None:
        _get_user_or_404(session, payload.manager_id, "Manager not found")
    scope = directory.resolve_scope(session, principal)
    user = User(
        name=payload.name.strip(),
        email=payload.email.strip().lower(),
        role=payload.role,
        manager_id=payload.manager_id,
    )
    require_mutate(
        scope,
        UserTarget(user),
        Action.CREATE,
        message=(
            "Only HEAD can create managers"
            if principal.is_manager
            else "You are not allowed to create users"
        ),
    )
    if principal.is_manager:
        user.manager_id = principal.id
    if not user.name:
        raise ValidationError("Name is required")
    if "@" not in user.email:
        raise ValidationError("A valid email is required")
    if user.manager_id is not None and user.role not in REPORTING_ROLES:
        raise ValidationError("Only EMPLOYEE or MANAGER users can have a manager")
    if session.exec(select(User.id).where(col(User.email) == user.email)).first() is not None:
        raise ValidationError("User with this email already exists")

    with write_step(session, "creating user"):
        session.add(user)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="user",
        entity_id=user.id,
        verb="created",
        payload={"role": user.role, "manager_id": user.manager_id},
    )
    commit(session, "creating user")
    logger.info("user.created", extra={"user_id": str(user.id), "role": user.role.value})
    session.refresh(user)
    return user_read(user)


def reassign_manager(
    session: Session,
    principal: Principal,
    user_id: UUID,
    payload: UserManagerUpdate,
) -> UserRead:
    user = _get_user_or_404(session, user_id)
    manager = (
        _get_user_or_404(session, payload.manager_id, "Manager not found")
        if payload.manager_id is not None
        else None
    )
    scope = directory.resolve_scope(session, principal)
    require_mutate(
        scope,
        UserTarget(user),
        Action.UPDATE,
        {"manager_id": payload.manager_id},
        message="Only HEAD can assign managers",
    )
    if user.role not in REPORTING_ROLES:
        raise ValidationError("Only EMPLOYEE or MANAGER users can have a manager")
    if manager is not None:
        if manager.role not in MANAGING_ROLES:
            raise ValidationError("The new manager must be a MANAGER or HEAD")
        if manager.id == user.id:
            raise ValidationError("A user cannot manage themselves")

    user.manager_id = manager.id if manager else None
    session.add(user)
    record_activity(
        session,
        actor_id=principal.id,
        entity_type="user",
        entity_id=user.id,
        verb="manager_changed",
        payload={"manager_id": user.manager_id},
    )
    commit(session, "assigning manager")
    logger.info(
        "user.manager.changed",
        extra={"user_id": str(user.id), "manager_id": str(user.manager_id) if user.manager_id else None},
    )
    session.refresh(user)
    return user_read(user)
