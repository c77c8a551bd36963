from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, status
from sqlmodel import Session

from teamdesk.api.deps import PRINCIPAL_DEP, SESSION_DEP
from teamdesk.core.auth import Principal
from teamdesk.schemas.org import UserCreate, UserManagerUpdate, UserRead
from teamdesk.services import users as user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserRead])
def list_users(
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> list[UserRead]:
    return user_service.list_users(session, principal)


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> UserRead:
    return user_service.create_user(session, principal, payload)


@router.get("/me", response_model=UserRead)
def get_me(
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> UserRead:
    return user_service.get_me(session, principal)


@router.get("/{user_id}", response_model=UserRead)
def get_user(
    user_id: UUID,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> UserRead:
    return user_service.get_user(session, principal, user_id)


@router.patch("/{user_id}", response_model=UserRead)
def reassign_manager(
    user_id: UUID,
    payload: UserManagerUpdate,
    session: Session = SESSION_DEP,
    principal: Principal = PRINCIPAL_DEP,
) -> UserRead:
    return user_service.reassign_manager(session, principal, user_id, payload)
