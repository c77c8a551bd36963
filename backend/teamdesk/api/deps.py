from __future__ import annotations

import hmac
from uuid import UUID

from fastapi import Depends, Header
from sqlmodel import Session

from teamdesk.core.auth import Principal
from teamdesk.core.config import settings
from teamdesk.core.errors import Unauthorized
from teamdesk.core.logging import get_logger
from teamdesk.db.session import get_session
from teamdesk.services import directory

logger = get_logger(__name__)

SESSION_DEP = Depends(get_session)


def _check_service_token(authorization: str | None) -> None:
    expected = settings.local_auth_token
    if not expected:
        return
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not hmac.compare_digest(token.strip(), expected):
        logger.info("auth.token.rejected")
        raise Unauthorized("Invalid service token")


def get_principal(
    x_actor_id: str | None = Header(default=None),
    authorization: str | None = Header(default=None),
    session: Session = SESSION_DEP,
) -> Principal:
    """Resolve the caller forwarded by the upstream auth layer.

    The proxy authenticates the user and passes their id in ``X-Actor-Id``
    along with the shared service token.
    """
    _check_service_token(authorization)
    if not x_actor_id:
        raise Unauthorized()
    try:
        user_id = UUID(x_actor_id.strip())
    except ValueError:
        raise Unauthorized() from None
    user = directory.find_user(session, user_id)
    if user is None:
        logger.info("auth.actor.unknown", extra={"user_id": str(user_id)})
        raise Unauthorized()
    return directory.principal_for_user(user)


PRINCIPAL_DEP = Depends(get_principal)
