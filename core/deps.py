# core/deps.py
"""
FastAPI dependencies for authentication and authorization.

Authorization is resolved through the app-owned RoleCache: role checks use
OR semantics (any listed role passes), permission checks use AND semantics
(every listed permission is required). Both fail closed.
"""
import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from db_models.user import User
from core.errors import ErrorKind, ServiceError
from core.notifier import Notifier
from core.role_cache import AccessEntry, RoleCache
from core.security import decode_token, user_id_from_payload

logger = logging.getLogger(__name__)

# OAuth2 scheme for token extraction from Authorization header
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


class AuthenticationError(HTTPException):
    """Raised when authentication fails."""
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=ErrorKind.UNAUTHORIZED.status_code,
            detail=ServiceError(ErrorKind.UNAUTHORIZED, detail).to_dict(),
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(HTTPException):
    """Raised when user lacks required roles or permissions."""
    def __init__(self, detail: str = "Insufficient permissions"):
        super().__init__(
            status_code=ErrorKind.FORBIDDEN.status_code,
            detail=ServiceError(ErrorKind.FORBIDDEN, detail).to_dict(),
        )


# ---------- app-owned components ----------

def get_role_cache(request: Request) -> RoleCache:
    return request.app.state.role_cache


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


RoleCacheDep = Annotated[RoleCache, Depends(get_role_cache)]
NotifierDep = Annotated[Notifier, Depends(get_notifier)]


# ---------- authentication ----------

async def get_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Resolve the authenticated user from the bearer token.

    Raises:
        AuthenticationError: If token is missing, invalid, or user not found
    """
    if token is None:
        raise AuthenticationError()

    payload = decode_token(token)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type")

    user_id = user_id_from_payload(payload)
    if user_id is None:
        raise AuthenticationError("Invalid token payload")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is disabled")

    return user


async def require_authenticated(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Pass-through dependency for endpoints that only need a session."""
    return current_user


async def get_current_access(
    current_user: Annotated[User, Depends(require_authenticated)],
    cache: RoleCacheDep,
    db: AsyncSession = Depends(get_session),
) -> AccessEntry:
    """Roles and permissions of the current user, via the role cache."""
    try:
        return await cache.resolve(db, current_user.id)
    except SQLAlchemyError:
        # Fail closed: an unresolvable role set grants nothing
        logger.exception("Could not resolve roles for user %s", current_user.id)
        raise AuthorizationError("Could not verify permissions") from None


# ---------- authorization factories ----------

def require_any_role(*roles: str):
    """Dependency factory: user must hold at least one of ``roles``."""
    async def dependency(
        current_user: Annotated[User, Depends(require_authenticated)],
        access: Annotated[AccessEntry, Depends(get_current_access)],
    ) -> User:
        if not access.has_any_role(roles):
            logger.warning("User %s denied: needs one of roles %s", current_user.id, roles)
            raise AuthorizationError(f"Insufficient permissions: requires role {' or '.join(roles)}")
        return current_user
    return dependency


def require_all_permissions(*permissions: str):
    """Dependency factory: user must hold every permission in ``permissions``."""
    async def dependency(
        current_user: Annotated[User, Depends(require_authenticated)],
        access: Annotated[AccessEntry, Depends(get_current_access)],
    ) -> User:
        missing = [p for p in permissions if p not in access.permissions]
        if missing:
            logger.warning("User %s denied: missing permissions %s", current_user.id, missing)
            raise AuthorizationError(f"Insufficient permissions: missing {', '.join(missing)}")
        return current_user
    return dependency


# Type aliases for cleaner endpoint signatures
CurrentUser = Annotated[User, Depends(require_authenticated)]
CurrentAccess = Annotated[AccessEntry, Depends(get_current_access)]
AdminUser = Annotated[User, Depends(require_any_role("admin"))]
CanReadBikes = Annotated[User, Depends(require_all_permissions("bikes:read"))]
CanCreateBikes = Annotated[User, Depends(require_all_permissions("bikes:create"))]
CanUpdateBikes = Annotated[User, Depends(require_all_permissions("bikes:update"))]
CanCreateWorkOrders = Annotated[User, Depends(require_all_permissions("workorders:create"))]
CanUpdateWorkOrders = Annotated[User, Depends(require_all_permissions("workorders:update"))]
