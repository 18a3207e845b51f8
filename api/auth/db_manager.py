# api/auth/db_manager.py
"""
Business logic for users and role assignments.

Every function that changes a user's roles invalidates that user's entry in
the role cache once the change is committed.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ErrorKind, ServiceError, not_found
from core.role_cache import AccessEntry, RoleCache
from core.security import get_password_hash, verify_password
from db_models.user import User, UserRole
from . import queries

logger = logging.getLogger(__name__)


async def load_user_access(db: AsyncSession, user_id: int) -> AccessEntry:
    """Load a user's role and permission names from the store (cache loader)."""
    result = await db.execute(queries.select_access_rows_for_user(user_id))
    roles: set[str] = set()
    permissions: set[str] = set()
    for role_name, permission_name in result.all():
        roles.add(role_name)
        if permission_name is not None:
            permissions.add(permission_name)
    return AccessEntry(roles=frozenset(roles), permissions=frozenset(permissions))


async def get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(queries.select_user_by_id(user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise not_found("User")
    return user


async def register_user(
    db: AsyncSession,
    email: str,
    password: str,
    full_name: str,
    default_role: str,
    role_cache: RoleCache | None = None,
) -> User:
    """
    Create a user and grant the default role when it exists.

    Raises:
        ServiceError(CONFLICT): If the email is already registered
    """
    result = await db.execute(queries.select_user_by_email(email))
    if result.scalar_one_or_none() is not None:
        raise ServiceError(ErrorKind.CONFLICT, "Email already registered", code="DUPLICATE_EMAIL")

    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        full_name=full_name,
        is_active=True,
    )
    db.add(user)
    try:
        await db.flush()

        result = await db.execute(queries.select_role_by_name(default_role))
        role = result.scalar_one_or_none()
        if role is not None:
            db.add(UserRole(user_id=user.id, role_id=role.id))
        else:
            logger.warning("Default role %r does not exist; user %s has no roles", default_role, email)

        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ServiceError(ErrorKind.CONFLICT, "Email already registered", code="DUPLICATE_EMAIL") from exc

    if role_cache is not None:
        role_cache.invalidate(user.id)
    return await get_user(db, user.id)


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    """Return the user when the credentials match an active account."""
    result = await db.execute(queries.select_user_by_email(email))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(password, user.hashed_password):
        return None
    if not user.is_active:
        return None

    user.last_login_at = datetime.now(timezone.utc)
    await db.commit()
    return await get_user(db, user.id)


async def list_roles(db: AsyncSession) -> list[dict]:
    """All roles with their permission names, alphabetically."""
    result = await db.execute(queries.select_roles_with_permissions())
    roles: dict[str, list[str]] = {}
    for role_name, permission_name in result.all():
        perms = roles.setdefault(role_name, [])
        if permission_name is not None:
            perms.append(permission_name)
    return [{"name": name, "permissions": perms} for name, perms in roles.items()]


async def get_user_role_names(db: AsyncSession, user_id: int) -> list[str]:
    result = await db.execute(queries.select_role_names_for_user(user_id))
    return list(result.scalars().all())


async def grant_role(
    db: AsyncSession,
    user_id: int,
    role_name: str,
    role_cache: RoleCache | None = None,
) -> list[str]:
    """
    Grant a role to a user. Granting a role the user already holds is a no-op.

    Raises:
        ServiceError(NOT_FOUND): If the user or role doesn't exist
    """
    await get_user(db, user_id)
    result = await db.execute(queries.select_role_by_name(role_name))
    role = result.scalar_one_or_none()
    if role is None:
        raise not_found("Role")

    result = await db.execute(queries.select_user_role(user_id, role.id))
    if result.scalar_one_or_none() is None:
        db.add(UserRole(user_id=user_id, role_id=role.id))
        try:
            await db.commit()
        except IntegrityError:
            # A concurrent grant of the same role won the race
            await db.rollback()
        logger.info("Granted role %s to user %s", role_name, user_id)

    if role_cache is not None:
        role_cache.invalidate(user_id)
    return await get_user_role_names(db, user_id)


async def revoke_role(
    db: AsyncSession,
    user_id: int,
    role_name: str,
    role_cache: RoleCache | None = None,
) -> list[str]:
    """
    Remove a role from a user.

    Raises:
        ServiceError(NOT_FOUND): If the user or role doesn't exist
    """
    await get_user(db, user_id)
    result = await db.execute(queries.select_role_by_name(role_name))
    role = result.scalar_one_or_none()
    if role is None:
        raise not_found("Role")

    await db.execute(queries.delete_user_role(user_id, role.id))
    await db.commit()
    logger.info("Revoked role %s from user %s", role_name, user_id)

    if role_cache is not None:
        role_cache.invalidate(user_id)
    return await get_user_role_names(db, user_id)
