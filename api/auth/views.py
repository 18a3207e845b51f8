"""
Authentication and role management endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db import get_session
from core.errors import ServiceError, as_http_exception
from core.rate_limit import auth_limit
from core.security import (
    create_access_token,
    create_refresh_token,
    verify_token_type,
    user_id_from_payload,
)
from core.deps import (
    AdminUser,
    CurrentAccess,
    CurrentUser,
    RoleCacheDep,
)
from .models import (
    Token,
    TokenRefresh,
    LoginRequest,
    RegisterRequest,
    UserResponse,
    MeResponse,
    RoleResponse,
    RoleGrant,
    UserRolesResponse,
)
from . import db_manager


router = APIRouter(prefix="/auth", tags=["authentication"])


def _issue_tokens(user_id: int) -> Token:
    token_data = {"sub": str(user_id)}
    return Token(
        access_token=create_access_token(token_data),
        refresh_token=create_refresh_token(token_data),
    )


def _bad_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": "Incorrect email or password", "code": "UNAUTHORIZED"},
        headers={"WWW-Authenticate": "Bearer"},
    )


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
@auth_limit
async def register(
    request: Request,
    payload: RegisterRequest,
    cache: RoleCacheDep,
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """
    Create an account. New users receive the default shop role.
    """
    try:
        user = await db_manager.register_user(
            db,
            email=payload.email,
            password=payload.password,
            full_name=payload.full_name,
            default_role=settings.DEFAULT_ROLE,
            role_cache=cache,
        )
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return UserResponse.model_validate(user)


@router.post("/login", response_model=Token, summary="Login and get tokens")
@auth_limit
async def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_session),
) -> Token:
    """
    OAuth2 compatible login endpoint (username field carries the email).
    """
    user = await db_manager.authenticate(db, form_data.username, form_data.password)
    if user is None:
        raise _bad_credentials()
    return _issue_tokens(user.id)


@router.post("/login/json", response_model=Token, summary="Login with JSON body")
@auth_limit
async def login_json(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_session),
) -> Token:
    """
    Alternative login endpoint accepting JSON body, for the SPA.
    """
    user = await db_manager.authenticate(db, credentials.email, credentials.password)
    if user is None:
        raise _bad_credentials()
    return _issue_tokens(user.id)


@router.post("/refresh", response_model=Token, summary="Refresh access token")
@auth_limit
async def refresh_token(
    request: Request,
    payload: TokenRefresh,
    db: AsyncSession = Depends(get_session),
) -> Token:
    """
    Get a new access token using a refresh token.
    """
    user_id = user_id_from_payload(verify_token_type(payload.refresh_token, "refresh"))
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid or expired refresh token", "code": "UNAUTHORIZED"},
        )

    try:
        user = await db_manager.get_user(db, user_id)
    except ServiceError:
        user = None
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "User not found or inactive", "code": "UNAUTHORIZED"},
        )

    return _issue_tokens(user.id)


@router.get("/me", response_model=MeResponse, summary="Get current user")
async def get_me(current_user: CurrentUser, access: CurrentAccess) -> MeResponse:
    """Current user's profile with resolved roles and permissions."""
    return MeResponse(
        **UserResponse.model_validate(current_user).model_dump(),
        roles=sorted(access.roles),
        permissions=sorted(access.permissions),
    )


# --- Admin endpoints for role management ---

@router.get("/roles", response_model=list[RoleResponse], summary="List roles (admin)")
async def list_roles(
    admin: AdminUser,
    db: AsyncSession = Depends(get_session),
) -> list[RoleResponse]:
    """All roles and the permissions they grant. Admin only."""
    roles = await db_manager.list_roles(db)
    return [RoleResponse(**role) for role in roles]


@router.post(
    "/users/{user_id}/roles",
    response_model=UserRolesResponse,
    summary="Grant a role to a user (admin)",
)
async def grant_role(
    user_id: int,
    payload: RoleGrant,
    admin: AdminUser,
    cache: RoleCacheDep,
    db: AsyncSession = Depends(get_session),
) -> UserRolesResponse:
    """Grant a role. Takes effect on the user's next request. Admin only."""
    try:
        roles = await db_manager.grant_role(db, user_id, payload.role, role_cache=cache)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return UserRolesResponse(user_id=user_id, roles=roles)


@router.delete(
    "/users/{user_id}/roles/{role_name}",
    response_model=UserRolesResponse,
    summary="Revoke a role from a user (admin)",
)
async def revoke_role(
    user_id: int,
    role_name: str,
    admin: AdminUser,
    cache: RoleCacheDep,
    db: AsyncSession = Depends(get_session),
) -> UserRolesResponse:
    """Revoke a role. Admin only."""
    try:
        roles = await db_manager.revoke_role(db, user_id, role_name, role_cache=cache)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return UserRolesResponse(user_id=user_id, roles=roles)
