"""
Pydantic models for authentication and role management endpoints.
"""
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, ConfigDict


class Token(BaseModel):
    """JWT token response."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class TokenRefresh(BaseModel):
    """Request to refresh access token."""
    refresh_token: str


class LoginRequest(BaseModel):
    """Login credentials."""
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    """Self-service sign-up."""
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=1, max_length=255)


class UserResponse(BaseModel):
    """User data response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: str
    is_active: bool
    created_at: datetime
    last_login_at: datetime | None = None


class MeResponse(UserResponse):
    """Current user plus resolved roles and permissions."""
    roles: list[str]
    permissions: list[str]


class RoleResponse(BaseModel):
    name: str
    permissions: list[str]


class RoleGrant(BaseModel):
    role: str = Field(..., min_length=1, max_length=50)


class UserRolesResponse(BaseModel):
    user_id: int
    roles: list[str]
