# api/auth/queries.py
"""
SQLAlchemy query builders for users, roles and permissions.
"""
from sqlalchemy import select, delete

from db_models.user import User, Role, Permission, UserRole, RolePermission


def select_user_by_id(user_id: int):
    return (
        select(User)
        .where(User.id == user_id)
        .execution_options(populate_existing=True)
    )


def select_user_by_email(email: str):
    return select(User).where(User.email == email)


def select_role_by_name(name: str):
    return select(Role).where(Role.name == name)


def select_user_role(user_id: int, role_id: int):
    return select(UserRole).where(UserRole.user_id == user_id, UserRole.role_id == role_id)


def delete_user_role(user_id: int, role_id: int):
    return delete(UserRole).where(UserRole.user_id == user_id, UserRole.role_id == role_id)


def select_role_names_for_user(user_id: int):
    return (
        select(Role.name)
        .join(UserRole, UserRole.role_id == Role.id)
        .where(UserRole.user_id == user_id)
        .order_by(Role.name)
    )


def select_access_rows_for_user(user_id: int):
    """
    (role name, permission name) pairs for a user: user -> roles ->
    role-permissions -> permissions. Roles without permissions yield a
    NULL permission name.
    """
    return (
        select(Role.name, Permission.name)
        .select_from(UserRole)
        .join(Role, UserRole.role_id == Role.id)
        .outerjoin(RolePermission, RolePermission.role_id == Role.id)
        .outerjoin(Permission, RolePermission.permission_id == Permission.id)
        .where(UserRole.user_id == user_id)
    )


def select_roles_with_permissions():
    return (
        select(Role.name, Permission.name)
        .select_from(Role)
        .outerjoin(RolePermission, RolePermission.role_id == Role.id)
        .outerjoin(Permission, RolePermission.permission_id == Permission.id)
        .order_by(Role.name, Permission.name)
    )
