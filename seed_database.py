"""Script to seed the database with roles, permissions and the bike catalog"""
import asyncio
import os

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from core.security import get_password_hash
from db import AsyncSessionLocal, init_db
from db_models.catalog import Brand, BikeModel
from db_models.user import Permission, Role, RolePermission, User, UserRole

PERMISSIONS = [
    "bikes:read",
    "bikes:create",
    "bikes:update",
    "bikes:delete",
    "workorders:read",
    "workorders:create",
    "workorders:update",
]

ROLE_PERMISSIONS = {
    "admin": PERMISSIONS,
    "manager": [
        "bikes:read",
        "bikes:create",
        "bikes:update",
        "workorders:read",
        "workorders:create",
        "workorders:update",
    ],
    "medewerker": [
        "bikes:read",
        "bikes:update",
        "workorders:read",
        "workorders:create",
        "workorders:update",
    ],
    "readonly": ["bikes:read", "workorders:read"],
}

BRAND_MODELS = {
    "Giant": ["Defy", "Propel", "TCR", "Escape"],
    "Trek": ["Domane", "Emonda", "Madone", "FX"],
    "Specialized": ["Roubaix", "Tarmac", "Allez", "Sirrus"],
    "Cannondale": ["Synapse", "SuperSix", "CAAD", "Quick"],
    "Gazelle": ["Ultimate", "Chamonix", "Orange", "Paris"],
}


async def _get_or_create(session: AsyncSession, model, **filters):
    result = await session.execute(select(model).filter_by(**filters))
    instance = result.scalar_one_or_none()
    if instance is None:
        instance = model(**filters)
        session.add(instance)
        await session.flush()
    return instance


async def seed_access_catalog(session: AsyncSession) -> dict[str, Role]:
    """
    Upsert permissions and roles; each role's permission set is replaced.

    Returns the roles by name. Does not commit.
    """
    permissions = {}
    for name in PERMISSIONS:
        permissions[name] = await _get_or_create(session, Permission, name=name)

    roles = {}
    for role_name, permission_names in ROLE_PERMISSIONS.items():
        role = await _get_or_create(session, Role, name=role_name)
        await session.execute(delete(RolePermission).where(RolePermission.role_id == role.id))
        for permission_name in permission_names:
            session.add(RolePermission(role_id=role.id, permission_id=permissions[permission_name].id))
        roles[role_name] = role
    await session.flush()
    return roles


async def seed_brands(session: AsyncSession) -> int:
    """Upsert brands and their models. Returns the number of models."""
    count = 0
    for brand_name, model_names in BRAND_MODELS.items():
        brand = await _get_or_create(session, Brand, name=brand_name)
        for model_name in model_names:
            await _get_or_create(session, BikeModel, name=model_name, brand_id=brand.id)
            count += 1
    return count


async def seed_admin(session: AsyncSession, roles: dict[str, Role], email: str, password: str) -> User:
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None:
        user = User(email=email, hashed_password=get_password_hash(password), full_name="Administrator")
        session.add(user)
        await session.flush()

    result = await session.execute(
        select(UserRole).where(UserRole.user_id == user.id, UserRole.role_id == roles["admin"].id)
    )
    if result.scalar_one_or_none() is None:
        session.add(UserRole(user_id=user.id, role_id=roles["admin"].id))
    return user


async def main() -> None:
    print("Creating database tables...")
    await init_db()
    print("[OK] Tables created successfully")

    async with AsyncSessionLocal() as session:
        roles = await seed_access_catalog(session)
        print(f"[OK] {len(PERMISSIONS)} permissions, {len(roles)} roles")

        models = await seed_brands(session)
        print(f"[OK] {len(BRAND_MODELS)} brands with {models} models")

        admin_email = os.environ.get("ADMIN_EMAIL")
        admin_password = os.environ.get("ADMIN_PASSWORD")
        if admin_email and admin_password:
            await seed_admin(session, roles, admin_email, admin_password)
            print(f"[OK] Admin user {admin_email}")

        await session.commit()


if __name__ == "__main__":
    print("=" * 60)
    print("DATABASE SEEDING SCRIPT")
    print("=" * 60)
    asyncio.run(main())
    print("=" * 60)
    print("[OK] Database setup complete!")
    print("=" * 60)
