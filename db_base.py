from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all ORM models.

    Kept free of engine/session imports so Alembic and the seed script can
    import the metadata without pulling in async drivers.
    """
    pass
