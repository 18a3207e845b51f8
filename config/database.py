"""Building the async database URL from deployment components"""
from sqlalchemy.engine import URL


def get_database_url(
    driver: str,
    host: str | None,
    port: int,
    user: str | None,
    password: str | None,
    name: str | None,
) -> str:
    """
    Join connection components into a SQLAlchemy URL string.

    Credentials are escaped, so passwords may contain ``@`` or ``/``.

    Example:
        >>> get_database_url("postgresql+asyncpg", "db", 5432, "shop", "s3cret", "bikeshop")
        'postgresql+asyncpg://shop:s3cret@db:5432/bikeshop'
    """
    url = URL.create(
        drivername=driver,
        username=user,
        password=password,
        host=host,
        port=port,
        database=name,
    )
    return url.render_as_string(hide_password=False)
