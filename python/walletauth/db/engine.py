"""SQLAlchemy engine creation and configuration.

The engine is created once at application startup and provides
connection pooling for all store lookups.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from walletauth.config import get_settings


def create_db_engine(database_url: str | None = None) -> Engine:
    """Create a SQLAlchemy engine with the given URL.

    Args:
        database_url: Connection string. If None, uses settings.

    Raises:
        ValueError: No URL given and DATABASE_URL is not configured.
    """
    if database_url is None:
        database_url = get_settings().database_url
    if not database_url:
        raise ValueError("DATABASE_URL is not configured")

    return create_engine(
        database_url,
        pool_pre_ping=True,
        echo=False,
    )
