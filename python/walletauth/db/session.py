"""Database session management."""

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from walletauth.db.engine import create_db_engine


def create_session_factory(engine: Engine | None = None) -> sessionmaker[Session]:
    """Create a session factory bound to an engine.

    Args:
        engine: SQLAlchemy engine. If None, one is created from DATABASE_URL.
    """
    if engine is None:
        engine = create_db_engine()

    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
