"""Database module.

Provides engine creation, session management, ORM models and the
SQLAlchemy implementations of the auth stores.
"""

from walletauth.db.engine import create_db_engine
from walletauth.db.models import AccessTokenBlacklist, Base, User, Wallet
from walletauth.db.session import create_session_factory
from walletauth.db.stores import SqlRevocationStore, SqlUserStore, SqlWalletStore

__all__ = [
    # Engine and session
    "create_db_engine",
    "create_session_factory",
    # Models
    "Base",
    "User",
    "Wallet",
    "AccessTokenBlacklist",
    # Stores
    "SqlUserStore",
    "SqlWalletStore",
    "SqlRevocationStore",
]
