"""SQLAlchemy-backed implementations of the auth store interfaces.

Each lookup opens a short-lived session, runs one SELECT and closes the
session. Sync DB access runs in the threadpool (starlette) so concurrent
requests are not blocked while a query is in flight. Returned records are
detached ORM instances with all columns loaded.
"""

from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool

from walletauth.db.models import AccessTokenBlacklist, Base, User, Wallet


class SqlStore:
    """Query-by-filter access to one mapped table."""

    model: type[Base]

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def _select(self, filter: Mapping[str, Any]):
        columns = self.model.__table__.columns
        unknown = [key for key in filter if key not in columns]
        if unknown:
            raise ValueError(f"Unknown {self.model.__tablename__} filter fields: {unknown}")
        return select(self.model).filter_by(**filter)

    def _first(self, filter: Mapping[str, Any], *order_by: Any) -> Any | None:
        query = self._select(filter)
        if order_by:
            query = query.order_by(*order_by)
        with self.session_factory() as session:
            return session.scalars(query.limit(1)).first()

    async def find_one(self, filter: Mapping[str, Any]) -> Any | None:
        """Return any record matching every field of the filter, or None."""
        return await run_in_threadpool(self._first, filter)


class SqlUserStore(SqlStore):
    model = User


class SqlRevocationStore(SqlStore):
    model = AccessTokenBlacklist


class SqlWalletStore(SqlStore):
    model = Wallet

    async def find_first_created(self, filter: Mapping[str, Any]) -> Any | None:
        """Return the oldest wallet matching the filter (ties broken by id)."""
        return await run_in_threadpool(
            self._first, filter, Wallet.created_at.asc(), Wallet.id.asc()
        )
