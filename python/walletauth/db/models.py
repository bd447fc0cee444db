"""SQLAlchemy ORM models for the auth stores.

Column types are portable (generic Uuid, DateTime) so the same models back
PostgreSQL in deployments and sqlite in tests.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Text, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class User(Base):
    """User account model.

    `registration_id` matches the `sub` claim of the user's access tokens.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    registration_id: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    username: Mapped[str | None] = mapped_column(Text, unique=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    wallets: Mapped[list["Wallet"]] = relationship(
        "Wallet", back_populates="user", cascade="all, delete-orphan"
    )


class Wallet(Base):
    """A user's wallet.

    `public_key` is the hex secp256k1 key detached request signatures are
    checked against. Disabled wallets are never bound to a request.
    """

    __tablename__ = "wallets"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    public_key: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    network: Mapped[str] = mapped_column(Text, nullable=False, default="mainnet")
    disabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    user: Mapped["User"] = relationship("User", back_populates="wallets")

    __table_args__ = (Index("idx_wallets_user_created", "user_id", "created_at"),)


class AccessTokenBlacklist(Base):
    """Access tokens revoked before their expiry.

    Rows are written by the token issuer; this service only reads them.
    """

    __tablename__ = "access_token_blacklist"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    access_token: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
