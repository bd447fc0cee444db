"""Store interfaces consumed by the auth pipeline.

The pipeline only reads. Filters are plain mappings of field name to
expected value; a store returns the first matching record or None, and
raises on infrastructure failure.
"""

from collections.abc import Mapping
from typing import Any, Protocol

Filter = Mapping[str, Any]


class RevocationStore(Protocol):
    """Revoked access tokens, keyed by `access_token`."""

    async def find_one(self, filter: Filter) -> Any | None: ...


class UserStore(Protocol):
    """Persisted accounts, looked up by `registration_id` or `username`."""

    async def find_one(self, filter: Filter) -> Any | None: ...


class WalletStore(Protocol):
    """Wallet records owned by users."""

    async def find_one(self, filter: Filter) -> Any | None: ...

    async def find_first_created(self, filter: Filter) -> Any | None:
        """Oldest record matching the filter."""
        ...
