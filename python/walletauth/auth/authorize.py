"""Authorization: bind the caller's wallet to the request.

Runs after authentication, for bearer-token requests only. Signed requests
already carry their wallet from the upstream lookup and pass through.

Wallet resolution:
- If the request already names a wallet, it must exist, belong to the
  authenticated user, and not be disabled.
- Otherwise the user's first-created enabled wallet is used.
"""

from typing import Any

from walletauth.auth.context import (
    Outcome,
    Proceed,
    Reject,
    RequestContext,
    TokenIdentity,
    WalletBinding,
)
from walletauth.auth.credentials import has_bearer_header
from walletauth.auth.stores import WalletStore
from walletauth.errors import ApiError, ApiErrorCode, UnauthorizedError
from walletauth.logging import get_logger

_logger = get_logger(__name__)

LOOKUP_FAILED_MESSAGE = "Authorize middleware: Database lookup failed"


class Authorizer:
    """Resolves and validates the wallet a token-authenticated caller acts on."""

    def __init__(self, wallet_store: WalletStore | None, logger: Any = None):
        if wallet_store is None:
            raise ValueError("wallet_store is required")
        self.wallet_store = wallet_store
        self.logger = logger if logger is not None else _logger

    async def authorize(self, context: RequestContext) -> Outcome:
        """Authorize the request.

        Returns:
            Proceed(context) unchanged for requests without a bearer header,
            Proceed with a context carrying the WalletBinding, or Reject.
        """
        if not has_bearer_header(context.headers):
            return Proceed(context)

        try:
            binding = await self._bind_wallet(context)
        except ApiError as e:
            return Reject(e)

        return Proceed(context.with_wallet_binding(binding))

    async def _bind_wallet(self, context: RequestContext) -> WalletBinding:
        identity = context.identity
        if not isinstance(identity, TokenIdentity):
            self.logger.warning("authorization_failure", reason="not_authenticated")
            raise UnauthorizedError()

        user_id = identity.user_id

        try:
            if context.wallet is not None:
                wallet = await self._find_referenced_wallet(user_id, context.wallet.id)
            else:
                wallet = await self._find_first_wallet(user_id)
        except ApiError:
            raise
        except Exception as e:
            self.logger.error(
                "authorize_lookup_failed", user_id=str(user_id), error=str(e), exc_info=e
            )
            raise ApiError(ApiErrorCode.E_INTERNAL_LOOKUP_FAILURE, LOOKUP_FAILED_MESSAGE) from e

        binding = WalletBinding(wallet=wallet)
        if binding.user_id != user_id:
            self.logger.warning(
                "authorization_failure",
                reason="wallet_owner_mismatch",
                user_id=str(user_id),
                wallet_id=str(binding.wallet_id),
            )
            raise UnauthorizedError()

        return binding

    async def _find_referenced_wallet(self, user_id: Any, wallet_id: Any) -> Any:
        wallet = await self.wallet_store.find_one(
            {"id": wallet_id, "user_id": user_id, "disabled": False}
        )
        if wallet is None or getattr(wallet, "disabled", False):
            self.logger.warning(
                "wallet_record_not_found", user_id=str(user_id), wallet_id=str(wallet_id)
            )
            raise UnauthorizedError()
        return wallet

    async def _find_first_wallet(self, user_id: Any) -> Any:
        wallet = await self.wallet_store.find_first_created(
            {"user_id": user_id, "disabled": False}
        )
        if wallet is None or getattr(wallet, "disabled", False):
            self.logger.warning("wallet_record_not_found", user_id=str(user_id))
            raise UnauthorizedError()
        return wallet
