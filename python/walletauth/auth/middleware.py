"""Authentication middleware for FastAPI.

Provides:
- AuthMiddleware: Runs authentication then authorization for every non-public request
- get_auth_context / get_current_wallet: Dependencies for route handlers
"""

import json
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from walletauth.auth.authenticate import Authenticator
from walletauth.auth.authorize import Authorizer
from walletauth.auth.context import Proceed, RequestContext, TokenIdentity
from walletauth.errors import ApiError, ApiErrorCode, InvalidRequestError, UnauthorizedError
from walletauth.logging import bind_auth_context, get_logger
from walletauth.responses import render_error

logger = get_logger(__name__)

# Paths that don't require authentication
PUBLIC_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

WalletLookup = Callable[[Request], Awaitable[Any]]


class AuthMiddleware(BaseHTTPMiddleware):
    """Authentication and authorization middleware.

    Order of checks:
    1. Skip if public path
    2. Build the request context (headers, query, upstream wallet). The body
       is parsed later, and only for signed requests
    3. Authenticate (signature or bearer token)
    4. Authorize (bind wallet for bearer-token requests)
    5. Attach the resulting context, user and wallet to request state
    """

    def __init__(
        self,
        app: ASGIApp,
        authenticator: Authenticator,
        authorizer: Authorizer | None = None,
        wallet_lookup: WalletLookup | None = None,
        public_paths: set[str] | None = None,
    ):
        """Initialize the auth middleware.

        Args:
            app: The ASGI application.
            authenticator: Authentication orchestrator.
            authorizer: Wallet binding step; skipped when None.
            wallet_lookup: Async function(request) -> wallet record used when no
                earlier middleware has set request.state.wallet.
            public_paths: Paths served without authentication.
        """
        super().__init__(app)
        self.authenticator = authenticator
        self.authorizer = authorizer
        self.wallet_lookup = wallet_lookup
        self.public_paths = PUBLIC_PATHS if public_paths is None else public_paths

    async def dispatch(self, request: Request, call_next) -> JSONResponse:
        """Process the request through auth checks."""
        if request.url.path in self.public_paths:
            return await call_next(request)

        try:
            context = await self._build_context(request)
        except ApiError as e:
            return render_error(e)

        outcome = await self.authenticator.authenticate(context)
        if isinstance(outcome, Proceed) and self.authorizer is not None:
            outcome = await self.authorizer.authorize(outcome.context)

        if not isinstance(outcome, Proceed):
            return render_error(outcome.error)

        self._attach(request, outcome.context)
        return await call_next(request)

    async def _build_context(self, request: Request) -> RequestContext:
        wallet = getattr(request.state, "wallet", None)
        if wallet is None and self.wallet_lookup is not None:
            try:
                wallet = await self.wallet_lookup(request)
            except ApiError:
                raise
            except Exception as e:
                logger.error("wallet_lookup_failed", error=str(e), exc_info=e)
                raise ApiError(ApiErrorCode.E_LOOKUP_FAILED, f"Wallet lookup failed: {e}") from e

        return RequestContext.build(
            method=request.method,
            headers=request.headers,
            query=dict(request.query_params),
            wallet=wallet,
            body_loader=lambda: _read_json_object(request),
        )

    @staticmethod
    def _attach(request: Request, context: RequestContext) -> None:
        request.state.auth = context

        user_id = None
        if isinstance(context.identity, TokenIdentity):
            request.state.user = context.identity.user
            user_id = str(context.identity.user_id)

        wallet_id = None
        if context.wallet_binding is not None:
            request.state.wallet = context.wallet_binding.wallet
            wallet_id = str(context.wallet_binding.wallet_id)
        elif context.wallet is not None:
            request.state.wallet = context.wallet

        bind_auth_context(user_id=user_id, wallet_id=wallet_id)


async def _read_json_object(request: Request) -> dict[str, Any]:
    """Parse the request body as a JSON object; an empty body is {}."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidRequestError(message="Malformed JSON body") from e
    if not isinstance(data, dict):
        raise InvalidRequestError(message="Request body must be a JSON object")
    return data


def get_auth_context(request: Request) -> RequestContext:
    """FastAPI dependency to get the authenticated request context.

    Raises:
        ApiError: If the auth middleware did not run (or path is public).
    """
    context = getattr(request.state, "auth", None)
    if context is None or context.identity is None:
        raise ApiError(ApiErrorCode.E_UNAUTHENTICATED)
    return context


def get_current_wallet(request: Request) -> Any:
    """FastAPI dependency returning the wallet the request acts on."""
    get_auth_context(request)
    wallet = getattr(request.state, "wallet", None)
    if wallet is None:
        raise UnauthorizedError()
    return wallet
