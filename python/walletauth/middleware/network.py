"""Pure ASGI middleware validating the Network request header.

- Missing header: the default network is injected so downstream code can
  always read it.
- Unknown value: 400 with the failure envelope, before any auth runs.
"""

from collections.abc import Iterable

from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from walletauth.errors import ApiError, ApiErrorCode
from walletauth.responses import error_response

NETWORK_HEADER = "Network"


class NetworkHeaderMiddleware:
    """Validates or defaults the Network header."""

    def __init__(
        self,
        app: ASGIApp,
        allowed_networks: Iterable[str] = ("mainnet", "rinkeby"),
        default_network: str = "mainnet",
    ):
        self.app = app
        self.allowed_networks = frozenset(allowed_networks)
        self.default_network = default_network

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        network = Headers(scope=scope).get(NETWORK_HEADER)

        if not network:
            headers = MutableHeaders(scope=scope)
            headers[NETWORK_HEADER] = self.default_network
        elif network not in self.allowed_networks:
            error = ApiError(ApiErrorCode.E_INVALID_NETWORK, "Invalid network set in the request.")
            response = JSONResponse(status_code=error.status_code, content=error_response(error))
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)
