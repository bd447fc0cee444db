"""Pure ASGI middleware adding access-control headers to every response.

Does not buffer responses: headers are injected on the initial
http.response.start message only.
"""

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

DEFAULT_ALLOW_ORIGIN = "*"
DEFAULT_ALLOW_HEADERS = "Origin, X-Requested-With, Content-Type, Accept"


class AccessControlHeadersMiddleware:
    """Sets Access-Control-Allow-Origin and Access-Control-Allow-Headers."""

    def __init__(
        self,
        app: ASGIApp,
        allow_origin: str = DEFAULT_ALLOW_ORIGIN,
        allow_headers: str = DEFAULT_ALLOW_HEADERS,
    ):
        self.app = app
        self.allow_origin = allow_origin
        self.allow_headers = allow_headers

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers["Access-Control-Allow-Origin"] = self.allow_origin
                headers["Access-Control-Allow-Headers"] = self.allow_headers
            await send(message)

        await self.app(scope, receive, send_with_headers)
