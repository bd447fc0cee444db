"""Middleware modules for the walletauth API."""

from walletauth.middleware.cors import AccessControlHeadersMiddleware
from walletauth.middleware.network import NETWORK_HEADER, NetworkHeaderMiddleware
from walletauth.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware

__all__ = [
    "AccessControlHeadersMiddleware",
    "NetworkHeaderMiddleware",
    "RequestIDMiddleware",
    "NETWORK_HEADER",
    "REQUEST_ID_HEADER",
]
