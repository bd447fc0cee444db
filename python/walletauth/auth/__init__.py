"""Authentication and authorization module.

This module provides:
- Credential extraction (detached signature vs bearer token)
- Signature and token verification
- Revocation check and identity resolution
- Authenticator / Authorizer pipeline stages
- Auth middleware for FastAPI
"""

from walletauth.auth.authenticate import Authenticator
from walletauth.auth.authorize import Authorizer
from walletauth.auth.context import (
    Outcome,
    Proceed,
    Reject,
    RequestContext,
    SignatureIdentity,
    TokenIdentity,
    WalletBinding,
)
from walletauth.auth.middleware import (
    AuthMiddleware,
    get_auth_context,
    get_current_wallet,
)
from walletauth.auth.verifier import JwtTokenVerifier, TokenVerifier

__all__ = [
    "Authenticator",
    "Authorizer",
    "AuthMiddleware",
    "JwtTokenVerifier",
    "Outcome",
    "Proceed",
    "Reject",
    "RequestContext",
    "SignatureIdentity",
    "TokenIdentity",
    "TokenVerifier",
    "WalletBinding",
    "get_auth_context",
    "get_current_wallet",
]
