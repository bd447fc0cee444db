"""Credential extraction.

Reads the two credential forms a request can carry:
- a detached signature in X-API-Signature
- a bearer token in Authorization

A header counts as present as soon as it exists, even with an empty value.
When both are present the signature wins and the token is never looked at.
"""

from collections.abc import Mapping
from dataclasses import dataclass

# Header names
SIGNATURE_HEADER = "X-API-Signature"
AUTHORIZATION_HEADER = "Authorization"

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class SignatureCredential:
    """Detached signature taken from the signature header, possibly empty."""

    raw: str


@dataclass(frozen=True)
class BearerTokenCredential:
    """Authorization header value, scheme prefix included."""

    raw: str


Credential = SignatureCredential | BearerTokenCredential


def extract_credential(headers: Mapping[str, str]) -> Credential | None:
    """Return the credential that decides how the request is authenticated.

    Args:
        headers: Request headers (case-insensitive mapping).

    Returns:
        SignatureCredential if the signature header exists, otherwise
        BearerTokenCredential if the authorization header exists, otherwise None.
    """
    signature = headers.get(SIGNATURE_HEADER)
    if signature is not None:
        return SignatureCredential(raw=signature)

    authorization = headers.get(AUTHORIZATION_HEADER)
    if authorization is not None:
        return BearerTokenCredential(raw=authorization)

    return None


def has_bearer_header(headers: Mapping[str, str]) -> bool:
    """Whether the request carries an authorization header at all."""
    return headers.get(AUTHORIZATION_HEADER) is not None


def strip_bearer_prefix(raw: str) -> str:
    """Remove an exact "Bearer " prefix.

    The match is case- and spacing-sensitive. "bearer x" is returned
    unchanged and "Bearer  x" keeps its second space; both then fail
    token verification.
    """
    return raw.removeprefix(BEARER_PREFIX)
