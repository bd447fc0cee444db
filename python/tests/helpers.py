"""Test helpers for authentication and common test operations.

Provides:
- Token minting for test authentication
- Header generation for signed and token requests
- User and wallet record builders
"""

import time
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Any
from uuid import UUID, uuid4

import jwt

from tests.support.keys import RsaKeypair, generate_rsa_private_pem
from walletauth.auth.signature import sign_payload

# Default test token settings
DEFAULT_ISSUER = "test-issuer"
DEFAULT_AUDIENCE = "test-audience"
DEFAULT_EXPIRES_IN = 3600  # 1 hour

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


def mint_test_token(
    subject: str,
    expires_in: int = DEFAULT_EXPIRES_IN,
    issuer: str = DEFAULT_ISSUER,
    audience: str = DEFAULT_AUDIENCE,
    private_key: bytes | None = None,
    **extra_claims,
) -> str:
    """Mint a valid test JWT token.

    Args:
        subject: The registration id to set as the `sub` claim.
        expires_in: Token validity in seconds from now.
        issuer: The `iss` claim value.
        audience: The `aud` claim value.
        private_key: Signing key; defaults to the shared test keypair.
        **extra_claims: Additional claims to include in the token.

    Returns:
        A signed JWT token string.
    """
    now = int(time.time())
    payload = {
        "sub": subject,
        "iss": issuer,
        "aud": audience,
        "iat": now,
        "exp": now + expires_in,
        **extra_claims,
    }

    return jwt.encode(payload, private_key or RsaKeypair.private_pem(), algorithm="RS256")


def mint_expired_token(subject: str) -> str:
    """Mint a token that expired 1 hour ago."""
    return mint_test_token(subject, expires_in=-3600)


def mint_token_with_bad_signature(subject: str) -> str:
    """Mint a token signed with a different key (bad signature)."""
    return mint_test_token(subject, private_key=generate_rsa_private_pem())


def auth_headers(token: str, **extra: str) -> dict[str, str]:
    """Generate authorization headers for a test request."""
    return {"Authorization": f"Bearer {token}", **extra}


def signature_headers(
    payload: dict[str, Any], private_key: str, **extra: str
) -> dict[str, str]:
    """Sign a payload and return the X-API-Signature header."""
    return {"X-API-Signature": sign_payload(payload, private_key), **extra}


def make_user(registration_id: str = "u1", user_id: UUID | None = None) -> SimpleNamespace:
    """Build an in-memory user record."""
    return SimpleNamespace(
        id=user_id or uuid4(),
        registration_id=registration_id,
        username=None,
    )


def make_wallet(
    user_id: UUID,
    public_key: str = "",
    disabled: bool = False,
    age_days: int = 0,
    wallet_id: UUID | None = None,
) -> SimpleNamespace:
    """Build an in-memory wallet record.

    Args:
        user_id: Owning user.
        public_key: Hex public key for signed requests.
        disabled: Whether the wallet is disabled.
        age_days: Creation offset from BASE_TIME; higher is newer.
        wallet_id: Explicit id, random if None.
    """
    return SimpleNamespace(
        id=wallet_id or uuid4(),
        user_id=user_id,
        public_key=public_key,
        network="mainnet",
        disabled=disabled,
        created_at=BASE_TIME + timedelta(days=age_days),
    )


def revoked_token(token: str) -> SimpleNamespace:
    """Build a revocation record for a token."""
    return SimpleNamespace(id=uuid4(), access_token=token)
