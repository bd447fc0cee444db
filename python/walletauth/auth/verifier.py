"""Bearer token verification.

Provides:
- TokenVerifier: Protocol for token verification
- JwtTokenVerifier: PyJWT verifier against a configured public key or secret
- algorithms_for_key: Default algorithm allow-list for a key

Verification failures keep the specific reason reported by the JWT
library (expired, bad signature, malformed, ...), so that callers can
correct their credentials.
"""

from collections.abc import Sequence
from typing import Any, Protocol

import jwt
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    ImmatureSignatureError,
    InvalidAlgorithmError,
    InvalidAudienceError,
    InvalidIssuerError,
    InvalidKeyError,
    InvalidSignatureError,
    InvalidTokenError,
    MissingRequiredClaimError,
)

from walletauth.errors import ApiError, ApiErrorCode
from walletauth.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ALGORITHMS = ("RS256",)
SECRET_ALGORITHMS = ("HS256",)


def algorithms_for_key(key: str | bytes) -> tuple[str, ...]:
    """RS256 for a PEM-encoded public key, HS256 for a shared secret."""
    text = key.decode() if isinstance(key, bytes) else key
    if text.lstrip().startswith("-----BEGIN"):
        return DEFAULT_ALGORITHMS
    return SECRET_ALGORITHMS


class TokenVerifier(Protocol):
    """Protocol for token verification.

    Implementations must verify JWT tokens and return decoded claims.
    """

    def verify(self, token: str) -> dict[str, Any]:
        """Verify token and return decoded claims.

        Args:
            token: The JWT token string to verify (scheme prefix removed).

        Returns:
            Decoded JWT claims dictionary.

        Raises:
            ApiError(E_TOKEN_INVALID): Token is invalid, expired, or malformed.
        """
        ...


class JwtTokenVerifier:
    """Token verifier using a statically configured key.

    Validates:
    - Signature against `key` (PEM public key or shared secret)
    - Algorithm in the configured allow-list
    - exp / nbf with the configured leeway
    - iss and aud when configured
    - sub is present
    """

    def __init__(
        self,
        key: str | bytes | None,
        algorithms: Sequence[str] = DEFAULT_ALGORITHMS,
        issuer: str | None = None,
        audiences: Sequence[str] | None = None,
        leeway: int = 0,
    ):
        """Initialize the verifier.

        Args:
            key: Public key or secret to verify signatures with.
            algorithms: Accepted signing algorithms.
            issuer: Expected `iss` claim, if any.
            audiences: Accepted `aud` values, if any.
            leeway: Clock skew allowance in seconds.
        """
        self.key = key
        self.algorithms = list(algorithms)
        self.issuer = issuer
        self.audiences = list(audiences) if audiences else None
        self.leeway = leeway

    def verify(self, token: str) -> dict[str, Any]:
        """Verify a bearer token.

        Raises:
            ApiError(E_INVALID_REQUEST): Empty token.
            ApiError(E_MISSING_VERIFICATION_KEY): No key configured.
            ApiError(E_TOKEN_INVALID): Token rejected, with the specific reason.
            ApiError(E_INTERNAL): Configured key cannot be parsed.
        """
        if not token:
            raise ApiError(ApiErrorCode.E_INVALID_REQUEST, "No token found.")

        if not self.key:
            raise ApiError(
                ApiErrorCode.E_MISSING_VERIFICATION_KEY, "No secret or public key found."
            )

        try:
            claims = jwt.decode(
                token,
                self.key,
                algorithms=self.algorithms,
                audience=self.audiences,
                issuer=self.issuer,
                leeway=self.leeway,
                options={
                    "require": ["exp", "sub"],
                    "verify_aud": self.audiences is not None,
                },
            )
        except ExpiredSignatureError as e:
            raise self._rejected("expired_token", "jwt expired") from e
        except ImmatureSignatureError as e:
            raise self._rejected("immature_token", "jwt not active") from e
        except InvalidSignatureError as e:
            raise self._rejected("invalid_signature", "invalid signature") from e
        except InvalidAlgorithmError as e:
            raise self._rejected("invalid_algorithm", "invalid algorithm") from e
        except InvalidIssuerError as e:
            raise self._rejected("invalid_issuer", "jwt issuer invalid") from e
        except InvalidAudienceError as e:
            raise self._rejected("invalid_audience", "jwt audience invalid") from e
        except MissingRequiredClaimError as e:
            raise self._rejected("missing_claim", f"jwt {e.claim} missing") from e
        except DecodeError as e:
            raise self._rejected("decode_error", "jwt malformed", error=str(e)) from e
        except (InvalidKeyError, ValueError) as e:
            logger.error("token_key_unusable", error=str(e))
            raise ApiError(ApiErrorCode.E_INTERNAL, "Verification key is unusable") from e
        except InvalidTokenError as e:
            raise self._rejected("invalid_token", str(e) or "invalid token") from e

        if not claims.get("sub"):
            raise self._rejected("missing_sub", "jwt sub missing")

        return claims

    @staticmethod
    def _rejected(reason: str, message: str, **fields: Any) -> ApiError:
        logger.warning("auth_failure", reason=reason, **fields)
        return ApiError(ApiErrorCode.E_TOKEN_INVALID, message)
