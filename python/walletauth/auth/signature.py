"""Detached signature verification.

Provides:
- SignatureOracle: Protocol for the cryptographic check
- Secp256k1SignatureOracle: ECDSA/secp256k1 over canonical JSON (default)
- sign_payload: Client-side counterpart of the default oracle
- verify_signature: Validates inputs, fuses signature and payload, calls the oracle

Wire format of the default oracle:
- message: canonical JSON of the payload without its "signature" key
  (sorted keys, compact separators), hashed with SHA-256
- signature: 128 hex chars, r || s as two 32-byte big-endian integers
- public key: hex SEC1 point (compressed or uncompressed)
"""

import json
from collections.abc import Mapping
from typing import Any, Protocol

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from walletauth.errors import ApiError, ApiErrorCode
from walletauth.logging import get_logger

logger = get_logger(__name__)

SIGNATURE_FIELD = "signature"
SIGNATURE_HEX_LENGTH = 128
_COMPONENT_BYTES = 32


class SignatureOracle(Protocol):
    """Protocol for detached signature verification.

    Implementations receive the payload with its "signature" entry and the
    hex public key, and answer whether the signature covers the payload.
    They may raise on malformed input.
    """

    def verify(self, payload: Mapping[str, Any], public_key: str) -> bool: ...


def canonical_message(payload: Mapping[str, Any]) -> bytes:
    """Serialize the signed part of a payload deterministically."""
    unsigned = {key: value for key, value in payload.items() if key != SIGNATURE_FIELD}
    return json.dumps(unsigned, sort_keys=True, separators=(",", ":"), default=str).encode(
        "utf-8"
    )


def load_public_key(public_key: str) -> ec.EllipticCurvePublicKey:
    """Load a hex SEC1 secp256k1 public key.

    Raises:
        ValueError: The value is not hex or not a point on the curve.
    """
    return ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), bytes.fromhex(public_key))


def public_key_hex(private_key: ec.EllipticCurvePrivateKey) -> str:
    """Uncompressed hex public key for a private key."""
    return (
        private_key.public_key()
        .public_bytes(serialization.Encoding.X962, serialization.PublicFormat.UncompressedPoint)
        .hex()
    )


def load_private_key(private_key: str) -> ec.EllipticCurvePrivateKey:
    """Load a secp256k1 private key from its hex scalar."""
    return ec.derive_private_key(int(private_key, 16), ec.SECP256K1())


def sign_payload(payload: Mapping[str, Any], private_key: str) -> str:
    """Sign a payload the way Secp256k1SignatureOracle expects.

    Args:
        payload: Data to sign; a "signature" key, if any, is ignored.
        private_key: Hex private scalar.

    Returns:
        128-char hex signature.
    """
    key = load_private_key(private_key)
    der = key.sign(canonical_message(payload), ec.ECDSA(hashes.SHA256()))
    r, s = decode_dss_signature(der)
    return r.to_bytes(_COMPONENT_BYTES, "big").hex() + s.to_bytes(_COMPONENT_BYTES, "big").hex()


class Secp256k1SignatureOracle:
    """ECDSA secp256k1 / SHA-256 verification of a fused payload."""

    def verify(self, payload: Mapping[str, Any], public_key: str) -> bool:
        """Check the payload's embedded signature against public_key.

        Raises:
            ValueError: Signature or key is not well-formed hex, or the key
                is not a valid curve point.
        """
        signature = str(payload.get(SIGNATURE_FIELD, ""))
        if len(signature) != SIGNATURE_HEX_LENGTH:
            raise ValueError("Signature must be 128 hex characters")

        raw = bytes.fromhex(signature)
        r = int.from_bytes(raw[:_COMPONENT_BYTES], "big")
        s = int.from_bytes(raw[_COMPONENT_BYTES:], "big")

        key = load_public_key(public_key)
        try:
            key.verify(
                encode_dss_signature(r, s),
                canonical_message(payload),
                ec.ECDSA(hashes.SHA256()),
            )
        except InvalidSignature:
            return False
        return True


def verify_signature(
    signature: str | None,
    public_key: str | None,
    payload: Mapping[str, Any] | None = None,
    oracle: SignatureOracle | None = None,
) -> bool:
    """Verify a detached signature over the request payload.

    The signature is fused into the payload under "signature" before the
    oracle sees it; keys already present in the payload take precedence.

    Args:
        signature: Signature header value.
        public_key: Key the signature must verify against.
        payload: Request body or query parameters.
        oracle: Cryptographic check; defaults to Secp256k1SignatureOracle.

    Returns:
        True when the signature verifies.

    Raises:
        ApiError(E_MISSING_CONTEXT): The public key is missing.
        ApiError(E_SIGNATURE_INVALID): The signature is empty or does not verify.
    """
    if not signature and not public_key:
        raise ApiError(
            ApiErrorCode.E_MISSING_CONTEXT,
            "No public key or signature found. Both of these are required "
            "to verify a payload against a signature.",
        )

    if not public_key:
        raise ApiError(ApiErrorCode.E_MISSING_CONTEXT, "No public key found.")

    if not signature:
        raise ApiError(ApiErrorCode.E_SIGNATURE_INVALID, "No signature found.")

    oracle = oracle or Secp256k1SignatureOracle()
    fused_payload = {SIGNATURE_FIELD: signature, **(payload or {})}

    try:
        verified = oracle.verify(fused_payload, public_key)
    except Exception as e:
        logger.warning("auth_failure", reason="signature_malformed", error=str(e))
        raise ApiError(
            ApiErrorCode.E_SIGNATURE_INVALID, "Signature verification failed."
        ) from e

    if verified is True:
        return True

    logger.warning("auth_failure", reason="signature_mismatch")
    raise ApiError(ApiErrorCode.E_SIGNATURE_INVALID)
