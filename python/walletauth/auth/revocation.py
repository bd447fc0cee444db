"""Revoked token check."""

from typing import Any

from walletauth.auth.stores import RevocationStore
from walletauth.errors import ApiError, ApiErrorCode
from walletauth.logging import get_logger

_logger = get_logger(__name__)


async def check_revocation(
    token: str,
    store: RevocationStore | None,
    logger: Any = None,
) -> None:
    """Reject tokens present in the revocation set.

    Args:
        token: The encoded token, exactly as it was presented and revoked.
        store: Revocation store; when None the check is skipped.
        logger: Optional structured logger, defaults to the module logger.

    Raises:
        ApiError(E_REVOKED): The token has been revoked.
        ApiError(E_LOOKUP_FAILED): The store could not be queried.
    """
    if store is None:
        return

    log = logger if logger is not None else _logger

    try:
        record = await store.find_one({"access_token": token})
    except Exception as e:
        log.error("revocation_lookup_failed", error=str(e), exc_info=e)
        raise ApiError(ApiErrorCode.E_LOOKUP_FAILED, f"Revocation lookup failed: {e}") from e

    if record is not None:
        log.warning("auth_failure", reason="token_revoked")
        raise ApiError(ApiErrorCode.E_REVOKED)
